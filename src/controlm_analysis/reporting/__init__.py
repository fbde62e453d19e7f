"""
Reporting Module

Renders analysis results as JSON, CSV, Markdown, HTML and a console summary.
"""

from .exporters import export_csv, export_json, export_markdown, render_markdown
from .html_report import generate_html_report
from .console import print_summary

__all__ = [
    'export_csv',
    'export_json',
    'export_markdown',
    'render_markdown',
    'generate_html_report',
    'print_summary',
]
