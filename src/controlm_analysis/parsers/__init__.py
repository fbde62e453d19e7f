"""
Parsers Module

Reads Control-M XML catalog exports into the domain model.
"""

from .controlm_parser import ControlMParser

__all__ = [
    'ControlMParser',
]
