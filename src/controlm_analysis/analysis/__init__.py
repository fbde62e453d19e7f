"""
Analysis Module

Dependency graph, complexity scoring and the end-to-end analysis pipeline.
"""

from .dependency_graph import DependencyGraph
from .complexity_calculator import ComplexityCalculator, JobComplexityResult
from .pipeline import AnalysisPipeline, AnalysisResult, job_output, job_risks

__all__ = [
    'DependencyGraph',
    'ComplexityCalculator',
    'JobComplexityResult',
    'AnalysisPipeline',
    'AnalysisResult',
    'job_output',
    'job_risks',
]
