"""
Analysis Pipeline Module

Runs parse results through scoring, the dependency graph and wave planning,
and aggregates everything into an AnalysisResult.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from ..config import get_config
from ..domain.entities import Folder
from ..prediction.wave_planner import MigrationWave, WavePlanner
from .complexity_calculator import ComplexityCalculator, JobComplexityResult
from .dependency_graph import DependencyGraph

logger = logging.getLogger(__name__)


def job_risks(result: JobComplexityResult) -> List[str]:
    """Human-readable migration risks of a scored job."""
    risks = []
    if result.is_cyclic:
        risks.append("Cyclic execution pattern - requires special handling in Airflow")
    if result.dependency_count > 5:
        risks.append("High number of dependencies - complex dependency chain")
    if result.is_critical:
        risks.append("Critical job - requires careful testing and validation")
    if result.complexity_score.value > 80:
        risks.append("Very high complexity - consider breaking into smaller DAGs")
    if not risks:
        risks.append("Low risk migration")
    return risks


def suggested_dag_name(job_name: str) -> str:
    return job_name.lower()


def operator_type(result: JobComplexityResult) -> str:
    return "PythonOperator" if result.is_cyclic else "BashOperator"


def job_output(result: JobComplexityResult) -> Dict[str, Any]:
    """Serializable per-job record including the Airflow mapping hints."""
    effort_hours = result.migration_difficulty.estimated_effort_hours
    output = result.to_dict()
    output.update({
        'folder': result.folder_name,
        'estimated_effort_hours': effort_hours,
        'metrics': {
            'dependency_count': result.dependency_count,
            'is_critical': result.is_critical,
            'is_cyclic': result.is_cyclic,
        },
        'risks': job_risks(result),
        'airflow_mapping': {
            'suggested_dag_name': suggested_dag_name(result.job_name),
            'operator_type': operator_type(result),
            'estimated_effort_hours': effort_hours,
        },
    })
    return output


@dataclass
class AnalysisResult:
    """Aggregated outcome of analyzing a catalog."""
    total_jobs: int = 0
    total_folders: int = 0
    average_complexity: float = 0.0
    per_job_results: List[JobComplexityResult] = field(default_factory=list)
    waves: List[MigrationWave] = field(default_factory=list)
    has_cycle: bool = False
    graph_stats: Dict[str, int] = field(default_factory=dict)

    @property
    def has_circular_dependencies(self) -> bool:
        return self.has_cycle

    def jobs_in_wave(self, wave: int) -> List[JobComplexityResult]:
        return [r for r in self.per_job_results if r.migration_wave == wave]

    def to_dict(self, analysis_date: Optional[str] = None) -> Dict[str, Any]:
        """Report document: summary, jobs and migration waves."""
        return {
            'summary': {
                'total_jobs': self.total_jobs,
                'total_folders': self.total_folders,
                'analysis_date': analysis_date or datetime.now().strftime('%Y-%m-%d'),
                'average_complexity_score': round(self.average_complexity, 2),
                'has_circular_dependencies': self.has_cycle,
            },
            'jobs': [job_output(r) for r in self.per_job_results],
            'migration_waves': [w.to_dict() for w in self.waves],
        }


class AnalysisPipeline:
    """
    Orchestrates the analysis of parsed folders.

    Steps: flatten jobs across folders and sub-folders, build the dependency
    graph, score every job, plan waves (which records each job's wave on its
    result), then average the scores. The input is never modified.
    """

    def __init__(self, full_graph_depth: Optional[bool] = None,
                 planner: Optional[WavePlanner] = None):
        if full_graph_depth is None:
            full_graph_depth = get_config().get('scoring', 'full_graph_depth', default=False)
        self.full_graph_depth = bool(full_graph_depth)
        self.planner = planner or WavePlanner()

    def run(self, folders: Sequence[Folder]) -> AnalysisResult:
        jobs = [job for folder in folders for job in folder.all_jobs()]
        logger.info(f"Analyzing {len(jobs)} jobs from {len(folders)} folders")

        graph = DependencyGraph.from_jobs(jobs)
        calculator = ComplexityCalculator(
            full_graph_depth=self.full_graph_depth,
            graph=graph if self.full_graph_depth else None,
        )
        results = calculator.calculate_batch(jobs)

        has_cycle = graph.has_cycle()
        if has_cycle:
            logger.warning("Circular dependencies detected in the job graph")

        waves = self.planner.plan(results)

        average = (
            sum(r.complexity_score.value for r in results) / len(results) if results else 0.0
        )

        return AnalysisResult(
            total_jobs=len(jobs),
            total_folders=len(folders),
            average_complexity=average,
            per_job_results=results,
            waves=waves,
            has_cycle=has_cycle,
            graph_stats=graph.stats(),
        )
