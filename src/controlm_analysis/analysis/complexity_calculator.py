"""
Complexity Calculator Module

Scores each job with a fixed weighted sum of its structural metrics and derives
its migration difficulty and priority.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from ..config import get_config
from ..domain.entities import Job
from ..domain.value_objects import ComplexityScore, MigrationDifficulty, MigrationPriority
from .dependency_graph import DependencyGraph

logger = logging.getLogger(__name__)


@dataclass
class JobComplexityResult:
    """Scoring result for a single job."""
    job_name: str
    folder_name: str
    complexity_score: ComplexityScore
    migration_difficulty: MigrationDifficulty
    migration_priority: MigrationPriority
    dependency_count: int
    is_critical: bool
    is_cyclic: bool
    migration_wave: int = 0  # assigned by the wave planner

    def to_dict(self) -> Dict[str, Any]:
        return {
            'job_name': self.job_name,
            'folder_name': self.folder_name,
            'complexity_score': self.complexity_score.value,
            'migration_difficulty': self.migration_difficulty.value,
            'migration_priority': self.migration_priority.value,
            'migration_wave': self.migration_wave,
            'dependency_count': self.dependency_count,
            'is_critical': self.is_critical,
            'is_cyclic': self.is_cyclic,
        }


class ComplexityCalculator:
    """
    Computes complexity scores for jobs.

    Dependency depth is estimated from the job alone (0 without in-conditions or
    control resources, else 1). With full_graph_depth enabled and a graph given,
    the graph depth of the job minus one is used instead.
    """

    def __init__(self, full_graph_depth: Optional[bool] = None,
                 graph: Optional[DependencyGraph] = None):
        if full_graph_depth is None:
            full_graph_depth = get_config().get('scoring', 'full_graph_depth', default=False)
        self.full_graph_depth = bool(full_graph_depth)
        self.graph = graph

    def dependency_depth(self, job: Job) -> int:
        if self.full_graph_depth and self.graph is not None:
            return max(0, self.graph.depth(job.job_name) - 1)
        return 1 if job.has_dependencies() else 0

    def score(self, job: Job) -> ComplexityScore:
        return ComplexityScore.from_metrics(
            dependency_count=job.dependency_count(),
            dependency_depth=self.dependency_depth(job),
            in_conditions=len(job.in_conditions),
            out_conditions=len(job.out_conditions),
            variables=len(job.variables) + len(job.auto_edits),
            on_conditions=len(job.on_conditions),
            on_conditions_complexity=sum(on.complexity() for on in job.on_conditions),
            cyclic=job.cyclic,
            quantitative_resources=len(job.quantitative_resources),
            control_resources=len(job.control_resources),
            scheduling_complexity=job.scheduling.complexity(),
        )

    def calculate(self, job: Job) -> JobComplexityResult:
        score = self.score(job)
        dependency_count = job.dependency_count()
        return JobComplexityResult(
            job_name=job.job_name,
            folder_name=job.folder_name,
            complexity_score=score,
            migration_difficulty=MigrationDifficulty.from_score(score),
            migration_priority=MigrationPriority.calculate(score, job.critical, dependency_count),
            dependency_count=dependency_count,
            is_critical=job.critical,
            is_cyclic=job.cyclic,
        )

    def calculate_batch(self, jobs: Iterable[Job]) -> List[JobComplexityResult]:
        results = [self.calculate(job) for job in jobs]
        logger.debug(f"Scored {len(results)} jobs")
        return results
