"""
Wave Planner Module

Groups scored jobs into five sequenced migration waves from their difficulty,
criticality and dependency count.
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List

from ..domain.value_objects import MigrationDifficulty

if TYPE_CHECKING:
    from ..analysis.complexity_calculator import JobComplexityResult

logger = logging.getLogger(__name__)

WAVE_REASONS = {
    1: "Low complexity, no dependencies - Quick wins",
    2: "Low to medium complexity, minimal dependencies",
    3: "Medium complexity or critical jobs",
    4: "Medium complexity with dependencies",
    5: "High complexity - Requires careful planning",
}


@dataclass
class MigrationWave:
    """A group of jobs migrated together."""
    wave: int
    jobs: List[str] = field(default_factory=list)

    @property
    def reason(self) -> str:
        return WAVE_REASONS[self.wave]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'wave': self.wave,
            'wave_number': self.wave,
            'jobs': self.jobs,
            'reason': self.reason,
        }


class WavePlanner:
    """Assigns each job a wave between 1 and 5."""

    @staticmethod
    def determine_wave(difficulty: MigrationDifficulty, critical: bool, dependency_count: int) -> int:
        """
        Wave lookup:

            Easy:   no deps -> 1, 1-2 deps -> 2, more -> 3
            Medium: critical -> 2, up to 3 deps -> 3, more -> 4
            Hard:   critical -> 3, else 5
        """
        if difficulty is MigrationDifficulty.EASY:
            if dependency_count == 0:
                return 1
            return 2 if dependency_count <= 2 else 3
        if difficulty is MigrationDifficulty.MEDIUM:
            if critical:
                return 2
            return 3 if dependency_count <= 3 else 4
        return 3 if critical else 5

    def plan(self, results: List['JobComplexityResult']) -> List[MigrationWave]:
        """
        Build the non-empty waves, sorted by wave number; jobs keep input order.

        Each result's migration_wave is set to the wave it was grouped into.
        """
        waves: Dict[int, MigrationWave] = {}
        for result in results:
            number = self.determine_wave(
                result.migration_difficulty, result.is_critical, result.dependency_count
            )
            result.migration_wave = number
            waves.setdefault(number, MigrationWave(number)).jobs.append(result.job_name)

        planned = [waves[number] for number in sorted(waves)]
        for wave in planned:
            logger.debug(f"Wave {wave.wave}: {len(wave.jobs)} jobs")
        return planned
