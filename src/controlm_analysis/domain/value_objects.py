"""
Value objects produced by scoring: complexity, difficulty and priority.
"""

from dataclasses import dataclass
from enum import Enum
from functools import total_ordering


@total_ordering
@dataclass(frozen=True)
class ComplexityScore:
    """Non-negative weighted complexity of a job."""
    value: int

    def __post_init__(self):
        if self.value < 0:
            raise ValueError(f"Complexity score must be non-negative, got {self.value}")

    @classmethod
    def from_metrics(cls, dependency_count: int = 0, dependency_depth: int = 0,
                     in_conditions: int = 0, out_conditions: int = 0,
                     variables: int = 0, on_conditions: int = 0,
                     on_conditions_complexity: int = 0, cyclic: bool = False,
                     quantitative_resources: int = 0, control_resources: int = 0,
                     scheduling_complexity: int = 0) -> 'ComplexityScore':
        """Weighted sum of the job metrics; `variables` counts auto-edits too."""
        score = (
            3 * dependency_count
            + 5 * dependency_depth
            + 2 * in_conditions
            + 2 * out_conditions
            + variables
            + 4 * on_conditions
            + 5 * on_conditions_complexity
            + (15 if cyclic else 0)
            + 3 * quantitative_resources
            + 3 * control_resources
            + 2 * scheduling_complexity
        )
        return cls(score)

    def __lt__(self, other: 'ComplexityScore') -> bool:
        if not isinstance(other, ComplexityScore):
            return NotImplemented
        return self.value < other.value

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)


class MigrationDifficulty(Enum):
    """Effort bucket derived from the complexity score."""
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"

    @classmethod
    def from_score(cls, score: ComplexityScore) -> 'MigrationDifficulty':
        if score.value <= 30:
            return cls.EASY
        if score.value <= 60:
            return cls.MEDIUM
        return cls.HARD

    @property
    def estimated_effort_hours(self) -> int:
        return _EFFORT_HOURS[self]

    @property
    def base_priority(self) -> int:
        return _BASE_PRIORITY[self]

    def __str__(self) -> str:
        return self.value


_EFFORT_HOURS = {
    MigrationDifficulty.EASY: 4,
    MigrationDifficulty.MEDIUM: 8,
    MigrationDifficulty.HARD: 16,
}

_BASE_PRIORITY = {
    MigrationDifficulty.EASY: 100,
    MigrationDifficulty.MEDIUM: 50,
    MigrationDifficulty.HARD: 10,
}


@total_ordering
@dataclass(frozen=True)
class MigrationPriority:
    """Positive migration priority; higher migrates sooner."""
    value: int

    def __post_init__(self):
        if self.value < 1:
            raise ValueError(f"Migration priority must be at least 1, got {self.value}")

    @classmethod
    def calculate(cls, score: ComplexityScore, critical: bool,
                  dependency_count: int) -> 'MigrationPriority':
        base = MigrationDifficulty.from_score(score).base_priority
        raised = base + (50 if critical else 0)
        return cls(max(1, max(0, raised - 2 * dependency_count)))

    def __lt__(self, other: 'MigrationPriority') -> bool:
        if not isinstance(other, MigrationPriority):
            return NotImplemented
        return self.value < other.value

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)
