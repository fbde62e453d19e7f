"""
Prediction Module

Migration wave planning for Control-M to Airflow migrations.
"""

from .wave_planner import (
    MigrationWave,
    WavePlanner,
    WAVE_REASONS,
)

__all__ = [
    'MigrationWave',
    'WavePlanner',
    'WAVE_REASONS',
]
