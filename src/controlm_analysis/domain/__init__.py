"""
Domain Module

Entities and value objects of a Control-M job catalog.
"""

from .actions import (
    Action,
    ConditionAction,
    DoAction,
    ForceJob,
    Mail,
    SetVariable,
    Shout,
    flatten_action,
    unflatten_action,
)
from .entities import (
    Condition,
    ConditionType,
    ControlResource,
    Dependency,
    DependencyType,
    Folder,
    FolderType,
    Job,
    OnCondition,
    QuantitativeResource,
    SchedulingInfo,
)
from .value_objects import ComplexityScore, MigrationDifficulty, MigrationPriority

__all__ = [
    'Action',
    'ConditionAction',
    'DoAction',
    'ForceJob',
    'Mail',
    'SetVariable',
    'Shout',
    'flatten_action',
    'unflatten_action',
    'Condition',
    'ConditionType',
    'ControlResource',
    'Dependency',
    'DependencyType',
    'Folder',
    'FolderType',
    'Job',
    'OnCondition',
    'QuantitativeResource',
    'SchedulingInfo',
    'ComplexityScore',
    'MigrationDifficulty',
    'MigrationPriority',
]
