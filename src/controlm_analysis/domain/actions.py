"""
DoAction variants fired by an ON rule, and their flattening to storage rows.
"""

from dataclasses import dataclass
from typing import Optional, Tuple, Union


@dataclass(frozen=True)
class Action:
    """Plain outcome action such as OK, NOTOK or RERUN."""
    value: str


@dataclass(frozen=True)
class ConditionAction:
    """Add or delete a condition."""
    name: str
    sign: Optional[str] = None


@dataclass(frozen=True)
class ForceJob:
    """Force another job into the active schedule."""
    name: str
    table_name: Optional[str] = None


@dataclass(frozen=True)
class Mail:
    dest: str
    message: Optional[str] = None


@dataclass(frozen=True)
class Shout:
    dest: str
    message: Optional[str] = None


@dataclass(frozen=True)
class SetVariable:
    name: str
    value: Optional[str] = None


DoAction = Union[Action, ConditionAction, ForceJob, Mail, Shout, SetVariable]

# (action_type, action_value, additional_data)
FlatAction = Tuple[str, str, Optional[str]]


def flatten_action(action: DoAction) -> FlatAction:
    """Map a DoAction onto the three text columns of the do_actions table."""
    if isinstance(action, Action):
        return ('Action', action.value, None)
    if isinstance(action, ConditionAction):
        return ('Condition', action.name, action.sign)
    if isinstance(action, ForceJob):
        return ('ForceJob', action.name, action.table_name)
    if isinstance(action, Mail):
        return ('Mail', action.dest, action.message)
    if isinstance(action, Shout):
        return ('Shout', action.dest, action.message)
    if isinstance(action, SetVariable):
        return ('SetVariable', action.name, action.value)
    raise TypeError(f"Unknown DoAction variant: {type(action).__name__}")


def unflatten_action(action_type: str, action_value: str,
                     additional_data: Optional[str]) -> DoAction:
    """Rebuild a DoAction from a do_actions row."""
    if action_type == 'Action':
        return Action(action_value)
    if action_type == 'Condition':
        return ConditionAction(action_value, additional_data)
    if action_type == 'ForceJob':
        return ForceJob(action_value, additional_data)
    if action_type == 'Mail':
        return Mail(action_value, additional_data)
    if action_type == 'Shout':
        return Shout(action_value, additional_data)
    if action_type == 'SetVariable':
        return SetVariable(action_value, additional_data)
    raise ValueError(f"Unknown action type: {action_type}")
