"""
Domain Entities

Folders, jobs and the records a job owns, as read from a Control-M catalog.
Folders own their jobs and sub-folders; jobs own their conditions, resources
and variables. Cross-job references are by name only.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional

from .actions import DoAction


class FolderType(Enum):
    """Kinds of job containers in a catalog."""
    SIMPLE = "Simple"
    SMART = "Smart"
    TABLE = "Table"
    SMART_TABLE = "SmartTable"

    @property
    def is_smart(self) -> bool:
        return self in (FolderType.SMART, FolderType.SMART_TABLE)


class ConditionType(Enum):
    IN = "In"
    OUT = "Out"


class DependencyType(Enum):
    """Label of an edge in the dependency graph."""
    IN_CONDITION = "InCondition"
    OUT_CONDITION = "OutCondition"
    CONTROL_RESOURCE = "ControlResource"
    QUANTITATIVE_RESOURCE = "QuantitativeResource"


@dataclass
class Condition:
    """A named token produced (Out) or consumed (In) by a job."""
    name: str
    condition_type: ConditionType
    odate: Optional[str] = None
    and_or: Optional[str] = None  # In only
    sign: Optional[str] = None    # Out only

    @classmethod
    def incoming(cls, name: str, odate: Optional[str] = None,
                 and_or: Optional[str] = None) -> 'Condition':
        return cls(name, ConditionType.IN, odate=odate, and_or=and_or)

    @classmethod
    def outgoing(cls, name: str, odate: Optional[str] = None,
                 sign: Optional[str] = None) -> 'Condition':
        return cls(name, ConditionType.OUT, odate=odate, sign=sign)


@dataclass
class OnCondition:
    """Reactive rule on a job outcome with the actions it fires."""
    stmt: Optional[str] = None
    code: Optional[str] = None
    pattern: Optional[str] = None
    actions: List[DoAction] = field(default_factory=list)

    def complexity(self) -> int:
        return 1 + len(self.actions) + (2 if self.pattern else 0)


@dataclass
class ControlResource:
    """Named lock, exclusive or shared."""
    name: str
    resource_type: Optional[str] = None
    on_fail: Optional[str] = None


@dataclass
class QuantitativeResource:
    """Named counted pool the job draws from."""
    name: str
    quantity: int = 1
    on_fail: Optional[str] = None
    on_ok: Optional[str] = None


@dataclass
class SchedulingInfo:
    """Temporal constraints of a job."""
    time_from: Optional[str] = None
    time_to: Optional[str] = None
    days: Optional[str] = None
    weekdays: Optional[str] = None
    months: List[str] = field(default_factory=list)
    days_calendar: Optional[str] = None
    weeks_calendar: Optional[str] = None
    conf_calendar: Optional[str] = None
    interval: Optional[str] = None
    cyclic_interval: Optional[str] = None
    cyclic_times: Optional[str] = None
    max_wait: Optional[int] = None
    max_rerun: Optional[int] = None

    def has_calendar(self) -> bool:
        return bool(self.days_calendar or self.weeks_calendar or self.conf_calendar)

    def has_time_window(self) -> bool:
        return bool(self.time_from and self.time_to)

    def is_cyclic(self) -> bool:
        return bool(self.cyclic_interval or self.cyclic_times)

    def complexity(self) -> int:
        """Scheduling contribution to the job complexity score."""
        score = 0
        if self.has_calendar():
            score += 3
        if self.has_time_window():
            score += 1
        if self.is_cyclic():
            score += 5
        if self.months:
            score += 2
        if self.weekdays:
            score += 1
        return score


@dataclass
class Job:
    """A single schedulable unit of work."""
    job_name: str
    folder_name: str
    application: Optional[str] = None
    sub_application: Optional[str] = None
    appl_type: Optional[str] = None
    appl_ver: Optional[str] = None
    task_type: Optional[str] = None
    owner: Optional[str] = None
    run_as: Optional[str] = None
    priority: Optional[str] = None
    description: Optional[str] = None
    node_id: Optional[str] = None
    cmdline: Optional[str] = None
    critical: bool = False
    cyclic: bool = False
    scheduling: SchedulingInfo = field(default_factory=SchedulingInfo)
    in_conditions: List[Condition] = field(default_factory=list)
    out_conditions: List[Condition] = field(default_factory=list)
    on_conditions: List[OnCondition] = field(default_factory=list)
    control_resources: List[ControlResource] = field(default_factory=list)
    quantitative_resources: List[QuantitativeResource] = field(default_factory=list)
    variables: Dict[str, str] = field(default_factory=dict)
    auto_edits: Dict[str, str] = field(default_factory=dict)
    metadata: Dict[str, str] = field(default_factory=dict)
    created_by: Optional[str] = None
    creation_date: Optional[str] = None
    change_userid: Optional[str] = None
    change_date: Optional[str] = None

    def dependency_count(self) -> int:
        """In-conditions plus control resources."""
        return len(self.in_conditions) + len(self.control_resources)

    def has_dependencies(self) -> bool:
        return self.dependency_count() > 0

    def has_complex_scheduling(self) -> bool:
        return self.scheduling.has_calendar() or self.cyclic


@dataclass
class Folder:
    """Named container of jobs; Smart variants nest sub-folders."""
    folder_name: str
    folder_type: FolderType = FolderType.SIMPLE
    datacenter: Optional[str] = None
    application: Optional[str] = None
    description: Optional[str] = None
    owner: Optional[str] = None
    jobs: List[Job] = field(default_factory=list)
    sub_folders: List['Folder'] = field(default_factory=list)

    def add_job(self, job: Job):
        self.jobs.append(job)

    def add_sub_folder(self, folder: 'Folder'):
        self.sub_folders.append(folder)

    def total_jobs(self) -> int:
        return len(self.jobs) + sum(sub.total_jobs() for sub in self.sub_folders)

    def all_jobs(self) -> Iterator[Job]:
        """Own jobs first, then each sub-folder's, depth-first."""
        yield from self.jobs
        for sub in self.sub_folders:
            yield from sub.all_jobs()

    def depth(self) -> int:
        return 1 + max((sub.depth() for sub in self.sub_folders), default=0)


@dataclass(frozen=True)
class Dependency:
    """Labelled directed edge between two graph nodes."""
    from_job: str
    to_job: str
    dependency_type: DependencyType
    name: Optional[str] = None
