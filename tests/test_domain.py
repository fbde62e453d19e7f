"""
Tests for the domain model: entities, actions and value objects.
"""

import pytest

from controlm_analysis.domain import (
    Action,
    ComplexityScore,
    ConditionAction,
    Folder,
    FolderType,
    ForceJob,
    Job,
    Mail,
    MigrationDifficulty,
    MigrationPriority,
    OnCondition,
    SchedulingInfo,
    SetVariable,
    Shout,
)
from controlm_analysis.domain.actions import flatten_action, unflatten_action


def test_folder_totals_include_sub_folders():
    root = Folder("ROOT", FolderType.SMART)
    root.add_job(Job("A", "ROOT"))
    child = Folder("CHILD", FolderType.SMART)
    child.add_job(Job("B", "CHILD"))
    child.add_job(Job("C", "CHILD"))
    grandchild = Folder("GRANDCHILD", FolderType.SMART)
    grandchild.add_job(Job("D", "GRANDCHILD"))
    child.add_sub_folder(grandchild)
    root.add_sub_folder(child)

    assert root.total_jobs() == 4
    assert root.depth() == 3
    assert Folder("EMPTY").depth() == 1
    assert [job.job_name for job in root.all_jobs()] == ["A", "B", "C", "D"]


def test_smart_folder_types():
    assert FolderType.SMART.is_smart
    assert FolderType.SMART_TABLE.is_smart
    assert not FolderType.SIMPLE.is_smart
    assert not FolderType.TABLE.is_smart


def test_on_condition_complexity():
    assert OnCondition().complexity() == 1
    on = OnCondition(stmt="*", code="NOTOK", pattern="ERROR*",
                     actions=[Action("OK"), Mail("ops", "failed")])
    assert on.complexity() == 1 + 2 + 2


def test_scheduling_complexity():
    assert SchedulingInfo().complexity() == 0

    scheduling = SchedulingInfo(
        days_calendar="WORKDAYS",
        time_from="0100",
        time_to="0500",
        cyclic_interval="00030M",
        months=["JAN"],
        weekdays="1,2,3",
    )
    assert scheduling.complexity() == 3 + 1 + 5 + 2 + 1

    # A half-open window does not count
    assert SchedulingInfo(time_from="0100").complexity() == 0


def test_job_dependency_count():
    job = Job("A", "F")
    assert job.dependency_count() == 0
    assert not job.has_dependencies()


@pytest.mark.parametrize("action, flat", [
    (Action("OK"), ("Action", "OK", None)),
    (ConditionAction("C1", "+"), ("Condition", "C1", "+")),
    (ForceJob("JOB_X", "TABLE_Y"), ("ForceJob", "JOB_X", "TABLE_Y")),
    (Mail("ops@example.com", "failed"), ("Mail", "ops@example.com", "failed")),
    (Shout("EM", "late"), ("Shout", "EM", "late")),
    (SetVariable("%%X", "1"), ("SetVariable", "%%X", "1")),
])
def test_action_flattening(action, flat):
    assert flatten_action(action) == flat
    assert unflatten_action(*flat) == action


def test_unknown_action_type_rejected():
    with pytest.raises(ValueError):
        unflatten_action("Teleport", "x", None)


@pytest.mark.parametrize("score, difficulty", [
    (0, MigrationDifficulty.EASY),
    (30, MigrationDifficulty.EASY),
    (31, MigrationDifficulty.MEDIUM),
    (60, MigrationDifficulty.MEDIUM),
    (61, MigrationDifficulty.HARD),
    (500, MigrationDifficulty.HARD),
])
def test_difficulty_buckets(score, difficulty):
    assert MigrationDifficulty.from_score(ComplexityScore(score)) is difficulty


def test_effort_hours():
    assert MigrationDifficulty.EASY.estimated_effort_hours == 4
    assert MigrationDifficulty.MEDIUM.estimated_effort_hours == 8
    assert MigrationDifficulty.HARD.estimated_effort_hours == 16


def test_negative_score_rejected():
    with pytest.raises(ValueError):
        ComplexityScore(-1)


def test_priority():
    assert MigrationPriority.calculate(ComplexityScore(0), False, 0).value == 100
    assert MigrationPriority.calculate(ComplexityScore(45), True, 3).value == 94
    # Saturates instead of going negative
    assert MigrationPriority.calculate(ComplexityScore(131), False, 10).value == 1
    assert MigrationPriority.calculate(ComplexityScore(10), False, 500).value == 1

    with pytest.raises(ValueError):
        MigrationPriority(0)
