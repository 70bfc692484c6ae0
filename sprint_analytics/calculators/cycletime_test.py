"""Tests for cycle time calculation."""

from ..models import Issue, StatusChange
from ..results import CycleTimeMetrics
from ..test_data import dt
from .cycletime import (
    calculate_cycle_times,
    first_in_progress,
    issue_cycle_time,
    issue_lead_time,
)


def test_first_in_progress(statuses):
    issue = Issue(
        "A-1",
        "Done",
        status_history=(
            StatusChange("In Progress", "In Review", dt(2024, 1, 4)),
            StatusChange("To Do", "In Progress", dt(2024, 1, 2)),
            StatusChange("In Review", "Done", dt(2024, 1, 5)),
        ),
    )
    assert first_in_progress(issue, statuses) == dt(2024, 1, 2)
    assert first_in_progress(Issue("A-2", "To Do"), statuses) is None


def test_issue_cycle_and_lead_time(statuses):
    issue = Issue(
        "A-1",
        "Done",
        created=dt(2024, 1, 1),
        resolved=dt(2024, 1, 4, 12),
        status_history=(StatusChange("To Do", "In Progress", dt(2024, 1, 2)),),
    )
    assert issue_cycle_time(issue, statuses) == 2.5
    assert issue_lead_time(issue) == 3.5


def test_cycle_time_falls_back_to_creation(statuses):
    issue = Issue("A-1", "Done", created=dt(2024, 1, 1), resolved=dt(2024, 1, 3))
    assert issue_cycle_time(issue, statuses) == 2.0


def test_unresolved_issues_have_no_cycle_time(statuses):
    issue = Issue("A-1", "In Progress", created=dt(2024, 1, 1))
    assert issue_cycle_time(issue, statuses) is None
    assert issue_lead_time(issue) is None
    assert issue_cycle_time(Issue("A-2", "Done", resolved=dt(2024, 1, 3)), statuses) is None


def test_cycle_times(issues, statuses):
    metrics = calculate_cycle_times(issues, statuses)

    assert metrics.average_cycle_time == 2.25
    assert metrics.median_cycle_time == 2.25
    assert metrics.p90_cycle_time == 2.25
    assert metrics.issues_measured == 8
    assert sorted(metrics.by_issue_type) == ["Bug", "Story", "Task"]
    assert metrics.by_issue_type["Story"].count == 5
    assert metrics.by_issue_type["Bug"].count == 2
    assert metrics.by_priority["Medium"].count == 6
    assert metrics.by_priority["High"].mean == 2.25
    assert metrics.previous_average_cycle_time is None
    assert metrics.cycle_time_improvement is None


def test_cycle_time_statistics(statuses):
    issues = tuple(
        Issue(f"A-{n}", "Done", created=dt(2024, 1, 1), resolved=dt(2024, 1, 1 + days))
        for n, days in enumerate([1, 2, 3, 4, 10], 1)
    )
    metrics = calculate_cycle_times(issues, statuses)

    assert metrics.average_cycle_time == 4.0
    assert metrics.median_cycle_time == 3.0
    assert metrics.p90_cycle_time == 7.6


def test_comparison_with_previous_sprint(issues, statuses):
    metrics = calculate_cycle_times(issues, statuses, [3.0, 4.5])

    assert metrics.previous_average_cycle_time == 3.75
    assert metrics.cycle_time_improvement == 40.0


def test_slower_than_previous_sprint(issues, statuses):
    metrics = calculate_cycle_times(issues, statuses, [1.5])
    assert metrics.cycle_time_improvement == -50.0


def test_nothing_resolved(statuses):
    metrics = calculate_cycle_times((Issue("A-1", "In Progress"),), statuses)
    assert metrics == CycleTimeMetrics()
