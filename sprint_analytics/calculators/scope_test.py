"""Tests for scope change detection."""

from ..models import Issue, SprintChange
from ..test_data import SPRINT_ID, dt
from .scope import added_after_start, detect_scope_changes


def test_detects_issue_added_after_start(sprint, issues):
    changes = detect_scope_changes(sprint, issues)

    assert len(changes) == 1
    change = changes[0]
    assert change.issue_key == "ABC-10"
    assert change.change_type == "added"
    assert change.date == dt(2024, 1, 2, 11)
    assert change.story_points_delta == 5
    assert change.changed_by == "Dana"


def test_ignores_changes_outside_the_sprint(sprint):
    issues = (
        # Planned before the sprint started
        Issue(
            "A-1",
            "To Do",
            story_points=3,
            sprint_history=(SprintChange(SPRINT_ID, "added", dt(2023, 12, 30)),),
        ),
        # Moved between other sprints
        Issue(
            "A-2",
            "To Do",
            story_points=3,
            sprint_history=(SprintChange(99, "added", dt(2024, 1, 5)),),
        ),
        # Removed mid sprint
        Issue(
            "A-3",
            "To Do",
            summary="Dropped",
            story_points=2,
            sprint_history=(SprintChange(SPRINT_ID, "removed", dt(2024, 1, 7)),),
        ),
        # Removed after the sprint ended
        Issue(
            "A-4",
            "To Do",
            story_points=2,
            sprint_history=(SprintChange(SPRINT_ID, "removed", dt(2024, 1, 20)),),
        ),
    )

    changes = detect_scope_changes(sprint, issues)

    assert [(c.issue_key, c.change_type, c.story_points_delta) for c in changes] == [
        ("A-3", "removed", -2)
    ]
    assert changes[0].changed_by == "Unknown"


def test_issues_without_history_produce_no_changes(sprint):
    assert detect_scope_changes(sprint, (Issue("A-1", "To Do", story_points=5),)) == []


def test_added_after_start(sprint, issues):
    by_key = {i.key: i for i in issues}
    assert added_after_start(by_key["ABC-10"], sprint)
    assert not added_after_start(by_key["ABC-1"], sprint)
