"""Shared test data for Sprint Analytics tests.

The reference sprint runs from 1 to 14 January 2024 on board 1. It holds ten
issues: eight completed, worth 50 of the 60 committed story points, one
flagged issue in progress and one not started.
"""

from datetime import datetime, timedelta

from dateutil import tz

from .models import (
    Commit,
    Issue,
    PullRequest,
    Review,
    Sprint,
    SprintChange,
    SprintState,
    StatusChange,
)


def dt(year, month, day, hour=0, minute=0):
    return datetime(year, month, day, hour, minute, tzinfo=tz.UTC)


BOARD_ID = 1
SPRINT_ID = 100

SPRINT_START = dt(2024, 1, 1, 9)
SPRINT_END = dt(2024, 1, 14, 17)
NOW = dt(2024, 1, 16, 12)

SPRINT = Sprint(
    id=SPRINT_ID,
    name="Sprint 10",
    state=SprintState.CLOSED,
    board_id=BOARD_ID,
    start_date=SPRINT_START,
    end_date=SPRINT_END,
    goal="Ship the checkout flow",
)


def started(day, hour=10):
    """Status history of an issue moved into progress on the given January day."""
    return (
        StatusChange("To Do", "In Progress", dt(2024, 1, day, hour)),
    )


def completed_issue(key, points, resolved_day, issue_type="Story", status="Done", **kwargs):
    kwargs.setdefault("created", dt(2023, 12, 20))
    kwargs.setdefault(
        "status_history",
        started(max(1, resolved_day - 2))
        + (StatusChange("In Progress", status, dt(2024, 1, resolved_day, 16)),),
    )
    return Issue(
        key=key,
        status=status,
        summary=f"Issue {key}",
        issue_type=issue_type,
        priority=kwargs.pop("priority", "Medium"),
        assignee=kwargs.pop("assignee", "Alice"),
        story_points=points,
        resolved=dt(2024, 1, resolved_day, 16),
        **kwargs,
    )


SPRINT_ISSUES = (
    completed_issue("ABC-1", 8, 5, epic_link="ABC-100", epic_name="Checkout"),
    completed_issue("ABC-2", 5, 6, assignee="Bob", epic_link="ABC-100", epic_name="Checkout"),
    completed_issue(
        "ABC-3",
        3,
        8,
        issue_type="Bug",
        priority="High",
        created=dt(2024, 1, 3),
    ),
    completed_issue("ABC-4", 8, 10, labels=("tech-debt",)),
    completed_issue("ABC-5", 5, 10, issue_type="Task", assignee="Bob"),
    completed_issue("ABC-6", 13, 12, status="Closed", epic_link="ABC-200"),
    completed_issue(
        "ABC-7",
        3,
        12,
        issue_type="Bug",
        status="Resolved",
        priority="Low",
        created=dt(2024, 1, 9),
    ),
    completed_issue("ABC-8", 5, 13, assignee="Carol"),
    Issue(
        key="ABC-9",
        status="In Progress",
        summary="Payment provider integration",
        issue_type="Story",
        priority="High",
        assignee="Carol",
        story_points=5,
        flagged=True,
        blocker_reason="Waiting for API keys",
        flagged_at=dt(2024, 1, 8, 9),
        epic_link="ABC-100",
        epic_name="Checkout",
        created=dt(2023, 12, 20),
        status_history=started(4),
    ),
    Issue(
        key="ABC-10",
        status="To Do",
        summary="Receipt emails",
        issue_type="Story",
        priority="Medium",
        story_points=5,
        created=dt(2024, 1, 2),
        sprint_history=(SprintChange(SPRINT_ID, "added", dt(2024, 1, 2, 11), "Dana"),),
    ),
)


def closed_sprint(sprint_id, index, name=None):
    """The index-th two week closed sprint on the reference board, from September 2023."""
    start = dt(2023, 9, 4) + timedelta(days=14 * index)
    end = start + timedelta(days=13)
    return Sprint(
        id=sprint_id,
        name=name or f"Sprint {sprint_id}",
        state=SprintState.CLOSED,
        board_id=BOARD_ID,
        start_date=start,
        end_date=end,
    )


def points_issues(prefix, completed, incomplete=()):
    """Issues with the given story points, done and not done."""
    issues = [
        Issue(key=f"{prefix}-{n}", status="Done", story_points=points, issue_type="Story")
        for n, points in enumerate(completed, 1)
    ]
    issues.extend(
        Issue(
            key=f"{prefix}-{n}",
            status="In Progress",
            story_points=points,
            issue_type="Bug",
        )
        for n, points in enumerate(incomplete, len(completed) + 1)
    )
    return tuple(issues)


# Closed sprints of the reference board, oldest first
CLOSED_SPRINTS = (
    closed_sprint(91, 0),
    closed_sprint(92, 1),
    closed_sprint(93, 2),
    closed_sprint(94, 3),
)

CLOSED_SPRINT_ISSUES = {
    91: points_issues("S91", [10, 10], [5]),
    92: points_issues("S92", [10, 12], [3]),
    93: points_issues("S93", [20, 4]),
    94: points_issues("S94", [15, 10], [5, 5]),
}


COMMITS = (
    Commit("a1", "ABC-1 add checkout page", "alice", dt(2024, 1, 3, 10), 120, 10),
    Commit("a2", "Fix ABC-1 layout", "alice", dt(2024, 1, 3, 15), 15, 5),
    Commit("b1", "fixes abc-2: validate address", "bob", dt(2024, 1, 5, 11), 40, 2),
    Commit("c1", "Tidy build scripts", "carol", dt(2024, 1, 9, 9), 3, 30),
    Commit("a3", "ABC-4 remove legacy cart", "alice", dt(2024, 1, 9, 16), 0, 200),
    Commit("x1", "ABC-8 before sprint", "bob", dt(2023, 12, 28, 9), 7, 0),
)


PULL_REQUESTS = (
    PullRequest(
        number=11,
        title="ABC-1 Checkout page",
        author="alice",
        state="closed",
        created_at=dt(2024, 1, 3, 16),
        branch="feature/ABC-1-checkout",
        merged_at=dt(2024, 1, 4, 16),
        additions=135,
        deletions=15,
        reviews=(
            Review("bob", "CHANGES_REQUESTED", dt(2024, 1, 3, 20)),
            Review("bob", "APPROVED", dt(2024, 1, 4, 10)),
        ),
        first_review_at=dt(2024, 1, 3, 20),
        review_comments=3,
    ),
    PullRequest(
        number=12,
        title="Address validation",
        author="bob",
        state="closed",
        created_at=dt(2024, 1, 5, 12),
        body="Resolves abc-2",
        branch="address-validation",
        merged_at=dt(2024, 1, 6, 0),
        additions=40,
        deletions=2,
        reviews=(Review("alice", "APPROVED", dt(2024, 1, 5, 14)),),
        first_review_at=dt(2024, 1, 5, 14),
        review_comments=1,
    ),
    PullRequest(
        number=13,
        title="Experiment with a new cart",
        author="carol",
        state="closed",
        created_at=dt(2024, 1, 8, 9),
        branch="ABC-9-cart",
        closed_at=dt(2024, 1, 9, 9),
        additions=10,
        deletions=10,
        reviews=(Review("alice", "COMMENTED", dt(2024, 1, 8, 12)),),
        first_review_at=dt(2024, 1, 8, 12),
    ),
    PullRequest(
        number=14,
        title="Draft receipts",
        author="alice",
        state="open",
        created_at=dt(2024, 1, 12, 9),
        branch="receipts",
    ),
)
