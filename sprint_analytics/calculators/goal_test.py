"""Tests for sprint goal analysis."""

from dataclasses import replace

from ..models import Issue
from .goal import analyze_sprint_goal


def test_goal_achieved(sprint, issues, statuses):
    analysis = analyze_sprint_goal(sprint, issues, statuses)

    assert analysis.goal == "Ship the checkout flow"
    assert analysis.achieved
    assert analysis.completion_percentage == 83.33
    assert analysis.total_story_points == 60
    assert analysis.completed_story_points == 50
    assert analysis.notes == "Goal achieved with 83.33% of committed story points completed"


def test_goal_not_achieved_below_threshold(sprint, issues, statuses):
    analysis = analyze_sprint_goal(sprint, issues, statuses, threshold=0.9)

    assert not analysis.achieved
    assert analysis.notes == (
        "Goal not achieved: 83.33% of committed story points completed, "
        "below the 90% threshold"
    )


def test_goal_achievement_is_inclusive(sprint, statuses):
    issues = (
        Issue("A-1", "Done", story_points=8),
        Issue("A-2", "To Do", story_points=2),
    )
    assert analyze_sprint_goal(sprint, issues, statuses).achieved


def test_no_goal_set(sprint, issues, statuses):
    analysis = analyze_sprint_goal(replace(sprint, goal=None), issues, statuses)

    assert analysis.goal == ""
    assert analysis.achieved
    assert analysis.notes.startswith("No sprint goal set. Goal achieved")


def test_no_issues(sprint, statuses):
    analysis = analyze_sprint_goal(sprint, (), statuses)

    assert not analysis.achieved
    assert analysis.completion_percentage == 0
    assert analysis.notes == "No issues in sprint"


def test_no_story_points(sprint, statuses):
    analysis = analyze_sprint_goal(sprint, (Issue("A-1", "Done"),), statuses)

    assert not analysis.achieved
    assert analysis.notes == "No story points committed"
