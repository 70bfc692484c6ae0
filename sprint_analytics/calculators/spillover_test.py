"""Tests for spillover analysis."""

from ..models import Issue
from ..test_data import points_issues
from .spillover import analyze_spillover, spillover_reason


def test_spillover(sprint, issues, statuses, settings):
    analysis = analyze_spillover(sprint, issues, statuses, settings)

    assert analysis.total_issues == 10
    assert analysis.incomplete_issues == 2
    assert analysis.incomplete_story_points == 10
    assert analysis.committed_story_points == 60
    assert analysis.spillover_percentage == 16.67
    assert analysis.reasons == {
        "blocked": 1,
        "underestimated": 0,
        "scope-added-late": 1,
        "dependency": 0,
        "unspecified": 0,
    }
    assert [(i.issue_key, i.reason) for i in analysis.issues] == [
        ("ABC-9", "blocked"),
        ("ABC-10", "scope-added-late"),
    ]


def test_no_issues(sprint, statuses, settings):
    analysis = analyze_spillover(sprint, (), statuses, settings)

    assert analysis.total_issues == 0
    assert analysis.spillover_percentage == 0
    assert set(analysis.reasons) == {
        "blocked",
        "underestimated",
        "scope-added-late",
        "dependency",
        "unspecified",
    }


def test_everything_completed(sprint, statuses, settings):
    analysis = analyze_spillover(
        sprint, (Issue("A-1", "Done", story_points=3),), statuses, settings
    )
    assert analysis.incomplete_issues == 0
    assert analysis.spillover_percentage == 0
    assert analysis.issues == []


def test_nothing_completed(sprint, statuses, settings):
    analysis = analyze_spillover(sprint, points_issues("S", [], [5, 3]), statuses, settings)

    assert analysis.incomplete_issues == 2
    assert analysis.incomplete_story_points == 8
    assert analysis.committed_story_points == 8
    assert analysis.spillover_percentage == 100
    assert len(analysis.issues) == 2


def test_spillover_reasons(sprint, statuses, settings):
    def reason(**kwargs):
        kwargs.setdefault("status", "In Progress")
        return spillover_reason(Issue("A-1", **kwargs), sprint, statuses, settings)

    assert reason(flagged=True, labels=("dependency",)) == "blocked"
    assert reason(labels=("External-Dependency",)) == "dependency"
    assert reason(story_points=8) == "underestimated"
    assert reason(story_points=8, status="To Do") == "unspecified"
    assert reason(story_points=3) == "unspecified"


def test_large_story_points_setting(sprint, statuses, settings):
    settings["large_story_points"] = 3
    issue = Issue("A-1", "In Progress", story_points=3)
    assert spillover_reason(issue, sprint, statuses, settings) == "underestimated"
