"""Tests for report requests and report assembly."""

import json

from . import __version__
from .report import ReportRequest, new_report, report_to_dict, report_to_json
from .results import SprintMetrics
from .test_data import NOW, SPRINT, SPRINT_ID


def test_request_defaults():
    request = ReportRequest(SPRINT_ID)

    assert not any(request.flags().values())
    assert not request.has_repository
    assert not request.compare_with_previous
    assert request.capacity == ()


def test_request_needs_owner_and_repo():
    assert not ReportRequest(SPRINT_ID, owner="acme").has_repository
    assert not ReportRequest(SPRINT_ID, repo="shop").has_repository
    assert ReportRequest(SPRINT_ID, owner="acme", repo="shop").has_repository


def test_all_sections():
    request = ReportRequest.all_sections(SPRINT_ID, owner="acme", repo="shop")

    assert list(request.flags()) == [
        "include_commits",
        "include_prs",
        "include_velocity",
        "include_burndown",
        "include_tier1",
        "include_tier2",
        "include_tier3",
        "include_forward_looking",
        "include_enhanced_source_control",
    ]
    assert all(request.flags().values())
    assert request.has_repository


def test_all_sections_with_one_switched_off():
    request = ReportRequest.all_sections(SPRINT_ID, include_burndown=False)

    assert not request.include_burndown
    assert request.include_tier3


def test_new_report():
    request = ReportRequest(SPRINT_ID, include_tier1=True)

    report = new_report(SPRINT, request, generated_at=NOW)

    assert report["sprint"] is SPRINT
    assert report["warnings"] == []
    assert report["metadata"]["generated_at"] == NOW
    assert report["metadata"]["version"] == __version__
    assert report["metadata"]["sprint_id"] == SPRINT_ID
    assert report["metadata"]["flags"]["include_tier1"] is True
    assert report["metadata"]["flags"]["include_tier2"] is False


def test_new_report_stamps_current_time():
    report = new_report(SPRINT, ReportRequest(SPRINT_ID))

    assert report["metadata"]["generated_at"].tzinfo is not None


def test_report_to_dict():
    report = new_report(SPRINT, ReportRequest(SPRINT_ID), generated_at=NOW)
    report["metrics"] = SprintMetrics(total_issues=3, issues_by_type={"Bug": 3})

    data = report_to_dict(report)

    assert data["sprint"]["state"] == "closed"
    assert data["sprint"]["start_date"] == "2024-01-01T09:00:00+00:00"
    assert data["sprint"]["issues"] is None
    assert data["metadata"]["generated_at"] == "2024-01-16T12:00:00+00:00"
    assert data["metrics"]["total_issues"] == 3
    assert data["metrics"]["issues_by_type"] == {"Bug": 3}


def test_report_to_json():
    report = new_report(SPRINT, ReportRequest(SPRINT_ID), generated_at=NOW)

    data = json.loads(report_to_json(report))

    assert data["sprint"]["name"] == "Sprint 10"
    assert data["sprint"]["goal"] == "Ship the checkout flow"
    assert data["metadata"]["sprint_id"] == SPRINT_ID
