"""Tests for the burndown series."""

import datetime
from dataclasses import replace

from ..models import Issue
from ..test_data import dt
from .burndown import calculate_burndown


def test_burndown(sprint, issues, statuses):
    burndown = calculate_burndown(sprint, issues, statuses)

    assert burndown.sprint_id == 100
    assert burndown.total_story_points == 60
    assert len(burndown.days) == 14

    first, last = burndown.days[0], burndown.days[-1]
    assert first.date == datetime.date(2024, 1, 1)
    assert (first.remaining, first.ideal, first.completed) == (60, 60, 0)
    assert last.date == datetime.date(2024, 1, 14)
    assert (last.remaining, last.ideal, last.completed) == (10, 0, 50)

    remaining = [d.remaining for d in burndown.days]
    assert remaining == [60, 60, 60, 60, 52, 47, 47, 44, 44, 31, 31, 15, 10, 10]
    assert burndown.days[1].ideal == 55.38


def test_work_completed_before_the_sprint_counts_from_day_one(sprint, statuses):
    issues = (
        Issue("A-1", "Done", story_points=3, resolved=dt(2023, 12, 30)),
        Issue("A-2", "To Do", story_points=5),
    )
    burndown = calculate_burndown(sprint, issues, statuses)

    assert burndown.days[0].remaining == 5
    assert burndown.days[0].completed == 3


def test_sprint_without_dates(sprint, issues, statuses):
    burndown = calculate_burndown(replace(sprint, end_date=None), issues, statuses)

    assert burndown.total_story_points == 60
    assert burndown.days == []
