"""Tests for the velocity analyzer and activity aggregation."""

import asyncio

import pytest

from . import cache_keys
from .cache import CacheClient
from .models import Issue
from .results import MonthlyActivity, SprintPerformance
from .test_classes import FauxDataProvider, RecordingCacheStore
from .test_data import (
    BOARD_ID,
    CLOSED_SPRINT_ISSUES,
    CLOSED_SPRINTS,
    COMMITS,
    PULL_REQUESTS,
    dt,
)
from .velocity import (
    VelocityAnalyzer,
    activity_trend,
    aggregate_activity_by_month,
    calculate_issue_type_distribution,
    velocity_trend,
)


@pytest.fixture(name="analyzer")
def fixture_analyzer(provider, cache, statuses, settings):
    return VelocityAnalyzer(provider, cache, statuses, settings)


def test_velocity_trend():
    assert velocity_trend([20, 22, 24, 25]) == "increasing"
    assert velocity_trend([30, 20, 10]) == "decreasing"
    assert velocity_trend([10, 10, 10.5]) == "stable"
    assert velocity_trend([1, 50]) == "stable"
    assert velocity_trend([]) == "stable"


def test_velocity(analyzer):
    velocity = asyncio.run(analyzer.velocity(BOARD_ID))

    assert [s.sprint_id for s in velocity.sprints] == [94, 93, 92, 91]
    assert [s.velocity for s in velocity.sprints] == [25, 24, 22, 20]
    assert [s.commitment for s in velocity.sprints] == [35, 24, 25, 25]
    assert velocity.sprints[0].completed == 2
    assert velocity.average == 22.75
    assert velocity.trend == "increasing"


def test_velocity_window_size(analyzer):
    velocity = asyncio.run(analyzer.velocity(BOARD_ID, count=2))

    assert [s.sprint_id for s in velocity.sprints] == [94, 93]
    assert velocity.average == 24.5
    assert velocity.trend == "stable"


def test_window_larger_than_board_history(cache, statuses, settings):
    provider = FauxDataProvider(
        issues={s.id: CLOSED_SPRINT_ISSUES[s.id] for s in CLOSED_SPRINTS[:2]},
        closed_sprints={BOARD_ID: CLOSED_SPRINTS[:2]},
    )
    analyzer = VelocityAnalyzer(provider, cache, statuses, settings)

    velocity = asyncio.run(analyzer.velocity(BOARD_ID, count=10))

    assert [s.sprint_id for s in velocity.sprints] == [92, 91]
    assert velocity.trend == "stable"


def test_all_closed_sprints_ignores_window(analyzer, provider):
    sprints = asyncio.run(analyzer.all_closed_sprints(BOARD_ID))
    recent = asyncio.run(analyzer.closed_sprints(BOARD_ID, count=1))

    assert [s.id for s in sprints] == [94, 93, 92, 91]
    assert [s.id for s in recent] == [94]
    assert provider.count("closed_sprints") == 1


def test_board_without_closed_sprints(analyzer):
    velocity = asyncio.run(analyzer.velocity(999))

    assert velocity.sprints == []
    assert velocity.average == 0
    assert velocity.trend == "stable"


def test_team_performance(analyzer):
    performance = asyncio.run(analyzer.team_performance(BOARD_ID, count=1))

    assert performance == [
        SprintPerformance(
            sprint_id=94, name="Sprint 94", planned=35, completed=25, velocity=25
        )
    ]


def test_issue_type_distribution(analyzer):
    distribution = asyncio.run(analyzer.issue_type_distribution(BOARD_ID))

    assert [(d.issue_type, d.count, d.percentage, d.color) for d in distribution] == [
        ("Story", 8, 66.67, "#3b82f6"),
        ("Bug", 4, 33.33, "#ef4444"),
    ]


def test_issue_type_distribution_unknown_type_color():
    window = [(CLOSED_SPRINTS[0], (Issue("A-1", "Done", issue_type="Spike"),))]
    distribution = calculate_issue_type_distribution(window)

    assert distribution[0].color == "#6b7280"
    assert distribution[0].percentage == 100.0


def test_views_share_cached_issue_lists(provider, cache, statuses, settings):
    analyzer = VelocityAnalyzer(provider, cache, statuses, settings)

    async def run():
        await analyzer.velocity(BOARD_ID)
        await analyzer.team_performance(BOARD_ID)
        await analyzer.issue_type_distribution(BOARD_ID)

    asyncio.run(run())

    assert provider.count("closed_sprints") == 1
    assert provider.count("issues") == 4


def test_only_missing_sprints_are_fetched(provider, statuses, settings):
    store = RecordingCacheStore()
    store.entries[cache_keys.sprint_issues_key(94)] = CLOSED_SPRINT_ISSUES[94]
    analyzer = VelocityAnalyzer(provider, CacheClient(store), statuses, settings)

    velocity = asyncio.run(analyzer.velocity(BOARD_ID))

    assert velocity.average == 22.75
    assert sorted(c[1] for c in provider.calls if c[0] == "issues") == [91, 92, 93]

    batch_reads = [op for op in store.operations if op[0] == "get_many"]
    batch_writes = [op for op in store.operations if op[0] == "set_many"]
    assert len(batch_reads) == 1
    assert len(batch_writes) == 1
    assert [key for key, _ in batch_writes[0][1]] == [
        cache_keys.sprint_issues_key(93),
        cache_keys.sprint_issues_key(92),
        cache_keys.sprint_issues_key(91),
    ]


def test_fetches_are_bounded(statuses, settings):
    provider = FauxDataProvider(
        issues=CLOSED_SPRINT_ISSUES,
        closed_sprints={BOARD_ID: CLOSED_SPRINTS},
        delay=0.01,
    )
    settings["max_concurrency"] = 2
    analyzer = VelocityAnalyzer(
        provider, CacheClient(RecordingCacheStore()), statuses, settings
    )

    asyncio.run(analyzer.velocity(BOARD_ID))

    assert provider.count("issues") == 4
    assert provider.max_in_flight == 2


def test_failed_issue_fetch_propagates(statuses, settings):
    provider = FauxDataProvider(
        closed_sprints={BOARD_ID: CLOSED_SPRINTS},
        failures={"issues": ConnectionError("tracker down")},
    )
    store = RecordingCacheStore()
    analyzer = VelocityAnalyzer(provider, CacheClient(store), statuses, settings)

    with pytest.raises(ConnectionError):
        asyncio.run(analyzer.velocity(BOARD_ID))
    assert not any(key.startswith("v1:sprint:") for key in store.entries)


def test_aggregate_activity_by_month():
    monthly = aggregate_activity_by_month(
        COMMITS, PULL_REQUESTS, dt(2023, 11, 15), dt(2024, 1, 14)
    )

    assert monthly == [
        MonthlyActivity("2023-11", 0, 0),
        MonthlyActivity("2023-12", 1, 0),
        MonthlyActivity("2024-01", 5, 4),
    ]


def test_aggregate_activity_ignores_activity_outside_range():
    monthly = aggregate_activity_by_month(
        COMMITS, PULL_REQUESTS, dt(2024, 1, 1), dt(2024, 1, 31)
    )
    assert monthly == [MonthlyActivity("2024-01", 5, 4)]


def test_aggregate_activity_without_range():
    monthly = aggregate_activity_by_month(COMMITS, ())
    assert monthly == [MonthlyActivity("2023-12", 1, 0), MonthlyActivity("2024-01", 5, 0)]


def test_activity_trend():
    def months(*commits):
        return [MonthlyActivity(f"2024-{n:02d}", c) for n, c in enumerate(commits, 1)]

    assert activity_trend(months(0, 1, 5)) == "increasing"
    assert activity_trend(months(10, 2)) == "decreasing"
    assert activity_trend(months(10, 11)) == "stable"
    assert activity_trend(months(4)) == "stable"
    assert activity_trend([]) == "stable"
