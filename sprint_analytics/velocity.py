"""Velocity, trend and related views over a board's recent closed sprints.

The analyzer reuses a layered cache: the closed sprint list of a board is
cached on its own, and each closed sprint's issue list is cached under a
per-sprint key shared by the velocity, team performance and issue type
views. Issue lists are looked up in one batch, only the missing sprints are
fetched, and the newly fetched lists are written back in one batch.
"""

import asyncio
import logging
from collections import Counter
from datetime import datetime

import numpy as np
import pandas as pd
from dateutil import tz

from . import cache_keys
from .common_constants import DEFAULT_ISSUE_TYPE_COLOR, ISSUE_TYPE_COLORS
from .provider import FetchLevel
from .results import (
    IssueTypeShare,
    MonthlyActivity,
    SprintPerformance,
    SprintVelocity,
    VelocityData,
)
from .statuses import StatusCategoryTable
from .utils import gather_or_cancel, percentage, to_utc, within

logger = logging.getLogger(__name__)

# Sort key for sprints that never started
_EPOCH = datetime.min.replace(tzinfo=tz.UTC)


def velocity_trend(velocities):
    """Classify a chronological (oldest first) velocity series.

    Needs at least three sprints; compares the mean of the later half with
    the mean of the earlier half, with a 10% dead band either way.
    """
    if len(velocities) < 3:
        return "stable"
    half = len(velocities) // 2
    first = float(np.mean(velocities[:half]))
    second = float(np.mean(velocities[half:]))
    if second > first * 1.1:
        return "increasing"
    if second < first * 0.9:
        return "decreasing"
    return "stable"


def sprint_velocity(sprint, issues, statuses):
    completed = [i for i in issues if statuses.is_completed(i.status)]
    return SprintVelocity(
        sprint_id=sprint.id,
        name=sprint.name,
        velocity=sum(i.points for i in completed),
        commitment=sum(i.points for i in issues),
        completed=len(completed),
        start_date=sprint.start_date,
    )


def calculate_velocity(window, statuses):
    """Velocity data for ``(sprint, issues)`` pairs ordered newest first."""
    sprints = [sprint_velocity(sprint, issues, statuses) for sprint, issues in window]
    if not sprints:
        return VelocityData()
    velocities = [s.velocity for s in sprints]
    return VelocityData(
        sprints=sprints,
        average=round(float(np.mean(velocities)), 2),
        trend=velocity_trend(list(reversed(velocities))),
    )


def calculate_team_performance(window, statuses):
    """Planned, completed and velocity per sprint, newest first."""
    performance = []
    for sprint, issues in window:
        velocity = sprint_velocity(sprint, issues, statuses)
        performance.append(
            SprintPerformance(
                sprint_id=sprint.id,
                name=sprint.name,
                planned=velocity.commitment,
                completed=velocity.velocity,
                velocity=velocity.velocity,
            )
        )
    return performance


def calculate_issue_type_distribution(window, colors=None):
    """Issue type frequency over every issue in the window, most common first."""
    colors = colors or ISSUE_TYPE_COLORS
    counts = Counter(issue.issue_type for _, issues in window for issue in issues)
    total = sum(counts.values())
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [
        IssueTypeShare(
            issue_type=issue_type,
            count=count,
            percentage=percentage(count, total),
            color=colors.get(issue_type, DEFAULT_ISSUE_TYPE_COLOR),
        )
        for issue_type, count in ranked
    ]


def aggregate_activity_by_month(commits, pull_requests, since=None, until=None):
    """Count commits and pull requests per calendar month (``YYYY-MM``).

    When both ends of a date range are given, every month in the range is
    present, with zero counts where nothing happened, and activity outside
    the range is ignored. The result is sorted by month.
    """
    months = {}
    if since is not None and until is not None:
        for period in pd.period_range(
            to_utc(since).strftime("%Y-%m"), to_utc(until).strftime("%Y-%m"), freq="M"
        ):
            months[str(period)] = MonthlyActivity(month=str(period))

    def bucket(date):
        if since is not None and until is not None and not within(date, since, until):
            return None
        key = to_utc(date).strftime("%Y-%m")
        return months.setdefault(key, MonthlyActivity(month=key))

    for commit in commits:
        entry = bucket(commit.date)
        if entry is not None:
            entry.commits += 1
    for pull_request in pull_requests:
        entry = bucket(pull_request.activity_date)
        if entry is not None:
            entry.pull_requests += 1

    return [months[key] for key in sorted(months)]


def activity_trend(monthly):
    """Classify commit activity from monthly aggregates.

    Compares the mean of the later half of the months with the earlier half;
    a change of more than 15% either way is a trend.
    """
    commits = [m.commits for m in monthly]
    if len(commits) < 2:
        return "stable"
    half = len(commits) // 2
    first = float(np.mean(commits[:half]))
    second = float(np.mean(commits[half:]))
    if second > first * 1.15:
        return "increasing"
    if second < first * 0.85:
        return "decreasing"
    return "stable"


class VelocityAnalyzer:
    """Velocity views for a board, computed over its most recent closed sprints.

    The cache client is injected; the analyzer holds no state between calls
    other than its configuration.
    """

    def __init__(self, provider, cache, statuses=None, settings=None):
        self.provider = provider
        self.cache = cache
        self.settings = settings or {}
        self.statuses = statuses or StatusCategoryTable.from_settings(self.settings)

    @property
    def default_count(self):
        return self.settings.get("velocity_sprint_count", 5)

    async def all_closed_sprints(self, board_id):
        """Every closed sprint of the board, newest first."""
        sprints = await self.cache.get_or_fetch(
            cache_keys.closed_sprints_key(board_id),
            self.settings.get("closed_sprint_list_ttl", 1800),
            lambda: self.provider.get_closed_sprints(board_id),
        )
        return sorted(
            sprints or (),
            key=lambda s: to_utc(s.start_date) if s.start_date else _EPOCH,
            reverse=True,
        )

    async def closed_sprints(self, board_id, count=None):
        """The board's most recent closed sprints, newest first."""
        count = self.default_count if count is None else count
        return (await self.all_closed_sprints(board_id))[:count]

    async def sprint_issues(self, sprints):
        """Issue lists of the given sprints, keyed by sprint id."""
        keys = {sprint.id: cache_keys.sprint_issues_key(sprint.id) for sprint in sprints}
        cached = self.cache.get_many(list(keys.values()))
        issues = {
            sprint_id: cached[key] for sprint_id, key in keys.items() if key in cached
        }

        missing = [sprint for sprint in sprints if sprint.id not in issues]
        if missing:
            logger.debug(
                "Fetching issues of %d closed sprints not in cache", len(missing)
            )
            semaphore = asyncio.Semaphore(self.settings.get("max_concurrency", 5))

            async def fetch(sprint):
                async with semaphore:
                    return await self.provider.get_issues(sprint.id, FetchLevel.BASIC)

            fetched = await gather_or_cancel(*[fetch(sprint) for sprint in missing])
            self.cache.set_many(
                (
                    keys[sprint.id],
                    tuple(sprint_issues),
                    cache_keys.sprint_ttl(sprint, self.settings),
                )
                for sprint, sprint_issues in zip(missing, fetched)
            )
            issues.update(
                {sprint.id: tuple(result) for sprint, result in zip(missing, fetched)}
            )

        return issues

    async def window(self, board_id, count=None):
        """``(sprint, issues)`` pairs of the most recent closed sprints, newest first."""
        sprints = await self.closed_sprints(board_id, count)
        issues = await self.sprint_issues(sprints)
        return [(sprint, issues.get(sprint.id, ())) for sprint in sprints]

    async def velocity(self, board_id, count=None):
        window = await self.window(board_id, count)
        if not window:
            logger.warning("Board %s has no closed sprints", board_id)
        return calculate_velocity(window, self.statuses)

    async def team_performance(self, board_id, count=None):
        return calculate_team_performance(
            await self.window(board_id, count), self.statuses
        )

    async def issue_type_distribution(self, board_id, count=None):
        return calculate_issue_type_distribution(
            await self.window(board_id, count),
            self.settings.get("issue_type_colors"),
        )
