"""Sprint report orchestration.

:class:`SprintOrchestrator` fetches everything a report needs, with caching
and bounded concurrency, then runs the calculators, the velocity analyzer
and the correlation engine over the fetched data and assembles the report.

The sprint is fetched first because every other fetch depends on its dates
or board. All remaining fetches then run concurrently. The sprint and its
issue list are mandatory: if either cannot be fetched the report is
abandoned with a :class:`FetchFailure` and the fetches still in flight are
cancelled. Every other fetch is optional and degrades to an empty section
plus an entry in the report's ``warnings``.
"""

import asyncio
import logging

from . import cache_keys
from .calculator import SprintData
from .calculators.burndown import calculate_burndown
from .calculators.cycletime import issue_cycle_time
from .correlation import CorrelationEngine
from .exceptions import FetchFailure
from .provider import FetchLevel
from .report import new_report
from .results import Burndown, VelocityData
from .statuses import StatusCategoryTable
from .tiers import MetricsCalculator, needs_history
from .utils import gather_or_cancel, to_utc, utcnow
from .velocity import (
    VelocityAnalyzer,
    aggregate_activity_by_month,
    activity_trend,
    calculate_issue_type_distribution,
    calculate_team_performance,
    calculate_velocity,
)

logger = logging.getLogger(__name__)


class SprintOrchestrator:
    """Builds sprint reports.

    The provider and the cache client are injected, as are the analyzers
    when a caller wants to share or replace them. ``clock`` returns the
    current time and is used for every "now" in the report.
    """

    def __init__(
        self,
        provider,
        cache,
        settings=None,
        velocity_analyzer=None,
        correlation_engine=None,
        clock=utcnow,
    ):
        self.provider = provider
        self.cache = cache
        self.settings = settings or {}
        self.statuses = StatusCategoryTable.from_settings(self.settings)
        self.velocity_analyzer = velocity_analyzer or VelocityAnalyzer(
            provider, cache, self.statuses, self.settings
        )
        self.correlation_engine = correlation_engine or CorrelationEngine()
        self.metrics_calculator = MetricsCalculator(self.settings)
        self.clock = clock

    async def generate_report(self, request):
        """Build the report for a request.

        Raises :class:`FetchFailure` when the sprint or its issues cannot be
        fetched, and ``asyncio.TimeoutError`` when `request_timeout` is set
        and elapses first.
        """
        timeout = self.settings.get("request_timeout")
        if timeout:
            return await asyncio.wait_for(self._generate_report(request), timeout)
        return await self._generate_report(request)

    async def _generate_report(self, request):
        limit = self._limiter()
        now = self.clock()

        logger.info("Generating report for sprint %s", request.sprint_id)
        sprint = await self._fetch_sprint(request.sprint_id)

        level = FetchLevel.ENHANCED if needs_history(request) else FetchLevel.BASIC
        report = new_report(sprint, request, generated_at=now)
        warnings = report["warnings"]

        issues_task = asyncio.ensure_future(self._fetch_issues(sprint, level, limit))
        names = ["issues"]
        fetches = [issues_task]

        def optional(name, coro, default):
            names.append(name)
            fetches.append(self._optional(name, sprint, coro, default, warnings))

        wants_commits = request.include_commits or request.include_enhanced_source_control
        if wants_commits or request.include_prs or request.include_enhanced_source_control:
            if not request.has_repository:
                self._warn(
                    warnings, sprint, "No repository given, source control data omitted"
                )
            else:
                if wants_commits:
                    optional("commits", self._fetch_commits(request, sprint, limit), ())
                if request.include_prs:
                    optional(
                        "pull requests",
                        self._fetch_pull_requests(request, sprint, FetchLevel.BASIC, limit),
                        (),
                    )
                if request.include_enhanced_source_control:
                    optional(
                        "enhanced pull requests",
                        self._fetch_pull_requests(
                            request, sprint, FetchLevel.ENHANCED, limit
                        ),
                        (),
                    )

        if request.include_velocity or request.include_forward_looking:
            optional("velocity", self._fetch_velocity_window(sprint), None)

        if request.include_burndown:
            optional("burndown", self._fetch_burndown(sprint, issues_task), None)

        if request.include_tier2 and request.compare_with_previous:
            optional(
                "previous sprint cycle times",
                self._fetch_previous_cycle_times(sprint, limit),
                None,
            )

        try:
            results = dict(zip(names, await gather_or_cancel(*fetches)))
        finally:
            if not issues_task.done():
                issues_task.cancel()

        issues = results["issues"]
        window = results.get("velocity")
        velocity = (
            calculate_velocity(window, self.statuses) if window is not None else None
        )

        data = SprintData(
            sprint=sprint,
            issues=tuple(issues),
            now=now,
            statuses=self.statuses,
            velocity=velocity,
            capacity=tuple(request.capacity),
            previous_cycle_times=results.get("previous sprint cycle times"),
        )
        report.update(self.metrics_calculator.calculate(data, request))

        if request.include_velocity:
            window = window or []
            report["velocity"] = velocity or VelocityData()
            report["team_performance"] = calculate_team_performance(
                window, self.statuses
            )
            report["issue_type_distribution"] = calculate_issue_type_distribution(
                window, self.settings.get("issue_type_colors")
            )

        if request.include_burndown:
            report["burndown"] = results.get("burndown") or Burndown(sprint_id=sprint.id)

        commits = results.get("commits", ())
        if request.include_commits:
            report["commits"] = list(commits)

        if request.include_prs:
            report["pull_requests"] = list(results.get("pull requests", ()))

        if request.include_enhanced_source_control:
            pull_requests = results.get("enhanced pull requests", ())
            report["enhanced_source_control"] = self.correlation_engine.calculate(
                sprint, data.issues, commits, pull_requests
            )
            monthly = aggregate_activity_by_month(
                commits, pull_requests, sprint.start_date, sprint.end_date
            )
            report["activity_summary"] = {
                "monthly": monthly,
                "trend": activity_trend(monthly),
            }

        logger.info(
            "Report for sprint %s generated with %d warning(s)",
            sprint.id,
            len(warnings),
        )
        return report

    # Mandatory fetches

    async def _fetch_sprint(self, sprint_id):
        try:
            sprint = await self.cache.get_or_fetch(
                cache_keys.sprint_key(sprint_id),
                lambda sprint: cache_keys.sprint_ttl(sprint, self.settings),
                lambda: self.provider.get_sprint(sprint_id),
            )
        except Exception as e:
            logger.error("Failed to fetch sprint %s: %s", sprint_id, e)
            raise FetchFailure("sprint", sprint_id, e) from e

        if sprint is None:
            logger.error("Sprint %s not found", sprint_id)
            raise FetchFailure("sprint", sprint_id, LookupError("sprint not found"))
        return sprint

    async def _fetch_issues(self, sprint, level, limit):
        if level is FetchLevel.BASIC and sprint.issues is not None:
            return sprint.issues

        key = (
            cache_keys.enhanced_issues_key(sprint.id)
            if level is FetchLevel.ENHANCED
            else cache_keys.issues_key(sprint.id)
        )
        try:
            issues = await self.cache.get_or_fetch(
                key,
                cache_keys.sprint_ttl(sprint, self.settings),
                lambda: limit(self.provider.get_issues(sprint.id, level)),
            )
        except Exception as e:
            logger.error("Failed to fetch issues of sprint %s: %s", sprint.id, e)
            raise FetchFailure("issues", sprint.id, e) from e

        if not issues:
            logger.warning("Sprint %s has no issues", sprint.id)
        return issues

    # Optional fetches

    async def _optional(self, name, sprint, coro, default, warnings):
        try:
            return await coro
        except Exception as e:
            self._warn(warnings, sprint, f"Could not fetch {name}: {e}")
            return default

    def _warn(self, warnings, sprint, message):
        logger.warning("Sprint %s: %s", sprint.id, message)
        warnings.append(message)

    async def _fetch_commits(self, request, sprint, limit):
        return await self.cache.get_or_fetch(
            cache_keys.commits_key(
                request.owner, request.repo, sprint.start_date, sprint.end_date
            ),
            self.settings.get("source_control_ttl", 600),
            lambda: limit(
                self.provider.get_commits(
                    request.owner, request.repo, sprint.start_date, sprint.end_date
                )
            ),
        )

    async def _fetch_pull_requests(self, request, sprint, level, limit):
        return await self.cache.get_or_fetch(
            cache_keys.pull_requests_key(
                request.owner,
                request.repo,
                sprint.start_date,
                sprint.end_date,
                enhanced=level is FetchLevel.ENHANCED,
            ),
            self.settings.get("source_control_ttl", 600),
            lambda: limit(
                self.provider.get_pull_requests(
                    request.owner, request.repo, sprint.start_date, sprint.end_date, level
                )
            ),
        )

    async def _fetch_velocity_window(self, sprint):
        if sprint.board_id is None:
            raise ValueError(f"sprint {sprint.id} has no board")
        return await self.velocity_analyzer.window(
            sprint.board_id, self.settings.get("velocity_sprint_count", 5)
        )

    async def _fetch_burndown(self, sprint, issues_task):
        async def compute():
            issues = await asyncio.shield(issues_task)
            return calculate_burndown(sprint, issues, self.statuses)

        return await self.cache.get_or_fetch(
            cache_keys.burndown_key(sprint.id),
            cache_keys.sprint_ttl(sprint, self.settings),
            compute,
        )

    async def _fetch_previous_cycle_times(self, sprint, limit):
        """Cycle times of the closed sprint that started last before this one."""
        if sprint.board_id is None:
            raise ValueError(f"sprint {sprint.id} has no board")

        closed = await self.velocity_analyzer.all_closed_sprints(sprint.board_id)
        start = to_utc(sprint.start_date)
        previous = next(
            (
                s
                for s in closed
                if s.id != sprint.id
                and s.start_date is not None
                and (start is None or to_utc(s.start_date) < start)
            ),
            None,
        )
        if previous is None:
            raise LookupError(f"no closed sprint started before sprint {sprint.id}")

        issues = await self.cache.get_or_fetch(
            cache_keys.enhanced_issues_key(previous.id),
            cache_keys.sprint_ttl(previous, self.settings),
            lambda: limit(self.provider.get_issues(previous.id, FetchLevel.ENHANCED)),
        )
        cycle_times = [
            issue_cycle_time(issue, self.statuses)
            for issue in issues
            if self.statuses.is_completed(issue.status)
        ]
        return [c for c in cycle_times if c is not None]

    # Helpers

    def _limiter(self):
        """Return a wrapper running provider calls under the request's
        `max_concurrency` limit. Results are returned as tuples so cached
        collections cannot be mutated.
        """
        semaphore = asyncio.Semaphore(self.settings.get("max_concurrency", 5))

        async def limit(coro):
            async with semaphore:
                return tuple(await coro)

        return limit
