"""Blockers and impediments."""

import logging

from ..calculator import Calculator
from ..common_constants import PRIORITY_WEIGHTS
from ..results import BlockerImpediment
from ..utils import days_between, to_utc

logger = logging.getLogger(__name__)


def priority_weight(priority):
    return PRIORITY_WEIGHTS.get(str(priority or "").strip().lower(), 1)


def blocker_impact(priority, days_blocked):
    """Classify impact from priority weight and how long the issue was blocked."""
    weight = priority_weight(priority)
    if (weight >= 2 and days_blocked >= 3) or days_blocked >= 7:
        return "high"
    if weight >= 2 or days_blocked >= 3:
        return "medium"
    return "low"


def flag_raised_at(issue, sprint):
    return issue.flagged_at or sprint.start_date or issue.created


def find_blockers(sprint, issues, now):
    """Flagged issues, with how long each has been blocked.

    A blocker ends at the issue's resolution if it was resolved, otherwise
    it is still running at ``now``.
    """
    blockers = []
    for issue in issues:
        if not issue.flagged:
            continue

        raised_at = flag_raised_at(issue, sprint)
        ended_at = issue.resolved or now
        days_blocked = (
            max(0, int(days_between(raised_at, ended_at))) if raised_at else 0
        )

        blockers.append(
            BlockerImpediment(
                issue_key=issue.key,
                summary=issue.summary,
                reason=issue.blocker_reason or "Flagged",
                raised_at=to_utc(raised_at),
                resolved_at=to_utc(issue.resolved),
                days_blocked=days_blocked,
                impact=blocker_impact(issue.priority, days_blocked),
                priority=issue.priority,
                assignee=issue.assignee,
            )
        )

    blockers.sort(key=lambda b: (-b.days_blocked, b.issue_key))
    return blockers


class BlockersCalculator(Calculator):
    report_key = "blockers"

    def run(self):
        return find_blockers(self.data.sprint, self.data.issues, self.data.now)
