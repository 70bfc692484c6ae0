"""Bug metrics."""

import logging
from collections import Counter

from ..calculator import Calculator
from ..common_constants import DEFAULT_BUG_ISSUE_TYPES, DEFAULT_CRITICAL_PRIORITIES
from ..results import BugMetrics
from ..statuses import StatusCategory, StatusCategoryTable
from ..utils import hours_between, mean_or_zero, to_utc, within

logger = logging.getLogger(__name__)


def is_bug(issue, bug_types):
    return issue.issue_type.strip().lower() in bug_types


def is_open(issue, statuses):
    """Not resolved and not in a completed or discarded status."""
    if issue.resolved is not None:
        return False
    return statuses.categorize(issue.status) not in (
        StatusCategory.COMPLETED,
        StatusCategory.DISCARDED,
    )


def calculate_bug_metrics(sprint, issues, settings, statuses=None):
    """Bugs created and resolved inside the sprint window.

    Resolution time is in hours, averaged over the bugs resolved in the
    window. Critical bugs outstanding and bugs carried over count open bugs
    regardless of the window.
    """
    if statuses is None:
        statuses = StatusCategoryTable.from_settings(settings)
    bug_types = [t.lower() for t in settings.get("bug_issue_types", DEFAULT_BUG_ISSUE_TYPES)]
    critical = [
        p.lower()
        for p in settings.get("critical_priorities", DEFAULT_CRITICAL_PRIORITIES)
    ]

    bugs = [i for i in issues if is_bug(i, bug_types)]
    if not bugs:
        return BugMetrics()

    start, end = sprint.start_date, sprint.end_date
    created = [b for b in bugs if within(b.created, start, end)]
    resolved = [b for b in bugs if within(b.resolved, start, end)]
    unresolved = [b for b in bugs if is_open(b, statuses)]

    carried_over = []
    if start is not None:
        carried_over = [
            b for b in unresolved if b.created is not None and to_utc(b.created) < to_utc(start)
        ]

    return BugMetrics(
        bugs_created=len(created),
        bugs_resolved=len(resolved),
        net_bug_change=len(created) - len(resolved),
        average_resolution_time=mean_or_zero(
            hours_between(b.created, b.resolved) for b in resolved if b.created
        ),
        critical_bugs_outstanding=len(
            [b for b in unresolved if b.priority.strip().lower() in critical]
        ),
        bugs_carried_over=len(carried_over),
        bugs_by_priority=dict(Counter(b.priority for b in bugs).most_common()),
    )


class BugMetricsCalculator(Calculator):
    """Bug inflow and outflow during the sprint.

    Issue types counted as bugs come from `bug_issue_types`, priorities
    counted as critical from `critical_priorities`.
    """

    report_key = "bug_metrics"

    def run(self):
        return calculate_bug_metrics(
            self.data.sprint, self.data.issues, self.settings, self.data.statuses
        )
