"""Spillover analysis.

An issue spills over when its status is not in the completed category at
the end of the sprint. Each spilled issue gets one reason from a fixed
taxonomy, inferred from its flag, labels, sprint history and estimate.
"""

import logging
from collections import Counter

from ..calculator import Calculator
from ..common_constants import DEFAULT_DEPENDENCY_LABELS, SPILLOVER_REASONS
from ..results import SpilloverAnalysis, SpilloverIssue
from ..utils import percentage
from .scope import added_after_start

logger = logging.getLogger(__name__)


def spillover_reason(issue, sprint, statuses, settings):
    """Pick the most specific reason an issue was not completed."""
    if issue.flagged:
        return "blocked"
    if issue.has_label(settings.get("dependency_labels", DEFAULT_DEPENDENCY_LABELS)):
        return "dependency"
    if added_after_start(issue, sprint):
        return "scope-added-late"
    if statuses.is_in_progress(issue.status) and issue.points >= settings.get(
        "large_story_points", 8
    ):
        return "underestimated"
    return "unspecified"


def incomplete_issues(issues, statuses):
    return [i for i in issues if not statuses.is_completed(i.status)]


def analyze_spillover(sprint, issues, statuses, settings):
    if not issues:
        return SpilloverAnalysis(reasons={reason: 0 for reason in SPILLOVER_REASONS})

    incomplete = incomplete_issues(issues, statuses)
    committed = sum(i.points for i in issues)
    incomplete_points = sum(i.points for i in incomplete)

    spilled = [
        SpilloverIssue(
            issue_key=issue.key,
            summary=issue.summary,
            status=issue.status,
            story_points=issue.points,
            reason=spillover_reason(issue, sprint, statuses, settings),
            assignee=issue.assignee,
        )
        for issue in incomplete
    ]
    counts = Counter(s.reason for s in spilled)

    return SpilloverAnalysis(
        total_issues=len(issues),
        incomplete_issues=len(incomplete),
        incomplete_story_points=incomplete_points,
        committed_story_points=committed,
        spillover_percentage=percentage(incomplete_points, committed),
        reasons={reason: counts.get(reason, 0) for reason in SPILLOVER_REASONS},
        issues=spilled,
    )


class SpilloverCalculator(Calculator):
    """Incomplete work at sprint end as a share of committed story points."""

    report_key = "spillover_analysis"

    def run(self):
        return analyze_spillover(
            self.data.sprint, self.data.issues, self.data.statuses, self.settings
        )
