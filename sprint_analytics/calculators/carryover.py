"""Carryover items for the next sprint."""

import logging
from collections import Counter

from ..calculator import Calculator
from ..models import SprintState
from ..results import CarryoverItem, CarryoverItems
from ..utils import days_between, percentage, to_utc
from .cycletime import first_in_progress
from .spillover import incomplete_issues, spillover_reason

logger = logging.getLogger(__name__)

RECOMMENDED_ACTIONS = {
    "blocked": "Resolve blockers before the next sprint starts",
    "dependency": "Agree delivery dates with the teams owning the dependencies",
    "scope-added-late": "Limit work added after the sprint has started",
    "underestimated": "Split large stories and revisit estimates during refinement",
    "unspecified": "Review carryover items in the retrospective",
}


def days_in_progress(issue, sprint, statuses, now):
    """Whole days the issue has been worked on by the end of the sprint, or
    by ``now`` while the sprint is still running.
    """
    reference = now
    if (
        sprint.state is SprintState.CLOSED
        and sprint.end_date is not None
        and to_utc(now) > to_utc(sprint.end_date)
    ):
        reference = sprint.end_date

    started = first_in_progress(issue, statuses) or sprint.start_date or issue.created
    if started is None:
        return 0
    return max(0, int(days_between(started, reference)))


def analyze_carryover(sprint, issues, statuses, settings, now):
    if not issues:
        return CarryoverItems()

    items = [
        CarryoverItem(
            issue_key=issue.key,
            summary=issue.summary,
            story_points=issue.points,
            reason=spillover_reason(issue, sprint, statuses, settings),
            priority=issue.priority,
            assignee=issue.assignee,
            status=issue.status,
            days_in_progress=days_in_progress(issue, sprint, statuses, now),
        )
        for issue in incomplete_issues(issues, statuses)
    ]
    if not items:
        return CarryoverItems()

    carryover_points = sum(i.story_points for i in items)
    reasons = dict(Counter(i.reason for i in items).most_common())

    return CarryoverItems(
        total_items=len(items),
        total_story_points=carryover_points,
        percentage_of_original_commitment=percentage(
            carryover_points, sum(i.points for i in issues)
        ),
        most_common_reasons=reasons,
        items=sorted(items, key=lambda i: (-i.story_points, i.issue_key)),
        recommended_actions=[RECOMMENDED_ACTIONS[reason] for reason in reasons],
    )


class CarryoverCalculator(Calculator):
    """Incomplete work re-expressed as carryover into the next sprint."""

    report_key = "carryover_items"

    def run(self):
        return analyze_carryover(
            self.data.sprint,
            self.data.issues,
            self.data.statuses,
            self.settings,
            self.data.now,
        )
