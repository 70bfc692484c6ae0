"""Base sprint metrics."""

import logging
from collections import Counter

from ..calculator import Calculator
from ..results import SprintMetrics
from ..utils import mean_or_zero, percentage
from .cycletime import issue_cycle_time, issue_lead_time

logger = logging.getLogger(__name__)


def calculate_sprint_metrics(issues, statuses):
    """Totals, completion rate and velocity of an issue collection.

    Completion rate is by issue count. Velocity is the completed story
    points, which never exceed the total story points.
    """
    if not issues:
        return SprintMetrics()

    completed = [i for i in issues if statuses.is_completed(i.status)]
    story_points = sum(i.points for i in issues)
    completed_story_points = sum(i.points for i in completed)

    return SprintMetrics(
        total_issues=len(issues),
        completed_issues=len(completed),
        story_points=story_points,
        completed_story_points=completed_story_points,
        completion_rate=percentage(len(completed), len(issues)),
        velocity=completed_story_points,
        issues_by_type=dict(Counter(i.issue_type for i in issues).most_common()),
        issues_by_status=dict(Counter(i.status for i in issues).most_common()),
        average_cycle_time=mean_or_zero(
            issue_cycle_time(i, statuses) for i in completed
        ),
        average_lead_time=mean_or_zero(issue_lead_time(i) for i in completed),
    )


class SprintMetricsCalculator(Calculator):
    """Headline metrics every report carries."""

    report_key = "metrics"

    def run(self):
        return calculate_sprint_metrics(self.data.issues, self.data.statuses)
