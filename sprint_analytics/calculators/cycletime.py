"""Cycle time calculator for Sprint Analytics."""

import logging

import pandas as pd

from ..calculator import Calculator
from ..results import CycleTimeMetrics, CycleTimeStats
from ..statuses import StatusCategory
from ..utils import days_between

logger = logging.getLogger(__name__)


def first_in_progress(issue, statuses):
    """Return when the issue first moved into an in-progress status, if ever."""
    for change in sorted(issue.status_history, key=lambda c: c.timestamp):
        if statuses.categorize(change.to_status) is StatusCategory.IN_PROGRESS:
            return change.timestamp
    return None


def issue_cycle_time(issue, statuses):
    """Days from the first move into progress (or creation) to resolution.

    Returns None for unresolved issues and issues with no usable start date.
    """
    if issue.resolved is None:
        return None
    start = first_in_progress(issue, statuses) or issue.created
    if start is None:
        return None
    return max(0.0, days_between(start, issue.resolved))


def issue_lead_time(issue):
    """Days from creation to resolution, or None if either is unknown."""
    if issue.resolved is None or issue.created is None:
        return None
    return max(0.0, days_between(issue.created, issue.resolved))


def _stats(values):
    if len(values) == 0:
        return CycleTimeStats()
    return CycleTimeStats(
        mean=round(float(values.mean()), 2),
        median=round(float(values.median()), 2),
        p90=round(float(values.quantile(0.9)), 2),
        count=int(len(values)),
    )


def calculate_cycle_times(issues, statuses, previous_cycle_times=None):
    """Cycle time statistics over the resolved, completed issues.

    When a sample of the previous sprint's cycle times is supplied, the
    improvement is the relative drop of the mean, in percent: positive
    means this sprint was faster.
    """
    rows = []
    for issue in issues:
        if not statuses.is_completed(issue.status):
            continue
        cycle_time = issue_cycle_time(issue, statuses)
        if cycle_time is None:
            continue
        rows.append(
            {
                "key": issue.key,
                "issue_type": issue.issue_type,
                "priority": issue.priority,
                "cycle_time": cycle_time,
            }
        )

    result = CycleTimeMetrics()

    if previous_cycle_times:
        result.previous_average_cycle_time = round(
            float(pd.Series(list(previous_cycle_times), dtype="float64").mean()), 2
        )

    if not rows:
        logger.debug("No resolved issues to measure cycle time on")
        return result

    df = pd.DataFrame(rows)
    overall = _stats(df["cycle_time"])
    result.average_cycle_time = overall.mean
    result.median_cycle_time = overall.median
    result.p90_cycle_time = overall.p90
    result.issues_measured = overall.count
    result.by_issue_type = {
        name: _stats(group["cycle_time"])
        for name, group in df.groupby("issue_type", sort=True)
    }
    result.by_priority = {
        name: _stats(group["cycle_time"])
        for name, group in df.groupby("priority", sort=True)
    }

    previous = result.previous_average_cycle_time
    if previous:
        result.cycle_time_improvement = round(
            (previous - overall.mean) / previous * 100.0, 2
        )

    return result


class CycleTimeCalculator(Calculator):
    """Cycle time of the sprint's completed issues, overall and grouped by
    issue type and priority, compared with the previous sprint when its
    cycle times were fetched.
    """

    report_key = "cycle_time_metrics"

    def run(self):
        return calculate_cycle_times(
            self.data.issues, self.data.statuses, self.data.previous_cycle_times
        )
