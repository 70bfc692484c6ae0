"""Burndown calculator."""

import logging

import pandas as pd

from ..results import Burndown, BurndownPoint
from ..utils import to_utc

logger = logging.getLogger(__name__)


def calculate_burndown(sprint, issues, statuses):
    """Daily remaining story points from sprint start to sprint end.

    Remaining work drops on the day a completed issue was resolved. The
    ideal line falls linearly from the total to zero on the last day.
    """
    total = sum(i.points for i in issues)
    if sprint.start_date is None or sprint.end_date is None:
        logger.debug("Sprint %s has no dates, not calculating burndown", sprint.id)
        return Burndown(sprint_id=sprint.id, total_story_points=total)

    days = pd.date_range(
        to_utc(sprint.start_date).date(), to_utc(sprint.end_date).date(), freq="D"
    )
    if len(days) == 0:
        return Burndown(sprint_id=sprint.id, total_story_points=total)

    resolutions = pd.Series(
        [i.points for i in issues if statuses.is_completed(i.status) and i.resolved],
        index=pd.DatetimeIndex(
            [
                to_utc(i.resolved).date()
                for i in issues
                if statuses.is_completed(i.status) and i.resolved
            ]
        ),
        dtype="float64",
    )
    burned = resolutions.groupby(level=0).sum()
    burned = burned.reindex(burned.index.union(days), fill_value=0.0).cumsum()

    steps = max(len(days) - 1, 1)
    points = []
    for index, day in enumerate(days):
        completed = float(burned.loc[day])
        points.append(
            BurndownPoint(
                date=day.date(),
                remaining=round(total - completed, 2),
                ideal=round(total * (1 - index / steps), 2),
                completed=round(completed, 2),
            )
        )

    return Burndown(sprint_id=sprint.id, total_story_points=total, days=points)

