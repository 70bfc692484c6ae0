"""Scope change detection."""

import logging

from ..calculator import Calculator
from ..results import ScopeChange
from ..utils import to_utc

logger = logging.getLogger(__name__)


def added_after_start(issue, sprint):
    """True if the issue history shows it joining the sprint after it started."""
    if sprint.start_date is None:
        return False
    start = to_utc(sprint.start_date)
    return any(
        change.sprint_id == sprint.id
        and change.action == "added"
        and to_utc(change.timestamp) > start
        for change in issue.sprint_history
    )


def detect_scope_changes(sprint, issues):
    """Issues added to the sprint after it started or removed before it ended.

    Relies on the sprint membership history of enhanced issues; issues
    without history produce no changes.
    """
    changes = []
    start = to_utc(sprint.start_date)
    end = to_utc(sprint.end_date)

    for issue in issues:
        for change in issue.sprint_history:
            if change.sprint_id != sprint.id:
                continue
            timestamp = to_utc(change.timestamp)

            if change.action == "added" and start is not None and timestamp > start:
                delta = issue.points
            elif change.action == "removed" and end is not None and timestamp < end:
                delta = -issue.points
            else:
                continue

            changes.append(
                ScopeChange(
                    issue_key=issue.key,
                    summary=issue.summary,
                    change_type=change.action,
                    date=timestamp,
                    story_points_delta=delta,
                    changed_by=change.author or "Unknown",
                )
            )

    changes.sort(key=lambda c: (c.date, c.issue_key))
    return changes


class ScopeChangeCalculator(Calculator):
    report_key = "scope_changes"

    def run(self):
        return detect_scope_changes(self.data.sprint, self.data.issues)
