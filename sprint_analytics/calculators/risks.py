"""Risk register derived from flagged high-priority issues."""

import logging

from ..calculator import Calculator
from ..results import RiskItem
from ..utils import days_between, to_utc
from .blockers import flag_raised_at, priority_weight

logger = logging.getLogger(__name__)


def risk_probability(flag_age_days):
    if flag_age_days >= 7:
        return "high"
    if flag_age_days >= 3:
        return "medium"
    return "low"


def risk_impact(priority):
    weight = priority_weight(priority)
    if weight >= 3:
        return "high"
    if weight >= 2:
        return "medium"
    return "low"


def risk_status(issue, sprint, statuses, now):
    """Mitigated once the issue is done; occurred if the sprint ended without it."""
    if statuses.is_completed(issue.status):
        return "mitigated"
    if sprint.end_date is not None and to_utc(now) > to_utc(sprint.end_date):
        return "occurred"
    return "active"


def identify_risks(sprint, issues, statuses, now):
    """One risk per flagged issue of high priority or above.

    Probability follows the age of the flag, impact the priority. Both are
    deterministic for a given issue and ``now``.
    """
    risks = []
    for issue in issues:
        if not issue.flagged or priority_weight(issue.priority) < 2:
            continue

        raised_at = flag_raised_at(issue, sprint)
        age = days_between(raised_at, now) if raised_at else 0

        description = issue.summary
        if issue.blocker_reason:
            description = f"{issue.summary}: {issue.blocker_reason}"

        risks.append(
            RiskItem(
                id=f"RISK-{issue.key}",
                issue_key=issue.key,
                description=description,
                probability=risk_probability(age),
                impact=risk_impact(issue.priority),
                status=risk_status(issue, sprint, statuses, now),
                owner=issue.assignee,
                raised_at=to_utc(raised_at),
            )
        )

    risks.sort(key=lambda r: r.id)
    return risks


class RiskCalculator(Calculator):
    report_key = "risks"

    def run(self):
        return identify_risks(
            self.data.sprint, self.data.issues, self.data.statuses, self.data.now
        )
