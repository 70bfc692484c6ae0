"""Technical debt calculator."""

import logging
from collections import Counter

from ..calculator import Calculator
from ..common_constants import DEFAULT_TECH_DEBT_LABELS
from ..results import TechnicalDebt
from ..utils import percentage, within

logger = logging.getLogger(__name__)


def calculate_technical_debt(sprint, issues, statuses, labels=None):
    """Issues tagged with a technical debt label.

    Items added are debt issues created inside the sprint window, items
    addressed are debt issues completed inside it. ``by_category`` counts the
    matching debt labels.
    """
    labels = [label.lower() for label in (labels or DEFAULT_TECH_DEBT_LABELS)]
    debt = [i for i in issues if i.has_label(labels)]
    if not debt:
        return TechnicalDebt()

    start, end = sprint.start_date, sprint.end_date
    added = [i for i in debt if within(i.created, start, end)]
    addressed = [
        i
        for i in debt
        if statuses.is_completed(i.status)
        and (i.resolved is None or within(i.resolved, start, end))
    ]

    categories = Counter(
        label.lower() for i in debt for label in i.labels if label.lower() in labels
    )
    debt_points = sum(i.points for i in debt)

    return TechnicalDebt(
        total_items=len(debt),
        items_added=len(added),
        items_addressed=len(addressed),
        net_tech_debt_change=len(added) - len(addressed),
        story_points=debt_points,
        percentage_of_sprint=percentage(debt_points, sum(i.points for i in issues)),
        by_category=dict(categories.most_common()),
        issue_keys=[i.key for i in debt],
    )


class TechnicalDebtCalculator(Calculator):
    """Technical debt carried by the sprint, identified by `tech_debt_labels`."""

    report_key = "technical_debt"

    def run(self):
        return calculate_technical_debt(
            self.data.sprint,
            self.data.issues,
            self.data.statuses,
            self.settings.get("tech_debt_labels"),
        )
