"""Epic progress."""

import logging
from collections import OrderedDict

from ..calculator import Calculator
from ..results import EpicProgress
from ..statuses import StatusCategory
from ..utils import percentage

logger = logging.getLogger(__name__)


def calculate_epic_progress(issues, statuses):
    """Progress of every epic with at least one issue in the sprint.

    Issues without an epic link are left out. Completion percentage is by
    story points, falling back to issue count for unestimated epics.
    """
    epics = OrderedDict()
    for issue in sorted(issues, key=lambda i: (i.epic_link or "", i.key)):
        if not issue.epic_link:
            continue
        epic = epics.setdefault(
            issue.epic_link,
            EpicProgress(
                epic_key=issue.epic_link,
                epic_name=issue.epic_name or issue.epic_link,
            ),
        )

        category = statuses.categorize(issue.status)
        epic.total_issues += 1
        epic.total_story_points += issue.points
        if category is StatusCategory.COMPLETED:
            epic.completed_issues += 1
            epic.completed_story_points += issue.points
        elif category is StatusCategory.IN_PROGRESS:
            epic.in_progress_issues += 1
        elif category is StatusCategory.TODO:
            epic.todo_issues += 1

    for epic in epics.values():
        epic.remaining_story_points = epic.total_story_points - epic.completed_story_points
        if epic.total_story_points > 0:
            epic.completion_percentage = percentage(
                epic.completed_story_points, epic.total_story_points
            )
        else:
            epic.completion_percentage = percentage(
                epic.completed_issues, epic.total_issues
            )

    return list(epics.values())


class EpicProgressCalculator(Calculator):
    report_key = "epic_progress"

    def run(self):
        return calculate_epic_progress(self.data.issues, self.data.statuses)
