"""Sprint goal analysis."""

import logging

from ..calculator import Calculator
from ..results import SprintGoalAnalysis
from ..utils import percentage

logger = logging.getLogger(__name__)


def analyze_sprint_goal(sprint, issues, statuses, threshold=0.8):
    """Decide whether the sprint goal was achieved.

    The goal counts as achieved when the completed share of committed story
    points reaches ``threshold``, whatever the goal text says.
    """
    goal = sprint.goal or ""
    if not issues:
        return SprintGoalAnalysis(goal=goal, notes="No issues in sprint")

    total = sum(i.points for i in issues)
    completed = sum(i.points for i in issues if statuses.is_completed(i.status))
    completion = percentage(completed, total)
    achieved = total > 0 and completion >= threshold * 100

    if total == 0:
        notes = "No story points committed"
    elif achieved:
        notes = f"Goal achieved with {completion:g}% of committed story points completed"
    else:
        notes = (
            f"Goal not achieved: {completion:g}% of committed story points "
            f"completed, below the {threshold * 100:g}% threshold"
        )
    if not goal:
        notes = f"No sprint goal set. {notes}"

    return SprintGoalAnalysis(
        goal=goal,
        achieved=achieved,
        completion_percentage=completion,
        total_story_points=total,
        completed_story_points=completed,
        notes=notes,
    )


class SprintGoalCalculator(Calculator):
    """Sprint goal achievement, judged against `goal_achievement_threshold`."""

    report_key = "sprint_goal"

    def run(self):
        return analyze_sprint_goal(
            self.data.sprint,
            self.data.issues,
            self.data.statuses,
            self.settings.get("goal_achievement_threshold", 0.8),
        )
