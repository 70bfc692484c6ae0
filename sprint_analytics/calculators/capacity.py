"""Team capacity."""

import logging

from ..calculator import Calculator
from ..results import CapacityLoss, MemberCapacity, TeamCapacity
from ..utils import percentage

logger = logging.getLogger(__name__)


def calculate_team_capacity(records):
    """Planned against actual hours per team member.

    Total capacity is the planned hours plus every hour lost, i.e. what the
    team would have had without absences and meetings.
    """
    if not records:
        logger.debug("No capacity records supplied")
        return TeamCapacity()

    members = []
    loss = CapacityLoss()
    for record in records:
        lost = (
            record.pto_hours
            + record.sick_hours
            + record.meeting_hours
            + record.training_hours
            + record.other_hours
        )
        loss.pto += record.pto_hours
        loss.sick += record.sick_hours
        loss.meetings += record.meeting_hours
        loss.training += record.training_hours
        loss.other += record.other_hours

        members.append(
            MemberCapacity(
                member=record.member,
                planned_hours=record.planned_hours,
                actual_hours=record.actual_hours,
                utilization=percentage(record.actual_hours, record.planned_hours),
                lost_hours=lost,
            )
        )

    planned = sum(r.planned_hours for r in records)
    actual = sum(r.actual_hours for r in records)
    return TeamCapacity(
        total_capacity=planned + loss.total,
        planned_hours=planned,
        actual_hours=actual,
        utilization=percentage(actual, planned),
        capacity_loss=loss,
        members=members,
    )


class TeamCapacityCalculator(Calculator):
    report_key = "team_capacity"

    def run(self):
        return calculate_team_capacity(self.data.capacity)
