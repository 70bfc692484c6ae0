"""Tier registry: which calculators each report flag runs."""

import logging

from .calculator import run_calculators
from .calculators.blockers import BlockersCalculator
from .calculators.bugs import BugMetricsCalculator
from .calculators.capacity import TeamCapacityCalculator
from .calculators.carryover import CarryoverCalculator
from .calculators.cycletime import CycleTimeCalculator
from .calculators.debt import TechnicalDebtCalculator
from .calculators.epics import EpicProgressCalculator
from .calculators.forecast import ForecastCalculator
from .calculators.goal import SprintGoalCalculator
from .calculators.risks import RiskCalculator
from .calculators.scope import ScopeChangeCalculator
from .calculators.spillover import SpilloverCalculator
from .calculators.sprintmetrics import SprintMetricsCalculator

logger = logging.getLogger(__name__)

BASE = (SprintMetricsCalculator,)

TIER_1 = (
    SprintGoalCalculator,
    ScopeChangeCalculator,
    SpilloverCalculator,
)

TIER_2 = (
    BlockersCalculator,
    BugMetricsCalculator,
    CycleTimeCalculator,
    TeamCapacityCalculator,
)

TIER_3 = (
    EpicProgressCalculator,
    TechnicalDebtCalculator,
    RiskCalculator,
)

FORWARD_LOOKING = (
    ForecastCalculator,
    CarryoverCalculator,
)

TIERS = (
    ("include_tier1", TIER_1),
    ("include_tier2", TIER_2),
    ("include_tier3", TIER_3),
    ("include_forward_looking", FORWARD_LOOKING),
)


def calculators_for(request):
    """Calculators to run for a request, base metrics first."""
    calculators = list(BASE)
    for flag, tier in TIERS:
        if getattr(request, flag, False):
            calculators.extend(c for c in tier if c not in calculators)
    return calculators


def needs_history(request):
    """True if any requested tier needs issues fetched with their history."""
    return any(getattr(request, flag, False) for flag, _ in TIERS)


class MetricsCalculator:
    """Runs the base metrics and every requested tier over one sprint."""

    def __init__(self, settings):
        self.settings = settings

    def calculate(self, data, request):
        """Return the results of the requested tiers keyed by report section."""
        calculators = calculators_for(request)
        logger.debug(
            "Running %d calculators for sprint %s", len(calculators), data.sprint.id
        )
        results = run_calculators(calculators, data, self.settings)
        return {c.report_key: results[c] for c in calculators}
