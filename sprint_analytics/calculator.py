"""Calculator base class.

A calculator derives one analytical view of a sprint from an already
fetched :class:`SprintData` bundle. Calculators run in order and may read
the result of a calculator that ran before them through ``get_result``.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Sequence, Tuple

from .models import CapacityRecord, Issue, Sprint
from .results import VelocityData
from .statuses import StatusCategoryTable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SprintData:
    """Everything the calculators may look at for one sprint.

    Built by the orchestrator only once every mandatory fetch has completed,
    so a calculator never sees a partially fetched issue collection.
    """

    sprint: Sprint
    issues: Tuple[Issue, ...]
    now: datetime
    statuses: StatusCategoryTable = field(default_factory=StatusCategoryTable)
    velocity: Optional[VelocityData] = None
    capacity: Tuple[CapacityRecord, ...] = ()
    previous_cycle_times: Optional[Sequence[float]] = None


class Calculator:
    """Base class for calculators."""

    # Name of the report section the result is published under
    report_key = None

    def __init__(self, data, settings, results):
        """Initialise with the sprint data bundle, a settings dict and a
        results dict shared by every calculator in the run.
        """
        self.data = data
        self.settings = settings
        self._results = results

    def get_result(self, calculator=None, default=None):
        """Return the result of the given calculator, or of this one."""
        return self._results.get(calculator or self.__class__, default)

    def run(self):
        """Run the calculator and return its result."""
        raise NotImplementedError


def run_calculators(calculators, data, settings):
    """Run each calculator in turn and return a dict of results keyed by
    calculator class.
    """
    results = {}
    for c in calculators:
        logger.debug("%s running", c.__name__)
        calculator = c(data, settings, results)
        results[c] = calculator.run()
    return results
