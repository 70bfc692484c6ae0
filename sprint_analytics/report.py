"""Report requests and report assembly."""

import json
from dataclasses import dataclass
from typing import Optional, Tuple

from . import __version__
from .common_constants import REPORT_FLAGS
from .models import CapacityRecord
from .utils import to_jsonable, utcnow


@dataclass(frozen=True)
class ReportRequest:
    """What to put in a sprint report.

    Optional sections are only produced for the flags that are set.
    Source control sections also need ``owner`` and ``repo``.
    """

    sprint_id: int
    include_commits: bool = False
    include_prs: bool = False
    include_velocity: bool = False
    include_burndown: bool = False
    include_tier1: bool = False
    include_tier2: bool = False
    include_tier3: bool = False
    include_forward_looking: bool = False
    include_enhanced_source_control: bool = False
    owner: Optional[str] = None
    repo: Optional[str] = None
    compare_with_previous: bool = False
    capacity: Tuple[CapacityRecord, ...] = ()

    @property
    def has_repository(self):
        return bool(self.owner and self.repo)

    def flags(self):
        return {name: getattr(self, name) for name in REPORT_FLAGS}

    @classmethod
    def all_sections(cls, sprint_id, **kwargs):
        """A request with every optional section switched on."""
        flags = {name: True for name in REPORT_FLAGS}
        flags.update(kwargs)
        return cls(sprint_id=sprint_id, **flags)


def new_report(sprint, request, generated_at=None):
    """Start a report holding the sprint, empty warnings and metadata."""
    return {
        "sprint": sprint,
        "warnings": [],
        "metadata": {
            "generated_at": generated_at or utcnow(),
            "version": __version__,
            "sprint_id": sprint.id,
            "flags": request.flags(),
        },
    }


def report_to_dict(report):
    """Plain dict/list/str/number rendition of a report."""
    return to_jsonable(report)


def report_to_json(report, indent=2):
    return json.dumps(report_to_dict(report), indent=indent)
