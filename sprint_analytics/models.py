"""Domain records fetched from the issue tracker and source control.

All records are frozen: once fetched (and possibly cached) they are never
mutated. A refetch produces new instances that replace the cache entry
wholesale.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from .utils import hours_between


class SprintState(Enum):
    ACTIVE = "active"
    CLOSED = "closed"
    FUTURE = "future"

    @classmethod
    def from_string(cls, value):
        """Map a tracker state name onto a state, defaulting to FUTURE."""
        if isinstance(value, cls):
            return value
        normalized = str(value or "").strip().lower()
        for state in cls:
            if state.value == normalized:
                return state
        return cls.FUTURE


@dataclass(frozen=True)
class StatusChange:
    from_status: Optional[str]
    to_status: str
    timestamp: datetime
    author: Optional[str] = None


@dataclass(frozen=True)
class SprintChange:
    """An issue being added to or removed from a sprint."""

    sprint_id: int
    action: str  # "added" or "removed"
    timestamp: datetime
    author: Optional[str] = None


@dataclass(frozen=True)
class Issue:
    key: str
    status: str
    summary: str = ""
    issue_type: str = "Unknown"
    priority: str = "Unknown"
    assignee: str = "Unassigned"
    story_points: Optional[float] = None
    labels: Tuple[str, ...] = ()
    flagged: bool = False
    blocker_reason: Optional[str] = None
    flagged_at: Optional[datetime] = None
    epic_link: Optional[str] = None
    epic_name: Optional[str] = None
    created: Optional[datetime] = None
    resolved: Optional[datetime] = None
    status_history: Tuple[StatusChange, ...] = ()
    sprint_history: Tuple[SprintChange, ...] = ()

    @property
    def points(self) -> float:
        """Story points, with missing and negative estimates counted as zero."""
        if self.story_points is None:
            return 0.0
        return max(0.0, float(self.story_points))

    def has_label(self, labels) -> bool:
        own = {label.lower() for label in self.labels}
        return any(label.lower() in own for label in labels)


@dataclass(frozen=True)
class Sprint:
    id: int
    name: str
    state: SprintState
    board_id: Optional[int] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    goal: Optional[str] = None
    # Lightweight issue list embedded by the tracker, if it supplied one
    issues: Optional[Tuple[Issue, ...]] = None


@dataclass(frozen=True)
class Commit:
    sha: str
    message: str
    author: str
    date: datetime
    additions: int = 0
    deletions: int = 0
    branch: Optional[str] = None

    @property
    def changes(self) -> int:
        return self.additions + self.deletions


@dataclass(frozen=True)
class Review:
    reviewer: str
    state: str  # APPROVED, CHANGES_REQUESTED, COMMENTED, ...
    submitted_at: Optional[datetime] = None
    comments: int = 0


@dataclass(frozen=True)
class PullRequest:
    number: int
    title: str
    author: str
    state: str  # "open" or "closed"
    created_at: datetime
    body: str = ""
    branch: Optional[str] = None
    merged_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    additions: int = 0
    deletions: int = 0
    changed_files: int = 0
    # Populated by an enhanced fetch only
    reviews: Tuple[Review, ...] = ()
    first_review_at: Optional[datetime] = None
    review_comments: int = 0
    linked_issues: Tuple[str, ...] = ()

    @property
    def merged(self) -> bool:
        return self.merged_at is not None

    @property
    def changes(self) -> int:
        return self.additions + self.deletions

    @property
    def activity_date(self) -> datetime:
        """The date the pull request is attributed to: merged, closed or created."""
        return self.merged_at or self.closed_at or self.created_at

    @property
    def time_to_first_review(self) -> Optional[float]:
        """Hours from creation to the first review, if reviewed."""
        if self.first_review_at is None:
            return None
        return hours_between(self.created_at, self.first_review_at)

    @property
    def time_to_merge(self) -> Optional[float]:
        """Hours from creation to merge, if merged."""
        if self.merged_at is None:
            return None
        return hours_between(self.created_at, self.merged_at)


@dataclass(frozen=True)
class CapacityRecord:
    """Planned and actual hours of one team member, with time lost by cause."""

    member: str
    planned_hours: float = 0.0
    actual_hours: float = 0.0
    pto_hours: float = 0.0
    sick_hours: float = 0.0
    meeting_hours: float = 0.0
    training_hours: float = 0.0
    other_hours: float = 0.0

