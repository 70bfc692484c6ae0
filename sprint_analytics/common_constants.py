"""Common constants used across Sprint Analytics modules."""

from typing import Dict, Final, List, Tuple

# Status name -> status category name. Matched case-insensitively.
DEFAULT_STATUS_CATEGORIES: Final[Dict[str, str]] = {
    "done": "completed",
    "closed": "completed",
    "resolved": "completed",
    "in progress": "in_progress",
    "in review": "in_progress",
    "code review": "in_progress",
    "in testing": "in_progress",
    "testing": "in_progress",
    "qa": "in_progress",
    "to do": "todo",
    "open": "todo",
    "backlog": "todo",
    "new": "todo",
    "selected for development": "todo",
    "won't do": "discarded",
    "cancelled": "discarded",
    "canceled": "discarded",
    "duplicate": "discarded",
    "rejected": "discarded",
}

DEFAULT_TECH_DEBT_LABELS: Final[List[str]] = [
    "tech-debt",
    "technical-debt",
    "techdebt",
    "refactoring",
    "debt",
]

DEFAULT_BUG_ISSUE_TYPES: Final[List[str]] = ["bug", "defect"]

DEFAULT_CRITICAL_PRIORITIES: Final[List[str]] = ["critical", "blocker"]

DEFAULT_DEPENDENCY_LABELS: Final[List[str]] = [
    "dependency",
    "blocked-by",
    "external-dependency",
]

# Relative weight of a priority name when scoring blockers and risks
PRIORITY_WEIGHTS: Final[Dict[str, int]] = {
    "blocker": 3,
    "critical": 3,
    "highest": 3,
    "high": 2,
    "major": 2,
    "medium": 1,
    "minor": 0,
    "low": 0,
    "lowest": 0,
    "trivial": 0,
}

SPILLOVER_REASONS: Final[Tuple[str, ...]] = (
    "blocked",
    "underestimated",
    "scope-added-late",
    "dependency",
    "unspecified",
)

ISSUE_TYPE_COLORS: Final[Dict[str, str]] = {
    "Story": "#3b82f6",
    "Bug": "#ef4444",
    "Task": "#f59e0b",
    "Epic": "#8b5cf6",
    "Sub-task": "#06b6d4",
    "Improvement": "#10b981",
    "Unknown": "#6b7280",
}

DEFAULT_ISSUE_TYPE_COLOR: Final[str] = "#6b7280"

# Cache entry lifetimes, in seconds
CACHE_VERSION: Final[str] = "v1"

DEFAULT_CACHE_TTLS: Final[Dict[str, int]] = {
    "active": 300,
    "closed": 2592000,
    "future": 900,
    "default": 600,
}

# Settings keys holding report sections produced by each request flag
REPORT_FLAGS: Final[List[str]] = [
    "include_commits",
    "include_prs",
    "include_velocity",
    "include_burndown",
    "include_tier1",
    "include_tier2",
    "include_tier3",
    "include_forward_looking",
    "include_enhanced_source_control",
]
