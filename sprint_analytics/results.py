"""Result structures produced by the calculators and analyzers.

Every structure defaults to a zeroed or empty value so a calculator with
nothing to work on can return ``SomeResult()`` unchanged.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional


@dataclass
class SprintMetrics:
    total_issues: int = 0
    completed_issues: int = 0
    story_points: float = 0.0
    completed_story_points: float = 0.0
    completion_rate: float = 0.0
    velocity: float = 0.0
    issues_by_type: Dict[str, int] = field(default_factory=dict)
    issues_by_status: Dict[str, int] = field(default_factory=dict)
    average_cycle_time: float = 0.0
    average_lead_time: float = 0.0


@dataclass
class SprintVelocity:
    sprint_id: int
    name: str
    velocity: float = 0.0
    commitment: float = 0.0
    completed: int = 0
    start_date: Optional[datetime] = None


@dataclass
class VelocityData:
    sprints: List[SprintVelocity] = field(default_factory=list)
    average: float = 0.0
    trend: str = "stable"


@dataclass
class SprintPerformance:
    sprint_id: int
    name: str
    planned: float = 0.0
    completed: float = 0.0
    velocity: float = 0.0


@dataclass
class IssueTypeShare:
    issue_type: str
    count: int
    percentage: float
    color: str


@dataclass
class MonthlyActivity:
    month: str
    commits: int = 0
    pull_requests: int = 0


@dataclass
class BurndownPoint:
    date: date
    remaining: float
    ideal: float
    completed: float


@dataclass
class Burndown:
    sprint_id: Optional[int] = None
    total_story_points: float = 0.0
    days: List[BurndownPoint] = field(default_factory=list)


@dataclass
class SprintGoalAnalysis:
    goal: str = ""
    achieved: bool = False
    completion_percentage: float = 0.0
    total_story_points: float = 0.0
    completed_story_points: float = 0.0
    notes: str = ""


@dataclass
class ScopeChange:
    issue_key: str
    summary: str
    change_type: str  # "added" or "removed"
    date: Optional[datetime]
    story_points_delta: float
    changed_by: str = "Unknown"


@dataclass
class SpilloverIssue:
    issue_key: str
    summary: str
    status: str
    story_points: float
    reason: str
    assignee: str = "Unassigned"


@dataclass
class SpilloverAnalysis:
    total_issues: int = 0
    incomplete_issues: int = 0
    incomplete_story_points: float = 0.0
    committed_story_points: float = 0.0
    spillover_percentage: float = 0.0
    reasons: Dict[str, int] = field(default_factory=dict)
    issues: List[SpilloverIssue] = field(default_factory=list)


@dataclass
class BlockerImpediment:
    issue_key: str
    summary: str
    reason: str
    raised_at: Optional[datetime]
    resolved_at: Optional[datetime]
    days_blocked: int
    impact: str  # "high", "medium" or "low"
    priority: str
    assignee: str = "Unassigned"


@dataclass
class BugMetrics:
    bugs_created: int = 0
    bugs_resolved: int = 0
    net_bug_change: int = 0
    average_resolution_time: float = 0.0  # hours
    critical_bugs_outstanding: int = 0
    bugs_carried_over: int = 0
    bugs_by_priority: Dict[str, int] = field(default_factory=dict)


@dataclass
class CycleTimeStats:
    mean: float = 0.0
    median: float = 0.0
    p90: float = 0.0
    count: int = 0


@dataclass
class CycleTimeMetrics:
    """Cycle times in days."""

    average_cycle_time: float = 0.0
    median_cycle_time: float = 0.0
    p90_cycle_time: float = 0.0
    issues_measured: int = 0
    by_issue_type: Dict[str, CycleTimeStats] = field(default_factory=dict)
    by_priority: Dict[str, CycleTimeStats] = field(default_factory=dict)
    previous_average_cycle_time: Optional[float] = None
    cycle_time_improvement: Optional[float] = None  # percent, positive is faster


@dataclass
class MemberCapacity:
    member: str
    planned_hours: float
    actual_hours: float
    utilization: float
    lost_hours: float


@dataclass
class CapacityLoss:
    pto: float = 0.0
    sick: float = 0.0
    meetings: float = 0.0
    training: float = 0.0
    other: float = 0.0

    @property
    def total(self) -> float:
        return self.pto + self.sick + self.meetings + self.training + self.other


@dataclass
class TeamCapacity:
    total_capacity: float = 0.0
    planned_hours: float = 0.0
    actual_hours: float = 0.0
    utilization: float = 0.0
    capacity_loss: CapacityLoss = field(default_factory=CapacityLoss)
    members: List[MemberCapacity] = field(default_factory=list)


@dataclass
class EpicProgress:
    epic_key: str
    epic_name: str
    total_issues: int = 0
    completed_issues: int = 0
    in_progress_issues: int = 0
    todo_issues: int = 0
    total_story_points: float = 0.0
    completed_story_points: float = 0.0
    remaining_story_points: float = 0.0
    completion_percentage: float = 0.0


@dataclass
class TechnicalDebt:
    total_items: int = 0
    items_added: int = 0
    items_addressed: int = 0
    net_tech_debt_change: int = 0
    story_points: float = 0.0
    percentage_of_sprint: float = 0.0
    by_category: Dict[str, int] = field(default_factory=dict)
    issue_keys: List[str] = field(default_factory=list)


@dataclass
class RiskItem:
    id: str
    issue_key: str
    description: str
    probability: str
    impact: str
    status: str  # "active", "mitigated" or "occurred"
    owner: str = "Unassigned"
    raised_at: Optional[datetime] = None


@dataclass
class NextSprintForecast:
    forecasted_velocity: float = 0.0
    confidence_level: str = "low"
    recommended_capacity: float = 0.0
    available_capacity: float = 0.0
    carryover_story_points: float = 0.0
    recommendations: List[str] = field(default_factory=list)
    risks: List[str] = field(default_factory=list)


@dataclass
class CarryoverItem:
    issue_key: str
    summary: str
    story_points: float
    reason: str
    priority: str
    assignee: str
    status: str
    days_in_progress: int = 0


@dataclass
class CarryoverItems:
    total_items: int = 0
    total_story_points: float = 0.0
    percentage_of_original_commitment: float = 0.0
    most_common_reasons: Dict[str, int] = field(default_factory=dict)
    items: List[CarryoverItem] = field(default_factory=list)
    recommended_actions: List[str] = field(default_factory=list)


@dataclass
class CommitActivity:
    total_commits: int = 0
    commits_by_author: Dict[str, int] = field(default_factory=dict)
    commits_by_day: Dict[str, int] = field(default_factory=dict)
    peak_day: Optional[str] = None
    average_commits_per_day: float = 0.0


@dataclass
class PullRequestStats:
    total_prs: int = 0
    merged_prs: int = 0
    closed_without_merge: int = 0
    open_prs: int = 0
    merge_rate: float = 0.0  # percent
    average_time_to_first_review: float = 0.0  # hours
    average_time_to_merge: float = 0.0  # hours
    average_review_comments: float = 0.0
    prs_by_author: Dict[str, int] = field(default_factory=dict)


@dataclass
class AuthorChanges:
    additions: int = 0
    deletions: int = 0
    commits: int = 0


@dataclass
class CodeChanges:
    lines_added: int = 0
    lines_deleted: int = 0
    net_lines: int = 0
    by_author: Dict[str, AuthorChanges] = field(default_factory=dict)


@dataclass
class IssueTraceability:
    issue_key: str
    pr_numbers: List[int] = field(default_factory=list)
    commit_count: int = 0
    total_changes: int = 0
    status: str = "none"  # "complete" or "none"


@dataclass
class ReviewStats:
    total_reviews: int = 0
    approvals: int = 0
    changes_requested: int = 0
    comments: int = 0
    average_reviews_per_pr: float = 0.0
    approval_rate: float = 0.0
    changes_requested_rate: float = 0.0
    reviews_by_reviewer: Dict[str, int] = field(default_factory=dict)


@dataclass
class Contributor:
    author: str
    commits: int = 0
    pull_requests: int = 0
    lines_changed: int = 0


@dataclass
class EnhancedSourceControlMetrics:
    commit_activity: CommitActivity = field(default_factory=CommitActivity)
    pull_request_stats: PullRequestStats = field(default_factory=PullRequestStats)
    code_changes: CodeChanges = field(default_factory=CodeChanges)
    issue_traceability: Dict[str, IssueTraceability] = field(default_factory=dict)
    review_stats: ReviewStats = field(default_factory=ReviewStats)
    top_contributors: List[Contributor] = field(default_factory=list)
