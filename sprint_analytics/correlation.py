"""Correlation of source control activity with issue tracker items.

Commits and pull requests are linked to issues by finding issue keys in
their text (commit message, pull request title and body) and in pull
request branch names. Activity is never attributed to an issue just because
it happened during the sprint: the sprint window only scopes the aggregate
activity statistics.
"""

import logging
import re
from collections import Counter, OrderedDict, defaultdict

from .results import (
    AuthorChanges,
    CodeChanges,
    CommitActivity,
    Contributor,
    EnhancedSourceControlMetrics,
    IssueTraceability,
    PullRequestStats,
    ReviewStats,
)
from .utils import mean_or_zero, percentage, to_utc, within

logger = logging.getLogger(__name__)

ISSUE_KEY_PATTERN = re.compile(r"\b[A-Z][A-Z0-9_]*-\d+\b")
CLOSING_KEYWORD_PATTERN = re.compile(
    r"\b(?:fix(?:es|ed)?|close[sd]?|resolve[sd]?)\s+([A-Z][A-Z0-9_]*-\d+)\b",
    re.IGNORECASE,
)


def extract_issue_keys(*texts):
    """Return the distinct issue keys mentioned in the given texts, in order.

    Keys are an uppercase letter, optionally more uppercase letters, digits
    or underscores, a dash and a number (``ABC-123``, ``P2_X-7``). Keys
    following a closing keyword (``fixes abc-12``) are recognised in any case.
    """
    keys = OrderedDict()
    for text in texts:
        if not text:
            continue
        for match in CLOSING_KEYWORD_PATTERN.finditer(text):
            keys[match.group(1).upper()] = True
        for match in ISSUE_KEY_PATTERN.finditer(text):
            keys[match.group(0)] = True
    return list(keys)


def commit_issue_keys(commit):
    return extract_issue_keys(commit.message, commit.branch)


def pull_request_issue_keys(pull_request):
    """Keys from the title and body, then the branch name, then any pre-linked keys."""
    keys = extract_issue_keys(pull_request.title, pull_request.body)
    for key in extract_issue_keys(pull_request.branch):
        if key not in keys:
            keys.append(key)
    for key in pull_request.linked_issues:
        if key not in keys:
            keys.append(key)
    return keys


class CorrelationEngine:
    """Links commits and pull requests to issues and summarises the activity."""

    def __init__(self, top_contributors=5):
        self.top_contributors_limit = top_contributors

    def link_commits(self, commits):
        """Map each issue key to the commits that mention it."""
        links = defaultdict(list)
        for commit in commits:
            for key in commit_issue_keys(commit):
                links[key].append(commit)
        return dict(links)

    def link_pull_requests(self, pull_requests):
        """Map each issue key to the pull requests that reference it."""
        links = defaultdict(list)
        for pull_request in pull_requests:
            for key in pull_request_issue_keys(pull_request):
                links[key].append(pull_request)
        return dict(links)

    def issue_traceability(self, issue_keys, commits, pull_requests):
        """Build a traceability entry for every issue key.

        An issue with at least one linked pull request is ``complete``;
        anything else is ``none``. Line changes are taken from the linked
        pull requests when there are any, otherwise from the linked commits.
        """
        commit_links = self.link_commits(commits)
        pr_links = self.link_pull_requests(pull_requests)

        traceability = OrderedDict()
        for key in issue_keys:
            linked_commits = commit_links.get(key, [])
            linked_prs = pr_links.get(key, [])

            if linked_prs:
                total_changes = sum(pr.changes for pr in linked_prs)
            else:
                total_changes = sum(c.changes for c in linked_commits)

            traceability[key] = IssueTraceability(
                issue_key=key,
                pr_numbers=sorted({pr.number for pr in linked_prs}),
                commit_count=len(linked_commits),
                total_changes=total_changes,
                status="complete" if linked_prs else "none",
            )
        return traceability

    def commit_activity(self, commits, since=None, until=None):
        commits = [c for c in commits if _in_window(c.date, since, until)]
        if not commits:
            return CommitActivity()

        by_day = Counter(to_utc(c.date).date().isoformat() for c in commits)
        by_author = Counter(c.author for c in commits)
        peak_day = max(sorted(by_day), key=lambda day: by_day[day])

        return CommitActivity(
            total_commits=len(commits),
            commits_by_author=dict(by_author.most_common()),
            commits_by_day=dict(sorted(by_day.items())),
            peak_day=peak_day,
            average_commits_per_day=round(len(commits) / len(by_day), 2),
        )

    def code_changes(self, commits, since=None, until=None):
        commits = [c for c in commits if _in_window(c.date, since, until)]

        by_author = {}
        for commit in commits:
            changes = by_author.setdefault(commit.author, AuthorChanges())
            changes.additions += commit.additions
            changes.deletions += commit.deletions
            changes.commits += 1

        added = sum(c.additions for c in commits)
        deleted = sum(c.deletions for c in commits)
        return CodeChanges(
            lines_added=added,
            lines_deleted=deleted,
            net_lines=added - deleted,
            by_author=by_author,
        )

    def pull_request_stats(self, pull_requests, since=None, until=None):
        pull_requests = [
            pr for pr in pull_requests if _in_window(pr.created_at, since, until)
        ]
        if not pull_requests:
            return PullRequestStats()

        merged = [pr for pr in pull_requests if pr.merged]
        closed_without_merge = [
            pr for pr in pull_requests if pr.state == "closed" and not pr.merged
        ]
        open_prs = [pr for pr in pull_requests if pr.state == "open"]

        return PullRequestStats(
            total_prs=len(pull_requests),
            merged_prs=len(merged),
            closed_without_merge=len(closed_without_merge),
            open_prs=len(open_prs),
            merge_rate=percentage(len(merged), len(pull_requests)),
            average_time_to_first_review=mean_or_zero(
                pr.time_to_first_review for pr in pull_requests
            ),
            average_time_to_merge=mean_or_zero(pr.time_to_merge for pr in merged),
            average_review_comments=mean_or_zero(
                pr.review_comments for pr in pull_requests
            ),
            prs_by_author=dict(
                Counter(pr.author for pr in pull_requests).most_common()
            ),
        )

    def review_stats(self, pull_requests, since=None, until=None):
        pull_requests = [
            pr for pr in pull_requests if _in_window(pr.created_at, since, until)
        ]
        reviews = [review for pr in pull_requests for review in pr.reviews]
        if not reviews:
            return ReviewStats()

        states = Counter(review.state.upper() for review in reviews)
        return ReviewStats(
            total_reviews=len(reviews),
            approvals=states["APPROVED"],
            changes_requested=states["CHANGES_REQUESTED"],
            comments=states["COMMENTED"],
            average_reviews_per_pr=round(len(reviews) / len(pull_requests), 2),
            approval_rate=percentage(states["APPROVED"], len(reviews)),
            changes_requested_rate=percentage(
                states["CHANGES_REQUESTED"], len(reviews)
            ),
            reviews_by_reviewer=dict(
                Counter(review.reviewer for review in reviews).most_common()
            ),
        )

    def top_contributors(self, commits, pull_requests, since=None, until=None):
        contributors = {}
        for commit in commits:
            if not _in_window(commit.date, since, until):
                continue
            entry = contributors.setdefault(commit.author, Contributor(commit.author))
            entry.commits += 1
            entry.lines_changed += commit.changes
        for pr in pull_requests:
            if not _in_window(pr.created_at, since, until):
                continue
            entry = contributors.setdefault(pr.author, Contributor(pr.author))
            entry.pull_requests += 1

        ranked = sorted(
            contributors.values(),
            key=lambda c: (-c.commits, -c.pull_requests, -c.lines_changed, c.author),
        )
        return ranked[: self.top_contributors_limit]

    def calculate(self, sprint, issues, commits, pull_requests):
        """Build the enhanced source control metrics of a sprint."""
        since, until = sprint.start_date, sprint.end_date
        logger.debug(
            "Correlating %d commits and %d pull requests with %d issues",
            len(commits),
            len(pull_requests),
            len(issues),
        )
        return EnhancedSourceControlMetrics(
            commit_activity=self.commit_activity(commits, since, until),
            pull_request_stats=self.pull_request_stats(pull_requests, since, until),
            code_changes=self.code_changes(commits, since, until),
            issue_traceability=self.issue_traceability(
                [issue.key for issue in issues], commits, pull_requests
            ),
            review_stats=self.review_stats(pull_requests, since, until),
            top_contributors=self.top_contributors(
                commits, pull_requests, since, until
            ),
        )


def _in_window(value, since, until):
    if since is None and until is None:
        return True
    return within(value, since, until)
