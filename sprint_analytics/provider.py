"""Data providers for sprint, issue and source control records.

:class:`DataProvider` is the interface the orchestrator and the velocity
analyzer consume. Issue and pull request fetches take a :class:`FetchLevel`:
``BASIC`` returns the cheap listing, ``ENHANCED`` adds change history
(issues) or review timing and linked issue keys (pull requests).

:class:`RemoteDataProvider` implements the interface on top of the ``jira``
and ``PyGithub`` clients, running their blocking calls in worker threads.
"""

import abc
import asyncio
import logging
import re
from enum import Enum

from github import GithubException
from jira.exceptions import JIRAError

from .correlation import extract_issue_keys
from .models import (
    Commit,
    Issue,
    PullRequest,
    Review,
    Sprint,
    SprintChange,
    SprintState,
    StatusChange,
)
from .utils import parse_datetime, retry_with_backoff, to_utc

logger = logging.getLogger(__name__)

SPRINT_ID_PATTERN = re.compile(r"\d+")


class FetchLevel(Enum):
    BASIC = "basic"
    ENHANCED = "enhanced"


class DataProvider(abc.ABC):
    """Asynchronous source of sprint, issue, commit and pull request records."""

    @abc.abstractmethod
    async def get_sprint(self, sprint_id):
        """Return the :class:`Sprint` with the given id."""

    @abc.abstractmethod
    async def get_issues(self, sprint_id, level=FetchLevel.BASIC):
        """Return the issues of a sprint as a tuple of :class:`Issue`."""

    @abc.abstractmethod
    async def get_commits(self, owner, repo, since, until):
        """Return commits made in the window as a tuple of :class:`Commit`."""

    @abc.abstractmethod
    async def get_pull_requests(self, owner, repo, since, until, level=FetchLevel.BASIC):
        """Return pull requests opened in the window."""

    @abc.abstractmethod
    async def get_closed_sprints(self, board_id):
        """Return the closed sprints of a board, in any order."""


def _retryable_jira_error(exception):
    status = getattr(exception, "status_code", None)
    return status is None or status >= 500 or status == 429


def _retryable_github_error(exception):
    status = getattr(exception, "status", None)
    return status is None or status >= 500 or status in (403, 429)


jira_retry = retry_with_backoff(
    max_attempts=3,
    exceptions=(JIRAError, ConnectionError),
    should_retry=_retryable_jira_error,
)
github_retry = retry_with_backoff(
    max_attempts=3,
    exceptions=(GithubException, ConnectionError),
    should_retry=_retryable_github_error,
)


def _get_tolerant_attr(obj, camel_case_name, snake_case_name, default=None):
    """Get an attribute by its camelCase name, falling back to snake_case."""
    return getattr(obj, camel_case_name, getattr(obj, snake_case_name, default))


def _sprint_ids(value):
    """Parse the comma separated sprint ids of a Sprint field change."""
    if not value:
        return set()
    return {int(v) for v in SPRINT_ID_PATTERN.findall(str(value))}


class RemoteDataProvider(DataProvider):
    """Data provider backed by a ``jira.JIRA`` and a ``github.Github`` client.

    Either client may be None; the matching fetches then raise
    ``RuntimeError``, which callers treat like any other fetch failure.
    """

    def __init__(self, jira, github, connection):
        self.jira = jira
        self.github = github
        self.story_points_fields = list(connection.get("story_points_field") or [])
        self.epic_link_fields = list(connection.get("epic_link_field") or [])
        self.epic_name_fields = list(connection.get("epic_name_field") or [])
        self.flagged_fields = list(connection.get("flagged_field") or [])

    # Asynchronous interface

    async def get_sprint(self, sprint_id):
        return await asyncio.to_thread(self.fetch_sprint, sprint_id)

    async def get_issues(self, sprint_id, level=FetchLevel.BASIC):
        return await asyncio.to_thread(self.fetch_issues, sprint_id, level)

    async def get_commits(self, owner, repo, since, until):
        return await asyncio.to_thread(self.fetch_commits, owner, repo, since, until)

    async def get_pull_requests(self, owner, repo, since, until, level=FetchLevel.BASIC):
        return await asyncio.to_thread(
            self.fetch_pull_requests, owner, repo, since, until, level
        )

    async def get_closed_sprints(self, board_id):
        return await asyncio.to_thread(self.fetch_closed_sprints, board_id)

    # Issue tracker

    def _require_jira(self):
        if self.jira is None:
            raise RuntimeError("No issue tracker connection configured")
        return self.jira

    def to_sprint(self, raw, board_id=None):
        return Sprint(
            id=int(raw.id),
            name=getattr(raw, "name", str(raw.id)),
            state=SprintState.from_string(getattr(raw, "state", None)),
            board_id=_get_tolerant_attr(raw, "originBoardId", "board_id", board_id),
            start_date=parse_datetime(_get_tolerant_attr(raw, "startDate", "start_date")),
            end_date=parse_datetime(_get_tolerant_attr(raw, "endDate", "end_date")),
            goal=getattr(raw, "goal", None) or None,
        )

    @jira_retry
    def fetch_sprint(self, sprint_id):
        logger.info("Fetching sprint %s", sprint_id)
        return self.to_sprint(self._require_jira().sprint(sprint_id))

    @jira_retry
    def fetch_closed_sprints(self, board_id):
        logger.info("Fetching closed sprints of board %s", board_id)
        raw_sprints = self._require_jira().sprints(board_id, state="closed")
        return tuple(self.to_sprint(raw, board_id=board_id) for raw in raw_sprints)

    @jira_retry
    def fetch_issues(self, sprint_id, level=FetchLevel.BASIC):
        enhanced = level is FetchLevel.ENHANCED
        logger.info(
            "Fetching %s issues of sprint %s", "enhanced" if enhanced else "basic", sprint_id
        )
        raw_issues = self._require_jira().search_issues(
            f"sprint = {sprint_id}",
            expand="changelog" if enhanced else "",
            maxResults=False,
        )
        return tuple(self.to_issue(raw, enhanced) for raw in raw_issues)

    def _first_field(self, fields, field_ids):
        for field_id in field_ids:
            value = getattr(fields, field_id, None)
            if value is not None:
                return value
        return None

    def to_issue(self, raw, enhanced=False):
        fields = raw.fields

        story_points = self._first_field(fields, self.story_points_fields)
        try:
            story_points = float(story_points) if story_points is not None else None
        except (TypeError, ValueError):
            story_points = None

        epic_link = self._first_field(fields, self.epic_link_fields)
        if epic_link is None and getattr(fields, "parent", None) is not None:
            epic_link = getattr(fields.parent, "key", None)
        epic_name = self._first_field(fields, self.epic_name_fields)

        flag_value = self._first_field(fields, self.flagged_fields)
        flagged = bool(flag_value)

        status_history, sprint_history, flagged_at = (), (), None
        if enhanced and getattr(raw, "changelog", None) is not None:
            status_history, sprint_history, flagged_at = self._read_changelog(raw)

        return Issue(
            key=raw.key,
            status=_name(getattr(fields, "status", None), "Unknown"),
            summary=getattr(fields, "summary", "") or "",
            issue_type=_name(getattr(fields, "issuetype", None), "Unknown"),
            priority=_name(getattr(fields, "priority", None), "Unknown"),
            assignee=_display_name(getattr(fields, "assignee", None)),
            story_points=story_points,
            labels=tuple(getattr(fields, "labels", None) or ()),
            flagged=flagged,
            blocker_reason=_flag_reason(flag_value) if flagged else None,
            flagged_at=flagged_at if flagged else None,
            epic_link=str(epic_link) if epic_link is not None else None,
            epic_name=str(epic_name) if epic_name is not None else None,
            created=parse_datetime(getattr(fields, "created", None)),
            resolved=parse_datetime(getattr(fields, "resolutiondate", None)),
            status_history=status_history,
            sprint_history=sprint_history,
        )

    def _read_changelog(self, raw):
        status_history = []
        sprint_history = []
        flagged_at = None

        histories = sorted(
            raw.changelog.histories, key=lambda h: parse_datetime(h.created)
        )
        for history in histories:
            timestamp = parse_datetime(history.created)
            author = _display_name(getattr(history, "author", None), default=None)

            for item in history.items:
                field = str(getattr(item, "field", "")).lower()
                if field == "status":
                    status_history.append(
                        StatusChange(
                            from_status=_get_tolerant_attr(item, "fromString", "from_string"),
                            to_status=_get_tolerant_attr(item, "toString", "to_string"),
                            timestamp=timestamp,
                            author=author,
                        )
                    )
                elif field == "sprint":
                    before = _sprint_ids(getattr(item, "from", None))
                    after = _sprint_ids(getattr(item, "to", None))
                    for sprint_id in sorted(after - before):
                        sprint_history.append(
                            SprintChange(sprint_id, "added", timestamp, author)
                        )
                    for sprint_id in sorted(before - after):
                        sprint_history.append(
                            SprintChange(sprint_id, "removed", timestamp, author)
                        )
                elif field == "flagged":
                    # The most recent raise of the flag is the one still in effect
                    if _get_tolerant_attr(item, "toString", "to_string"):
                        flagged_at = timestamp
                    else:
                        flagged_at = None

        return tuple(status_history), tuple(sprint_history), flagged_at

    # Source control

    def _require_repo(self, owner, repo):
        if self.github is None:
            raise RuntimeError("No source control connection configured")
        return self.github.get_repo(f"{owner}/{repo}")

    @github_retry
    def fetch_commits(self, owner, repo, since, until):
        logger.info("Fetching commits of %s/%s", owner, repo)
        kwargs = {}
        if since is not None:
            kwargs["since"] = to_utc(since)
        if until is not None:
            kwargs["until"] = to_utc(until)

        commits = []
        for raw in self._require_repo(owner, repo).get_commits(**kwargs):
            git_commit = raw.commit
            author = raw.author.login if raw.author is not None else None
            stats = raw.stats
            commits.append(
                Commit(
                    sha=raw.sha,
                    message=git_commit.message or "",
                    author=author or git_commit.author.name or "Unknown",
                    date=to_utc(git_commit.author.date),
                    additions=stats.additions or 0,
                    deletions=stats.deletions or 0,
                )
            )
        return tuple(commits)

    @github_retry
    def fetch_pull_requests(self, owner, repo, since, until, level=FetchLevel.BASIC):
        enhanced = level is FetchLevel.ENHANCED
        logger.info(
            "Fetching %s pull requests of %s/%s",
            "enhanced" if enhanced else "basic",
            owner,
            repo,
        )
        since = to_utc(since)
        until = to_utc(until)

        pulls = []
        raw_pulls = self._require_repo(owner, repo).get_pulls(
            state="all", sort="created", direction="desc"
        )
        for raw in raw_pulls:
            created_at = to_utc(raw.created_at)
            if until is not None and created_at > until:
                continue
            if since is not None and created_at < since:
                # Listing is newest first, everything further is older still
                break
            pulls.append(self.to_pull_request(raw, enhanced))
        return tuple(pulls)

    def to_pull_request(self, raw, enhanced=False):
        branch = raw.head.ref if getattr(raw, "head", None) is not None else None
        body = raw.body or ""

        reviews = ()
        first_review_at = None
        review_comments = 0
        linked_issues = ()
        if enhanced:
            reviews = tuple(
                Review(
                    reviewer=r.user.login if r.user is not None else "Unknown",
                    state=r.state,
                    submitted_at=to_utc(r.submitted_at),
                )
                for r in raw.get_reviews()
            )
            submitted = [r.submitted_at for r in reviews if r.submitted_at is not None]
            first_review_at = min(submitted) if submitted else None
            review_comments = raw.review_comments or 0
            linked_issues = tuple(extract_issue_keys(raw.title, body, branch))

        return PullRequest(
            number=raw.number,
            title=raw.title or "",
            author=raw.user.login if raw.user is not None else "Unknown",
            state=raw.state,
            created_at=to_utc(raw.created_at),
            body=body,
            branch=branch,
            merged_at=to_utc(raw.merged_at),
            closed_at=to_utc(raw.closed_at),
            additions=raw.additions or 0,
            deletions=raw.deletions or 0,
            changed_files=raw.changed_files or 0,
            reviews=reviews,
            first_review_at=first_review_at,
            review_comments=review_comments,
            linked_issues=linked_issues,
        )


def _name(resource, default):
    if resource is None:
        return default
    return getattr(resource, "name", None) or default


def _display_name(user, default="Unassigned"):
    if user is None:
        return default
    return getattr(user, "displayName", None) or getattr(user, "name", None) or default


def _flag_reason(flag_value):
    if isinstance(flag_value, (list, tuple)):
        values = [getattr(v, "value", v) for v in flag_value]
        return ", ".join(str(v) for v in values if v) or "Flagged"
    if isinstance(flag_value, bool):
        return "Flagged"
    return str(getattr(flag_value, "value", flag_value))
