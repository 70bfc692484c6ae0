"""Cache key construction and lifetimes.

Keys are namespaced by data source and prefixed with a cache version so a
change to the cached record layout invalidates old entries.
"""

from .common_constants import CACHE_VERSION, DEFAULT_CACHE_TTLS
from .models import SprintState
from .utils import to_utc


def _key(*parts):
    return ":".join([CACHE_VERSION] + [str(p) for p in parts])


def _window(since, until):
    def fmt(value):
        return to_utc(value).strftime("%Y-%m-%dT%H:%M:%SZ") if value else "open"

    return fmt(since), fmt(until)


def sprint_key(sprint_id):
    return _key("jira", "sprint", sprint_id)


def issues_key(sprint_id):
    return _key("jira", "issues", sprint_id)


def enhanced_issues_key(sprint_id):
    return _key("jira", "enhanced-issues", sprint_id)


def closed_sprints_key(board_id):
    return _key("jira", "sprints", "closed", board_id)


def sprint_issues_key(sprint_id):
    """Per-sprint issue list shared by the velocity views."""
    return _key("sprint", sprint_id, "issues")


def burndown_key(sprint_id):
    return _key("jira", "burndown", sprint_id)


def commits_key(owner, repo, since, until):
    return _key("github", "commits", owner, repo, *_window(since, until))


def pull_requests_key(owner, repo, since, until, enhanced=False):
    namespace = "enhanced-prs" if enhanced else "prs"
    return _key("github", namespace, owner, repo, *_window(since, until))


def sprint_ttl(sprint, settings=None):
    """Lifetime in seconds of an entry derived from the given sprint.

    Closed sprints no longer change and are kept far longer than active
    ones. Unknown states use the default lifetime.
    """
    ttls = dict(DEFAULT_CACHE_TTLS)
    if settings is not None:
        ttls.update(settings.get("cache_ttl") or {})

    state = getattr(sprint, "state", None)
    if isinstance(state, SprintState):
        return ttls.get(state.value, ttls["default"])
    return ttls["default"]
