"""Source control client helpers for Sprint Analytics."""

import logging
import os

from github import Auth, Github

from .jira_client import normalize_value

logger = logging.getLogger(__name__)


def get_github_token(connection):
    """The configured token, or ``GITHUB_TOKEN`` from the environment."""
    return normalize_value(
        connection.get("github_token") or os.environ.get("GITHUB_TOKEN")
    )


def create_github_client(connection):
    """Create a GitHub client, or return None when no token is available.

    Without a token the report can still be built; source control sections
    then degrade with a warning.
    """
    token = get_github_token(connection)
    if not token:
        logger.warning(
            "No GitHub token configured (connection `GitHub token` or GITHUB_TOKEN), "
            "source control data will not be fetched"
        )
        return None
    return Github(auth=Auth.Token(token))
