"""Issue tracker client helpers for Sprint Analytics.

Builds a ``jira.JIRA`` client from the connection section of the options,
falling back to environment variables for anything not configured.
"""

import logging
import os

from jira import JIRA

from .utils import extend_dict

logger = logging.getLogger(__name__)


def normalize_value(value):
    """Strip whitespace and surrounding quotes from a credential value.

    Values read from ``.env`` files sometimes keep their quotes, which
    breaks authentication.
    """
    if not value:
        return None
    value = str(value).strip()
    while value and value[0] in "\"'" or value and value[-1] in "\"'":
        stripped = value.strip('"').strip("'")
        if stripped == value:
            break
        value = stripped
    value = value.strip()
    return value or None


def get_jira_connection_params(connection):
    """Extract issue tracker url, username and password from the connection
    configuration, with ``JIRA_URL``, ``JIRA_USERNAME`` and ``JIRA_PASSWORD``
    as fallbacks.
    """
    url = normalize_value(connection.get("domain") or os.environ.get("JIRA_URL"))
    username = normalize_value(
        connection.get("username") or os.environ.get("JIRA_USERNAME")
    )
    password = normalize_value(
        connection.get("password") or os.environ.get("JIRA_PASSWORD")
    )

    missing_params = []
    if not url:
        missing_params.append("url")
    if not username:
        missing_params.append("username")
    if not password:
        missing_params.append("password")

    if missing_params:
        raise ValueError(
            f"Missing required JIRA connection parameters: "
            f"{', '.join(missing_params)}. "
            f"Provide them via connection config or environment variables "
            f"(JIRA_URL, JIRA_USERNAME, JIRA_PASSWORD)."
        )

    return url, username, password


def create_jira_client(connection):
    """Create a JIRA client with the given connection options."""
    url, username, password = get_jira_connection_params(connection)

    jira_options = extend_dict(
        {"server": url, "rest_api_version": 3},
        connection.get("jira_client_options") or {},
    )

    try:
        return JIRA(options=jira_options, basic_auth=(username, password))
    except Exception as e:
        logger.error("Failed to create JIRA client: %s", e)
        raise
