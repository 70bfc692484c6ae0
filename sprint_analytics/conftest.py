"""Test configuration and fixtures for Sprint Analytics."""

import pytest

from .cache import CacheClient, MemoryCacheStore
from .config import default_options
from .statuses import StatusCategoryTable
from .test_classes import FauxDataProvider
from .test_data import (
    BOARD_ID,
    CLOSED_SPRINT_ISSUES,
    CLOSED_SPRINTS,
    COMMITS,
    NOW,
    PULL_REQUESTS,
    SPRINT,
    SPRINT_ID,
    SPRINT_ISSUES,
)
from .utils import extend_dict

# Fixtures


@pytest.fixture(name="settings")
def fixture_settings():
    """The default `settings` section of the options."""
    return default_options()["settings"]


@pytest.fixture(name="custom_settings")
def fixture_custom_settings(settings):
    """Settings with tighter thresholds and a custom status."""
    return extend_dict(
        settings,
        {
            "status_categories": extend_dict(
                settings["status_categories"], {"shipped": "completed"}
            ),
            "goal_achievement_threshold": 0.9,
            "max_concurrency": 2,
            "velocity_sprint_count": 3,
        },
    )


@pytest.fixture(name="statuses")
def fixture_statuses(settings):
    return StatusCategoryTable.from_settings(settings)


@pytest.fixture(name="sprint")
def fixture_sprint():
    return SPRINT


@pytest.fixture(name="issues")
def fixture_issues():
    return SPRINT_ISSUES


@pytest.fixture(name="now")
def fixture_now():
    return NOW


@pytest.fixture(name="store")
def fixture_store():
    return MemoryCacheStore()


@pytest.fixture(name="cache")
def fixture_cache(store):
    return CacheClient(store)


@pytest.fixture(name="provider")
def fixture_provider():
    """A data provider holding the reference sprint, its board's closed
    sprints and the repository activity of the sprint.
    """
    issues = dict(CLOSED_SPRINT_ISSUES)
    issues[SPRINT_ID] = SPRINT_ISSUES
    return FauxDataProvider(
        sprints=(SPRINT,) + CLOSED_SPRINTS,
        issues=issues,
        commits=COMMITS,
        pull_requests=PULL_REQUESTS,
        closed_sprints={BOARD_ID: CLOSED_SPRINTS},
    )
