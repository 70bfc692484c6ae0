"""Configuration loader for Sprint Analytics."""

import copy
import logging
import os.path

import yaml

from ..common_constants import (
    DEFAULT_BUG_ISSUE_TYPES,
    DEFAULT_CACHE_TTLS,
    DEFAULT_CRITICAL_PRIORITIES,
    DEFAULT_DEPENDENCY_LABELS,
    DEFAULT_STATUS_CATEGORIES,
    DEFAULT_TECH_DEBT_LABELS,
    ISSUE_TYPE_COLORS,
)
from ..statuses import StatusCategory
from .exceptions import ConfigError
from .type_utils import (
    expand_key,
    force_float,
    force_fraction,
    force_int,
    force_list,
    force_positive_int,
)
from .yaml_utils import ordered_load

logger = logging.getLogger(__name__)


def _create_default_options():
    """Create default options dictionary."""
    return {
        "connection": {
            "domain": None,
            "username": None,
            "password": None,
            "github_token": None,
            "jira_client_options": {},
            "story_points_field": [
                "customfield_10016",
                "customfield_10004",
                "customfield_10002",
            ],
            "epic_link_field": ["customfield_10014", "customfield_10008"],
            "epic_name_field": ["customfield_10011", "customfield_10009"],
            "flagged_field": ["customfield_10021", "customfield_10015", "flagged"],
        },
        "settings": {
            "status_categories": dict(DEFAULT_STATUS_CATEGORIES),
            "default_status_category": StatusCategory.TODO.value,
            "goal_achievement_threshold": 0.8,
            "forecast_weights": [0.6, 0.4],
            "spillover_recommendation_threshold": 30.0,
            "tech_debt_labels": list(DEFAULT_TECH_DEBT_LABELS),
            "bug_issue_types": list(DEFAULT_BUG_ISSUE_TYPES),
            "critical_priorities": list(DEFAULT_CRITICAL_PRIORITIES),
            "dependency_labels": list(DEFAULT_DEPENDENCY_LABELS),
            "large_story_points": 8.0,
            "velocity_sprint_count": 5,
            "max_concurrency": 5,
            "request_timeout": None,
            "cache_ttl": dict(DEFAULT_CACHE_TTLS),
            "closed_sprint_list_ttl": 1800,
            "source_control_ttl": 600,
            "issue_type_colors": dict(ISSUE_TYPE_COLORS),
            "team_capacity": [],
        },
    }


def default_options():
    """Return a fresh copy of the default options."""
    return copy.deepcopy(_create_default_options())


def _parse_connection_config(config, options):
    """Parse connection configuration."""
    if "connection" not in config or config["connection"] is None:
        return

    conn_config = config["connection"]
    conn_options = options["connection"]

    for key in ["domain", "username", "password", "github_token"]:
        if expand_key(key) in conn_config:
            conn_options[key] = conn_config[expand_key(key)]

    if expand_key("jira_client_options") in conn_config:
        conn_options["jira_client_options"] = dict(
            conn_config[expand_key("jira_client_options")] or {}
        )

    for key in [
        "story_points_field",
        "epic_link_field",
        "epic_name_field",
        "flagged_field",
    ]:
        if expand_key(key) in conn_config:
            conn_options[key] = [
                str(v) for v in force_list(conn_config[expand_key(key)])
            ]


def _parse_settings_values(settings_config, settings):
    """Parse scalar and list values from the settings section."""
    for key in ["goal_achievement_threshold"]:
        if expand_key(key) in settings_config:
            settings[key] = force_fraction(key, settings_config[expand_key(key)])

    for key in ["spillover_recommendation_threshold", "large_story_points"]:
        if expand_key(key) in settings_config:
            settings[key] = force_float(key, settings_config[expand_key(key)])

    for key in ["velocity_sprint_count", "max_concurrency"]:
        if expand_key(key) in settings_config:
            settings[key] = force_positive_int(key, settings_config[expand_key(key)])

    for key in ["closed_sprint_list_ttl", "source_control_ttl"]:
        if expand_key(key) in settings_config:
            settings[key] = force_int(key, settings_config[expand_key(key)])

    if expand_key("request_timeout") in settings_config:
        value = settings_config[expand_key("request_timeout")]
        settings["request_timeout"] = (
            None if value is None else force_float("request_timeout", value)
        )

    for key in [
        "tech_debt_labels",
        "bug_issue_types",
        "critical_priorities",
        "dependency_labels",
    ]:
        if expand_key(key) in settings_config:
            settings[key] = [
                str(v).lower() for v in force_list(settings_config[expand_key(key)])
            ]

    if expand_key("forecast_weights") in settings_config:
        weights = force_list(settings_config[expand_key("forecast_weights")])
        if len(weights) != 2:
            raise ConfigError(
                "`Forecast weights` must contain exactly two values: "
                "the average weight and the newest sprint weight"
            )
        settings["forecast_weights"] = [
            force_float("forecast_weights", w) for w in weights
        ]

    if expand_key("default_status_category") in settings_config:
        settings["default_status_category"] = _to_category_name(
            "default_status_category",
            settings_config[expand_key("default_status_category")],
        )


def _to_category_name(key, value):
    try:
        return StatusCategory.from_string(value).value
    except ValueError:
        valid = ", ".join(c.value for c in StatusCategory)
        raise ConfigError(
            f"Unknown status category `{value}` for key `{expand_key(key)}`. "
            f"Valid categories are: {valid}"
        ) from None


def _parse_status_categories(config, settings):
    """Merge configured status names over the default status table."""
    if "status categories" not in config or config["status categories"] is None:
        return

    for status, category in config["status categories"].items():
        settings["status_categories"][str(status).strip().lower()] = (
            _to_category_name(status, category)
        )


def _parse_cache_ttl(config, settings):
    """Parse per sprint state cache lifetimes."""
    if "cache ttl" not in config or config["cache ttl"] is None:
        return

    for state, ttl in config["cache ttl"].items():
        state = str(state).strip().lower()
        if state not in settings["cache_ttl"]:
            raise ConfigError(
                f"Unknown sprint state `{state}` in `Cache TTL`. "
                f"Valid states are: {', '.join(settings['cache_ttl'])}"
            )
        settings["cache_ttl"][state] = force_positive_int(f"cache_ttl {state}", ttl)


def _parse_issue_type_colors(config, settings):
    if "issue type colors" not in config or config["issue type colors"] is None:
        return

    for issue_type, color in config["issue type colors"].items():
        settings["issue_type_colors"][str(issue_type)] = str(color)


CAPACITY_FIELDS = [
    "planned_hours",
    "actual_hours",
    "pto_hours",
    "sick_hours",
    "meeting_hours",
    "training_hours",
    "other_hours",
]


def _parse_team_capacity(config, settings):
    """Parse the per member capacity records."""
    if "team capacity" not in config or config["team capacity"] is None:
        return

    records = []
    for entry in force_list(config["team capacity"]):
        if not hasattr(entry, "items") or "member" not in entry:
            raise ConfigError(
                "Each `Team capacity` entry must be a mapping with a `Member`"
            )
        record = {"member": str(entry["member"])}
        for key in CAPACITY_FIELDS:
            record[key] = (
                force_float(key, entry[expand_key(key)])
                if expand_key(key) in entry
                else 0.0
            )
        records.append(record)
    settings["team_capacity"] = records


def _load_extended(config, cwd, visited_files):
    """Load the options of the file referenced by ``extends``."""
    if cwd is None:
        raise ConfigError("`extends` is not supported here.")

    extends_filename = os.path.abspath(
        os.path.normpath(os.path.join(cwd, config["extends"].replace("/", os.path.sep)))
    )

    if not os.path.exists(extends_filename):
        raise ConfigError(
            f"File `{extends_filename}` referenced in `extends` not found."
        ) from None

    if extends_filename in visited_files:
        raise ConfigError(
            f"Circular extends reference detected: {extends_filename}"
        ) from None

    visited_files.add(extends_filename)

    logger.debug("Extending file %s", extends_filename)
    with open(extends_filename, encoding="utf-8") as extends_file:
        return config_to_options(
            extends_file.read(),
            cwd=os.path.dirname(extends_filename),
            _visited_files=visited_files,
        )


def config_to_options(data, cwd=None, _visited_files=None):
    """
    Parse YAML config data and return options dict.

    The result has a ``connection`` section (credentials and custom field
    ids) and a ``settings`` section (analysis thresholds, status category
    table, concurrency and cache lifetimes), with defaults filled in.
    """
    if _visited_files is None:
        _visited_files = set()

    try:
        config = ordered_load(data, yaml.SafeLoader)
    except yaml.YAMLError as e:
        raise ConfigError("Unable to parse YAML configuration file.") from e

    if config is None:
        raise ConfigError("Configuration file is empty") from None

    if not hasattr(config, "items"):
        raise ConfigError("Configuration file must contain a mapping of settings")

    if "extends" in config:
        options = _load_extended(config, cwd, _visited_files)
    else:
        options = default_options()

    _parse_connection_config(config, options)

    if "settings" in config and config["settings"] is not None:
        _parse_settings_values(config["settings"], options["settings"])
        _parse_status_categories(config["settings"], options["settings"])
        _parse_cache_ttl(config["settings"], options["settings"])
        _parse_issue_type_colors(config["settings"], options["settings"])

    _parse_status_categories(config, options["settings"])
    _parse_cache_ttl(config, options["settings"])
    _parse_issue_type_colors(config, options["settings"])
    _parse_team_capacity(config, options["settings"])

    return options
