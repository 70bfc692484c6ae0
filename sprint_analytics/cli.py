import argparse
import asyncio
import logging
import os
import sys

from dotenv import load_dotenv

from .cache import CacheClient, MemoryCacheStore
from .config import ConfigError, config_to_options
from .exceptions import FetchFailure
from .github_client import create_github_client
from .jira_client import create_jira_client
from .models import CapacityRecord
from .orchestrator import SprintOrchestrator
from .provider import RemoteDataProvider
from .report import ReportRequest, report_to_json

load_dotenv()

logger = logging.getLogger(__name__)

SECTION_FLAGS = [
    ("--commits", "include_commits", "Include the sprint's commits"),
    ("--prs", "include_prs", "Include the sprint's pull requests"),
    ("--velocity", "include_velocity", "Include velocity and team performance"),
    ("--burndown", "include_burndown", "Include the burndown series"),
    ("--tier1", "include_tier1", "Include goal, scope change and spillover analysis"),
    (
        "--tier2",
        "include_tier2",
        "Include blockers, bug metrics, cycle time and team capacity",
    ),
    ("--tier3", "include_tier3", "Include epic progress, technical debt and risks"),
    (
        "--forward-looking",
        "include_forward_looking",
        "Include the next sprint forecast and carryover items",
    ),
    (
        "--enhanced-source-control",
        "include_enhanced_source_control",
        "Include commit, pull request and review statistics and issue traceability",
    ),
]


def configure_argument_parser():
    """Configure an ArgumentParser that manages command line options."""

    parser = argparse.ArgumentParser(
        description="Build a sprint analytics report from JIRA and GitHub data."
    )

    parser.add_argument("config", metavar="config.yml", help="Configuration file")
    parser.add_argument("sprint_id", metavar="SPRINT_ID", type=int, help="Sprint id")
    parser.add_argument("-v", dest="verbose", action="store_true", help="Verbose output")
    parser.add_argument(
        "-vv",
        dest="very_verbose",
        action="store_true",
        help="Even more verbose output",
    )
    parser.add_argument(
        "-o",
        "--output",
        metavar="report.json",
        help="Write the report to this file rather than standard output",
    )

    # Repository
    parser.add_argument("--owner", metavar="owner", help="GitHub repository owner")
    parser.add_argument("--repo", metavar="repo", help="GitHub repository name")

    # Report sections
    for flag, dest, help_text in SECTION_FLAGS:
        parser.add_argument(flag, dest=dest, action="store_true", help=help_text)
    parser.add_argument(
        "--all", dest="all_sections", action="store_true", help="Include every section"
    )
    parser.add_argument(
        "--compare-with-previous",
        action="store_true",
        help="Compare cycle time with the previous closed sprint",
    )

    # Connection options
    parser.add_argument("--domain", metavar="https://my.jira.com", help="JIRA domain name")
    parser.add_argument("--username", metavar="user", help="JIRA user name")
    parser.add_argument("--password", metavar="password", help="JIRA password")
    parser.add_argument("--github-token", metavar="token", help="GitHub token")

    return parser


def main(argv=None):
    parser = configure_argument_parser()
    args = parser.parse_args(argv)
    return run_command_line(args)


def build_request(args, settings):
    flags = {dest: args.all_sections or getattr(args, dest) for _, dest, _ in SECTION_FLAGS}
    capacity = tuple(
        CapacityRecord(**record) for record in settings.get("team_capacity", [])
    )
    return ReportRequest(
        sprint_id=args.sprint_id,
        owner=args.owner,
        repo=args.repo,
        compare_with_previous=args.compare_with_previous,
        capacity=capacity,
        **flags,
    )


def run_command_line(args):
    logging.basicConfig(
        format="[%(asctime)s %(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        level=(
            logging.DEBUG
            if args.very_verbose
            else logging.INFO if args.verbose else logging.WARNING
        ),
    )

    # Configuration and settings
    # (command line arguments override config file options)

    logger.debug("Parsing options from %s", args.config)
    try:
        with open(args.config, encoding="utf-8") as config:
            options = config_to_options(
                config.read(), cwd=os.path.dirname(os.path.abspath(args.config))
            )
    except FileNotFoundError:
        print(
            f"Error: Configuration file '{args.config}' not found. "
            "Please provide a valid config file.",
            file=sys.stderr,
        )
        return 1
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    override_options(options["connection"], args)

    request = build_request(args, options["settings"])
    provider = RemoteDataProvider(
        create_jira_client(options["connection"]),
        create_github_client(options["connection"]),
        options["connection"],
    )
    orchestrator = SprintOrchestrator(
        provider, CacheClient(MemoryCacheStore()), options["settings"]
    )

    try:
        report = asyncio.run(orchestrator.generate_report(request))
    except FetchFailure as e:
        logger.error("%s", e)
        return 1

    output = report_to_json(report)
    if args.output:
        logger.info("Writing report to %s", args.output)
        with open(args.output, "w", encoding="utf-8") as out:
            out.write(output)
    else:
        print(output)
    return 0


def override_options(options, arguments):
    """Update `options` dict with settings from `arguments`
    with the same key.
    """
    for key in options.keys():
        if getattr(arguments, key, None) is not None:
            options[key] = getattr(arguments, key)
