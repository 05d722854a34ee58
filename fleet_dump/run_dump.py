#!/usr/bin/env python3
# fleet_dump/run_dump.py
"""
Command-line entry point for dumping Fleet objects.

Usage:
    # Dump every agent policy to ./package-dump/agent_policies/
    fleet-dump agent-policies

    # Dump one agent policy
    fleet-dump agent-policies --agent-policy fleet-server-policy

    # Dump the agent policies using the nginx package
    fleet-dump agent-policies --package nginx --output /tmp/dump

Connection settings come from G_config/config.yaml (or --config) and the
ELASTIC_PACKAGE_* environment variables.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from fleet_dump.A_core.A00_logging import LogContext, configure_logging, get_logger
from fleet_dump.A_core.A02_exceptions import FleetDumpError
from fleet_dump.G_config import DumpConfig, load_config
from fleet_dump.J_export.J01_agent_policies import AgentPoliciesDumper
from fleet_dump.Z_utils.Z01_fleet_client import FleetClient

logger = get_logger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="fleet-dump",
        description="Dump objects from the Fleet API to local files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config.yaml (default: bundled G_config/config.yaml)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Debug logging",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only print errors",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    policies = subparsers.add_parser(
        "agent-policies",
        help="Dump agent policies",
    )
    selection = policies.add_mutually_exclusive_group()
    selection.add_argument(
        "--agent-policy",
        metavar="ID",
        help="Dump only this agent policy",
    )
    selection.add_argument(
        "--package",
        metavar="NAME",
        help="Dump only agent policies using this package",
    )
    policies.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Output directory (default: dump.output_dir from config)",
    )

    return parser


def setup_logging(config: DumpConfig, verbose: bool = False, quiet: bool = False) -> None:
    """Configure logging from config and command-line flags."""
    level = config.numeric_log_level
    if verbose:
        level = min(level, logging.DEBUG)
    if quiet:
        level = logging.ERROR

    configure_logging(
        log_dir=config.log_dir,
        log_level=level,
        enable_file_logging=config.log_dir is not None,
    )


def dump_agent_policies(
    dumper: AgentPoliciesDumper,
    output_dir: Path,
    package: Optional[str] = None,
) -> str:
    """
    Run the agent policy dump selected by the arguments.

    Returns:
        Summary line for the user.
    """
    if dumper.name is not None:
        with LogContext(logger, f"dump agent policy {dumper.name}"):
            dumper.dump_agent_policy(output_dir)
        return f"Dumped agent policy {dumper.name}"

    if package:
        with LogContext(logger, f"dump agent policies using package {package}"):
            count = dumper.dump_agent_policies_filtered_by_package(output_dir, package)
        return f"Dumped {count} agent policies filtering by package name {package}"

    with LogContext(logger, "dump all agent policies"):
        count = dumper.dump_all(output_dir)
    return f"Dumped {count} agent policies"


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except FleetDumpError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    setup_logging(config, verbose=args.verbose, quiet=args.quiet)
    logger.debug(f"Configuration: {config.to_dict()}")

    output_dir = args.output or config.output_dir

    try:
        with FleetClient.from_config(config) as client:
            dumper = AgentPoliciesDumper(client, agent_policy=args.agent_policy)
            summary = dump_agent_policies(dumper, output_dir, package=args.package)
    except FleetDumpError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not args.quiet:
        print(summary)
    return 0


if __name__ == "__main__":
    sys.exit(main())
