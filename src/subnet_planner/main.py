"""Entry point for the subnet planner CLI."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from subnet_allocator.exceptions import AllocationError
from subnet_allocator.planner import VIEWS

from .config import ConfigError, load_config

LOG = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Plan per-zone subnet blocks for a VPC"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("subnets.yaml"),
        help="Path to the planner configuration file",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the plan to this file instead of stdout",
    )
    parser.add_argument(
        "--view",
        choices=VIEWS,
        default="flat",
        help="Shape of the emitted plan",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    try:
        config = load_config(args.config)
        plan = config.vpc.build_planner().plan(config.subnets)
        rendered = json.dumps(plan.to_dict(args.view), indent=2) + "\n"
        if args.output is not None:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            args.output.write_text(rendered)
            LOG.info("Wrote %s plan to %s", args.view, args.output)
        else:
            sys.stdout.write(rendered)
    except (AllocationError, ConfigError, OSError) as exc:
        LOG.error("subnet planning failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
