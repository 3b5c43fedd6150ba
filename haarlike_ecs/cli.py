"""Command-line entry points: haarlike-gen and haarlike-check."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Sequence

from haarlike_ecs.api import format_report, generate_catalog_file, validate_catalog_file
from haarlike_ecs.components.stats import STATS_KINDS
from haarlike_ecs.config import load_settings

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )


def generate_main(argv: Sequence[str] | None = None) -> int:
    """Generate the wavelet catalog and write it to OUTPUT."""
    parser = argparse.ArgumentParser(
        prog="haarlike-gen",
        description="Generate the exhaustive Haar-like wavelet catalog.",
    )
    parser.add_argument('output', help="Path of the catalog file to write.")
    parser.add_argument('--config', type=str, default=None, help="Path to a TOML settings file.")
    parser.add_argument(
        '--workers',
        type=int,
        default=None,
        help="Worker processes for generation (overrides catalog.workers).",
    )
    parser.add_argument('-v', '--verbose', action='store_true', help="Enable debug logging.")
    args = parser.parse_args(argv)

    _setup_logging(args.verbose)
    try:
        config = load_settings(args.config).catalog
        if args.workers is not None:
            if args.workers < 1:
                raise ValueError(f"--workers must be >= 1, got {args.workers}")
            config = config.model_copy(update={"workers": args.workers})
        counts = generate_catalog_file(args.output, config)
    except (OSError, ValueError) as e:
        logger.error("Catalog generation failed: %s", e)
        return 1

    for dim, count in counts.items():
        logger.info("Total %dD wavelets written: %d", dim, count)
    logger.info("Catalog written to %s", args.output)
    return 0


def check_main(argv: Sequence[str] | None = None) -> int:
    """Validate CATALOG and print diagnostics to stdout."""
    parser = argparse.ArgumentParser(
        prog="haarlike-check",
        description="Check a Haar-like wavelet catalog for invalid or repeated wavelets.",
    )
    parser.add_argument('catalog', help="Path of the catalog file to check.")
    parser.add_argument('--config', type=str, default=None, help="Path to a TOML settings file.")
    parser.add_argument(
        '--fail-on-findings',
        action='store_true',
        help="Exit with status 1 when any finding is reported.",
    )
    parser.add_argument(
        '--stats',
        choices=STATS_KINDS,
        default=None,
        help="Decode record tails with this statistics layout and check them.",
    )
    parser.add_argument(
        '--exhaustive',
        action='store_true',
        help="Compare every pair of wavelets when looking for repeats.",
    )
    parser.add_argument('-v', '--verbose', action='store_true', help="Enable debug logging.")
    args = parser.parse_args(argv)

    _setup_logging(args.verbose)
    try:
        settings = load_settings(args.config)
        overrides = {}
        if args.fail_on_findings:
            overrides["fail_on_findings"] = True
        if args.stats is not None:
            overrides["stats_kind"] = args.stats
        if args.exhaustive:
            overrides["exhaustive_duplicates"] = True
        if overrides:
            check = settings.check.model_copy(update=overrides)
            settings = settings.model_copy(update={"check": check})
        report = validate_catalog_file(args.catalog, settings)
    except (OSError, ValueError) as e:
        logger.error("Catalog check failed: %s", e)
        return 1

    for line in format_report(report):
        print(line)

    if settings.check.fail_on_findings and not report.ok:
        return 1
    return 0

