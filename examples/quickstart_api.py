#!/usr/bin/env python3
"""Quickstart example using the high-level generate/validate API.

This example demonstrates the simplest way to use the toolkit:
- Generate the wavelet catalog for a sampling window
- Write it to disk
- Validate it and print the diagnostic report

The high-level API hides all the ECS plumbing behind one call each.
"""

from __future__ import annotations

import argparse
from pathlib import Path

from haarlike_ecs.api import format_report, generate_catalog_file, validate_catalog_file
from haarlike_ecs.config import load_settings


def main() -> None:
    parser = argparse.ArgumentParser(description="Quickstart API example")
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("haarwavelets.txt"),
        help="Catalog path to write",
    )
    parser.add_argument(
        "--window-size",
        type=int,
        default=None,
        help="Override the sampling window side (default from settings: 20)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to haarlike_ecs.toml (defaults to repo root)",
    )
    args = parser.parse_args()

    repo_root = Path(__file__).resolve().parents[1]
    config_path = args.config or (repo_root / "haarlike_ecs.toml")
    config_arg = str(config_path) if config_path.exists() else None

    settings = load_settings(config_arg)
    if args.window_size is not None:
        catalog = settings.catalog.model_copy(update={"window_size": args.window_size})
        settings = settings.model_copy(update={"catalog": catalog})

    print(f"Generating catalog for a {settings.catalog.window_size}px window...")
    counts = generate_catalog_file(args.output, settings.catalog)
    for dim, count in counts.items():
        print(f"  {dim} rectangles: {count} wavelets")
    print(f"Catalog saved to: {args.output}")

    print("Validating...")
    report = validate_catalog_file(args.output, settings)
    for line in format_report(report):
        print(line)
    print("Catalog OK" if report.ok else "Catalog has problems")


if __name__ == "__main__":
    main()
