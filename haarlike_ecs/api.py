"""High-level API for catalog generation and validation.

Provides generate_catalog_file() and validate_catalog_file(), which hide the
ECS plumbing behind one call each.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from haarlike_ecs.components.stats import ClassifierStats
from haarlike_ecs.config import CatalogConfig, Settings
from haarlike_ecs.core.serialization import (
    CatalogRecord,
    LoadedCatalog,
    MalformedRecord,
    format_wavelet,
    read_catalog,
    write_catalog,
)
from haarlike_ecs.core.world import World
from haarlike_ecs.eval.checks import CatalogHistogram
from haarlike_ecs.eval.generate import generate_all
from haarlike_ecs.systems.checks import (
    BoundsCheck,
    CatalogHistogramSystem,
    DuplicateCheck,
    OverlapCheck,
)
from haarlike_ecs.systems.stats import AttachStats, HistogramNormalizationCheck


def generate_catalog_file(
    path: str | Path,
    config: CatalogConfig | None = None,
) -> dict[int, int]:
    """Generate the wavelet catalog and write it to *path*.

    Args:
        path: Output catalog path (replaced atomically)
        config: Generation parameters (defaults: 20x20 window, min side 3,
            dimensions 2-4)

    Returns:
        Number of wavelets written per dimension

    Raises:
        OSError: If the catalog cannot be written
    """
    config = config or CatalogConfig()
    wavelets = generate_all(config)
    write_catalog(path, wavelets.sorted())
    return {dim: wavelets.count(dim) for dim in config.dimensions}


class ValidationReport(BaseModel):
    """Findings and statistics of one validation pass.

    Attributes:
        total: Number of well-formed records checked
        malformed: Records skipped because they could not be parsed
        overlapping: Records containing identical rectangles
        out_of_bounds: Records with a rectangle outside the window or too small
        duplicates: Pairs of canonically equal records
        histogram: Descriptive statistics
        stats_errors: Records whose tail did not match the requested layout
        unnormalized: Records with a histogram not summing to 1, with the
            sum of each failing histogram keyed by its role
    """

    total: int
    malformed: list[MalformedRecord] = Field(default_factory=list)
    overlapping: list[CatalogRecord] = Field(default_factory=list)
    out_of_bounds: list[CatalogRecord] = Field(default_factory=list)
    duplicates: list[tuple[CatalogRecord, CatalogRecord]] = Field(default_factory=list)
    histogram: CatalogHistogram
    stats_errors: list[tuple[CatalogRecord, str]] = Field(default_factory=list)
    unnormalized: list[tuple[CatalogRecord, dict[str, float]]] = Field(default_factory=list)

    @property
    def finding_count(self) -> int:
        """Number of invariant violations and unreadable records."""
        return (
            len(self.malformed)
            + len(self.overlapping)
            + len(self.out_of_bounds)
            + len(self.duplicates)
            + len(self.stats_errors)
            + len(self.unnormalized)
        )

    @property
    def ok(self) -> bool:
        return self.finding_count == 0


def validate_catalog(
    loaded: LoadedCatalog, settings: Settings | None = None
) -> ValidationReport:
    """Run every catalog check on already loaded records.

    Args:
        loaded: Records (and malformed lines) from read_catalog/parse_lines
        settings: Window geometry from settings.catalog, check options from
            settings.check

    Returns:
        ValidationReport
    """
    settings = settings or Settings()
    catalog_cfg, check_cfg = settings.catalog, settings.check

    world = World()
    eids = world.spawn_catalog(loaded.records)
    record_of = dict(zip(eids, loaded.records))

    pipe = (
        world.pipe(*eids)
        .to(OverlapCheck())
        .to(BoundsCheck(window_size=catalog_cfg.window_size, min_side=catalog_cfg.min_side))
        .to(DuplicateCheck(exhaustive=check_cfg.exhaustive_duplicates))
        .to(
            CatalogHistogramSystem(
                window_size=catalog_cfg.window_size,
                x_bands=check_cfg.x_bands,
                y_bands=check_cfg.y_bands,
            )
        )
    )
    if check_cfg.stats_kind is not None:
        pipe = pipe.to(AttachStats(check_cfg.stats_kind))
    pipe.execute()

    stats_errors = []
    unnormalized = []
    if check_cfg.stats_kind is not None:
        HistogramNormalizationCheck(check_cfg.histogram_tolerance).run(
            world, world.query(ClassifierStats)
        )
        stats_errors = [
            (record_of[eid], reason) for eid, reason in world.reports["stats_errors"]
        ]
        unnormalized = [
            (record_of[eid], sums) for eid, sums in world.reports["unnormalized"]
        ]

    return ValidationReport(
        total=len(loaded.records),
        malformed=loaded.malformed,
        overlapping=[record_of[eid] for eid in world.reports["overlap"]],
        out_of_bounds=[record_of[eid] for eid in world.reports["out_of_bounds"]],
        duplicates=[
            (record_of[a], record_of[b]) for a, b in world.reports["duplicates"]
        ],
        histogram=world.reports["histogram"],
        stats_errors=stats_errors,
        unnormalized=unnormalized,
    )


def validate_catalog_file(
    path: str | Path, settings: Settings | None = None
) -> ValidationReport:
    """Read the catalog at *path* and validate it.

    Raises:
        OSError: If the catalog cannot be read
    """
    return validate_catalog(read_catalog(path), settings)


def _record_text(record: CatalogRecord) -> str:
    return format_wavelet(record.wavelet, record.tail)


def format_report(report: ValidationReport) -> list[str]:
    """Render a report as human-readable lines, statistics first."""
    hist = report.histogram
    counts = hist.dimension_counts
    lines = [
        f"Loaded {report.total} wavelets.",
        f"Total 2D/3D/4D wavelets: {counts[2]}/{counts[3]}/{counts[4]}",
        f"Total rectangles: {hist.total_rectangles}",
        "Width histogram: " + " ".join(str(n) for n in hist.width_histogram),
        "Height histogram: " + " ".join(str(n) for n in hist.height_histogram),
        "Rectangles mean position 2D histogram:",
    ]
    lines.extend(" ".join(str(n) for n in row) for row in hist.spatial_histogram)

    for bad in report.malformed:
        lines.append(f"Malformed (line {bad.line_no}) ==> {bad.reason}: {bad.text}")
    lines.append("Checking for overlapped rectangles...")
    for record in report.overlapping:
        lines.append(f"Overlaps (line {record.line_no}) ==> {_record_text(record)}")
    lines.append("Checking for problems with rectangle sizes...")
    for record in report.out_of_bounds:
        lines.append(f"Size problem (line {record.line_no}) ==> {_record_text(record)}")
    lines.append("Checking duplicated wavelets...")
    for first, second in report.duplicates:
        lines.append(
            f"Repeats (lines {first.line_no} and {second.line_no}) ==> "
            f"{_record_text(first)}"
        )
    for record, reason in report.stats_errors:
        lines.append(f"Bad statistics (line {record.line_no}) ==> {reason}")
    for record, sums in report.unnormalized:
        for role, total in sums.items():
            lines.append(
                f"Unnormalized {role} histogram (line {record.line_no}) adds to {total:g}"
            )

    lines.append(f"{report.finding_count} findings.")
    return lines
