"""Catalog text serialization.

One wavelet per line:

    <k> <x1> <y1> <w1> <h1> ... <xk> <yk> <wk> <hk> <weight1> ... <weightk> [tail]

Rectangle fields are integers and weights are floats, separated by single
spaces. Reading stops at end of file or at the first blank line. Anything
after the weights is kept verbatim as an opaque tail; downstream
statistics tools append their data there.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, Sequence

from pydantic import BaseModel, Field, ValidationError

from haarlike_ecs.components.geometry import (
    MAX_DIMENSION,
    MIN_DIMENSION,
    HaarWavelet,
    Rect,
)
from haarlike_ecs.components.stats import (
    BandStats,
    ClassStats,
    DualHistogramStats,
    DualWeightStats,
    GaussianStats,
    HistogramStats,
    NoStats,
    StatsPayload,
)

logger = logging.getLogger(__name__)

FIELDS_PER_RECT = 4


class CatalogRecord(BaseModel):
    """A parsed catalog line.

    Attributes:
        line_no: 1-based line number in the source
        wavelet: Wavelet geometry and weights
        tail: Tokens after the weight list, uninterpreted
    """

    line_no: int = Field(ge=1)
    wavelet: HaarWavelet
    tail: tuple[str, ...] = ()


class MalformedRecord(BaseModel):
    """A catalog line that could not be parsed."""

    line_no: int = Field(ge=1)
    text: str
    reason: str


class LoadedCatalog(BaseModel):
    """Result of reading a catalog: good records and skipped lines."""

    records: list[CatalogRecord] = Field(default_factory=list)
    malformed: list[MalformedRecord] = Field(default_factory=list)

    @property
    def wavelets(self) -> list[HaarWavelet]:
        return [record.wavelet for record in self.records]


def format_wavelet(wavelet: HaarWavelet, tail: Sequence[str] = ()) -> str:
    """Serialize a wavelet (and optional tail) to one catalog line."""
    fields = [str(wavelet.dimension)]
    for r in wavelet.rects:
        fields.extend((str(r.x), str(r.y), str(r.width), str(r.height)))
    fields.extend(f"{w:g}" for w in wavelet.weights)
    fields.extend(tail)
    return " ".join(fields)


def parse_record(line: str, line_no: int) -> CatalogRecord:
    """Parse one catalog line.

    Args:
        line: Catalog line (trailing newline allowed)
        line_no: 1-based line number, kept for diagnostics

    Returns:
        Parsed record

    Raises:
        ValueError: If the field count is wrong, a token is not numeric,
            or the dimension is outside the supported range
    """
    tokens = line.split()
    if not tokens:
        raise ValueError("Empty record")

    try:
        dimension = int(tokens[0])
    except ValueError as e:
        raise ValueError(f"Invalid dimension token {tokens[0]!r}") from e
    if not MIN_DIMENSION <= dimension <= MAX_DIMENSION:
        raise ValueError(
            f"Dimension must be in {MIN_DIMENSION}..{MAX_DIMENSION}, got {dimension}"
        )

    rect_end = 1 + FIELDS_PER_RECT * dimension
    weight_end = rect_end + dimension
    if len(tokens) < weight_end:
        raise ValueError(
            f"Expected at least {weight_end} fields for dimension {dimension}, "
            f"got {len(tokens)}"
        )

    try:
        coords = [int(t) for t in tokens[1:rect_end]]
    except ValueError as e:
        raise ValueError(f"Non-integer rectangle field: {e}") from e
    try:
        weights = tuple(float(t) for t in tokens[rect_end:weight_end])
    except ValueError as e:
        raise ValueError(f"Non-numeric weight: {e}") from e

    rects = tuple(
        Rect(*coords[i : i + FIELDS_PER_RECT])
        for i in range(0, len(coords), FIELDS_PER_RECT)
    )
    try:
        wavelet = HaarWavelet(rects=rects, weights=weights)
    except ValidationError as e:
        raise ValueError(f"Invalid wavelet: {e}") from e

    return CatalogRecord(
        line_no=line_no, wavelet=wavelet, tail=tuple(tokens[weight_end:])
    )


def parse_lines(lines: Iterable[str | bytes]) -> LoadedCatalog:
    """Parse catalog lines, skipping (and collecting) malformed ones.

    Byte lines are decoded one at a time as UTF-8; a line that does not
    decode is a malformed record like any other. Parsing stops at the
    first blank line.
    """
    loaded = LoadedCatalog()
    for line_no, line in enumerate(lines, start=1):
        if isinstance(line, bytes):
            try:
                line = line.decode("utf-8")
            except UnicodeDecodeError as e:
                text = line.decode("utf-8", errors="replace").rstrip("\r\n")
                logger.warning("Skipping malformed record at line %d: %s", line_no, e)
                loaded.malformed.append(
                    MalformedRecord(line_no=line_no, text=text, reason=f"Invalid UTF-8: {e}")
                )
                continue
        text = line.rstrip("\r\n")
        if not text.strip():
            break
        try:
            loaded.records.append(parse_record(text, line_no))
        except ValueError as e:
            logger.warning("Skipping malformed record at line %d: %s", line_no, e)
            loaded.malformed.append(
                MalformedRecord(line_no=line_no, text=text, reason=str(e))
            )
    return loaded


def read_catalog(path: str | Path) -> LoadedCatalog:
    """Read a catalog file, tolerating malformed records.

    Raises:
        OSError: If the file cannot be opened or read
    """
    with open(path, "rb") as f:
        loaded = parse_lines(f)
    logger.info(
        "Loaded %d wavelets from %s (%d malformed)",
        len(loaded.records),
        path,
        len(loaded.malformed),
    )
    return loaded


def load_wavelets(path: str | Path) -> list[HaarWavelet]:
    """Read a catalog that must be fully well-formed.

    Raises:
        OSError: If the file cannot be read
        ValueError: On the first malformed record
    """
    loaded = read_catalog(path)
    if loaded.malformed:
        bad = loaded.malformed[0]
        raise ValueError(f"Malformed record at line {bad.line_no}: {bad.reason}")
    return loaded.wavelets


def write_catalog(path: str | Path, wavelets: Iterable[HaarWavelet]) -> int:
    """Write wavelets to *path* atomically.

    The catalog is written to a temporary file next to *path* and moved
    into place only once complete, so a failed write never leaves a
    truncated catalog or touches an existing one.

    Returns:
        Number of wavelets written

    Raises:
        OSError: If the directory is not writable or the write fails
    """
    target = Path(path)
    directory = target.parent
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{target.name}.", suffix=".tmp", dir=directory
    )
    count = 0
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            for wavelet in wavelets:
                f.write(format_wavelet(wavelet))
                f.write("\n")
                count += 1
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, target)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise
    logger.info("Wrote %d wavelets to %s", count, target)
    return count


# --------------------------------------------------------------------------- #
# Statistics tails
# --------------------------------------------------------------------------- #


def _floats(tokens: Sequence[str]) -> list[float]:
    try:
        return [float(t) for t in tokens]
    except ValueError as e:
        raise ValueError(f"Non-numeric statistics field: {e}") from e


def _expect(tokens: Sequence[str], count: int, kind: str) -> None:
    if len(tokens) != count:
        raise ValueError(f"'{kind}' statistics need {count} fields, got {len(tokens)}")


def _split_histogram(values: list[float], start: int) -> tuple[list[float], int]:
    """Read a `<size> <bucket>...` block starting at *start*."""
    if start >= len(values):
        raise ValueError("Missing histogram size")
    size = values[start]
    if size < 0 or size != int(size):
        raise ValueError(f"Invalid histogram size {size}")
    end = start + 1 + int(size)
    if end > len(values):
        raise ValueError(
            f"Histogram declares {int(size)} buckets, "
            f"only {len(values) - start - 1} present"
        )
    return values[start + 1 : end], end


def parse_stats(kind: str, tokens: Sequence[str], dimension: int) -> StatsPayload:
    """Decode a record tail as the statistics layout *kind*.

    Args:
        kind: Layout name (see components.stats.STATS_KINDS)
        tokens: Tail tokens of the record
        dimension: Wavelet dimension (the band layout has one mean per rectangle)

    Raises:
        ValueError: If the tail does not match the layout
    """
    try:
        return _parse_stats(kind, tokens, dimension)
    except ValidationError as e:
        raise ValueError(f"Invalid '{kind}' statistics: {e}") from e


def _parse_stats(kind: str, tokens: Sequence[str], dimension: int) -> StatsPayload:
    if kind == "none":
        _expect(tokens, 0, kind)
        return NoStats()

    values = _floats(tokens)

    if kind == "gaussian":
        _expect(tokens, 2, kind)
        return GaussianStats(mean=values[0], std_dev=values[1])

    if kind == "histogram":
        if len(values) < 3:
            raise ValueError(
                f"'histogram' statistics need at least 3 fields, got {len(values)}"
            )
        return HistogramStats(mean=values[0], std_dev=values[1], buckets=values[2:])

    if kind == "dual_weight":
        _expect(tokens, 6, kind)
        return DualWeightStats(
            positive=ClassStats(mean=values[0], variance=values[1], prior=values[2]),
            negative=ClassStats(mean=values[3], variance=values[4], prior=values[5]),
        )

    if kind == "dual_histogram":
        if not values:
            raise ValueError("'dual_histogram' statistics are empty")
        positive, end = _split_histogram(values, 1)
        if end >= len(values):
            raise ValueError("Missing negative prior")
        negative_prior = values[end]
        negative, end = _split_histogram(values, end + 1)
        if end != len(values):
            raise ValueError(f"{len(values) - end} unexpected trailing fields")
        return DualHistogramStats(
            positive_prior=values[0],
            positive_buckets=positive,
            negative_prior=negative_prior,
            negative_buckets=negative,
        )

    if kind == "band":
        _expect(tokens, dimension + 1, kind)
        return BandStats(means=values[:dimension], std_dev=values[dimension])

    raise ValueError(f"Unknown statistics kind {kind!r}")
