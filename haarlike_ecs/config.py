"""Configuration for catalog generation and validation.

Settings are read from a TOML file:

    [catalog]
    window_size = 20
    min_side = 3
    dimensions = [2, 3, 4]
    workers = 1

    [catalog.strides.4]
    size = 1
    anchor = 2
    displacement = [1, 2, 2]

    [check]
    fail_on_findings = false
    stats_kind = "histogram"

Missing sections and keys fall back to the defaults below, which reproduce
the reference generator (20x20 window, 3 pixel minimum side).
"""

from __future__ import annotations

import os
from typing import Any, cast

from pydantic import BaseModel, Field, field_validator, model_validator

# TOML loading for Python 3.11+ and older
try:
    import tomllib  # type: ignore[import-not-found, unused-ignore]
except ImportError:
    import tomli as tomllib  # type: ignore[import-not-found, no-redef, unused-ignore]

from haarlike_ecs.components.geometry import MAX_DIMENSION, MIN_DIMENSION
from haarlike_ecs.components.stats import StatsKind

CONFIG_ENV_VAR = "HAARLIKE_CONFIG"
CONFIG_FILENAME = "haarlike_ecs.toml"


class DimensionStrides(BaseModel):
    """Scan granularity for one wavelet dimension.

    Attributes:
        size: Step between candidate rectangle widths/heights
        anchor: Step between candidate positions of the first rectangle
        displacement: Step of the displacement multipliers, one entry per
            additional rectangle (a single entry applies to all of them)
    """

    size: int = Field(default=1, ge=1)
    anchor: int = Field(default=2, ge=1)
    displacement: list[int] = Field(default_factory=lambda: [1], min_length=1)

    @field_validator("displacement")
    @classmethod
    def _positive_steps(cls, value: list[int]) -> list[int]:
        if any(step < 1 for step in value):
            raise ValueError(f"Displacement strides must be >= 1, got {value}")
        return value

    def displacement_steps(self, dimension: int) -> tuple[int, ...]:
        """Displacement stride for each rectangle after the first."""
        count = dimension - 1
        if len(self.displacement) == 1:
            return tuple(self.displacement) * count
        if len(self.displacement) != count:
            raise ValueError(
                f"Dimension {dimension} needs {count} displacement strides, "
                f"got {len(self.displacement)}"
            )
        return tuple(self.displacement)


def _reference_strides() -> dict[int, DimensionStrides]:
    return {
        2: DimensionStrides(size=1, anchor=2, displacement=[1]),
        3: DimensionStrides(size=2, anchor=2, displacement=[1, 1]),
        4: DimensionStrides(size=1, anchor=2, displacement=[1, 2, 2]),
    }


class CatalogConfig(BaseModel):
    """Generation parameters."""

    window_size: int = Field(default=20, ge=1)
    min_side: int = Field(default=3, ge=1)
    dimensions: tuple[int, ...] = (2, 3, 4)
    strides: dict[int, DimensionStrides] = Field(default_factory=_reference_strides)
    workers: int = Field(default=1, ge=1)

    @field_validator("dimensions")
    @classmethod
    def _valid_dimensions(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        for dim in value:
            if not MIN_DIMENSION <= dim <= MAX_DIMENSION:
                raise ValueError(
                    f"Dimensions must be in {MIN_DIMENSION}..{MAX_DIMENSION}, got {dim}"
                )
        if len(set(value)) != len(value):
            raise ValueError(f"Duplicate dimensions in {value}")
        return value

    @field_validator("strides", mode="before")
    @classmethod
    def _merge_reference_strides(cls, value: Any) -> Any:
        """Overlay configured strides on the reference ones, key by key."""
        if not isinstance(value, dict):
            return value
        merged: dict[int, Any] = dict(_reference_strides())
        for key, strides in value.items():
            dim = int(key)
            if isinstance(strides, dict):
                base = merged.get(dim, DimensionStrides()).model_dump()
                strides = {**base, **strides}
            merged[dim] = strides
        return merged

    @model_validator(mode="after")
    def _check_strides(self) -> CatalogConfig:
        for dim in self.dimensions:
            self.strides_for(dim).displacement_steps(dim)
        return self

    def strides_for(self, dimension: int) -> DimensionStrides:
        """Configured strides for *dimension* (defaults when absent)."""
        return self.strides.get(dimension, DimensionStrides())


class CheckConfig(BaseModel):
    """Validation parameters."""

    fail_on_findings: bool = False
    exhaustive_duplicates: bool = False
    stats_kind: StatsKind | None = None
    histogram_tolerance: float = Field(default=1e-6, gt=0.0)
    x_bands: tuple[float, float] = (0.4, 0.6)
    y_bands: tuple[float, float] = (0.35, 0.65)

    @field_validator("x_bands", "y_bands")
    @classmethod
    def _ordered_bands(cls, value: tuple[float, float]) -> tuple[float, float]:
        low, high = value
        if not 0.0 < low < high < 1.0:
            raise ValueError(f"Band edges must satisfy 0 < low < high < 1, got {value}")
        return value


class Settings(BaseModel):
    """Top-level settings file."""

    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    check: CheckConfig = Field(default_factory=CheckConfig)


def _resolve_config_path(config_path: str | None) -> str | None:
    """Resolve configuration path from env, explicit path, or defaults."""
    env_config = os.environ.get(CONFIG_ENV_VAR)
    if env_config:
        return env_config
    if config_path:
        return config_path
    candidates = [
        CONFIG_FILENAME,
        os.path.expanduser(f"~/{CONFIG_FILENAME}"),
    ]
    for candidate in candidates:
        if os.path.exists(candidate):
            return candidate
    return None


def load_settings(config_path: str | None = None) -> Settings:
    """Load settings from TOML, or the defaults if no file is found.

    Args:
        config_path: Explicit settings file (the HAARLIKE_CONFIG environment
            variable takes precedence)

    Raises:
        FileNotFoundError: If an explicitly requested file does not exist
        ValueError: If the file is not valid TOML or has invalid values
    """
    resolved_path = _resolve_config_path(config_path)
    if resolved_path is None:
        return Settings()
    if not os.path.exists(resolved_path):
        raise FileNotFoundError(
            f"Config file not found at {resolved_path}. "
            f"Set {CONFIG_ENV_VAR} or create {CONFIG_FILENAME}"
        )
    with open(resolved_path, "rb") as f:
        try:
            data = cast(dict[str, Any], tomllib.load(f))
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML in {resolved_path}: {e}") from e
    return Settings.model_validate(data)
