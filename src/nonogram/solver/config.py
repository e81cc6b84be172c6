"""Nonogram generator configuration."""

from dotenv import find_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Determine the environment file path, or None if not found
ENV_FILE = find_dotenv() or None

DensityBand = tuple[float, float]


class GeneratorConfig(BaseSettings):
    """Configuration settings for the nonogram generator."""

    max_workers: int | None = None
    """Default number of worker processes. If None (default), uses max(2, cpus - 1)."""

    max_attempts_per_worker: int = 300
    """Random candidates each worker may draw before giving up. Default: 300."""

    fallback_max_attempts: int = 600
    """Attempt budget for the synchronous fallback search. Default: 600."""

    ensure_uniqueness: bool = True
    """Whether generated puzzles must have exactly one solution. Default: True."""

    density_bands: dict[int, DensityBand] = {
        5: (0.35, 0.65),
        10: (0.3, 0.55),
        15: (0.28, 0.48),
        20: (0.26, 0.45),
    }
    """Fill density band per board size.  Wider boards use sparser fills."""

    default_density_band: DensityBand = (0.25, 0.5)
    """Density band for sizes missing from `density_bands`."""

    use_processes: bool = True
    """Whether to run workers in separate processes.  If False, searches run synchronously."""

    mp_start_method: str | None = "spawn"
    """multiprocessing start method ("spawn", "forkserver", "fork"). None uses the platform default.

    Default: "spawn", since the pool's listener thread is already running when workers start.
    """

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="NONOGRAM_",
        env_file=ENV_FILE,
        env_file_encoding="utf-8",
        extra="forbid",
    )

    @field_validator("density_bands")
    @classmethod
    def _check_bands(cls, bands: dict[int, DensityBand]) -> dict[int, DensityBand]:
        for size, band in bands.items():
            _check_band(band, f"density band for size {size}")
        return bands

    @field_validator("default_density_band")
    @classmethod
    def _check_default_band(cls, band: DensityBand) -> DensityBand:
        return _check_band(band, "default density band")

    @field_validator("max_attempts_per_worker", "fallback_max_attempts")
    @classmethod
    def _check_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be at least 1")
        return value


def _check_band(band: DensityBand, label: str) -> DensityBand:
    low, high = band
    if not 0.0 <= low <= high <= 1.0:
        raise ValueError(f"Invalid {label}: {band} (need 0 <= min <= max <= 1)")
    return band


config = GeneratorConfig()
