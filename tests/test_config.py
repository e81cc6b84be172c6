"""Tests for generator configuration."""

import pytest
from pydantic import ValidationError

from nonogram.solver.config import GeneratorConfig


def test_defaults():
    config = GeneratorConfig()
    assert config.max_attempts_per_worker == 300
    assert config.fallback_max_attempts == 600
    assert config.density_bands[10] == (0.3, 0.55)


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("NONOGRAM_MAX_ATTEMPTS_PER_WORKER", "42")
    monkeypatch.setenv("NONOGRAM_USE_PROCESSES", "false")
    monkeypatch.setenv("NONOGRAM_DENSITY_BANDS", '{"8": [0.2, 0.4]}')
    config = GeneratorConfig()
    assert config.max_attempts_per_worker == 42
    assert config.use_processes is False
    assert config.density_bands == {8: (0.2, 0.4)}


@pytest.mark.parametrize("band", [(0.6, 0.2), (-0.1, 0.5), (0.5, 1.5)])
def test_invalid_density_band(band):
    with pytest.raises(ValidationError):
        GeneratorConfig(default_density_band=band)
    with pytest.raises(ValidationError):
        GeneratorConfig(density_bands={5: band})


def test_attempt_budgets_must_be_positive():
    with pytest.raises(ValidationError):
        GeneratorConfig(max_attempts_per_worker=0)
    with pytest.raises(ValidationError):
        GeneratorConfig(fallback_max_attempts=0)


def test_unknown_settings_are_rejected():
    with pytest.raises(ValidationError):
        GeneratorConfig(max_workerz=3)
