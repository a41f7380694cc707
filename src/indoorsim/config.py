"""Configuration for simulation runs.

This module provides Pydantic-based configuration loading from environment
variables and .env files. Every knob of a run (population sizes, sensor
model, sweep sizes) lives here so a run is fully described by one object.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Annotated, Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SIZES = [0.005, 0.01, 0.02, 0.05, 0.1]


class SimulationConfig(BaseSettings):
    """Settings for trajectory generation, detection, inference and the query sweep.

    Loads settings from environment variables prefixed with INDOORSIM_ and
    from a .env file.

    Environment Variables:
        INDOORSIM_NUM_OBJECT: Number of simulated objects (default: 200)
        INDOORSIM_NUM_PARTICLE: Provisional particles per prediction (default: 64)
        INDOORSIM_DURATION: Simulated timesteps (default: 200)
        INDOORSIM_RADIUS: Detector coverage radius (default: 100.0)
        INDOORSIM_SUCCESS_RATE: Probability a reading is not missed (default: 0.9)
        INDOORSIM_THRESHOLD: Minimum mass for a predicted id to count (default: 0.5)
        INDOORSIM_MIN_OBSERVATIONS: Distinct readings required to predict (default: 2)
        INDOORSIM_WINDOW_SIZES: Window ratios, JSON list or comma separated
        INDOORSIM_SEED: Seed for the shared random source (default: unseeded)

    Example:
        >>> config = SimulationConfig()  # Loads from environment
        >>> config = SimulationConfig(num_object=50, seed=7)
    """

    model_config = SettingsConfigDict(
        env_prefix="INDOORSIM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Population
    num_object: int = Field(default=200, ge=1, description="Number of simulated objects")
    num_particle: int = Field(default=64, ge=1, description="Provisional particles per prediction")

    # Motion model
    duration: int = Field(default=200, ge=1, description="Number of simulated timesteps")
    unit: float = Field(default=1.0, gt=0, description="Time per simulated tick and reading")
    velocity_mean: float = Field(default=80.0, gt=0, description="Mean object velocity")
    velocity_sd: float = Field(default=10.0, ge=0, description="Velocity standard deviation")
    jitter_sd: float = Field(default=5.0, ge=0, description="Velocity jitter for derived particles")

    # Sensor model
    radius: float = Field(default=100.0, ge=0, description="Detector coverage radius")
    success_rate: float = Field(
        default=0.9, ge=0.0, le=1.0, description="Probability a reading is not missed"
    )

    # Inference
    min_observations: int = Field(
        default=2, ge=1, description="Distinct readings required before predicting"
    )
    resample_jitter: bool = Field(
        default=False,
        description="Redraw velocity of particles duplicated during resampling",
    )
    threshold: float = Field(
        default=0.5, ge=0.0, le=1.0, description="Minimum mass for a predicted id to count"
    )

    # Query sweep
    num_timestamp: int = Field(default=10, ge=1, description="Query times per sweep")
    num_test_per_timestamp: int = Field(
        default=100, ge=1, description="Windows drawn per query time and window size"
    )
    query_time_min: float = Field(default=50.0, ge=0, description="Earliest query time")
    window_sizes: Annotated[list[float], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_WINDOW_SIZES),
        description="Window area as a ratio of total room/hall area",
    )

    seed: int | None = Field(default=None, description="Seed for the shared random source")

    @field_validator("window_sizes", mode="before")
    @classmethod
    def parse_window_sizes(cls, v: Any) -> Any:
        """Accept a comma separated string as well as a list."""
        if isinstance(v, str):
            v = v.strip().strip("[]")
            return [float(part) for part in v.split(",") if part.strip()]
        return v

    @field_validator("window_sizes")
    @classmethod
    def check_window_sizes(cls, v: list[float]) -> list[float]:
        if not v:
            raise ValueError("window_sizes must not be empty")
        if any(size <= 0 for size in v):
            raise ValueError("window sizes must be positive")
        return v

    @model_validator(mode="after")
    def check_query_range(self) -> SimulationConfig:
        # A tick lasts `unit` time, so the run covers duration * unit.
        span = self.duration * self.unit
        if self.query_time_min >= span:
            raise ValueError(
                f"query_time_min ({self.query_time_min}) must be below the simulated time ({span})"
            )
        return self


@lru_cache
def get_config() -> SimulationConfig:
    """Get cached simulation configuration singleton.

    To reload configuration, call get_config.cache_clear() first.
    """
    config = SimulationConfig()
    logger.info("Loaded simulation configuration: %s", config)
    return config
