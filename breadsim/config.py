"""
Simulation settings for breadsim.

All numeric constants used by the analysis engine live here so they can be
tuned per deployment. Values can be overridden with environment variables
prefixed ``BREADSIM_`` (e.g. ``BREADSIM_MAX_ITERATIONS=80``) or a ``.env`` file.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BREADSIM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Power distribution
    max_rails_per_polarity: int = Field(default=4, ge=1)

    # DC analysis driver
    max_iterations: int = Field(default=50, ge=1)
    convergence_threshold: float = Field(default=1e-6, gt=0)

    # MNA solver
    gmin: float = Field(default=1e-12, ge=0)

    # Linear element models
    wire_resistance: float = Field(default=1e-3, gt=0)
    switch_closed_conductance: float = Field(default=1e10, gt=0)
    switch_open_conductance: float = Field(default=1e-20, gt=0)

    # LED (Shockley diode) model
    led_saturation_current: float = Field(default=1e-15, gt=0)
    led_ideality: float = Field(default=3.0, gt=0)
    thermal_voltage: float = Field(default=0.026, gt=0)
    led_initial_voltage: float = 2.0
    led_step_limit: float = Field(default=5.0, gt=0)

    # Digital logic levels
    logic_low_threshold: float = 0.8
    logic_high_threshold: float = 2.0
    logic_output_high: float = 5.0
    logic_output_low: float = 0.0


@lru_cache()
def get_settings() -> Settings:
    return Settings()
