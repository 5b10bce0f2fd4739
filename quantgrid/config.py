"""
quantgrid -- Runtime defaults.

Values are read from environment variables at call time with in-code
fallbacks, so tuning a deployment does not require code changes::

    QG_SERIES_LENGTH   default synthetic series length   (2000)
    QG_STEP_YEARS      bar duration in years              (1/24, hourly)
    QG_TOP_K           default leaderboard size           (10)
    QG_DASHBOARD_PORT  dashboard HTTP port                (5050)

The engine fee, score weights and parameter grids are fixed constants
in their modules and intentionally not configurable here.
"""

import os


DEFAULT_SERIES_LENGTH = 2000
DEFAULT_STEP_YEARS = 1 / 24
DEFAULT_TOP_K = 10
DEFAULT_DASHBOARD_PORT = 5050


def _env_float(key: str, default: float) -> float:
    """Read a float from an environment variable with a fallback default."""
    return float(os.environ.get(key, default))


def _env_int(key: str, default: int) -> int:
    """Read an int from an environment variable with a fallback default."""
    return int(os.environ.get(key, default))


def get_series_length() -> int:
    return _env_int("QG_SERIES_LENGTH", DEFAULT_SERIES_LENGTH)


def get_step_years() -> float:
    return _env_float("QG_STEP_YEARS", DEFAULT_STEP_YEARS)


def get_top_k() -> int:
    return _env_int("QG_TOP_K", DEFAULT_TOP_K)


def get_dashboard_port() -> int:
    return _env_int("QG_DASHBOARD_PORT", DEFAULT_DASHBOARD_PORT)
