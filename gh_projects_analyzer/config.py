"""
Configuration management for GitHub Projects Analyzer.

Loads analysis settings from:
1. Explicit setters (CLI flags)
2. GH_PROJECTS_ANALYZER_* environment variables
3. .gh-projects-analyzer.toml (local config)
4. pyproject.toml (project-level config)
"""

import os
import tomllib
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, NamedTuple

# project_root is the parent directory of gh_projects_analyzer/
PROJECT_ROOT = Path(__file__).resolve().parent.parent

CONFIG_FILE_NAME = ".gh-projects-analyzer.toml"
CONFIG_TABLE = "gh-projects-analyzer"
ENV_PREFIX = "GH_PROJECTS_ANALYZER_"

# Global configuration for SSL verification
# Default: True (verify SSL certificates)
# Can be set to False by CLI --insecure flag
VERIFY_SSL = True

# Global verbose flag (None means "use config file / env")
_VERBOSE: bool | None = None

# Backlog items older than this without a real status are stale
DEFAULT_STALE_DAYS = 30
# Length of each of the two adjacent windows compared for completion trend
DEFAULT_TREND_WINDOW_DAYS = 14
# Minimum completion-rate difference between windows to call a trend
DEFAULT_TREND_TOLERANCE = 0.05
DEFAULT_REQUIRED_FIELDS = ("Status", "Priority")
DEFAULT_STATUS_FIELD = "Status"
DEFAULT_PRIORITY_FIELD = "Priority"
DEFAULT_CRITERIA_FIELDS = MappingProxyType(
    {
        "business_value": "Business Value",
        "technical_complexity": "Technical Complexity",
        "client_priority": "Client Priority",
    }
)
DEFAULT_STATUS_DATE_FIELDS = MappingProxyType(
    {
        "todo": "Todo Date",
        "in_progress": "In Progress Date",
        "review": "Review Date",
        "done": "Done Date",
    }
)
# Items requested per snapshot fetch (GitHub caps connections at 100)
DEFAULT_PAGE_SIZE = 100


class AnalyzerSettings(NamedTuple):
    """Effective analysis settings for one request."""

    stale_days: int = DEFAULT_STALE_DAYS
    trend_window_days: int = DEFAULT_TREND_WINDOW_DAYS
    trend_tolerance: float = DEFAULT_TREND_TOLERANCE
    required_fields: tuple[str, ...] = DEFAULT_REQUIRED_FIELDS
    status_field: str = DEFAULT_STATUS_FIELD
    priority_field: str = DEFAULT_PRIORITY_FIELD
    criteria_fields: Mapping[str, str] = DEFAULT_CRITERIA_FIELDS
    status_date_fields: Mapping[str, str] = DEFAULT_STATUS_DATE_FIELDS
    page_size: int = DEFAULT_PAGE_SIZE


def load_config_file(config_path: Path) -> dict:
    """Load a TOML configuration file."""
    if not config_path.exists():
        return {}
    try:
        with open(config_path, "rb") as f:
            return tomllib.load(f)
    except Exception as e:
        raise ValueError(f"Failed to load config from {config_path}: {e}") from e


def get_config_table() -> dict[str, Any]:
    """
    Return the [tool.gh-projects-analyzer] table.

    Priority:
    1. .gh-projects-analyzer.toml (local config, highest priority)
    2. pyproject.toml (project-level config, fallback)

    Returns:
        The configuration table, or an empty dict when neither file has one.
    """
    local_config_path = PROJECT_ROOT / CONFIG_FILE_NAME
    if local_config_path.exists():
        table = (
            load_config_file(local_config_path).get("tool", {}).get(CONFIG_TABLE, {})
        )
        if table:
            return table

    pyproject_path = PROJECT_ROOT / "pyproject.toml"
    if pyproject_path.exists():
        return load_config_file(pyproject_path).get("tool", {}).get(CONFIG_TABLE, {})

    return {}


def _env_int(name: str) -> int | None:
    value = os.getenv(ENV_PREFIX + name)
    if value:
        try:
            return int(value)
        except ValueError:
            pass
    return None


def _env_float(name: str) -> float | None:
    value = os.getenv(ENV_PREFIX + name)
    if value:
        try:
            return float(value)
        except ValueError:
            pass
    return None


def load_settings() -> AnalyzerSettings:
    """
    Build the effective settings.

    Environment variables override the config file; the config file
    overrides the defaults.

    Returns:
        AnalyzerSettings with every value resolved.
    """
    table = get_config_table()

    stale_days = _env_int("STALE_DAYS")
    if stale_days is None:
        stale_days = int(table.get("stale_days", DEFAULT_STALE_DAYS))

    trend_window_days = _env_int("TREND_WINDOW_DAYS")
    if trend_window_days is None:
        trend_window_days = int(
            table.get("trend_window_days", DEFAULT_TREND_WINDOW_DAYS)
        )

    trend_tolerance = _env_float("TREND_TOLERANCE")
    if trend_tolerance is None:
        trend_tolerance = float(table.get("trend_tolerance", DEFAULT_TREND_TOLERANCE))

    page_size = _env_int("PAGE_SIZE")
    if page_size is None:
        page_size = int(table.get("page_size", DEFAULT_PAGE_SIZE))

    criteria_fields = dict(DEFAULT_CRITERIA_FIELDS)
    criteria_fields.update(table.get("criteria_fields", {}))
    status_date_fields = dict(DEFAULT_STATUS_DATE_FIELDS)
    status_date_fields.update(table.get("status_date_fields", {}))

    return AnalyzerSettings(
        stale_days=stale_days,
        trend_window_days=trend_window_days,
        trend_tolerance=trend_tolerance,
        required_fields=tuple(table.get("required_fields", DEFAULT_REQUIRED_FIELDS)),
        status_field=table.get("status_field", DEFAULT_STATUS_FIELD),
        priority_field=table.get("priority_field", DEFAULT_PRIORITY_FIELD),
        criteria_fields=MappingProxyType(criteria_fields),
        status_date_fields=MappingProxyType(status_date_fields),
        page_size=page_size,
    )


def set_verify_ssl(verify: bool) -> None:
    """
    Set the SSL verification setting globally.

    Args:
        verify: Whether to verify SSL certificates.
    """
    global VERIFY_SSL
    VERIFY_SSL = verify


def get_verify_ssl() -> bool:
    """
    Get the current SSL verification setting.

    Returns:
        Whether SSL verification is enabled.
    """
    return VERIFY_SSL


def set_verbose(verbose: bool | None) -> None:
    """Set verbose output explicitly (None restores config lookup)."""
    global _VERBOSE
    _VERBOSE = verbose


def is_verbose_enabled() -> bool:
    """
    Check if verbose output is enabled.

    Priority:
    1. Explicitly set value via set_verbose()
    2. GH_PROJECTS_ANALYZER_VERBOSE environment variable
    3. Config file `verbose` key
    4. Default: False
    """
    if _VERBOSE is not None:
        return _VERBOSE

    env_verbose = os.getenv(ENV_PREFIX + "VERBOSE")
    if env_verbose:
        return env_verbose.lower() in ("1", "true", "yes", "on")

    return bool(get_config_table().get("verbose", False))
