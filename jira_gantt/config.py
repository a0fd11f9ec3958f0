from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import List, Optional

import yaml

# Simple module-level defaults (can be used without YAML)
DEFAULT_ENCODING: str = "utf-8"
DEFAULT_MAX_BANNER_LINES: int = 50
DEFAULT_MAX_CONTINUATION_LINES: int = 20
DEFAULT_HOURS_PER_DAY: float = 8.0
DEFAULT_DAYS_PER_WEEK: float = 5.0
DEFAULT_MAX_ESTIMATE_DAYS: int = 3650
DEFAULT_UNASSIGNED_LABEL: str = "Unassigned"
FORMAT_VERSION: str = "1.0"

DEFAULT_OPEN_STATUSES: List[str] = [
    "open",
    "to do",
    "backlog",
    "selected for development",
    "in progress",
    "in review",
    "reopened",
]
DEFAULT_CLOSED_STATUSES: List[str] = ["done", "closed", "resolved"]

CONFIG_FILENAMES = ("jira_gantt.yaml", "jira_gantt.yml")


@dataclass
class Config:
    # Export decoding / normalization
    encoding: str = DEFAULT_ENCODING
    max_banner_lines: int = DEFAULT_MAX_BANNER_LINES
    max_continuation_lines: int = DEFAULT_MAX_CONTINUATION_LINES

    # Jira time tracking: estimates are in working time
    hours_per_day: float = DEFAULT_HOURS_PER_DAY
    days_per_week: float = DEFAULT_DAYS_PER_WEEK
    # Longer estimates are rejected as row errors
    max_estimate_days: int = DEFAULT_MAX_ESTIMATE_DAYS

    # Status vocabulary (matched case-insensitively)
    open_statuses: List[str] = field(default_factory=lambda: list(DEFAULT_OPEN_STATUSES))
    closed_statuses: List[str] = field(default_factory=lambda: list(DEFAULT_CLOSED_STATUSES))

    # Scheduling / grouping
    default_start_date: Optional[date] = None
    unassigned_label: str = DEFAULT_UNASSIGNED_LABEL

    # Output
    title: str = ""
    format_version: str = FORMAT_VERSION

    @property
    def seconds_per_day(self) -> float:
        return self.hours_per_day * 3600.0


def _as_date(value: object) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def load_config_from_yaml(path: str | None) -> Config:
    """Load a Config from YAML. If path is None, return defaults."""
    if path is None:
        return Config()

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file '{path}' must hold a mapping, not {type(data).__name__}")
    # Shallow mapping; unknown keys are ignored
    try:
        return _config_from_mapping(data)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid value in config file '{path}': {e}") from e


def _config_from_mapping(data: dict) -> Config:
    return Config(
        encoding = str(data.get("encoding", DEFAULT_ENCODING)),
        max_banner_lines = int(data.get("max_banner_lines", DEFAULT_MAX_BANNER_LINES)),
        max_continuation_lines = int(data.get("max_continuation_lines", DEFAULT_MAX_CONTINUATION_LINES)),
        hours_per_day = float(data.get("hours_per_day", DEFAULT_HOURS_PER_DAY)),
        days_per_week = float(data.get("days_per_week", DEFAULT_DAYS_PER_WEEK)),
        max_estimate_days = int(data.get("max_estimate_days", DEFAULT_MAX_ESTIMATE_DAYS)),
        open_statuses = [str(s) for s in data.get("open_statuses", DEFAULT_OPEN_STATUSES)],
        closed_statuses = [str(s) for s in data.get("closed_statuses", DEFAULT_CLOSED_STATUSES)],
        default_start_date = _as_date(data.get("default_start_date")),
        unassigned_label = str(data.get("unassigned_label", DEFAULT_UNASSIGNED_LABEL)),
        title = str(data.get("title", "") or ""),
        format_version = str(data.get("format_version", FORMAT_VERSION)),
    )


def load_default_config() -> Config:
    """Load `jira_gantt.yaml` or `jira_gantt.yml` from the CWD.

    Falls back to defaults when no file is found.
    """
    for name in CONFIG_FILENAMES:
        p = Path.cwd() / name
        if p.exists():
            return load_config_from_yaml(str(p))
    return Config()
