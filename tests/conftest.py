from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

import pytest

from jira_gantt.config import Config
from jira_gantt.csv_schema import StatusClass, TaskRecord

HEADER = "Issue key,Status,Assignee,Original Estimate,Created"

DAY = timedelta(hours=8)


def export_bytes(*rows: str, banner: str = "", footer: str = "", header: str = HEADER) -> bytes:
    """Build a Jira-style export: optional banner, header, rows, optional footer."""
    lines = []
    if banner:
        lines.append(banner)
    lines.append(header)
    lines.extend(rows)
    if footer:
        lines.append(footer)
    return ("\n".join(lines) + "\n").encode("utf-8")


def make_record(
    key: str,
    assignee: str = "Alice",
    days: float = 1,
    closed: bool = False,
    created: Optional[date] = None,
    estimated: bool = True,
    summary: str = "",
) -> TaskRecord:
    return TaskRecord(
        key=key,
        status="Done" if closed else "In Progress",
        status_class=StatusClass.CLOSED if closed else StatusClass.OPEN,
        assignee=assignee,
        estimate=DAY * days,
        estimated=estimated,
        created=created,
        summary=summary,
    )


@pytest.fixture
def config() -> Config:
    return Config()
