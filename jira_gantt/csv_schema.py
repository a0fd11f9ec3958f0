"""
CSV schema and header utilities
--------------------------------
Canonical column names for the Jira issue export, the status vocabulary and
the typed record produced by the parser.
"""
from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional

# Jira issue keys look like "PROJ-123"
ISSUE_KEY_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_]*-\d+$")


@dataclass(frozen=True)
class CSVSchema:
    # Required columns
    key_col: str = "Issue key"
    status_col: str = "Status"
    assignee_col: str = "Assignee"
    estimate_col: str = "Original Estimate"

    # Optional columns
    created_col: str = "Created"
    summary_col: str = "Summary"

    @property
    def required(self) -> List[str]:
        return [self.key_col, self.status_col, self.assignee_col, self.estimate_col]

    @property
    def optional(self) -> List[str]:
        return [self.created_col, self.summary_col]


def norm_header(s: object) -> str:
    """Lower-case a header cell and drop BOMs and surrounding whitespace."""
    return str(s).replace("\ufeff", "").strip().lower()


def missing_columns(headers: Iterable[object], schema: Optional[CSVSchema] = None) -> List[str]:
    """Return the required columns not present in `headers` (case-insensitive)."""
    schema = schema or CSVSchema()
    available = {norm_header(h) for h in headers}
    return [c for c in schema.required if norm_header(c) not in available]


def map_columns(headers: Iterable[object], schema: Optional[CSVSchema] = None) -> Dict[str, str]:
    """Map canonical column names to the actual header labels.

    Only the first occurrence of a duplicated header is used; Jira repeats
    some columns (e.g. Sprint) and pandas suffixes the extra copies.
    """
    schema = schema or CSVSchema()
    available: Dict[str, str] = {}
    for h in headers:
        available.setdefault(norm_header(h), str(h))
    out: Dict[str, str] = {}
    for canon in schema.required + schema.optional:
        actual = available.get(norm_header(canon))
        if actual is not None:
            out[canon] = actual
    return out


class StatusClass(enum.Enum):
    OPEN = "open"
    CLOSED = "closed"


class StatusVocabulary:
    """Closed mapping of status text to StatusClass."""

    def __init__(self, open_statuses: Iterable[str], closed_statuses: Iterable[str]):
        self._lookup: Dict[str, StatusClass] = {}
        for s in open_statuses:
            self._lookup[norm_header(s)] = StatusClass.OPEN
        for s in closed_statuses:
            self._lookup[norm_header(s)] = StatusClass.CLOSED

    def classify(self, status: str) -> Optional[StatusClass]:
        return self._lookup.get(norm_header(status))


@dataclass(frozen=True)
class TaskRecord:
    key: str
    status: str
    status_class: StatusClass
    assignee: str
    estimate: timedelta
    estimated: bool = True
    created: Optional[date] = None
    summary: str = ""
    row: int = 0

    @property
    def closed(self) -> bool:
        return self.status_class is StatusClass.CLOSED
