"""Error taxonomy for the export-to-schedule pipeline.

Fatal problems are exceptions (FormatError, SerializationError, SchemaError).
Recoverable problems are plain records (RowError, SchedulingWarning) that the
pipeline collects and reports once the run is over.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


class JiraGanttError(Exception):
    """Base class for fatal pipeline errors."""


class FormatError(JiraGanttError):
    """The export has no recognizable header / column contract."""


class SerializationError(JiraGanttError):
    """The output sink could not be written."""


class SchemaError(JiraGanttError):
    """A schedule document does not match the expected schema."""


@dataclass(frozen=True)
class RowError:
    """A data row that was dropped because a required field failed to parse."""
    row: Optional[int]
    key: str
    message: str

    def __str__(self) -> str:
        where = f"row {self.row}" if self.row is not None else "row ?"
        if self.key:
            where = f"{where} ({self.key})"
        return f"{where}: {self.message}"


@dataclass(frozen=True)
class SchedulingWarning:
    """An assignee queue had to fall back to the default anchor date."""
    assignee: str
    anchor: str
    message: str

    def __str__(self) -> str:
        return f"{self.assignee or 'unassigned'}: {self.message}"


__all__ = [
    "JiraGanttError",
    "FormatError",
    "SerializationError",
    "SchemaError",
    "RowError",
    "SchedulingWarning",
]
