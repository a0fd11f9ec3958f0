from __future__ import annotations

import io
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import List, Optional, Set

import pandas as pd

from .config import Config
from .csv_schema import ISSUE_KEY_RE, CSVSchema, StatusVocabulary, TaskRecord, map_columns, missing_columns
from .errors import FormatError, RowError
from .logging_utils import get_logger
from .normalizer import NormalizedExport, render_record, split_fields

logger = get_logger(__name__)

# Jira duration notation, e.g. "1w 2d 4h 30m" (any subset, in this order)
DURATION_RE = re.compile(
    r"^\s*(?:(?P<w>\d+(?:\.\d+)?)\s*w)?"
    r"\s*(?:(?P<d>\d+(?:\.\d+)?)\s*d)?"
    r"\s*(?:(?P<h>\d+(?:\.\d+)?)\s*h)?"
    r"\s*(?:(?P<m>\d+(?:\.\d+)?)\s*m)?\s*$",
    re.IGNORECASE,
)

# The export writes dates like "01/Jan/24 9:30 AM"
CREATED_FORMATS = ("%d/%b/%y %I:%M %p", "%d/%b/%y")


@dataclass
class ParseResult:
    records: List[TaskRecord] = field(default_factory=list)
    errors: List[RowError] = field(default_factory=list)
    rows_total: int = 0

    @property
    def rows_skipped(self) -> int:
        return len(self.errors)


def parse_estimate(text: str, config: Optional[Config] = None) -> Optional[timedelta]:
    """Parse an Original Estimate cell.

    Blank => None (unestimated). A bare number is seconds, which is how Jira
    writes time tracking fields to CSV. Otherwise Jira's "1w 2d 4h 30m"
    notation is accepted, using working days and weeks from `config`.
    Raises ValueError for anything else, and for estimates longer than
    `config.max_estimate_days` working days.
    """
    config = config or Config()
    s = str(text).strip()
    if not s:
        return None
    if s.isdigit():
        seconds = float(s)
    else:
        m = DURATION_RE.match(s)
        if m is None or not any(m.group(g) for g in "wdhm"):
            raise ValueError(f"unparsable estimate '{s}'")
        weeks, days, hours, minutes = (float(m.group(g) or 0) for g in "wdhm")
        seconds = (
            weeks * config.days_per_week * config.seconds_per_day
            + days * config.seconds_per_day
            + hours * 3600.0
            + minutes * 60.0
        )
    if seconds > config.max_estimate_days * config.seconds_per_day:
        raise ValueError(f"unparsable estimate '{s}': longer than {config.max_estimate_days} days")
    return timedelta(seconds=seconds)


def parse_created(text: str) -> Optional[date]:
    """Parse the export's Created format; anything else counts as absent."""
    s = str(text).strip()
    if not s:
        return None
    for fmt in CREATED_FORMATS:
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    logger.debug(f"Ignoring created date in unexpected format: '{s}'")
    return None


def _read_frame(header: List[str], records: List[str]) -> pd.DataFrame:
    text = "\n".join([render_record(header)] + records) + "\n"
    df = pd.read_csv(
        io.StringIO(text),
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=False,
        engine="python",
    )
    return df.fillna("")


def parse_records(export: NormalizedExport, config: Optional[Config] = None, schema: Optional[CSVSchema] = None) -> ParseResult:
    """Parse normalized export records into TaskRecords.

    Rows that fail a required field are skipped and reported as RowErrors;
    a malformed optional field falls back to its absent value.
    """
    config = config or Config()
    schema = schema or CSVSchema()

    missing = missing_columns(export.header, schema)
    if missing:
        raise FormatError(f"Export is missing required column(s): {', '.join(missing)}")

    result = ParseResult(rows_total=len(export.records))
    width = len(export.header)

    # Rows of the wrong width would shift or blank columns in pandas; report them up front
    kept: List[str] = []
    ordinals: List[int] = []
    for ordinal, record in enumerate(export.records, start=1):
        fields = split_fields(record)
        if len(fields) != width:
            key = fields[0].strip() if fields else ""
            result.errors.append(RowError(ordinal, key, f"row has {len(fields)} fields, header has {width}"))
            continue
        kept.append(record)
        ordinals.append(ordinal)

    if not kept:
        logger.info("Export contains no parseable data rows")
        return result

    df = _read_frame(export.header, kept)
    cols = map_columns(df.columns, schema)
    vocab = StatusVocabulary(config.open_statuses, config.closed_statuses)
    seen: Set[str] = set()

    for ordinal, (_, row) in zip(ordinals, df.iterrows()):
        key = str(row[cols[schema.key_col]]).strip()
        if not key:
            result.errors.append(RowError(ordinal, "", "missing issue key"))
            continue
        if not ISSUE_KEY_RE.match(key):
            result.errors.append(RowError(ordinal, key, f"malformed issue key '{key}'"))
            continue
        if key in seen:
            result.errors.append(RowError(ordinal, key, "duplicate issue key"))
            continue

        status = str(row[cols[schema.status_col]]).strip()
        status_class = vocab.classify(status)
        if status_class is None:
            result.errors.append(RowError(ordinal, key, f"unrecognized status '{status}'"))
            continue

        try:
            estimate = parse_estimate(row[cols[schema.estimate_col]], config)
        except ValueError as e:
            result.errors.append(RowError(ordinal, key, str(e)))
            continue

        created = None
        if schema.created_col in cols:
            created = parse_created(row[cols[schema.created_col]])
        summary = ""
        if schema.summary_col in cols:
            summary = str(row[cols[schema.summary_col]]).strip()

        seen.add(key)
        result.records.append(TaskRecord(
            key=key,
            status=status,
            status_class=status_class,
            assignee=str(row[cols[schema.assignee_col]]).strip(),
            estimate=estimate if estimate is not None else timedelta(0),
            estimated=estimate is not None,
            created=created,
            summary=summary,
            row=ordinal,
        ))

    logger.info(f"Parsed {len(result.records)} of {result.rows_total} data rows ({result.rows_skipped} skipped)")
    return result
