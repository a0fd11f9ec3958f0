"""Export bytes in, schedule document out.

normalize -> parse -> resolve -> group -> build document. Each stage runs to
completion before the next one starts. Row and scheduling problems are
collected on the RunReport; only FormatError stops a run.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional, Union

from .aggregator import Group, build_groups
from .config import Config
from .csv_parser import parse_records
from .errors import RowError, SchedulingWarning
from .logging_utils import get_logger
from .normalizer import NormalizedExport, normalize_export
from .output_schema import ScheduleDocument, build_document, dumps_chart_data, dumps_document, to_chart_data
from .scheduler import AnchorSource, resolve_schedule
from .xlsx_writer import render_workbook

logger = get_logger(__name__)

OUTPUT_FORMATS = ("schedule", "chart-data", "xlsx")


@dataclass
class RunReport:
    document: ScheduleDocument
    groups: List[Group]
    normalized: NormalizedExport
    rows_total: int = 0
    rows_parsed: int = 0
    row_errors: List[RowError] = field(default_factory=list)
    scheduling_warnings: List[SchedulingWarning] = field(default_factory=list)
    default_anchors: int = 0

    @property
    def rows_skipped(self) -> int:
        return len(self.row_errors)

    def log_summary(self, log: Optional[logging.Logger] = None) -> None:
        log = log or logger
        for err in self.row_errors:
            log.warning(f"Skipped {err}")
        for warn in self.scheduling_warnings:
            log.warning(f"Scheduling: {warn}")
        log.info(
            f"Processed {self.rows_parsed} row(s), skipped {self.rows_skipped}; "
            f"{len(self.groups)} group(s), {self.default_anchors} default anchor date(s) used"
        )


def convert(
    data: bytes,
    start_date: Optional[date] = None,
    config: Optional[Config] = None,
    today: Optional[date] = None,
    generated_at: Optional[datetime] = None,
) -> RunReport:
    """Run the whole pipeline over raw export bytes."""
    config = config or Config()

    normalized = normalize_export(data, config)
    logger.info(f"Export header has {len(normalized.header)} column(s), {len(normalized.records)} record(s)")

    parsed = parse_records(normalized, config)
    schedule = resolve_schedule(parsed.records, start_date=start_date, config=config, today=today)
    groups = build_groups(schedule.partitions, config)
    document = build_document(
        groups,
        title=config.title,
        generated_at=generated_at,
        format_version=config.format_version,
    )

    return RunReport(
        document=document,
        groups=groups,
        normalized=normalized,
        rows_total=parsed.rows_total,
        rows_parsed=len(parsed.records),
        row_errors=list(parsed.errors),
        scheduling_warnings=list(schedule.warnings),
        default_anchors=sum(1 for p in schedule.partitions if p.anchor is AnchorSource.DEFAULT),
    )


def render(report: RunReport, fmt: str = "schedule") -> Union[str, bytes]:
    """Serialize a run in one of OUTPUT_FORMATS."""
    if fmt == "schedule":
        return dumps_document(report.document)
    if fmt == "chart-data":
        return dumps_chart_data(to_chart_data(report.groups, title=report.document.title))
    if fmt == "xlsx":
        return render_workbook(report.groups, title=report.document.title)
    raise ValueError(f"Unknown output format '{fmt}' (expected one of {', '.join(OUTPUT_FORMATS)})")
