"""Place parsed tasks on a timeline.

Each assignee is modelled as a serial queue: tasks run back to back in the
order they appear in the export. Jira does not write backlog rank to the CSV,
so export order is the only order available and no reordering is attempted.
"""
from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional

from .config import Config
from .csv_schema import TaskRecord
from .errors import SchedulingWarning
from .logging_utils import get_logger

logger = get_logger(__name__)


class AnchorSource(enum.Enum):
    GLOBAL = "global"
    CREATED = "created"
    DEFAULT = "default"


@dataclass(frozen=True)
class ResolvedTask:
    record: TaskRecord
    start: date
    end: date

    @property
    def key(self) -> str:
        return self.record.key

    @property
    def assignee(self) -> str:
        return self.record.assignee

    @property
    def closed(self) -> bool:
        return self.record.closed

    @property
    def days(self) -> int:
        return (self.end - self.start).days


@dataclass
class Partition:
    assignee: str
    anchor: AnchorSource
    tasks: List[ResolvedTask] = field(default_factory=list)

    @property
    def earliest_start(self) -> Optional[date]:
        return min((t.start for t in self.tasks), default=None)


@dataclass
class ScheduleResult:
    partitions: List[Partition] = field(default_factory=list)
    warnings: List[SchedulingWarning] = field(default_factory=list)

    @property
    def tasks(self) -> List[ResolvedTask]:
        return [t for p in self.partitions for t in p.tasks]


def estimate_days(estimate: timedelta, config: Optional[Config] = None) -> int:
    """Whole calendar days a task occupies: working time rounded up to days."""
    config = config or Config()
    seconds = estimate.total_seconds()
    if seconds <= 0:
        return 0
    return int(math.ceil(seconds / config.seconds_per_day))


def partition_by_assignee(records: Iterable[TaskRecord]) -> Dict[str, List[TaskRecord]]:
    """Group records by assignee, keeping first-seen assignee order and row order."""
    out: Dict[str, List[TaskRecord]] = {}
    for rec in records:
        out.setdefault(rec.assignee, []).append(rec)
    return out


def resolve_schedule(
    records: Iterable[TaskRecord],
    start_date: Optional[date] = None,
    config: Optional[Config] = None,
    today: Optional[date] = None,
) -> ScheduleResult:
    """Compute start/end for every record.

    The first task of each assignee starts at `start_date` when given, else at
    its own created date, else at the default date. The default date is the
    earliest created date in the whole export; when no record has one, the
    configured default (or `today`) is used and a SchedulingWarning is
    recorded for that assignee.
    """
    config = config or Config()
    records = list(records)
    partitions = partition_by_assignee(records)

    created_dates = [r.created for r in records if r.created is not None]
    if created_dates:
        default_date = min(created_dates)
        default_is_fallback = False
    else:
        default_date = config.default_start_date or today or date.today()
        default_is_fallback = True

    result = ScheduleResult()
    for assignee, recs in partitions.items():
        first = recs[0]
        if start_date is not None:
            anchor, source = start_date, AnchorSource.GLOBAL
        elif first.created is not None:
            anchor, source = first.created, AnchorSource.CREATED
        else:
            anchor, source = default_date, AnchorSource.DEFAULT
            if default_is_fallback:
                result.warnings.append(SchedulingWarning(
                    assignee=assignee,
                    anchor=anchor.isoformat(),
                    message=f"no start or created date available; anchored on default date {anchor.isoformat()}",
                ))

        part = Partition(assignee=assignee, anchor=source)
        cursor = anchor
        for rec in recs:
            try:
                end = cursor + timedelta(days=estimate_days(rec.estimate, config))
            except OverflowError:
                result.warnings.append(SchedulingWarning(
                    assignee=assignee,
                    anchor=anchor.isoformat(),
                    message=f"queue runs past {date.max.isoformat()} at {rec.key}; its end date is clamped",
                ))
                end = date.max
            part.tasks.append(ResolvedTask(record=rec, start=cursor, end=end))
            cursor = end
        logger.debug(
            f"Scheduled {len(part.tasks)} task(s) for '{assignee or 'unassigned'}' "
            f"from {anchor.isoformat()} ({source.value} anchor)"
        )
        result.partitions.append(part)

    return result
