"""
Schedule document schema
------------------------
The document handed to the charting component:

    {
      "format_version": "1.0",
      "generated_at": "2024-01-05T10:00:00+00:00",
      "title": "",
      "groups": [
        {"name": "Alice",
         "tasks": [{"id": "PROJ-1", "label": "PROJ-1: Login page", "group": "Alice",
                    "start": "2024-01-01", "end": "2024-01-04", "complete": true}]}
      ]
    }

`dumps_document` writes it and `loads_document` reads it back, checking the
field set exactly.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from .aggregator import Group
from .config import FORMAT_VERSION
from .errors import SchemaError

# Exact field sets, in output order
DOCUMENT_FIELDS: List[str] = ["format_version", "generated_at", "title", "groups"]
GROUP_FIELDS: List[str] = ["name", "tasks"]
TASK_FIELDS: List[str] = ["id", "label", "group", "start", "end", "complete"]


@dataclass(frozen=True)
class DocumentTask:
    id: str
    label: str
    group: str
    start: date
    end: date
    complete: bool


@dataclass
class DocumentGroup:
    name: str
    tasks: List[DocumentTask] = field(default_factory=list)


@dataclass
class ScheduleDocument:
    groups: List[DocumentGroup]
    generated_at: datetime
    format_version: str = FORMAT_VERSION
    title: str = ""

    @property
    def task_count(self) -> int:
        return sum(len(g.tasks) for g in self.groups)


def task_label(key: str, summary: str) -> str:
    return f"{key}: {summary}" if summary else key


def build_document(
    groups: List[Group],
    title: str = "",
    generated_at: Optional[datetime] = None,
    format_version: str = FORMAT_VERSION,
) -> ScheduleDocument:
    """Project ordered groups onto the document schema."""
    if generated_at is None:
        generated_at = datetime.now(timezone.utc).replace(microsecond=0)
    doc_groups: List[DocumentGroup] = []
    for g in groups:
        doc_groups.append(DocumentGroup(
            name=g.name,
            tasks=[
                DocumentTask(
                    id=t.key,
                    label=task_label(t.key, t.record.summary),
                    group=g.name,
                    start=t.start,
                    end=t.end,
                    complete=t.closed,
                )
                for t in g.tasks
            ],
        ))
    return ScheduleDocument(
        groups=doc_groups,
        generated_at=generated_at,
        format_version=format_version,
        title=title,
    )


def document_to_dict(doc: ScheduleDocument) -> Dict[str, Any]:
    return {
        "format_version": doc.format_version,
        "generated_at": doc.generated_at.isoformat(),
        "title": doc.title,
        "groups": [
            {
                "name": g.name,
                "tasks": [
                    {
                        "id": t.id,
                        "label": t.label,
                        "group": t.group,
                        "start": t.start.isoformat(),
                        "end": t.end.isoformat(),
                        "complete": t.complete,
                    }
                    for t in g.tasks
                ],
            }
            for g in doc.groups
        ],
    }


def dumps_document(doc: ScheduleDocument) -> str:
    return json.dumps(document_to_dict(doc), indent=2, ensure_ascii=False) + "\n"


def _check_fields(obj: Any, expected: List[str], where: str) -> Dict[str, Any]:
    if not isinstance(obj, dict):
        raise SchemaError(f"{where}: expected an object, got {type(obj).__name__}")
    missing = [k for k in expected if k not in obj]
    unknown = [k for k in obj if k not in expected]
    if missing:
        raise SchemaError(f"{where}: missing field(s) {', '.join(missing)}")
    if unknown:
        raise SchemaError(f"{where}: unknown field(s) {', '.join(unknown)}")
    return obj


def _expect(value: Any, kind: type, where: str) -> Any:
    # bool is an int subclass; keep the two apart
    if not isinstance(value, kind) or (kind is not bool and isinstance(value, bool)):
        raise SchemaError(f"{where}: expected {kind.__name__}, got {type(value).__name__}")
    return value


def _parse_date(value: Any, where: str) -> date:
    _expect(value, str, where)
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise SchemaError(f"{where}: {e}") from e


def document_from_dict(data: Any) -> ScheduleDocument:
    """Validate a decoded document and rebuild it."""
    _check_fields(data, DOCUMENT_FIELDS, "document")
    try:
        generated_at = datetime.fromisoformat(_expect(data["generated_at"], str, "generated_at"))
    except ValueError as e:
        raise SchemaError(f"generated_at: {e}") from e

    groups: List[DocumentGroup] = []
    for gi, g in enumerate(_expect(data["groups"], list, "groups")):
        _check_fields(g, GROUP_FIELDS, f"groups[{gi}]")
        name = _expect(g["name"], str, f"groups[{gi}].name")
        tasks: List[DocumentTask] = []
        for ti, t in enumerate(_expect(g["tasks"], list, f"groups[{gi}].tasks")):
            where = f"groups[{gi}].tasks[{ti}]"
            _check_fields(t, TASK_FIELDS, where)
            task = DocumentTask(
                id=_expect(t["id"], str, f"{where}.id"),
                label=_expect(t["label"], str, f"{where}.label"),
                group=_expect(t["group"], str, f"{where}.group"),
                start=_parse_date(t["start"], f"{where}.start"),
                end=_parse_date(t["end"], f"{where}.end"),
                complete=_expect(t["complete"], bool, f"{where}.complete"),
            )
            if task.end < task.start:
                raise SchemaError(f"{where}: end {task.end} is before start {task.start}")
            if task.group != name:
                raise SchemaError(f"{where}: task group '{task.group}' does not match '{name}'")
            tasks.append(task)
        groups.append(DocumentGroup(name=name, tasks=tasks))

    return ScheduleDocument(
        groups=groups,
        generated_at=generated_at,
        format_version=_expect(data["format_version"], str, "format_version"),
        title=_expect(data["title"], str, "title"),
    )


def loads_document(text: str) -> ScheduleDocument:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SchemaError(f"not a JSON document: {e}") from e
    return document_from_dict(data)


def to_chart_data(groups: List[Group], title: str = "") -> Dict[str, Any]:
    """Render groups in the legacy Gantt chart-data layout.

    Resources are the group names. Only the first item of each resource
    carries a start date; the chart lays the rest out back to back from their
    durations. Unestimated tasks have no duration.
    """
    resources: List[str] = []
    items: List[Dict[str, Any]] = []
    for index, g in enumerate(groups):
        resources.append(g.name)
        for pos, t in enumerate(g.tasks):
            items.append({
                "title": t.key,
                "startDate": t.start.isoformat() if pos == 0 else None,
                "duration": t.days if t.record.estimated else None,
                "resourceIndex": index,
                "open": not t.closed,
            })
    return {
        "title": title,
        "resources": resources,
        "markedDate": None,
        "items": items,
    }


def dumps_chart_data(chart: Dict[str, Any]) -> str:
    return json.dumps(chart, indent=2, ensure_ascii=False) + "\n"
