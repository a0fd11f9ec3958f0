import json
from datetime import date, datetime, timezone

import pytest

from jira_gantt.aggregator import build_groups
from jira_gantt.errors import SchemaError
from jira_gantt.output_schema import (
    DOCUMENT_FIELDS,
    TASK_FIELDS,
    build_document,
    document_to_dict,
    dumps_document,
    loads_document,
    to_chart_data,
)
from jira_gantt.scheduler import resolve_schedule

from .conftest import make_record

GENERATED = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def groups():
    recs = [
        make_record("PROJ-1", "Alice", days=3, closed=True, summary="Login page"),
        make_record("PROJ-2", "Alice", days=0, estimated=False),
        make_record("PROJ-3", "", days=1),
    ]
    return build_groups(resolve_schedule(recs, start_date=date(2024, 1, 1)).partitions)


def test_document_layout(groups):
    doc = build_document(groups, title="Sprint 7", generated_at=GENERATED)
    data = json.loads(dumps_document(doc))
    assert list(data) == DOCUMENT_FIELDS
    assert data["format_version"] == "1.0"
    assert data["generated_at"] == "2024-05-01T12:00:00+00:00"
    assert data["title"] == "Sprint 7"
    assert [g["name"] for g in data["groups"]] == ["Alice", "Unassigned"]
    first = data["groups"][0]["tasks"][0]
    assert list(first) == TASK_FIELDS
    assert first == {
        "id": "PROJ-1",
        "label": "PROJ-1: Login page",
        "group": "Alice",
        "start": "2024-01-01",
        "end": "2024-01-04",
        "complete": True,
    }
    milestone = data["groups"][0]["tasks"][1]
    assert milestone["label"] == "PROJ-2"
    assert milestone["start"] == milestone["end"] == "2024-01-04"
    assert milestone["complete"] is False
    assert data["groups"][1]["tasks"][0]["group"] == "Unassigned"


def test_generated_at_defaults_to_now_utc(groups):
    doc = build_document(groups)
    assert doc.generated_at.tzinfo is not None
    assert doc.task_count == 3


def test_round_trip(groups):
    doc = build_document(groups, generated_at=GENERATED)
    again = loads_document(dumps_document(doc))
    assert again == doc
    assert dumps_document(again) == dumps_document(doc)


def test_round_trip_keeps_non_ascii_labels():
    recs = [make_record("PROJ-1", "Zoë", summary="Überprüfung, \"quoted\"\nnext line")]
    doc = build_document(build_groups(resolve_schedule(recs, start_date=date(2024, 1, 1)).partitions), generated_at=GENERATED)
    assert loads_document(dumps_document(doc)) == doc


def _valid_dict(groups):
    return document_to_dict(build_document(groups, generated_at=GENERATED))


def test_reader_rejects_unknown_field(groups):
    data = _valid_dict(groups)
    data["groups"][0]["tasks"][0]["color"] = "red"
    with pytest.raises(SchemaError, match="unknown"):
        loads_document(json.dumps(data))


def test_reader_rejects_missing_field(groups):
    data = _valid_dict(groups)
    del data["groups"][0]["tasks"][0]["end"]
    with pytest.raises(SchemaError, match="missing"):
        loads_document(json.dumps(data))


@pytest.mark.parametrize(
    "field, value",
    [
        ("start", "01/Jan/24"),
        ("complete", "yes"),
        ("complete", 1),
        ("id", 7),
        ("end", "2023-12-31"),
        ("group", "Bob"),
    ],
)
def test_reader_rejects_bad_values(groups, field, value):
    data = _valid_dict(groups)
    data["groups"][0]["tasks"][0][field] = value
    with pytest.raises(SchemaError):
        loads_document(json.dumps(data))


def test_reader_rejects_non_json():
    with pytest.raises(SchemaError):
        loads_document("{not json")
    with pytest.raises(SchemaError):
        loads_document("[]")


def test_chart_data_layout(groups):
    chart = to_chart_data(groups, title="Sprint 7")
    assert chart["title"] == "Sprint 7"
    assert chart["resources"] == ["Alice", "Unassigned"]
    assert chart["markedDate"] is None
    assert chart["items"] == [
        {"title": "PROJ-1", "startDate": "2024-01-01", "duration": 3, "resourceIndex": 0, "open": False},
        {"title": "PROJ-2", "startDate": None, "duration": None, "resourceIndex": 0, "open": True},
        {"title": "PROJ-3", "startDate": "2024-01-01", "duration": 1, "resourceIndex": 1, "open": True},
    ]
