import io
import json
import sys

import pytest

from jira_gantt.main import EXIT_FAILURE, EXIT_OK, run
from jira_gantt.output_schema import loads_document

from .conftest import export_bytes


@pytest.fixture
def export_file(tmp_path):
    path = tmp_path / "export.csv"
    path.write_bytes(export_bytes(
        "PROJ-1,Done,Alice,2d,",
        "PROJ-2,Blocked,Alice,1d,",
        "PROJ-3,Open,Alice,1d,",
        banner="Jira export 2024",
        footer="-- end --",
    ))
    return path


def test_writes_schedule_file(export_file, tmp_path):
    out = tmp_path / "out" / "schedule.json"
    assert run([str(export_file), str(out), "--start-date", "2024-03-01"]) == EXIT_OK
    doc = loads_document(out.read_text(encoding="utf-8"))
    (group,) = doc.groups
    assert group.name == "Alice"
    assert [(t.id, t.start.isoformat(), t.end.isoformat()) for t in group.tasks] == [
        ("PROJ-1", "2024-03-01", "2024-03-03"),
        ("PROJ-3", "2024-03-03", "2024-03-04"),
    ]


def test_chart_data_format_and_title(export_file, tmp_path):
    out = tmp_path / "chart.json"
    assert run([str(export_file), str(out), "-s", "2024-03-01", "-f", "chart-data", "-t", "Q1"]) == EXIT_OK
    chart = json.loads(out.read_text(encoding="utf-8"))
    assert chart["title"] == "Q1"
    assert chart["resources"] == ["Alice"]
    assert [i["title"] for i in chart["items"]] == ["PROJ-1", "PROJ-3"]


def test_xlsx_needs_output_file(export_file):
    assert run([str(export_file), "--format", "xlsx"]) == EXIT_FAILURE


def test_xlsx_output(export_file, tmp_path):
    out = tmp_path / "schedule.xlsx"
    assert run([str(export_file), str(out), "--format", "xlsx", "-s", "2024-03-01"]) == EXIT_OK
    assert out.read_bytes()[:2] == b"PK"


def test_stdin_to_stdout(monkeypatch, capsys):
    data = export_bytes("PROJ-1,Open,Alice,1d,01/Jan/24")
    monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(data)))
    assert run([]) == EXIT_OK
    doc = loads_document(capsys.readouterr().out)
    assert doc.groups[0].tasks[0].id == "PROJ-1"


def test_missing_header_fails(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_bytes(b"not,a,jira,export\n1,2,3,4\n")
    out = tmp_path / "out.json"
    assert run([str(path), str(out)]) == EXIT_FAILURE
    assert not out.exists()


def test_missing_input_fails(tmp_path):
    assert run([str(tmp_path / "nope.csv"), str(tmp_path / "out.json")]) == EXIT_FAILURE


def test_unwritable_output_fails(export_file, tmp_path):
    # a directory cannot be opened as a file
    assert run([str(export_file), str(tmp_path)]) == EXIT_FAILURE


def test_bad_start_date_is_usage_error(export_file):
    with pytest.raises(SystemExit) as exc:
        run([str(export_file), "--start-date", "01/03/2024"])
    assert exc.value.code == 2


def test_config_file(export_file, tmp_path):
    cfg = tmp_path / "cfg.yaml"
    cfg.write_text("closed_statuses: [Done, Blocked]\ntitle: From config\n", encoding="utf-8")
    out = tmp_path / "out.json"
    assert run([str(export_file), str(out), "-c", str(cfg), "-s", "2024-03-01"]) == EXIT_OK
    doc = loads_document(out.read_text(encoding="utf-8"))
    assert doc.title == "From config"
    assert [t.id for t in doc.groups[0].tasks] == ["PROJ-1", "PROJ-2", "PROJ-3"]


def test_missing_config_file_fails(export_file, tmp_path):
    assert run([str(export_file), "-c", str(tmp_path / "missing.yaml")]) == EXIT_FAILURE


@pytest.mark.parametrize("body", ["- not\n- a mapping\n", "just text\n", "max_banner_lines: null\n", "open_statuses: 3\n"])
def test_malformed_config_file_fails(export_file, tmp_path, body):
    cfg = tmp_path / "cfg.yaml"
    cfg.write_text(body, encoding="utf-8")
    assert run([str(export_file), str(tmp_path / "out.json"), "-c", str(cfg)]) == EXIT_FAILURE
