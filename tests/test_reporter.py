import json
import time
from pathlib import Path

from dataimport.reporter import createEmptyReport, finalizeReport, writeReportJson


def test_add_item_respects_limit():
    report = createEmptyReport(runId="r1", command="import", configSources=[])
    report.meta.items_limit = 2

    for row in range(3):
        report.add_item({"row": row, "status": "skipped"})

    assert [item["row"] for item in report.items] == [0, 1]
    assert report.meta.items_truncated is True


def test_add_item_without_limit_keeps_everything():
    report = createEmptyReport(runId="r1", command="import", configSources=[])

    for row in range(5):
        report.add_item({"row": row})

    assert len(report.items) == 5
    assert report.meta.items_truncated is False


def test_report_is_written_as_json(tmp_path: Path):
    report = createEmptyReport(runId="r2", command="count", configSources=["env"])
    report.summary.rows_total = 7
    finalizeReport(report, startedMonotonic=time.monotonic(), logFile="count_r2.log", reportDir=str(tmp_path))

    path = writeReportJson(report, str(tmp_path), "report_count_r2")

    data = json.loads(Path(path).read_text(encoding="utf-8"))
    assert data["meta"]["run_id"] == "r2"
    assert data["meta"]["config_sources"] == ["env"]
    assert data["meta"]["duration_ms"] >= 0
    assert data["summary"]["rows_total"] == 7
    assert data["items"] == []
