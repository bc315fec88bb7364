"""End-to-end tests for directory conversion."""

import csv
import json
from pathlib import Path

import pytest

from dorislift.services.sql_conversion import ConversionOrchestrator, UnsupportedDialectError
from dorislift.utils.path_utils import converted_root

FILE_A = """-- session settings
SET spark.sql.shuffle.partitions=10;

CREATE TABLE t1 (id INT, name STRING) USING parquet;

SELECT id FROM t1 DISTRIBUTE BY id;
"""

FILE_B = """SELECT 1;
SELECT * FROM (SELECT 1;
"""


@pytest.fixture
def source_dir(tmp_path):
    src = tmp_path / "src"
    (src / "sub").mkdir(parents=True)
    (src / "a.sql").write_text(FILE_A, encoding="utf-8")
    (src / "sub" / "b.SQL").write_text(FILE_B, encoding="utf-8")
    (src / "empty.sql").write_text("-- nothing to convert\n", encoding="utf-8")
    (src / "notes.txt").write_text("SELECT 1;", encoding="utf-8")
    return src


def _run(source_dir, out, **kwargs):
    orchestrator = ConversionOrchestrator("spark", "doris", **kwargs)
    return orchestrator.convert(str(source_dir), output_dir_override=str(out))


def test_convert_directory(source_dir, tmp_path):
    out = tmp_path / "out"
    result = _run(source_dir, out)

    assert result["status"] == "partial_success"
    assert result["output_dir"] == str(out)
    stats = result["stats"]
    assert stats["total_files"] == 3
    assert stats["files_successful"] == 1
    assert stats["files_partial"] == 1
    assert stats["files_skipped"] == 1
    assert stats["files_failed"] == 0
    assert stats["total_statements"] == 5
    assert stats["statements_converted"] == 3
    assert stats["statements_skipped"] == 1
    assert stats["statements_with_errors"] == 1

    by_name = {f["file_name"]: f for f in result["file_results"]}
    assert by_name["a.sql"]["status"] == "success"
    assert by_name["sub/b.SQL"]["status"] == "partial_success"
    assert by_name["empty.sql"]["status"] == "skipped"


def test_converted_file_contents(source_dir, tmp_path):
    out = tmp_path / "out"
    _run(source_dir, out, pretty=False)

    converted_a = (out / "a.sql").read_text(encoding="utf-8")
    assert "SET " not in converted_a
    assert "DUPLICATE KEY(id)" in converted_a
    assert "DISTRIBUTE BY" not in converted_a
    assert "SELECT id FROM t1;" in converted_a
    assert converted_a.endswith(";\n")

    converted_b = (out / "sub" / "b.SQL").read_text(encoding="utf-8")
    assert converted_b.startswith("SELECT 1;")
    assert "-- CONVERSION ERROR (statement 2, line 2)" in converted_b
    assert "-- SELECT * FROM (SELECT 1" in converted_b

    assert not (out / "empty.sql").exists()


def test_reports_written(source_dir, tmp_path):
    out = tmp_path / "out"
    result = _run(source_dir, out)

    summary = json.loads(Path(result["summary_file"]).read_text(encoding="utf-8"))
    assert summary["source_dialect"] == "spark"
    assert summary["overall_statistics"] == result["stats"]
    assert len(summary["files"]) == 3

    with open(result["report_file"], newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == 5
    assert {row["status"] for row in rows} == {"success", "skipped", "error"}
    error_row = next(row for row in rows if row["status"] == "error")
    assert error_row["file"] == "sub/b.SQL"
    assert error_row["line"] == "2"
    assert error_row["error"]

    review = json.loads(Path(result["manual_review_file"]).read_text(encoding="utf-8"))
    review_types = {item["issue_type"] for item in review["review_items"]}
    assert {"TABLE_PROPERTY_DROPPED", "QUERY_CLAUSE_REMOVED"} <= review_types
    assert all(item["file_path"] == "a.sql" for item in review["review_items"])


def test_cleanup_script(source_dir, tmp_path):
    out = tmp_path / "out"
    result = _run(source_dir, out, generate_cleanup=True)

    cleanup = Path(result["cleanup_file"])
    assert cleanup.name == "00_cleanup.sql"
    assert cleanup.read_text(encoding="utf-8") == "DROP TABLE IF EXISTS t1;\n"


def test_cleanup_disabled_by_default(source_dir, tmp_path):
    result = _run(source_dir, tmp_path / "out")
    assert result["cleanup_file"] is None
    assert not (tmp_path / "out" / "00_cleanup.sql").exists()


def test_single_file_input(source_dir, tmp_path):
    out = tmp_path / "out"
    orchestrator = ConversionOrchestrator("spark", "doris")
    result = orchestrator.convert(str(source_dir / "a.sql"), output_dir_override=str(out))

    assert result["status"] == "success"
    assert (out / "a.sql").is_file()


def test_default_output_directory(source_dir):
    orchestrator = ConversionOrchestrator("spark", "doris")
    result = orchestrator.convert(str(source_dir))

    run_dir = Path(result["output_dir"])
    assert run_dir.parent == converted_root()
    assert run_dir.name.startswith("spark_doris_")
    assert (run_dir / "conversion_summary.json").is_file()


def test_no_sql_files(tmp_path):
    orchestrator = ConversionOrchestrator("spark", "doris")
    result = orchestrator.convert(str(tmp_path))

    assert result["status"] == "error"
    assert result["output_dir"] is None
    assert result["file_results"] == []


def test_all_files_failing(tmp_path):
    src = tmp_path / "src"
    src.mkdir()
    (src / "bad.sql").write_text("SELECT * FROM (SELECT 1;", encoding="utf-8")

    result = _run(src, tmp_path / "out")

    assert result["status"] == "error"
    assert result["stats"]["files_failed"] == 1
    assert "-- CONVERSION ERROR" in (tmp_path / "out" / "bad.sql").read_text(encoding="utf-8")


def test_unknown_dialect():
    with pytest.raises(UnsupportedDialectError):
        ConversionOrchestrator("cobol", "doris")


@pytest.mark.parametrize(
    "statement",
    [
        "SET spark.sql.shuffle.partitions=10",
        "RESET",
        "CACHE TABLE t1",
        "UNCACHE TABLE IF EXISTS t1",
        "CLEAR CACHE",
        "REFRESH TABLE t1",
        "MSCK REPAIR TABLE t1",
        "ANALYZE TABLE t1 COMPUTE STATISTICS",
        "ADD JAR /tmp/udfs.jar",
        "/* warm up */\nCACHE TABLE t1",
    ],
)
def test_spark_session_commands_are_skipped(statement, tmp_path):
    src = tmp_path / "src"
    src.mkdir()
    (src / "job.sql").write_text(f"{statement};\nSELECT 1;\n", encoding="utf-8")

    result = _run(src, tmp_path / "out")

    assert result["stats"]["statements_skipped"] == 1
    assert result["stats"]["statements_converted"] == 1
    assert (tmp_path / "out" / "job.sql").read_text(encoding="utf-8") == "SELECT 1;\n"
