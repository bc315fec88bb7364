"""API tests through FastAPI's TestClient."""

import pytest
from fastapi.testclient import TestClient

from dorislift import app
from dorislift.api import routes

client = TestClient(app)


def test_root():
    response = client.get("/api/v1/")
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "API is running"
    assert body["source_dialect"] == "spark"
    assert body["target_dialect"] == "doris"


def test_dialects():
    response = client.get("/api/v1/dialects")
    assert response.status_code == 200
    assert "doris" in response.json()["dialects"]


def test_transpile():
    response = client.post("/api/v1/sql/transpile", json={"sql": "SELECT a FROM t DISTRIBUTE BY a; SELECT 2"})
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "success"
    assert body["statements"] == ["SELECT a FROM t", "SELECT 2"]
    assert body["sql"] == "SELECT a FROM t;\nSELECT 2"


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"sql": ""},
        {"sql": "SELECT 1", "source_dialect": "cobol"},
        {"sql": "SELECT * FROM (SELECT 1"},
    ],
)
def test_transpile_bad_requests(payload):
    response = client.post("/api/v1/sql/transpile", json=payload)
    assert response.status_code == 400
    assert response.json()["error"]


def test_batch():
    response = client.post("/api/v1/sql/batch", json={"items": ["SELECT 1", {"id": "x", "sql": "SELECT * FROM (SELECT 1"}]})
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "partial_success"
    assert body["stats"]["failed"] == 1


@pytest.mark.parametrize("items", [None, [], "SELECT 1"])
def test_batch_requires_non_empty_list(items):
    response = client.post("/api/v1/sql/batch", json={"items": items})
    assert response.status_code == 400


def test_convert_and_latest_run(tmp_path):
    src = tmp_path / "src"
    src.mkdir()
    (src / "a.sql").write_text("CREATE TABLE t1 (id INT);\nSELECT 1;\n", encoding="utf-8")

    response = client.post(
        "/api/v1/sql/convert",
        json={"input_path": str(src), "generate_cleanup": True},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "success"
    assert body["stats"]["statements_converted"] == 2
    assert "duration_s" in body
    assert body["cleanup_file"].endswith("00_cleanup.sql")

    latest = client.get("/api/v1/sql/runs/latest")
    assert latest.status_code == 200
    assert latest.json()["summary"]["overall_statistics"]["total_files"] == 1


def test_convert_with_output_dir(tmp_path):
    src = tmp_path / "src"
    src.mkdir()
    (src / "a.sql").write_text("SELECT 1;", encoding="utf-8")
    out = tmp_path / "out"

    response = client.post("/api/v1/sql/convert", json={"input_path": str(src), "output_dir": str(out)})
    assert response.status_code == 200
    assert (out / "a.sql").is_file()


def test_convert_missing_path(tmp_path):
    response = client.post("/api/v1/sql/convert", json={"input_path": str(tmp_path / "nope")})
    assert response.status_code == 404


def test_convert_requires_input_path():
    response = client.post("/api/v1/sql/convert", json={})
    assert response.status_code == 400


def test_convert_unknown_dialect(tmp_path):
    response = client.post("/api/v1/sql/convert", json={"input_path": str(tmp_path), "source_dialect": "cobol"})
    assert response.status_code == 400


def test_latest_run_none(tmp_path, monkeypatch):
    monkeypatch.setattr(routes, "converted_root", lambda: tmp_path / "empty")
    response = client.get("/api/v1/sql/runs/latest")
    assert response.status_code == 404


def test_guide_check_markdown():
    markdown = "SparkSQL:\n```sql\nSELECT 1\n```\nDoris SQL:\n```sql\nSELECT 1\n```\n"
    response = client.post("/api/v1/guide/check", json={"markdown": markdown, "verify": True})
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "pass"
    assert body["stats"]["verified"] == 1


def test_guide_check_path(tmp_path):
    guide = tmp_path / "guide.md"
    guide.write_text("SparkSQL:\n```sql\nSELECT 1\n```\n", encoding="utf-8")

    response = client.post("/api/v1/guide/check", json={"path": str(guide)})
    assert response.status_code == 200
    assert response.json()["status"] == "fail"

    missing = client.post("/api/v1/guide/check", json={"path": str(tmp_path / "nope.md")})
    assert missing.status_code == 404


def test_guide_check_requires_input():
    response = client.post("/api/v1/guide/check", json={})
    assert response.status_code == 400


def test_conversion_configs():
    response = client.get("/api/v1/config/conversion")
    assert response.status_code == 200
    body = response.json()
    assert "function_rules.json" in body["pairs"]["spark_doris"]
    assert body["default_pair"] == {"source_dialect": "spark", "target_dialect": "doris"}
