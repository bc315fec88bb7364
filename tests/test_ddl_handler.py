"""Tests for Spark CREATE TABLE -> Doris table conversion."""

import sqlglot

from dorislift.services.sql_conversion.converters.declarative.ddl_handler import DdlHandler


def _handle(sql, review_logger=None, pretty=False):
    handler = DdlHandler("spark", "doris", manual_review_logger=review_logger, pretty=pretty)
    ast = sqlglot.parse_one(sql, read="spark")
    statements, logs = handler.handle(ast)
    assert len(statements) == 1
    return statements[0], logs


def _issue_types(review_logger):
    return [item["issue_type"] for item in review_logger.review_items]


def test_partitioned_table(review_logger):
    sql = (
        "CREATE TABLE db.events (id BIGINT, name STRING, ts TIMESTAMP) "
        "USING parquet PARTITIONED BY (dt STRING) COMMENT 'user events'"
    )
    out, logs = _handle(sql, review_logger)

    assert out.startswith("CREATE TABLE db.events (")
    assert "dt VARCHAR(255) NOT NULL" in out
    assert out.index("dt VARCHAR(255)") < out.index("id BIGINT")
    assert "name STRING" in out
    assert "ts DATETIME" in out
    assert "DUPLICATE KEY(dt)" in out
    assert "COMMENT 'user events'" in out
    assert "AUTO PARTITION BY LIST (dt) ()" in out
    assert "DISTRIBUTED BY HASH(dt) BUCKETS AUTO" in out
    assert 'PROPERTIES ("replication_num" = "1")' in out
    assert "USING" not in out
    assert "PARTITIONED BY" not in out

    assert any(log["action"] == "remove_properties" for log in logs)
    assert "TABLE_PROPERTY_DROPPED" in _issue_types(review_logger)
    assert "KEY_TYPE_CHANGED" in _issue_types(review_logger)


def test_clause_order():
    out, _ = _handle("CREATE TABLE t (id INT, v INT) PARTITIONED BY (p INT) COMMENT 'c'")
    positions = [
        out.index("DUPLICATE KEY"),
        out.index("COMMENT 'c'"),
        out.index("AUTO PARTITION BY LIST"),
        out.index("DISTRIBUTED BY HASH"),
        out.index("PROPERTIES"),
    ]
    assert positions == sorted(positions)


def test_clustered_by_becomes_hash_distribution():
    out, _ = _handle("CREATE TABLE t (id INT, code INT, v DOUBLE) CLUSTERED BY (code) INTO 8 BUCKETS")

    assert "DUPLICATE KEY(id)" in out
    assert "DISTRIBUTED BY HASH(code) BUCKETS 8" in out
    assert "CLUSTERED BY" not in out


def test_unpartitioned_table_keys_on_first_column():
    out, logs = _handle("CREATE TABLE t (id INT, name STRING)")

    assert "DUPLICATE KEY(id)" in out
    assert "DISTRIBUTED BY HASH(id) BUCKETS AUTO" in out
    assert "AUTO PARTITION" not in out
    assert logs == []


def test_string_key_becomes_varchar(review_logger):
    out, _ = _handle("CREATE TABLE t (code STRING, v INT)", review_logger)

    assert "code VARCHAR(255)" in out
    assert "DUPLICATE KEY(code)" in out
    assert _issue_types(review_logger) == ["KEY_TYPE_CHANGED"]


def test_floating_key_is_flagged(review_logger):
    out, _ = _handle("CREATE TABLE t (score DOUBLE, id INT)", review_logger)

    assert "DUPLICATE KEY(score)" in out
    item = review_logger.review_items[0]
    assert item["issue_type"] == "KEY_TYPE_INVALID"
    assert item["severity"] == "ERROR"


def test_or_replace_removed():
    out, logs = _handle("CREATE OR REPLACE TABLE t (id INT)")

    assert "REPLACE" not in out
    assert any(log["action"] == "remove_replace" for log in logs)


def test_pretty_output_is_multiline():
    out, _ = _handle("CREATE TABLE t (id INT)", pretty=True)

    assert "\nDUPLICATE KEY(id)\n" in out
    assert 'PROPERTIES (\n  "replication_num" = "1"\n)' in out


def test_is_column_ddl():
    assert DdlHandler.is_column_ddl(sqlglot.parse_one("CREATE TABLE t (id INT)", read="spark"))
    assert not DdlHandler.is_column_ddl(sqlglot.parse_one("CREATE TABLE t AS SELECT 1 AS id", read="spark"))
    assert not DdlHandler.is_column_ddl(sqlglot.parse_one("CREATE VIEW v AS SELECT 1 AS id", read="spark"))
    assert not DdlHandler.is_column_ddl(sqlglot.parse_one("SELECT 1", read="spark"))


def test_non_column_ddl_falls_back_to_plain_generation():
    handler = DdlHandler("spark", "doris", pretty=False)
    statements, logs = handler.handle(sqlglot.parse_one("CREATE VIEW v AS SELECT 1 AS id", read="spark"))

    assert statements == ["CREATE VIEW v AS SELECT 1 AS id"]
    assert logs == []


def test_commented_partition_column_keeps_comment_last():
    out, _ = _handle("CREATE TABLE t (id INT, dt STRING COMMENT 'day') PARTITIONED BY (dt)")

    assert "dt VARCHAR(255) NOT NULL COMMENT 'day'" in out
    assert "COMMENT 'day' NOT NULL" not in out


def test_adjacent_string_table_comment_is_joined(review_logger):
    out, _ = _handle("CREATE TABLE t (id INT) COMMENT 'user' ' events'", review_logger)

    assert "COMMENT 'user events'" in out
    assert "COMMENT_DROPPED" not in _issue_types(review_logger)
