"""Tests for rule-driven function call rewriting."""

import sqlglot

from dorislift.services.sql_conversion.converters.declarative.function_rewriter import FunctionRewriter

UDF_RULES = [
    {
        "name": "MY_UDF",
        "rename": "DORIS_UDF",
        "argument_order": [1, 0],
        "defaults": [{"position": 2, "value": "'x'"}],
    },
    {"name": "FOO", "aliases": ["BAR"], "rename": "BAZ"},
    {"name": "KEEP_ME", "defaults": [{"position": 1, "value": "0"}]},
]


def _rewrite(sql, rules=UDF_RULES):
    rewriter = FunctionRewriter("spark", "doris", rules=rules)
    ast = sqlglot.parse_one(sql, read="spark")
    new_ast, logs = rewriter.rewrite(ast)
    return new_ast.sql(dialect="doris"), logs


def test_reorder_default_and_rename():
    sql, logs = _rewrite("SELECT my_udf(a, b) FROM t")

    assert sql == "SELECT DORIS_UDF(b, a, 'x') FROM t"
    assert len(logs) == 1
    assert logs[0]["action"] == "function_rewrite"
    assert logs[0]["function"] == "MY_UDF"
    assert "reordered" in logs[0]["details"]
    assert "renamed" in logs[0]["details"]


def test_reorder_skipped_on_arity_mismatch():
    """A call whose arity does not fit the rule keeps its argument order."""
    sql, logs = _rewrite("SELECT my_udf(a, b, c) FROM t")

    assert sql == "SELECT DORIS_UDF(a, b, c) FROM t"
    assert "reordered" not in logs[0]["details"]


def test_alias_matches():
    sql, logs = _rewrite("SELECT bar(1) FROM t")
    assert sql == "SELECT BAZ(1) FROM t"
    assert logs[0]["function"] == "BAR"


def test_default_only_when_argument_missing():
    sql, logs = _rewrite("SELECT keep_me(a), keep_me(a, 5) FROM t")
    assert sql == "SELECT KEEP_ME(a, 0), keep_me(a, 5) FROM t"
    assert len(logs) == 1


def test_nested_calls_are_rewritten():
    sql, _ = _rewrite("SELECT foo(bar(x)) FROM t")
    assert sql == "SELECT BAZ(BAZ(x)) FROM t"


def test_root_call_is_replaced():
    sql, logs = _rewrite("foo(1)")
    assert sql == "BAZ(1)"
    assert len(logs) == 1


def test_unmatched_calls_untouched():
    sql, logs = _rewrite("SELECT other_fn(a) FROM t")
    assert sql == "SELECT other_fn(a) FROM t"
    assert logs == []


def test_no_rules_is_noop():
    rewriter = FunctionRewriter("spark", "doris", rules=[])
    ast = sqlglot.parse_one("SELECT my_udf(a) FROM t", read="spark")
    new_ast, logs = rewriter.rewrite(ast)
    assert new_ast is ast
    assert logs == []


def test_rules_without_name_are_ignored():
    rewriter = FunctionRewriter("spark", "doris", rules=[{"rename": "X"}, {"name": "foo", "rename": "BAZ"}])
    assert set(rewriter.rules) == {"FOO"}


def test_loads_rules_for_dialect_pair():
    rewriter = FunctionRewriter("spark", "doris")
    assert {"SHIFTLEFT", "SHIFTRIGHT", "REGEXP_EXTRACT", "BTRIM"} <= set(rewriter.rules)


def test_shift_operator_nodes_match_function_name():
    rules = [{"name": "SHIFTLEFT", "rename": "BIT_SHIFT_LEFT"}, {"name": "SHIFTRIGHT", "rename": "BIT_SHIFT_RIGHT"}]
    sql, logs = _rewrite("SELECT shiftleft(a, 2), shiftright(b, 1) FROM t", rules)

    assert sql == "SELECT BIT_SHIFT_LEFT(a, 2), BIT_SHIFT_RIGHT(b, 1) FROM t"
    assert [log["function"] for log in logs] == ["SHIFTLEFT", "SHIFTRIGHT"]


def test_modelled_function_is_emitted_as_explicit_call():
    sql, logs = _rewrite("SELECT regexp_extract(s, 'a(b)', 2) FROM t", [{"name": "REGEXP_EXTRACT"}])

    assert sql == "SELECT REGEXP_EXTRACT(s, 'a(b)', 2) FROM t"
    assert "explicit call" in logs[0]["details"]
