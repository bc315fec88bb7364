import pytest

from dorislift.services.sql_conversion import UnsupportedDialectError
from dorislift.services.sql_conversion.utils.dialect_utils import (
    dialect_pair_key,
    get_sqlglot_dialect,
    list_supported_dialects,
    require_dialect,
)


def test_names_are_case_insensitive_and_aliased():
    assert get_sqlglot_dialect("SparkSQL") == "spark"
    assert get_sqlglot_dialect(" Doris ") == "doris"
    assert get_sqlglot_dialect("postgresql") == "postgres"


def test_unknown_dialect():
    assert get_sqlglot_dialect("cobol") is None
    assert get_sqlglot_dialect("") is None
    with pytest.raises(UnsupportedDialectError) as excinfo:
        require_dialect("cobol")
    assert isinstance(excinfo.value, ValueError)
    assert "cobol" in str(excinfo.value)


def test_supported_list_is_sorted():
    names = list_supported_dialects()
    assert names == sorted(names)
    assert {"spark", "doris", "hive"} <= set(names)


def test_pair_key_folds_aliases():
    assert dialect_pair_key("sparksql", "DORIS") == "spark_doris"
