"""Tests for settings loading and per-pair rule file lookup."""

import logging
import os
from pathlib import Path

import pytest

from dorislift.config import config, load_config
from dorislift.services.sql_conversion.utils.config_loader import (
    list_conversion_configs,
    load_json_from_conversion_config,
)


def test_base_dirs_follow_environment_overrides():
    """Workspace and logs are redirected by conftest through env vars."""
    assert config["base_dirs"]["workspace"] == str(Path(os.environ["DORISLIFT_WORKSPACE_DIR"]).resolve())
    assert config["base_dirs"]["logs"] == str(Path(os.environ["DORISLIFT_LOGS_DIR"]).resolve())
    assert Path(config["base_dirs"]["conversion_rules"]).is_dir()


def test_settings_sections_present():
    assert config["conversion"]["source_dialect"] == "spark"
    assert config["conversion"]["target_dialect"] == "doris"
    assert "doris sql" in config["guide"]["target_labels"]


def test_load_config_from_alternate_file(tmp_path):
    settings = tmp_path / "settings.yaml"
    settings.write_text("api:\n  port: 6000\nbase_dirs:\n  workspace: /tmp/dl-ws\n", encoding="utf-8")

    loaded = load_config(settings)

    assert loaded["api"]["port"] == 6000
    assert "conversion_rules" in loaded["base_dirs"]
    assert "logs" in loaded["base_dirs"]


def test_load_config_empty_file_yields_defaults(tmp_path):
    settings = tmp_path / "settings.yaml"
    settings.write_text("", encoding="utf-8")

    loaded = load_config(settings)

    assert set(loaded["base_dirs"]) >= {"workspace", "logs", "conversion_rules"}


def test_load_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_missing_rule_file_is_empty():
    logger = logging.getLogger("test")
    assert load_json_from_conversion_config(logger, "spark", "doris", None, "does_not_exist.json") == {}


def test_unsupported_pair_is_empty():
    logger = logging.getLogger("test")
    assert load_json_from_conversion_config(logger, "cobol", "doris", None, "function_rules.json") == {}


def test_alias_resolves_to_pair_directory():
    logger = logging.getLogger("test")
    rules = load_json_from_conversion_config(logger, "SparkSQL", "doris", None, "function_rules.json")
    assert any(rule["name"] == "SHIFTLEFT" for rule in rules["functions"])


def test_list_conversion_configs():
    pairs = list_conversion_configs()
    assert "spark_doris" in pairs
    assert "function_rules.json" in pairs["spark_doris"]
    assert "ddl_conversion_rules/dialect_behaviors.json" in pairs["spark_doris"]
