from pathlib import Path

import pytest

from clean_lint.config import ConfigError, default_config, load_config, parse_config
from clean_lint.rules import build_registry


ROOT = Path(__file__).resolve().parents[1]


def test_default_config_file_matches_builtin_defaults():
    config = load_config(ROOT / "configs" / "default.json")

    assert ".py" in config.scan.include_exts
    assert "node_modules" in config.scan.exclude_dirs
    assert set(config.rules) == {rule.rule_id for rule in build_registry().all_rules()}
    from_file = {item.rule_id: (item.severity, item.options) for item in build_registry().configure(config)}
    builtin = {item.rule_id: (item.severity, item.options) for item in build_registry().configure(default_config())}
    assert from_file == builtin


def test_scan_settings_are_parsed():
    config = parse_config({"scan": {"include_exts": [".js"], "max_files": 10}})

    assert config.scan.include_exts == (".js",)
    assert config.scan.max_files == 10
    assert config.rules == {}


def test_missing_config_file(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "missing.json")


def test_invalid_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{ not json", encoding="utf-8")

    with pytest.raises(ConfigError, match="not valid JSON"):
        load_config(path)


@pytest.mark.parametrize(
    "raw",
    [
        [],
        {"rules": []},
        {"scan": {"max_files": -1}},
        {"scan": {"include_exts": ".js"}},
        {"rules": {"max-parameters": {"severity": "fatal"}}},
        {"rules": {"max-parameters": {"enabled": "yes"}}},
        {"rules": {"max-parameters": 3}},
    ],
)
def test_invalid_config_shapes(raw):
    with pytest.raises(ConfigError):
        parse_config(raw)
