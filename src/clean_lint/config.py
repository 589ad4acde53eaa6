from __future__ import annotations

import json
from pathlib import Path

from clean_lint.models import SEVERITIES, LintConfig, RuleSettings, ScanSettings


class ConfigError(ValueError):
    pass


RESERVED_RULE_KEYS = ("enabled", "severity")


def default_config() -> LintConfig:
    return LintConfig()


def load_config(path: str | Path) -> LintConfig:
    config_path = Path(path)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    with config_path.open("r", encoding="utf-8") as handle:
        try:
            raw = json.load(handle)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Config file is not valid JSON: {config_path}: {exc}") from exc

    return parse_config(raw)


def parse_config(raw: object) -> LintConfig:
    if not isinstance(raw, dict):
        raise ConfigError("Config must be a JSON object")

    scan_raw = raw.get("scan", {})
    if not isinstance(scan_raw, dict):
        raise ConfigError("'scan' must be an object")

    defaults = ScanSettings()
    scan = ScanSettings(
        include_exts=tuple(_ensure_string_list(scan_raw.get("include_exts", list(defaults.include_exts)))),
        exclude_dirs=tuple(_ensure_string_list(scan_raw.get("exclude_dirs", list(defaults.exclude_dirs)))),
        max_file_size_bytes=_ensure_int(
            scan_raw.get("max_file_size_bytes", defaults.max_file_size_bytes), "max_file_size_bytes"
        ),
        max_files=_ensure_int(scan_raw.get("max_files", defaults.max_files), "max_files"),
    )

    rules_raw = raw.get("rules", {})
    if not isinstance(rules_raw, dict):
        raise ConfigError("'rules' must be an object mapping rule ids to settings")

    rules: dict[str, RuleSettings] = {}
    for rule_id, item in rules_raw.items():
        rules[str(rule_id)] = _parse_rule_settings(str(rule_id), item)

    return LintConfig(scan=scan, rules=rules)


def _parse_rule_settings(rule_id: str, item: object) -> RuleSettings:
    # "off" / true / false are accepted as shorthands for the enabled flag.
    if isinstance(item, bool):
        return RuleSettings(enabled=item)
    if item == "off":
        return RuleSettings(enabled=False)
    if not isinstance(item, dict):
        raise ConfigError(f"Settings for rule '{rule_id}' must be an object")

    enabled = item.get("enabled", True)
    if not isinstance(enabled, bool):
        raise ConfigError(f"'enabled' for rule '{rule_id}' must be true or false")

    severity = item.get("severity")
    if severity is not None and severity not in SEVERITIES:
        raise ConfigError(
            f"'severity' for rule '{rule_id}' must be one of: {', '.join(SEVERITIES)}"
        )

    options = {key: value for key, value in item.items() if key not in RESERVED_RULE_KEYS}
    return RuleSettings(enabled=enabled, severity=severity, options=options)


def _ensure_string_list(value: object) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError("Expected a list of strings")
    return [str(item) for item in value]


def _ensure_int(value: object, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigError(f"'{key}' must be a non-negative integer")
    return value
