from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from clean_lint.config import ConfigError
from clean_lint.models import LintConfig, RuleSettings
from clean_lint.rules.base import Rule


logger = logging.getLogger(__name__)


class DuplicateRuleError(ValueError):
    def __init__(self, rule_id: str):
        self.rule_id = rule_id
        super().__init__(f"Rule '{rule_id}' is already registered")


@dataclass(frozen=True)
class ConfiguredRule:
    rule: Rule
    severity: str
    options: dict[str, Any] = field(default_factory=dict)

    @property
    def rule_id(self) -> str:
        return self.rule.rule_id


class RuleRegistry:
    def __init__(self):
        self._rules: dict[str, Rule] = {}

    def register(self, rule: Rule) -> Rule:
        if not rule.rule_id:
            raise ValueError(f"{type(rule).__name__} does not define a rule_id")
        if rule.rule_id in self._rules:
            raise DuplicateRuleError(rule.rule_id)
        self._rules[rule.rule_id] = rule
        logger.debug("Registered rule %s", rule.rule_id)
        return rule

    def all_rules(self) -> list[Rule]:
        return list(self._rules.values())

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def configure(self, config: LintConfig | None = None) -> list[ConfiguredRule]:
        settings = config.rules if config is not None else {}
        unknown = sorted(rule_id for rule_id in settings if rule_id not in self._rules)
        if unknown:
            raise ConfigError(f"Unknown rule ids in config: {', '.join(unknown)}")

        configured: list[ConfiguredRule] = []
        for rule in self.all_rules():
            rule_settings = settings.get(rule.rule_id, RuleSettings())
            if not rule_settings.enabled:
                logger.debug("Rule %s disabled by config", rule.rule_id)
                continue
            configured.append(
                ConfiguredRule(
                    rule=rule,
                    severity=rule_settings.severity or rule.default_severity,
                    options=resolve_options(rule, rule_settings.options),
                )
            )
        return configured


def resolve_options(rule: Rule, overrides: dict[str, Any]) -> dict[str, Any]:
    options = {key: list(value) if isinstance(value, list) else value for key, value in rule.default_options.items()}
    for key, value in overrides.items():
        if key not in rule.default_options:
            raise ConfigError(f"Unknown option '{key}' for rule '{rule.rule_id}'")
        default = rule.default_options[key]
        if not _same_type(default, value):
            raise ConfigError(
                f"Option '{key}' for rule '{rule.rule_id}' must be {_type_name(default)}, got {value!r}"
            )
        options[key] = list(value) if isinstance(value, list) else value
    return options


def _same_type(default: Any, value: Any) -> bool:
    if isinstance(default, bool):
        return isinstance(value, bool)
    if isinstance(default, int):
        return isinstance(value, int) and not isinstance(value, bool) and value >= 0
    if isinstance(default, list):
        if not isinstance(value, list):
            return False
        if all(isinstance(item, str) for item in default):
            return all(isinstance(item, str) for item in value)
        return all(isinstance(item, (int, float)) and not isinstance(item, bool) for item in value)
    return isinstance(value, type(default))


def _type_name(default: Any) -> str:
    if isinstance(default, bool):
        return "true or false"
    if isinstance(default, int):
        return "a non-negative integer"
    if isinstance(default, list):
        if all(isinstance(item, str) for item in default):
            return "a list of strings"
        return "a list of numbers"
    return f"a {type(default).__name__}"
