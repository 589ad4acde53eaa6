from __future__ import annotations

from typing import Iterable

from clean_lint.rules.base import Rule
from clean_lint.rules.max_parameters import MaxParametersRule
from clean_lint.rules.min_identifier_length import MinIdentifierLengthRule
from clean_lint.rules.no_flag_argument import NoFlagArgumentRule
from clean_lint.rules.no_global_mutation import NoGlobalMutationRule
from clean_lint.rules.no_magic_number import NoMagicNumberRule
from clean_lint.rules.no_unused_function import NoUnusedFunctionRule
from clean_lint.rules.registry import ConfiguredRule, DuplicateRuleError, RuleRegistry


BUILTIN_RULES: tuple[type[Rule], ...] = (
    MaxParametersRule,
    NoMagicNumberRule,
    NoGlobalMutationRule,
    NoUnusedFunctionRule,
    NoFlagArgumentRule,
    MinIdentifierLengthRule,
)


def build_registry(extra_rules: Iterable[Rule] = ()) -> RuleRegistry:
    registry = RuleRegistry()
    for rule_class in BUILTIN_RULES:
        registry.register(rule_class())
    for rule in extra_rules:
        registry.register(rule)
    return registry


__all__ = [
    "BUILTIN_RULES",
    "ConfiguredRule",
    "DuplicateRuleError",
    "Rule",
    "RuleRegistry",
    "build_registry",
]
