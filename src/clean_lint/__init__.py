from __future__ import annotations

from clean_lint.config import ConfigError, default_config, load_config
from clean_lint.evaluator import EvaluationError, evaluate
from clean_lint.models import Diagnostic, FileResult, Finding, LintConfig, LintRun, SourceSpan, SourceUnit, SyntaxNode
from clean_lint.parsing import SourceSyntaxError, parse_unit
from clean_lint.pipeline import lint_paths, lint_text, lint_unit
from clean_lint.rules import DuplicateRuleError, Rule, RuleRegistry, build_registry


__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "Diagnostic",
    "DuplicateRuleError",
    "EvaluationError",
    "FileResult",
    "Finding",
    "LintConfig",
    "LintRun",
    "Rule",
    "RuleRegistry",
    "SourceSpan",
    "SourceSyntaxError",
    "SourceUnit",
    "SyntaxNode",
    "build_registry",
    "default_config",
    "evaluate",
    "lint_paths",
    "lint_text",
    "lint_unit",
    "load_config",
    "parse_unit",
]
