from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from clean_lint.config import default_config
from clean_lint.evaluator import evaluate
from clean_lint.models import (
    DIAGNOSTIC_READ,
    DIAGNOSTIC_SYNTAX,
    SEVERITY_WARNING,
    Diagnostic,
    FileResult,
    LintConfig,
    LintRun,
    SourceSpan,
    SourceUnit,
)
from clean_lint.parsing import SourceSyntaxError, parse_unit
from clean_lint.rules import ConfiguredRule, RuleRegistry, build_registry
from clean_lint.sources import build_unit, discover_files, language_for_path, load_source


logger = logging.getLogger(__name__)


def lint_unit(unit: SourceUnit, rules: Sequence[ConfiguredRule]) -> FileResult:
    try:
        root = parse_unit(unit)
    except SourceSyntaxError as exc:
        return _syntax_failure(unit.path, unit.language, exc)

    evaluation = evaluate(unit, root, rules)
    return FileResult(
        path=unit.path,
        language=unit.language,
        findings=evaluation.findings,
        diagnostics=tuple(item.to_diagnostic(unit.path) for item in evaluation.errors),
    )


def lint_text(
    text: str,
    *,
    language: str,
    path: str = "<stdin>",
    config: LintConfig | None = None,
    rules: Sequence[ConfiguredRule] | None = None,
) -> FileResult:
    configured = rules if rules is not None else build_registry().configure(config)
    try:
        unit = build_unit(path, text, language)
    except SourceSyntaxError as exc:
        return _syntax_failure(path, language, exc)
    return lint_unit(unit, configured)


def lint_paths(
    paths: Sequence[str | Path],
    config: LintConfig | None = None,
    *,
    registry: RuleRegistry | None = None,
    rules: Sequence[ConfiguredRule] | None = None,
    language: str | None = None,
) -> LintRun:
    config = config or default_config()
    # Configuration problems surface before any file is read.
    if rules is None:
        rules = (registry or build_registry()).configure(config)

    files = discover_files(list(paths), config.scan)
    results: list[FileResult] = []
    for file_path in files:
        results.append(_lint_file(file_path, rules, language))

    logger.debug("Linted %d files with %d rules", len(results), len(rules))
    return LintRun(results=tuple(results))


def _lint_file(file_path: Path, rules: Sequence[ConfiguredRule], language: str | None) -> FileResult:
    display_path = file_path.as_posix()
    resolved = language or language_for_path(file_path)
    if resolved is None:
        logger.warning("Skipping %s: unsupported file type", display_path)
        diagnostic = Diagnostic(
            kind=DIAGNOSTIC_READ,
            path=display_path,
            span=None,
            message=f"Unsupported file type: {file_path.suffix or '(none)'}",
            severity=SEVERITY_WARNING,
        )
        return FileResult(path=display_path, language="", diagnostics=(diagnostic,))

    try:
        unit = load_source(file_path, resolved, display_path=display_path)
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Cannot read %s: %s", display_path, exc)
        diagnostic = Diagnostic(kind=DIAGNOSTIC_READ, path=display_path, span=None, message=str(exc))
        return FileResult(path=display_path, language=resolved, diagnostics=(diagnostic,))
    except SourceSyntaxError as exc:
        return _syntax_failure(display_path, resolved, exc)

    return lint_unit(unit, rules)


def _syntax_failure(path: str, language: str, exc: SourceSyntaxError) -> FileResult:
    logger.warning("Syntax error in %s: %s", path, exc)
    diagnostic = Diagnostic(
        kind=DIAGNOSTIC_SYNTAX,
        path=path,
        span=SourceSpan(exc.line, exc.column, exc.line, exc.column),
        message=exc.message,
    )
    return FileResult(path=path, language=language, diagnostics=(diagnostic,))
