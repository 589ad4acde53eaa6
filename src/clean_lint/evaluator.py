from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from clean_lint.context import RuleContext, TreeContext
from clean_lint.models import DIAGNOSTIC_EVALUATION, Diagnostic, Finding, SourceSpan, SourceUnit, SyntaxNode
from clean_lint.rules.registry import ConfiguredRule


logger = logging.getLogger(__name__)


class EvaluationError(Exception):
    def __init__(self, rule_id: str, span: SourceSpan, reason: str):
        self.rule_id = rule_id
        self.span = span
        self.reason = reason
        super().__init__(
            f"Rule '{rule_id}' failed at line {span.start_line}, column {span.start_column}: {reason}"
        )

    def to_diagnostic(self, path: str) -> Diagnostic:
        return Diagnostic(
            kind=DIAGNOSTIC_EVALUATION,
            path=path,
            span=self.span,
            message=str(self),
            rule_id=self.rule_id,
        )


@dataclass(frozen=True)
class Evaluation:
    findings: tuple[Finding, ...]
    errors: tuple[EvaluationError, ...] = ()


def evaluate(unit: SourceUnit, root: SyntaxNode, rules: Sequence[ConfiguredRule]) -> Evaluation:
    """Run every configured rule over ``root`` in a single pre-order walk.

    Findings come back in traversal order, and within one node in rule order.
    A rule that raises, or reports a span outside ``unit``, loses its output for
    that node and is recorded as an ``EvaluationError``; other rules and nodes
    are unaffected.
    """
    tree = TreeContext(unit, root)
    contexts = [
        (item.rule, RuleContext(tree=tree, rule_id=item.rule_id, severity=item.severity, options=item.options))
        for item in rules
    ]

    findings: list[Finding] = []
    errors: list[EvaluationError] = []

    for node in root.walk():
        for rule, context in contexts:
            if not rule.applies_to(node):
                continue

            try:
                produced = list(rule.check(node, context))
            except Exception as exc:
                error = EvaluationError(rule.rule_id, node.span, f"{type(exc).__name__}: {exc}")
                logger.warning("%s: %s", unit.path, error)
                errors.append(error)
                continue

            outside = [item for item in produced if not unit.contains(item.span)]
            if outside:
                error = EvaluationError(
                    rule.rule_id,
                    node.span,
                    f"reported span {outside[0].span.to_dict()} outside the source",
                )
                logger.warning("%s: %s", unit.path, error)
                errors.append(error)
                continue

            findings.extend(produced)

    return Evaluation(findings=tuple(findings), errors=tuple(errors))
