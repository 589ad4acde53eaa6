from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Iterable

from clean_lint.context import RuleContext
from clean_lint.models import SEVERITY_WARNING, Finding, NodeKind, SyntaxNode


class Rule(ABC):
    """A stateless check run against individual syntax nodes.

    Subclasses set ``rule_id`` and ``node_kinds`` and implement ``check``,
    yielding findings through ``context.finding``. Options arrive already
    resolved in ``context.options``; rules never modify the tree.
    """

    rule_id: ClassVar[str] = ""
    description: ClassVar[str] = ""
    default_severity: ClassVar[str] = SEVERITY_WARNING
    default_options: ClassVar[dict[str, Any]] = {}
    node_kinds: ClassVar[frozenset[NodeKind]] = frozenset()

    def applies_to(self, node: SyntaxNode) -> bool:
        return node.kind in self.node_kinds

    @abstractmethod
    def check(self, node: SyntaxNode, context: RuleContext) -> Iterable[Finding]:
        raise NotImplementedError

    def describe(self) -> dict[str, Any]:
        return {
            "rule_id": self.rule_id,
            "description": self.description,
            "default_severity": self.default_severity,
            "default_options": dict(self.default_options),
        }


def function_label(node: SyntaxNode) -> str:
    if node.kind is NodeKind.METHOD:
        return f"Method '{node.name}'" if node.name else "Method"
    if node.kind is NodeKind.ARROW_FUNCTION:
        return "Arrow function"
    if node.name:
        return f"Function '{node.name}'"
    return "Anonymous function"
