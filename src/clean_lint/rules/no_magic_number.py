from __future__ import annotations

from typing import Iterator

from clean_lint.context import RuleContext
from clean_lint.models import Finding, NodeKind, SyntaxNode
from clean_lint.rules.base import Rule


class NoMagicNumberRule(Rule):
    rule_id = "no-magic-number"
    description = "Numeric literals are bound to a named constant before use."
    default_options = {"ignore": [0, 1, -1]}
    node_kinds = frozenset({NodeKind.LITERAL})

    def check(self, node: SyntaxNode, context: RuleContext) -> Iterator[Finding]:
        if not node.is_numeric_literal:
            return

        subject = node
        value = node.value
        parent = context.tree.parent(node)
        if parent is not None and parent.kind is NodeKind.UNARY and parent.operator in ("-", "+"):
            subject = parent
            value = -value if parent.operator == "-" else value
            parent = context.tree.parent(parent)

        if value in context.options["ignore"]:
            return
        if _is_constant_initializer(subject, parent, context):
            return

        text = context.tree.text_of(subject.span)
        yield context.finding(subject, f"Magic number {text}; bind it to a named constant")


def _is_constant_initializer(subject: SyntaxNode, parent: SyntaxNode | None, context: RuleContext) -> bool:
    if parent is None or parent.kind is not NodeKind.DECLARATOR:
        return False
    if not parent.children or parent.children[-1] is not subject:
        return False
    declaration = context.tree.parent(parent)
    return (
        declaration is not None
        and declaration.kind is NodeKind.VARIABLE_DECLARATION
        and declaration.operator == "const"
    )
