from __future__ import annotations

from typing import Iterator

from clean_lint.context import RuleContext
from clean_lint.models import Finding, NodeKind, SyntaxNode
from clean_lint.rules.base import Rule


class NoFlagArgumentRule(Rule):
    rule_id = "no-flag-argument"
    description = "Boolean literals are not passed as positional call arguments."
    node_kinds = frozenset({NodeKind.LITERAL})

    def check(self, node: SyntaxNode, context: RuleContext) -> Iterator[Finding]:
        if not node.is_boolean_literal:
            return
        call = context.tree.parent(node)
        if call is None or call.kind not in (NodeKind.CALL, NodeKind.NEW):
            return
        # children[0] is the callee.
        if call.children and call.children[0] is node:
            return
        yield context.finding(
            node,
            f"Boolean flag argument '{context.tree.text_of(node.span)}'; split the function instead",
        )
