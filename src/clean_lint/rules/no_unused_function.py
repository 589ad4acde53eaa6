from __future__ import annotations

from typing import Iterator

from clean_lint.context import RuleContext
from clean_lint.models import LANGUAGE_PYTHON, Finding, NodeKind, SyntaxNode
from clean_lint.rules.base import Rule
from clean_lint.scope import SCOPE_MODULE


class NoUnusedFunctionRule(Rule):
    rule_id = "no-unused-function"
    description = "Function declarations are referenced somewhere outside their own body."
    node_kinds = frozenset({NodeKind.FUNCTION_DECLARATION})

    def check(self, node: SyntaxNode, context: RuleContext) -> Iterator[Finding]:
        if not node.name:
            return
        tree = context.tree

        parent = tree.parent(node)
        if parent is not None and parent.kind is NodeKind.EXPORT:
            return
        previous = tree.previous_sibling(node)
        if previous is not None and previous.operator == "decorator":
            return

        binding = tree.scopes.scope_of(node).lookup(node.name)
        if binding is None or binding.node is not node:
            return

        if tree.language == LANGUAGE_PYTHON:
            if node.name.startswith("__") and node.name.endswith("__"):
                return
            if binding.scope.kind == SCOPE_MODULE and not node.name.startswith("_"):
                return
        elif binding.scope.kind == SCOPE_MODULE and _exported_by_name(tree.root, node.name):
            return

        if any(not tree.is_within(reference, node) for reference in binding.references):
            return
        yield context.finding(node, f"Function '{node.name}' is never used")


def _exported_by_name(root: SyntaxNode, name: str) -> bool:
    for statement in root.children:
        if statement.kind is not NodeKind.EXPORT:
            continue
        if any(item.kind is NodeKind.IDENTIFIER and item.name == name for item in statement.children):
            return True
    return False
