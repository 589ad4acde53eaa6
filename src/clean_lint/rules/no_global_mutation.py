from __future__ import annotations

from typing import Iterator

from clean_lint.context import RuleContext
from clean_lint.models import SEVERITY_ERROR, Finding, NodeKind, SyntaxNode
from clean_lint.rules.base import Rule
from clean_lint.scope import pattern_identifiers


class NoGlobalMutationRule(Rule):
    rule_id = "no-global-mutation"
    description = "Functions do not assign to variables declared outside every function."
    default_severity = SEVERITY_ERROR
    default_options = {"check_members": False}
    node_kinds = frozenset({NodeKind.ASSIGNMENT, NodeKind.UPDATE})

    def check(self, node: SyntaxNode, context: RuleContext) -> Iterator[Finding]:
        scopes = context.tree.scopes
        if scopes.scope_of(node).function_depth == 0 or not node.children:
            return

        target = node.children[0]
        if target.kind is NodeKind.MEMBER:
            if not context.options["check_members"]:
                return
            root = _member_root(target)
            targets = [root] if root is not None else []
        else:
            targets = pattern_identifiers(target)

        for identifier in targets:
            binding = scopes.resolve(identifier)
            if binding is None:
                yield context.finding(
                    node,
                    f"Function assigns to undeclared global '{identifier.name}'",
                )
            elif binding.function_depth == 0:
                yield context.finding(
                    node,
                    f"Function mutates '{identifier.name}' declared outside any function",
                )


def _member_root(node: SyntaxNode) -> SyntaxNode | None:
    while node.kind is NodeKind.MEMBER and node.children:
        node = node.children[0]
    return node if node.kind is NodeKind.IDENTIFIER else None
