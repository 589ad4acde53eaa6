from __future__ import annotations

from typing import Iterator

from clean_lint.context import RuleContext
from clean_lint.models import Finding, NodeKind, SyntaxNode
from clean_lint.rules.base import Rule


class MinIdentifierLengthRule(Rule):
    rule_id = "min-identifier-length"
    description = "Declared names are at least `min` characters long."
    default_options = {"min": 2, "allow": ["i", "j", "k", "_", "x", "y"]}
    node_kinds = frozenset(
        {
            NodeKind.DECLARATOR,
            NodeKind.PARAMETER,
            NodeKind.FUNCTION_DECLARATION,
            NodeKind.FUNCTION_EXPRESSION,
            NodeKind.CLASS_DECLARATION,
            NodeKind.CATCH,
            NodeKind.IDENTIFIER,
        }
    )

    def check(self, node: SyntaxNode, context: RuleContext) -> Iterator[Finding]:
        # Identifiers count only where a pattern or Python assignment binds them.
        if node.kind is NodeKind.IDENTIFIER and node not in context.tree.scopes.declaration_sites:
            return

        name = node.name
        if not name or name in context.options["allow"]:
            return
        if len(name) < context.options["min"]:
            yield context.finding(
                node,
                f"Name '{name}' is shorter than {context.options['min']} characters",
            )
