from __future__ import annotations

from typing import Iterator

from clean_lint.context import RuleContext
from clean_lint.models import FUNCTION_KINDS, SEVERITY_ERROR, Finding, NodeKind, SyntaxNode
from clean_lint.rules.base import Rule, function_label


class MaxParametersRule(Rule):
    rule_id = "max-parameters"
    description = "Functions take at most `max` parameters; group the rest into an object."
    default_severity = SEVERITY_ERROR
    default_options = {"max": 3}
    node_kinds = FUNCTION_KINDS

    def check(self, node: SyntaxNode, context: RuleContext) -> Iterator[Finding]:
        parameters = node.child(NodeKind.PARAMETERS)
        if parameters is None:
            return

        # Python receivers (self/cls) are implicit at the call site.
        count = sum(1 for item in parameters.children if item.operator != "receiver")
        limit = context.options["max"]
        if count > limit:
            yield context.finding(node, f"{function_label(node)} has {count} parameters (max {limit})")
