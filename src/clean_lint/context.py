from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping

from clean_lint.models import Finding, SourceSpan, SourceUnit, SyntaxNode
from clean_lint.scope import ScopeAnalysis, analyze_scopes


class TreeContext:
    """Read-only facts about one parsed unit, shared by every rule.

    Parent links and scope analysis are computed on first use.
    """

    def __init__(self, unit: SourceUnit, root: SyntaxNode):
        self.unit = unit
        self.root = root
        self._parents: dict[SyntaxNode, SyntaxNode] | None = None
        self._scopes: ScopeAnalysis | None = None

    @property
    def path(self) -> str:
        return self.unit.path

    @property
    def language(self) -> str:
        return self.unit.language

    @property
    def scopes(self) -> ScopeAnalysis:
        if self._scopes is None:
            self._scopes = analyze_scopes(self.root, self.unit.language)
        return self._scopes

    def parent(self, node: SyntaxNode) -> SyntaxNode | None:
        if self._parents is None:
            parents: dict[SyntaxNode, SyntaxNode] = {}
            for item in self.root.walk():
                for child in item.children:
                    parents[child] = item
            self._parents = parents
        return self._parents.get(node)

    def ancestors(self, node: SyntaxNode) -> Iterator[SyntaxNode]:
        current = self.parent(node)
        while current is not None:
            yield current
            current = self.parent(current)

    def is_within(self, node: SyntaxNode, ancestor: SyntaxNode) -> bool:
        return any(item is ancestor for item in self.ancestors(node))

    def previous_sibling(self, node: SyntaxNode) -> SyntaxNode | None:
        parent = self.parent(node)
        if parent is None:
            return None
        previous = None
        for child in parent.children:
            if child is node:
                return previous
            previous = child
        return None

    def text_of(self, span: SourceSpan) -> str:
        lines = self.unit.lines
        if span.start_line == span.end_line:
            return lines[span.start_line - 1][span.start_column - 1 : span.end_column - 1]
        parts = [lines[span.start_line - 1][span.start_column - 1 :]]
        parts.extend(lines[span.start_line : span.end_line - 1])
        parts.append(lines[span.end_line - 1][: span.end_column - 1])
        return "\n".join(parts)


@dataclass(frozen=True)
class RuleContext:
    tree: TreeContext
    rule_id: str
    severity: str
    options: Mapping[str, Any] = field(default_factory=dict)

    def finding(self, node: SyntaxNode | SourceSpan, message: str) -> Finding:
        span = node if isinstance(node, SourceSpan) else node.span
        return Finding(
            rule_id=self.rule_id,
            path=self.tree.path,
            span=span,
            message=message,
            severity=self.severity,
        )
