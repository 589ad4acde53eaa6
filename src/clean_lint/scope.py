"""Lexical scope resolution over a syntax tree.

JavaScript: ``var`` and function declarations bind in the nearest function (or
module) scope; ``let``, ``const`` and classes bind in the enclosing block.
Python: every binding lands in the nearest function, class or module scope
unless the name was declared ``global`` or ``nonlocal`` there; comprehension
targets get their own scope and class scopes are invisible to nested
functions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from clean_lint.models import LANGUAGE_PYTHON, NodeKind, SyntaxNode


SCOPE_MODULE = "module"
SCOPE_FUNCTION = "function"
SCOPE_BLOCK = "block"
SCOPE_CLASS = "class"
SCOPE_COMPREHENSION = "comprehension"

_JS_BLOCK_SCOPES = frozenset({NodeKind.BLOCK, NodeKind.FOR, NodeKind.FOR_OF, NodeKind.SWITCH, NodeKind.CATCH})
_STATEMENT_CONTAINERS = frozenset({NodeKind.PROGRAM, NodeKind.BLOCK, NodeKind.EXPORT, NodeKind.CASE})


@dataclass(eq=False)
class Binding:
    name: str
    kind: str
    node: SyntaxNode
    scope: Scope
    references: list[SyntaxNode] = field(default_factory=list)

    @property
    def function_depth(self) -> int:
        return self.scope.function_depth


class Scope:
    def __init__(self, kind: str, node: SyntaxNode, parent: Scope | None = None):
        self.kind = kind
        self.node = node
        self.parent = parent
        self.bindings: dict[str, Binding] = {}
        self.globals: set[str] = set()
        self.nonlocals: set[str] = set()
        depth = parent.function_depth if parent is not None else 0
        self.function_depth = depth + 1 if kind == SCOPE_FUNCTION else depth

    def declare(self, name: str, kind: str, node: SyntaxNode) -> Binding:
        binding = self.bindings.get(name)
        if binding is None:
            binding = Binding(name=name, kind=kind, node=node, scope=self)
            self.bindings[name] = binding
        return binding

    def lookup(self, name: str) -> Binding | None:
        scope: Scope | None = self
        while scope is not None:
            # Class bodies do not enclose the functions defined in them.
            if scope is self or scope.kind != SCOPE_CLASS:
                binding = scope.bindings.get(name)
                if binding is not None:
                    return binding
            scope = scope.parent
        return None

    def function_scope(self) -> Scope:
        scope = self
        while scope.kind not in (SCOPE_FUNCTION, SCOPE_MODULE) and scope.parent is not None:
            scope = scope.parent
        return scope

    def __repr__(self) -> str:
        return f"Scope({self.kind}, depth={self.function_depth}, names={sorted(self.bindings)})"


class ScopeAnalysis:
    def __init__(self, root: Scope):
        self.root = root
        self.scopes: dict[SyntaxNode, Scope] = {}
        self.resolved: dict[SyntaxNode, Binding | None] = {}
        self.all_scopes: list[Scope] = [root]
        self.declaration_sites: set[SyntaxNode] = set()

    def scope_of(self, node: SyntaxNode) -> Scope:
        return self.scopes.get(node, self.root)

    def resolve(self, identifier: SyntaxNode) -> Binding | None:
        if identifier in self.resolved:
            return self.resolved[identifier]
        if identifier.name is None:
            return None
        return self.scope_of(identifier).lookup(identifier.name)


def pattern_identifiers(node: SyntaxNode) -> list[SyntaxNode]:
    """Identifiers bound by a destructuring pattern or assignment target."""
    if node.kind is NodeKind.IDENTIFIER:
        return [node]
    if node.kind in (NodeKind.ARRAY, NodeKind.OBJECT):
        return [item for child in node.children for item in pattern_identifiers(child)]
    if node.kind is NodeKind.PROPERTY and node.children:
        return pattern_identifiers(node.children[-1])
    if node.kind in (NodeKind.ASSIGNMENT, NodeKind.SPREAD) and node.children:
        return pattern_identifiers(node.children[0])
    return []


def analyze_scopes(root: SyntaxNode, language: str) -> ScopeAnalysis:
    return ScopeAnalyzer(language).analyze(root)


class ScopeAnalyzer:
    def __init__(self, language: str):
        self.python = language == LANGUAGE_PYTHON

    def analyze(self, root: SyntaxNode) -> ScopeAnalysis:
        analysis = ScopeAnalysis(Scope(SCOPE_MODULE, root))
        self._pending: list[tuple[Scope, str, str, SyntaxNode]] = []
        self._sites: set[SyntaxNode] = set()
        identifiers: list[SyntaxNode] = []

        stack: list[tuple[SyntaxNode, Scope, SyntaxNode | None]] = [(root, analysis.root, None)]
        while stack:
            node, scope, parent = stack.pop()
            analysis.scopes[node] = scope
            if node.kind is NodeKind.IDENTIFIER:
                identifiers.append(node)

            inner = self._enter(node, scope, parent, analysis)
            for child in reversed(node.children):
                stack.append((child, inner, node))

        for scope, name, kind, node in self._pending:
            target = scope
            if self.python:
                if name in scope.nonlocals:
                    continue
                if name in scope.globals:
                    target = analysis.root
            target.declare(name, kind, node)

        for identifier in identifiers:
            binding = analysis.scopes[identifier].lookup(identifier.name or "")
            analysis.resolved[identifier] = binding
            if binding is not None and identifier not in self._sites:
                binding.references.append(identifier)

        analysis.declaration_sites = self._sites
        return analysis

    def _declare(self, scope: Scope, name: str | None, kind: str, node: SyntaxNode) -> None:
        if name:
            self._pending.append((scope, name, kind, node))

    def _declare_pattern(self, scope: Scope, pattern: SyntaxNode, kind: str, node: SyntaxNode) -> None:
        for identifier in pattern_identifiers(pattern):
            self._sites.add(identifier)
            self._declare(scope, identifier.name, kind, node)

    def _new_scope(self, kind: str, node: SyntaxNode, parent: Scope, analysis: ScopeAnalysis) -> Scope:
        scope = Scope(kind, node, parent)
        analysis.all_scopes.append(scope)
        return scope

    def _enter(self, node: SyntaxNode, scope: Scope, parent: SyntaxNode | None, analysis: ScopeAnalysis) -> Scope:
        if self.python:
            return self._enter_python(node, scope, analysis)
        return self._enter_javascript(node, scope, parent, analysis)

    def _enter_javascript(
        self,
        node: SyntaxNode,
        scope: Scope,
        parent: SyntaxNode | None,
        analysis: ScopeAnalysis,
    ) -> Scope:
        kind = node.kind

        if node.is_function:
            if kind is NodeKind.FUNCTION_DECLARATION and parent is not None and parent.kind in _STATEMENT_CONTAINERS:
                self._declare(scope.function_scope(), node.name, "function", node)
            inner = self._new_scope(SCOPE_FUNCTION, node, scope, analysis)
            if kind is NodeKind.FUNCTION_EXPRESSION and node.name:
                self._declare(inner, node.name, "function", node)
            self._declare_parameters(node, inner)
            return inner

        if kind is NodeKind.CLASS_DECLARATION:
            if node.name and parent is not None and parent.kind in _STATEMENT_CONTAINERS:
                self._declare(scope, node.name, "class", node)
            return scope

        if kind is NodeKind.VARIABLE_DECLARATION:
            target = scope.function_scope() if node.operator == "var" else scope
            for declarator in node.children:
                self._declare_declarator(declarator, target, node.operator or "var")
            return scope

        if kind is NodeKind.IMPORT:
            for declarator in node.children:
                self._declare(analysis.root, declarator.name, "import", declarator)
            return scope

        if kind in _JS_BLOCK_SCOPES:
            if kind is NodeKind.BLOCK and scope.kind == SCOPE_FUNCTION and scope.node.children[-1] is node:
                return scope
            inner = self._new_scope(SCOPE_BLOCK, node, scope, analysis)
            if kind is NodeKind.CATCH:
                if node.name:
                    self._declare(inner, node.name, "catch", node)
                elif len(node.children) > 1:
                    self._declare_pattern(inner, node.children[0], "catch", node)
            return inner

        return scope

    def _enter_python(self, node: SyntaxNode, scope: Scope, analysis: ScopeAnalysis) -> Scope:
        kind = node.kind

        if node.is_function:
            if node.name:
                self._declare(scope, node.name, "function", node)
            inner = self._new_scope(SCOPE_FUNCTION, node, scope, analysis)
            self._declare_parameters(node, inner)
            return inner

        if kind is NodeKind.CLASS_DECLARATION:
            self._declare(scope, node.name, "class", node)
            return self._new_scope(SCOPE_CLASS, node, scope, analysis)

        if kind is NodeKind.COMPREHENSION:
            return self._new_scope(SCOPE_COMPREHENSION, node, scope, analysis)

        if kind is NodeKind.GLOBAL:
            scope.globals.update(node.value or ())
        elif kind is NodeKind.NONLOCAL:
            scope.nonlocals.update(node.value or ())
        elif kind is NodeKind.VARIABLE_DECLARATION:
            for declarator in node.children:
                self._declare_declarator(declarator, scope, node.operator or "const")
        elif kind is NodeKind.DECLARATOR:
            # for/with/comprehension targets; declarations and imports bind through their parents.
            self._declare_declarator(node, scope, "variable")
        elif kind is NodeKind.IMPORT:
            for declarator in node.children:
                self._sites.add(declarator)
                self._declare(scope, declarator.name, "import", declarator)
        elif kind is NodeKind.CATCH and node.name:
            self._declare(_binding_scope(scope), node.name, "catch", node)
        elif kind is NodeKind.ASSIGNMENT and node.children:
            self._declare_pattern(_binding_scope(scope), node.children[0], "variable", node)

        return scope

    def _declare_parameters(self, function: SyntaxNode, scope: Scope) -> None:
        parameters = function.child(NodeKind.PARAMETERS)
        if parameters is None:
            return
        for parameter in parameters.children:
            if parameter.name:
                self._declare(scope, parameter.name, "parameter", parameter)
            elif parameter.children:
                self._declare_pattern(scope, parameter.children[0], "parameter", parameter)

    def _declare_declarator(self, declarator: SyntaxNode, scope: Scope, kind: str) -> None:
        if declarator.kind is not NodeKind.DECLARATOR or declarator in self._sites:
            return
        self._sites.add(declarator)
        if declarator.operator == "pattern":
            if declarator.children:
                self._declare_pattern(scope, declarator.children[0], kind, declarator)
        else:
            self._declare(scope, declarator.name, kind, declarator)


def _binding_scope(scope: Scope) -> Scope:
    # Walrus targets inside a comprehension bind in the enclosing scope.
    while scope.kind == SCOPE_COMPREHENSION and scope.parent is not None:
        scope = scope.parent
    return scope
