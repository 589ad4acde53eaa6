from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Iterator


SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"
SEVERITIES = (SEVERITY_ERROR, SEVERITY_WARNING)

LANGUAGE_JAVASCRIPT = "javascript"
LANGUAGE_PYTHON = "python"
LANGUAGES = (LANGUAGE_JAVASCRIPT, LANGUAGE_PYTHON)


DEFAULT_INCLUDE_EXTS = (".js", ".mjs", ".cjs", ".py")
DEFAULT_EXCLUDE_DIRS = (".git", "node_modules", "__pycache__", ".venv", "venv", "dist", "build")


@dataclass(frozen=True)
class ScanSettings:
    include_exts: tuple[str, ...] = DEFAULT_INCLUDE_EXTS
    exclude_dirs: tuple[str, ...] = DEFAULT_EXCLUDE_DIRS
    max_file_size_bytes: int = 500_000
    max_files: int = 40_000


@dataclass(frozen=True)
class RuleSettings:
    enabled: bool = True
    severity: str | None = None
    options: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class LintConfig:
    scan: ScanSettings = field(default_factory=ScanSettings)
    rules: dict[str, RuleSettings] = field(default_factory=dict)


@dataclass(frozen=True, order=True)
class SourceSpan:
    start_line: int
    start_column: int
    end_line: int
    end_column: int

    @classmethod
    def between(cls, start: SourceSpan, end: SourceSpan) -> SourceSpan:
        return cls(start.start_line, start.start_column, end.end_line, end.end_column)

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


class TokenKind(Enum):
    IDENTIFIER = "identifier"
    KEYWORD = "keyword"
    NUMBER = "number"
    STRING = "string"
    TEMPLATE = "template"
    REGEX = "regex"
    PUNCTUATOR = "punctuator"
    EOF = "eof"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    span: SourceSpan


@dataclass(frozen=True)
class SourceUnit:
    path: str
    language: str
    text: str
    tokens: tuple[Token, ...] = ()
    lines: tuple[str, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "lines", tuple(self.text.split("\n")))

    def contains(self, span: SourceSpan) -> bool:
        if span.start_line < 1 or span.end_line > len(self.lines):
            return False
        if (span.start_line, span.start_column) > (span.end_line, span.end_column):
            return False
        if span.start_column < 1 or span.end_column < 1:
            return False
        if span.start_column > len(self.lines[span.start_line - 1]) + 1:
            return False
        return span.end_column <= len(self.lines[span.end_line - 1]) + 1


class NodeKind(Enum):
    PROGRAM = "program"
    BLOCK = "block"
    EMPTY = "empty"
    EXPRESSION_STATEMENT = "expression_statement"
    VARIABLE_DECLARATION = "variable_declaration"
    DECLARATOR = "declarator"
    FUNCTION_DECLARATION = "function_declaration"
    FUNCTION_EXPRESSION = "function_expression"
    ARROW_FUNCTION = "arrow_function"
    METHOD = "method"
    PARAMETERS = "parameters"
    PARAMETER = "parameter"
    CLASS_DECLARATION = "class_declaration"
    EXPORT = "export"
    IMPORT = "import"
    GLOBAL = "global"
    NONLOCAL = "nonlocal"
    RETURN = "return"
    IF = "if"
    WHILE = "while"
    DO_WHILE = "do_while"
    FOR = "for"
    FOR_OF = "for_of"
    SWITCH = "switch"
    CASE = "case"
    BREAK = "break"
    CONTINUE = "continue"
    THROW = "throw"
    TRY = "try"
    CATCH = "catch"
    ASSIGNMENT = "assignment"
    UPDATE = "update"
    IDENTIFIER = "identifier"
    LITERAL = "literal"
    TEMPLATE = "template"
    CALL = "call"
    NEW = "new"
    MEMBER = "member"
    BINARY = "binary"
    UNARY = "unary"
    CONDITIONAL = "conditional"
    ARRAY = "array"
    OBJECT = "object"
    PROPERTY = "property"
    SPREAD = "spread"
    SEQUENCE = "sequence"
    COMPREHENSION = "comprehension"
    THIS = "this"
    SUPER = "super"
    OTHER = "other"


FUNCTION_KINDS = frozenset(
    {
        NodeKind.FUNCTION_DECLARATION,
        NodeKind.FUNCTION_EXPRESSION,
        NodeKind.ARROW_FUNCTION,
        NodeKind.METHOD,
    }
)


@dataclass(frozen=True, eq=False)
class SyntaxNode:
    kind: NodeKind
    span: SourceSpan
    children: tuple[SyntaxNode, ...] = ()
    name: str | None = None
    value: Any = None
    operator: str | None = None

    @property
    def is_function(self) -> bool:
        return self.kind in FUNCTION_KINDS

    @property
    def is_numeric_literal(self) -> bool:
        return (
            self.kind is NodeKind.LITERAL
            and isinstance(self.value, (int, float, complex))
            and not isinstance(self.value, bool)
        )

    @property
    def is_boolean_literal(self) -> bool:
        return self.kind is NodeKind.LITERAL and isinstance(self.value, bool)

    def child(self, kind: NodeKind) -> SyntaxNode | None:
        for item in self.children:
            if item.kind is kind:
                return item
        return None

    def walk(self) -> Iterator[SyntaxNode]:
        # Pre-order, iterative so deeply nested sources do not hit the recursion limit.
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))


@dataclass(frozen=True)
class Finding:
    rule_id: str
    path: str
    span: SourceSpan
    message: str
    severity: str = SEVERITY_ERROR

    def to_dict(self) -> dict[str, Any]:
        return {
            "rule_id": self.rule_id,
            "path": self.path,
            "line": self.span.start_line,
            "column": self.span.start_column,
            "end_line": self.span.end_line,
            "end_column": self.span.end_column,
            "severity": self.severity,
            "message": self.message,
        }


DIAGNOSTIC_SYNTAX = "syntax-error"
DIAGNOSTIC_EVALUATION = "evaluation-error"
DIAGNOSTIC_READ = "read-error"


@dataclass(frozen=True)
class Diagnostic:
    kind: str
    path: str
    span: SourceSpan | None
    message: str
    rule_id: str = ""
    severity: str = SEVERITY_ERROR

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "path": self.path,
            "rule_id": self.rule_id,
            "line": self.span.start_line if self.span else None,
            "column": self.span.start_column if self.span else None,
            "severity": self.severity,
            "message": self.message,
        }


@dataclass(frozen=True)
class FileResult:
    path: str
    language: str
    findings: tuple[Finding, ...] = ()
    diagnostics: tuple[Diagnostic, ...] = ()

    @property
    def has_errors(self) -> bool:
        return any(item.severity == SEVERITY_ERROR for item in self.findings) or any(
            item.severity == SEVERITY_ERROR for item in self.diagnostics
        )


@dataclass(frozen=True)
class LintRun:
    results: tuple[FileResult, ...]

    @property
    def findings(self) -> list[Finding]:
        return [item for result in self.results for item in result.findings]

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return [item for result in self.results for item in result.diagnostics]

    @property
    def exit_code(self) -> int:
        return 1 if any(result.has_errors for result in self.results) else 0

    def summary(self) -> dict[str, Any]:
        findings = self.findings
        return {
            "files_scanned": len(self.results),
            "findings_count": len(findings),
            "error_count": sum(1 for item in findings if item.severity == SEVERITY_ERROR),
            "warning_count": sum(1 for item in findings if item.severity == SEVERITY_WARNING),
            "diagnostics_count": len(self.diagnostics),
            "exit_code": self.exit_code,
        }
