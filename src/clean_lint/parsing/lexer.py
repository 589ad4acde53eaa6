"""Tokenizer for the supported JavaScript subset."""

from __future__ import annotations

from clean_lint.models import SourceSpan, Token, TokenKind
from clean_lint.parsing.errors import SourceSyntaxError


KEYWORDS = frozenset(
    {
        "break",
        "case",
        "catch",
        "class",
        "const",
        "continue",
        "default",
        "delete",
        "do",
        "else",
        "export",
        "extends",
        "false",
        "finally",
        "for",
        "function",
        "if",
        "import",
        "in",
        "instanceof",
        "let",
        "new",
        "null",
        "return",
        "super",
        "switch",
        "this",
        "throw",
        "true",
        "try",
        "typeof",
        "var",
        "void",
        "while",
    }
)

# Longest first: the scanner takes the first entry that matches.
PUNCTUATORS = (
    ">>>=",
    "...",
    "===",
    "!==",
    "**=",
    "<<=",
    ">>=",
    ">>>",
    "&&=",
    "||=",
    "??=",
    "=>",
    "==",
    "!=",
    "<=",
    ">=",
    "&&",
    "||",
    "??",
    "?.",
    "++",
    "--",
    "+=",
    "-=",
    "*=",
    "/=",
    "%=",
    "&=",
    "|=",
    "^=",
    "**",
    "<<",
    ">>",
    "{",
    "}",
    "(",
    ")",
    "[",
    "]",
    ";",
    ",",
    "<",
    ">",
    "+",
    "-",
    "*",
    "/",
    "%",
    "&",
    "|",
    "^",
    "!",
    "~",
    "?",
    ":",
    "=",
    ".",
)

WHITESPACE = frozenset(" \t\r\n\f\v\u00a0\ufeff\u2028\u2029")

# After these tokens a "/" is division; anywhere else it opens a regular expression.
_DIVISION_PRECEDERS = frozenset({")", "]", "}", "this", "super", "null", "true", "false"})
_RADIX_DIGITS = {"x": "0123456789abcdefABCDEF", "o": "01234567", "b": "01"}


def tokenize(text: str) -> list[Token]:
    return Lexer(text).tokenize()


def template_substitutions(token: Token) -> list[tuple[str, int, int]]:
    """Source text and start line/column of each top-level `${...}` in a template token."""
    return Lexer(token.text, token.span.start_line, token.span.start_column).substitutions()


class Lexer:
    def __init__(self, text: str, line: int = 1, column: int = 1):
        self.text = text
        self.pos = 0
        self.line = line
        self.column = column
        self.tokens: list[Token] = []

    def tokenize(self) -> list[Token]:
        while True:
            self._skip_trivia()
            if self.pos >= len(self.text):
                break
            self.tokens.append(self._next_token())

        self.tokens.append(Token(TokenKind.EOF, "", SourceSpan(self.line, self.column, self.line, self.column)))
        return self.tokens

    def _peek(self, offset: int = 0) -> str:
        index = self.pos + offset
        if index >= len(self.text):
            return ""
        return self.text[index]

    def _advance(self, count: int = 1) -> str:
        consumed = self.text[self.pos : self.pos + count]
        for ch in consumed:
            if ch == "\n":
                self.line += 1
                self.column = 1
            else:
                self.column += 1
        self.pos += len(consumed)
        return consumed

    def _error(self, message: str, line: int | None = None, column: int | None = None) -> SourceSyntaxError:
        return SourceSyntaxError(
            message,
            self.line if line is None else line,
            self.column if column is None else column,
        )

    def _skip_trivia(self) -> None:
        while self.pos < len(self.text):
            ch = self._peek()
            if ch in WHITESPACE:
                self._advance()
            elif ch == "/" and self._peek(1) == "/":
                while self.pos < len(self.text) and self._peek() != "\n":
                    self._advance()
            elif ch == "/" and self._peek(1) == "*":
                line, column = self.line, self.column
                end = self.text.find("*/", self.pos + 2)
                if end < 0:
                    raise self._error("Unterminated comment", line, column)
                self._advance(end + 2 - self.pos)
            else:
                break

    def _next_token(self) -> Token:
        line, column = self.line, self.column
        ch = self._peek()

        if _is_identifier_start(ch):
            text = self._read_word()
            kind = TokenKind.KEYWORD if text in KEYWORDS else TokenKind.IDENTIFIER
        elif ch.isdigit() or (ch == "." and self._peek(1).isdigit()):
            text = self._read_number()
            kind = TokenKind.NUMBER
        elif ch in "'\"":
            text = self._read_string(ch)
            kind = TokenKind.STRING
        elif ch == "`":
            text = self._read_template()
            kind = TokenKind.TEMPLATE
        elif ch == "/" and self._regex_allowed():
            text = self._read_regex()
            kind = TokenKind.REGEX
        else:
            text = self._read_punctuator()
            kind = TokenKind.PUNCTUATOR

        return Token(kind, text, SourceSpan(line, column, self.line, self.column))

    def _read_word(self) -> str:
        start = self.pos
        while self.pos < len(self.text):
            ch = self._peek()
            if _is_identifier_part(ch):
                self._advance()
            else:
                break
        return self.text[start : self.pos]

    def _read_number(self) -> str:
        start = self.pos
        line, column = self.line, self.column

        if self._peek() == "0" and self._peek(1) and self._peek(1).lower() in _RADIX_DIGITS:
            digits = _RADIX_DIGITS[self._advance(2)[1].lower()]
            if self._peek() == "" or self._peek() not in digits:
                raise self._error("Missing digits after numeric prefix", line, column)
            while self._peek() and (
                self._peek() in digits or (self._peek() == "_" and self._peek(1) and self._peek(1) in digits)
            ):
                self._advance()
            if self._peek() == "n":
                self._advance()
        else:
            self._consume_digits()
            if self._peek() == ".":
                self._advance()
                self._consume_digits()
            if self._peek().lower() == "e":
                self._advance()
                if self._peek() and self._peek() in "+-":
                    self._advance()
                if not self._peek().isdigit():
                    raise self._error("Malformed exponent in numeric literal", line, column)
                self._consume_digits()
            if self._peek() == "n":
                self._advance()

        if _is_identifier_part(self._peek()):
            raise self._error("Identifier directly after numeric literal", line, column)
        return self.text[start : self.pos]

    def _consume_digits(self) -> None:
        while self._peek().isdigit() or (self._peek() == "_" and self._peek(1).isdigit()):
            self._advance()

    def _read_string(self, quote: str) -> str:
        start = self.pos
        line, column = self.line, self.column
        self._advance()
        while True:
            ch = self._peek()
            if ch == "" or ch == "\n":
                raise self._error("Unterminated string literal", line, column)
            if ch == "\\":
                self._advance(2)
                continue
            self._advance()
            if ch == quote:
                break
        return self.text[start : self.pos]

    def _read_template(self) -> str:
        start = self.pos
        line, column = self.line, self.column
        self._advance()
        while True:
            ch = self._peek()
            if ch == "":
                raise self._error("Unterminated template literal", line, column)
            if ch == "\\":
                self._advance(2)
            elif ch == "`":
                self._advance()
                break
            elif ch == "$" and self._peek(1) == "{":
                self._advance(2)
                self._skip_substitution(line, column)
            else:
                self._advance()
        return self.text[start : self.pos]

    def _skip_substitution(self, line: int, column: int) -> None:
        depth = 1
        while depth:
            ch = self._peek()
            if ch == "":
                raise self._error("Unterminated template substitution", line, column)
            if ch in "'\"":
                self._read_string(ch)
            elif ch == "`":
                self._read_template()
            elif ch == "{":
                depth += 1
                self._advance()
            elif ch == "}":
                depth -= 1
                self._advance()
            else:
                self._advance()

    def substitutions(self) -> list[tuple[str, int, int]]:
        line, column = self.line, self.column
        found: list[tuple[str, int, int]] = []
        self._advance()
        while self.pos < len(self.text):
            ch = self._peek()
            if ch == "\\":
                self._advance(2)
            elif ch == "$" and self._peek(1) == "{":
                self._advance(2)
                start, start_line, start_column = self.pos, self.line, self.column
                self._skip_substitution(line, column)
                found.append((self.text[start : self.pos - 1], start_line, start_column))
            else:
                self._advance()
        return found

    def _regex_allowed(self) -> bool:
        if not self.tokens:
            return True
        previous = self.tokens[-1]
        if previous.kind in (TokenKind.IDENTIFIER, TokenKind.NUMBER, TokenKind.STRING, TokenKind.TEMPLATE, TokenKind.REGEX):
            return False
        if previous.text in ("++", "--") and len(self.tokens) > 1:
            # Postfix update ends an operand.
            operand = self.tokens[-2]
            return not (operand.kind is TokenKind.IDENTIFIER or operand.text in (")", "]"))
        return previous.text not in _DIVISION_PRECEDERS

    def _read_regex(self) -> str:
        start = self.pos
        line, column = self.line, self.column
        self._advance()
        in_class = False
        while True:
            ch = self._peek()
            if ch == "" or ch == "\n":
                raise self._error("Unterminated regular expression", line, column)
            if ch == "\\":
                self._advance(2)
                continue
            self._advance()
            if ch == "[":
                in_class = True
            elif ch == "]":
                in_class = False
            elif ch == "/" and not in_class:
                break
        while self._peek().isalpha():
            self._advance()
        return self.text[start : self.pos]

    def _read_punctuator(self) -> str:
        for candidate in PUNCTUATORS:
            if self.text.startswith(candidate, self.pos):
                if candidate == "?." and self._peek(2).isdigit():
                    continue
                return self._advance(len(candidate))
        raise self._error(f"Unexpected character {self._peek()!r}")


def _is_identifier_start(ch: str) -> bool:
    return ch != "" and (ch.isalpha() or ch in "_$")


def _is_identifier_part(ch: str) -> bool:
    return ch != "" and (ch.isalnum() or ch in "_$")
