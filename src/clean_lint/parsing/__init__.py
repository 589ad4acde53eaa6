from __future__ import annotations

from clean_lint.models import LANGUAGE_JAVASCRIPT, LANGUAGE_PYTHON, SourceUnit, SyntaxNode, Token
from clean_lint.parsing.errors import SourceSyntaxError
from clean_lint.parsing.lexer import tokenize
from clean_lint.parsing.parser import parse_tokens
from clean_lint.parsing.python_ast import parse_python, tokenize_python


__all__ = ["SourceSyntaxError", "parse_unit", "tokenize_source"]


def tokenize_source(text: str, language: str) -> tuple[Token, ...]:
    if language == LANGUAGE_JAVASCRIPT:
        return tuple(tokenize(text))
    if language == LANGUAGE_PYTHON:
        return tuple(tokenize_python(text))
    raise ValueError(f"Unsupported language: {language}")


def parse_unit(unit: SourceUnit) -> SyntaxNode:
    if unit.language == LANGUAGE_JAVASCRIPT:
        tokens = list(unit.tokens) if unit.tokens else tokenize(unit.text)
        return parse_tokens(tokens)
    if unit.language == LANGUAGE_PYTHON:
        return parse_python(unit.text)
    raise ValueError(f"Unsupported language: {unit.language}")
