"""Recursive-descent parser for the supported JavaScript subset.

Builds the language-neutral ``SyntaxNode`` tree shared with the Python front end.
Node layout conventions the rules rely on:

- function nodes: ``(PARAMETERS, body)``; ``name`` holds the declared name.
- ``VARIABLE_DECLARATION``: ``operator`` is ``const``/``let``/``var``; children are
  ``DECLARATOR`` nodes whose only child is the initializer (or, with
  ``operator="pattern"``, the destructuring pattern followed by the initializer).
- ``ASSIGNMENT``: ``(target, value)``; ``UPDATE``: ``(target,)``.
- ``MEMBER``: ``(object,)`` with the property in ``name``, or ``(object, key)``
  for computed access.
- ``TEMPLATE``: one child per ``${...}`` substitution; the raw text is in ``value``.
"""

from __future__ import annotations

import re

from clean_lint.models import NodeKind, SourceSpan, SyntaxNode, Token, TokenKind
from clean_lint.parsing.errors import SourceSyntaxError
from clean_lint.parsing.lexer import Lexer, template_substitutions


ASSIGNMENT_OPERATORS = frozenset(
    {"=", "+=", "-=", "*=", "/=", "%=", "**=", "<<=", ">>=", ">>>=", "&=", "|=", "^=", "&&=", "||=", "??="}
)

BINARY_PRECEDENCE = {
    "??": 1,
    "||": 2,
    "&&": 3,
    "|": 4,
    "^": 5,
    "&": 6,
    "==": 7,
    "!=": 7,
    "===": 7,
    "!==": 7,
    "<": 8,
    ">": 8,
    "<=": 8,
    ">=": 8,
    "instanceof": 8,
    "in": 8,
    "<<": 9,
    ">>": 9,
    ">>>": 9,
    "+": 10,
    "-": 10,
    "*": 11,
    "/": 11,
    "%": 11,
    "**": 12,
}

UNARY_OPERATORS = frozenset({"!", "-", "+", "~", "typeof", "void", "delete"})

MEMBER_MODIFIERS = frozenset({"static", "async", "get", "set"})

_EXPRESSION_KEYWORDS = frozenset(
    {"this", "super", "null", "true", "false", "function", "class", "new", "typeof", "void", "delete"}
)
_EXPRESSION_PUNCTUATORS = frozenset({"(", "[", "{", "!", "-", "+", "~", "++", "--"})
_ASSIGNABLE = frozenset({NodeKind.IDENTIFIER, NodeKind.MEMBER, NodeKind.ARRAY, NodeKind.OBJECT})

_ESCAPE_RE = re.compile(r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|\r\n|.)", re.DOTALL)
_SIMPLE_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0"}


def parse_tokens(tokens: list[Token]) -> SyntaxNode:
    return Parser(tokens).parse_program()


class Parser:
    def __init__(self, tokens: list[Token]):
        if not tokens or tokens[-1].kind is not TokenKind.EOF:
            raise ValueError("token stream must end with an EOF token")
        self.tokens = tokens
        self.index = 0

    # -- token helpers -------------------------------------------------

    @property
    def current(self) -> Token:
        return self.tokens[self.index]

    @property
    def previous(self) -> Token:
        return self.tokens[max(self.index - 1, 0)]

    def _peek(self, offset: int = 1) -> Token:
        return self.tokens[min(self.index + offset, len(self.tokens) - 1)]

    def _advance(self) -> Token:
        token = self.current
        if token.kind is not TokenKind.EOF:
            self.index += 1
        return token

    def _at(self, *texts: str) -> bool:
        token = self.current
        return token.kind in (TokenKind.PUNCTUATOR, TokenKind.KEYWORD) and token.text in texts

    def _at_word(self, *words: str) -> bool:
        return self.current.kind is TokenKind.IDENTIFIER and self.current.text in words

    def _accept(self, text: str) -> Token | None:
        if self._at(text):
            return self._advance()
        return None

    def _accept_word(self, word: str) -> Token | None:
        if self._at_word(word):
            return self._advance()
        return None

    def _expect(self, text: str) -> Token:
        if not self._at(text):
            raise self._error(f"Expected '{text}' but found {_describe(self.current)}")
        return self._advance()

    def _expect_word(self, word: str) -> Token:
        if not self._at_word(word):
            raise self._error(f"Expected '{word}' but found {_describe(self.current)}")
        return self._advance()

    def _expect_kind(self, kind: TokenKind, what: str) -> Token:
        if self.current.kind is not kind:
            raise self._error(f"Expected {what} but found {_describe(self.current)}")
        return self._advance()

    def _error(self, message: str, token: Token | None = None) -> SourceSyntaxError:
        span = (token or self.current).span
        return SourceSyntaxError(message, span.start_line, span.start_column)

    def _span_from(self, start: Token | SourceSpan) -> SourceSpan:
        begin = start.span if isinstance(start, Token) else start
        end = self.previous.span
        return SourceSpan(begin.start_line, begin.start_column, end.end_line, end.end_column)

    def _same_line(self) -> bool:
        return self.current.span.start_line == self.previous.span.end_line

    def _end_statement(self) -> None:
        self._accept(";")

    # -- statements ----------------------------------------------------

    def parse_program(self) -> SyntaxNode:
        statements: list[SyntaxNode] = []
        while self.current.kind is not TokenKind.EOF:
            statements.append(self._statement())
        end = self.current.span
        return SyntaxNode(NodeKind.PROGRAM, SourceSpan(1, 1, end.end_line, end.end_column), tuple(statements))

    def parse_expression(self) -> SyntaxNode:
        expression = self._expression()
        self._expect_kind(TokenKind.EOF, "'}'")
        return expression

    def _statement(self) -> SyntaxNode:
        token = self.current

        if token.kind is TokenKind.KEYWORD:
            handler = {
                "function": self._function_statement,
                "class": self._class_statement,
                "const": self._declaration_statement,
                "let": self._declaration_statement,
                "var": self._declaration_statement,
                "return": self._return,
                "if": self._if,
                "while": self._while,
                "do": self._do_while,
                "for": self._for,
                "switch": self._switch,
                "break": self._jump,
                "continue": self._jump,
                "throw": self._throw,
                "try": self._try,
                "export": self._export,
            }.get(token.text)
            if handler is not None:
                return handler()
            if token.text == "import" and self._peek().text not in ("(", "."):
                return self._import()

        if token.kind is TokenKind.IDENTIFIER:
            if token.text == "async" and self._peek().text == "function" and self._peek().kind is TokenKind.KEYWORD:
                return self._function_statement()
            if self._peek().kind is TokenKind.PUNCTUATOR and self._peek().text == ":":
                # Labels carry no meaning for any rule; keep only the labelled statement.
                self._advance()
                self._advance()
                return self._statement()

        if self._at("{"):
            return self._block()
        if self._at(";"):
            self._advance()
            return SyntaxNode(NodeKind.EMPTY, token.span)

        expression = self._expression()
        self._end_statement()
        return SyntaxNode(NodeKind.EXPRESSION_STATEMENT, self._span_from(token), (expression,))

    def _block(self) -> SyntaxNode:
        start = self._expect("{")
        statements: list[SyntaxNode] = []
        while not self._at("}"):
            if self.current.kind is TokenKind.EOF:
                raise self._error("Expected '}' but found end of input")
            statements.append(self._statement())
        self._advance()
        return SyntaxNode(NodeKind.BLOCK, self._span_from(start), tuple(statements))

    def _declaration_statement(self) -> SyntaxNode:
        declaration = self._variable_declaration()
        self._end_statement()
        return declaration

    def _variable_declaration(self) -> SyntaxNode:
        keyword = self._advance()
        declarators = [self._declarator()]
        while self._accept(","):
            declarators.append(self._declarator())
        return SyntaxNode(
            NodeKind.VARIABLE_DECLARATION,
            self._span_from(keyword),
            tuple(declarators),
            operator=keyword.text,
        )

    def _declarator(self) -> SyntaxNode:
        start = self.current
        if self._at("{", "["):
            pattern = self._primary()
            children = (pattern, self._assignment()) if self._accept("=") else (pattern,)
            return SyntaxNode(NodeKind.DECLARATOR, self._span_from(start), children, operator="pattern")

        name = self._expect_kind(TokenKind.IDENTIFIER, "a variable name").text
        children = (self._assignment(),) if self._accept("=") else ()
        return SyntaxNode(NodeKind.DECLARATOR, self._span_from(start), children, name=name)

    def _function_statement(self) -> SyntaxNode:
        return self._function(NodeKind.FUNCTION_DECLARATION)

    def _function(self, kind: NodeKind, *, anonymous_ok: bool = False) -> SyntaxNode:
        start = self.current
        modifier = None
        if self._accept_word("async"):
            modifier = "async"
        self._expect("function")
        if self._accept("*"):
            modifier = "generator" if modifier is None else "async generator"

        name = None
        if self.current.kind is TokenKind.IDENTIFIER:
            name = self._advance().text
        elif kind is NodeKind.FUNCTION_DECLARATION:
            if not anonymous_ok:
                raise self._error(f"Expected a function name but found {_describe(self.current)}")
            kind = NodeKind.FUNCTION_EXPRESSION

        parameters = self._parameters()
        body = self._block()
        return SyntaxNode(kind, self._span_from(start), (parameters, body), name=name, operator=modifier)

    def _parameters(self) -> SyntaxNode:
        start = self._expect("(")
        parameters: list[SyntaxNode] = []
        while not self._at(")"):
            parameters.append(self._parameter())
            if not self._accept(","):
                break
        self._expect(")")
        return SyntaxNode(NodeKind.PARAMETERS, self._span_from(start), tuple(parameters))

    def _parameter(self) -> SyntaxNode:
        start = self.current
        if self._accept("..."):
            if self._at("{", "["):
                pattern = self._primary()
                return SyntaxNode(NodeKind.PARAMETER, self._span_from(start), (pattern,), operator="...")
            name = self._expect_kind(TokenKind.IDENTIFIER, "a parameter name").text
            return SyntaxNode(NodeKind.PARAMETER, self._span_from(start), name=name, operator="...")

        if self._at("{", "["):
            pattern = self._primary()
            children = (pattern, self._assignment()) if self._accept("=") else (pattern,)
            return SyntaxNode(NodeKind.PARAMETER, self._span_from(start), children, operator="pattern")

        name = self._expect_kind(TokenKind.IDENTIFIER, "a parameter name").text
        children = (self._assignment(),) if self._accept("=") else ()
        return SyntaxNode(NodeKind.PARAMETER, self._span_from(start), children, name=name)

    def _class_statement(self) -> SyntaxNode:
        return self._class(require_name=True)

    def _class(self, *, require_name: bool) -> SyntaxNode:
        start = self._expect("class")
        name = None
        if self.current.kind is TokenKind.IDENTIFIER:
            name = self._advance().text
        elif require_name:
            raise self._error(f"Expected a class name but found {_describe(self.current)}")

        members: list[SyntaxNode] = []
        if self._accept("extends"):
            members.append(self._call_member())
        self._expect("{")
        while not self._at("}"):
            if self.current.kind is TokenKind.EOF:
                raise self._error("Expected '}' but found end of input")
            if self._accept(";"):
                continue
            members.append(self._class_member())
        self._advance()
        return SyntaxNode(NodeKind.CLASS_DECLARATION, self._span_from(start), tuple(members), name=name)

    def _class_member(self) -> SyntaxNode:
        start = self.current
        modifiers: list[str] = []
        while self._at_word(*MEMBER_MODIFIERS) and self._peek().text not in ("(", "=", ";", "}"):
            modifiers.append(self._advance().text)
        if self._accept("*"):
            modifiers.append("generator")

        name, key = self._property_key()
        if self._at("("):
            parameters = self._parameters()
            body = self._block()
            children = (key, parameters, body) if key is not None else (parameters, body)
            return SyntaxNode(
                NodeKind.METHOD,
                self._span_from(start),
                children,
                name=name,
                operator=" ".join(modifiers) or None,
            )

        children = (key,) if key is not None else ()
        if self._accept("="):
            children += (self._assignment(),)
        self._end_statement()
        return SyntaxNode(NodeKind.PROPERTY, self._span_from(start), children, name=name, operator="field")

    def _return(self) -> SyntaxNode:
        start = self._advance()
        children: tuple[SyntaxNode, ...] = ()
        if not self._at(";", "}") and self.current.kind is not TokenKind.EOF and self._same_line():
            children = (self._expression(),)
        self._end_statement()
        return SyntaxNode(NodeKind.RETURN, self._span_from(start), children)

    def _if(self) -> SyntaxNode:
        start = self._advance()
        self._expect("(")
        test = self._expression()
        self._expect(")")
        children = [test, self._statement()]
        if self._accept("else"):
            children.append(self._statement())
        return SyntaxNode(NodeKind.IF, self._span_from(start), tuple(children))

    def _while(self) -> SyntaxNode:
        start = self._advance()
        self._expect("(")
        test = self._expression()
        self._expect(")")
        body = self._statement()
        return SyntaxNode(NodeKind.WHILE, self._span_from(start), (test, body))

    def _do_while(self) -> SyntaxNode:
        start = self._advance()
        body = self._statement()
        self._expect("while")
        self._expect("(")
        test = self._expression()
        self._expect(")")
        self._end_statement()
        return SyntaxNode(NodeKind.DO_WHILE, self._span_from(start), (body, test))

    def _for(self) -> SyntaxNode:
        start = self._advance()
        self._accept_word("await")
        self._expect("(")

        init: SyntaxNode | None = None
        if self._at("const", "let", "var"):
            init = self._variable_declaration()
        elif not self._at(";"):
            init = self._expression()

        if init is not None and (self._at_word("of") or self._at("in")):
            operator = self._advance().text
            right = self._expression()
            return self._for_of_rest(start, (init, right), operator)

        if (
            init is not None
            and init.kind is NodeKind.BINARY
            and init.operator == "in"
            and self._at(")")
        ):
            return self._for_of_rest(start, init.children, "in")

        self._expect(";")
        test = None if self._at(";") else self._expression()
        self._expect(";")
        update = None if self._at(")") else self._expression()
        self._expect(")")
        body = self._statement()
        children = tuple(item for item in (init, test, update) if item is not None) + (body,)
        return SyntaxNode(NodeKind.FOR, self._span_from(start), children)

    def _for_of_rest(self, start: Token, head: tuple[SyntaxNode, ...], operator: str) -> SyntaxNode:
        self._expect(")")
        body = self._statement()
        return SyntaxNode(NodeKind.FOR_OF, self._span_from(start), head + (body,), operator=operator)

    def _switch(self) -> SyntaxNode:
        start = self._advance()
        self._expect("(")
        discriminant = self._expression()
        self._expect(")")
        self._expect("{")

        cases: list[SyntaxNode] = []
        while not self._at("}"):
            case_start = self.current
            if self._accept("case"):
                body = [self._expression()]
                operator = "case"
            elif self._accept("default"):
                body = []
                operator = "default"
            else:
                raise self._error(f"Expected 'case' or 'default' but found {_describe(self.current)}")
            self._expect(":")
            while not self._at("case", "default", "}"):
                if self.current.kind is TokenKind.EOF:
                    raise self._error("Expected '}' but found end of input")
                body.append(self._statement())
            cases.append(SyntaxNode(NodeKind.CASE, self._span_from(case_start), tuple(body), operator=operator))

        self._advance()
        return SyntaxNode(NodeKind.SWITCH, self._span_from(start), (discriminant, *cases))

    def _jump(self) -> SyntaxNode:
        keyword = self._advance()
        if self.current.kind is TokenKind.IDENTIFIER and self._same_line():
            self._advance()
        self._end_statement()
        kind = NodeKind.BREAK if keyword.text == "break" else NodeKind.CONTINUE
        return SyntaxNode(kind, self._span_from(keyword))

    def _throw(self) -> SyntaxNode:
        start = self._advance()
        argument = self._expression()
        self._end_statement()
        return SyntaxNode(NodeKind.THROW, self._span_from(start), (argument,))

    def _try(self) -> SyntaxNode:
        start = self._advance()
        children = [self._block()]

        catch_start = self._accept("catch")
        if catch_start is not None:
            name = None
            catch_children: list[SyntaxNode] = []
            if self._accept("("):
                if self._at("{", "["):
                    catch_children.append(self._primary())
                else:
                    name = self._expect_kind(TokenKind.IDENTIFIER, "a catch binding").text
                self._expect(")")
            catch_children.append(self._block())
            children.append(
                SyntaxNode(NodeKind.CATCH, self._span_from(catch_start), tuple(catch_children), name=name)
            )

        if self._accept("finally"):
            children.append(self._block())
        elif catch_start is None:
            raise self._error(f"Expected 'catch' or 'finally' but found {_describe(self.current)}")

        return SyntaxNode(NodeKind.TRY, self._span_from(start), tuple(children))

    def _export(self) -> SyntaxNode:
        start = self._advance()

        if self._accept("default"):
            if self._at("function") or (self._at_word("async") and self._peek().text == "function"):
                declaration = self._function(NodeKind.FUNCTION_DECLARATION, anonymous_ok=True)
            elif self._at("class"):
                declaration = self._class(require_name=False)
            else:
                declaration = self._assignment()
                self._end_statement()
            return SyntaxNode(NodeKind.EXPORT, self._span_from(start), (declaration,), operator="default")

        if self._accept("*"):
            if self._accept_word("as"):
                self._advance()
            self._expect_word("from")
            self._expect_kind(TokenKind.STRING, "a module specifier")
            self._end_statement()
            return SyntaxNode(NodeKind.EXPORT, self._span_from(start), operator="*")

        if self._accept("{"):
            names: list[SyntaxNode] = []
            while not self._at("}"):
                token = self._advance()
                if token.kind not in (TokenKind.IDENTIFIER, TokenKind.KEYWORD):
                    raise self._error(f"Expected an export name but found {_describe(token)}", token)
                names.append(SyntaxNode(NodeKind.IDENTIFIER, token.span, name=token.text))
                if self._accept_word("as"):
                    self._advance()
                if not self._accept(","):
                    break
            self._expect("}")
            if self._accept_word("from"):
                # Re-exports name another module's bindings, not local ones.
                self._expect_kind(TokenKind.STRING, "a module specifier")
                names = []
            self._end_statement()
            return SyntaxNode(NodeKind.EXPORT, self._span_from(start), tuple(names))

        declaration = self._statement()
        if declaration.kind not in (
            NodeKind.FUNCTION_DECLARATION,
            NodeKind.CLASS_DECLARATION,
            NodeKind.VARIABLE_DECLARATION,
        ):
            raise self._error("Expected a declaration after 'export'", start)
        return SyntaxNode(NodeKind.EXPORT, self._span_from(start), (declaration,))

    def _import(self) -> SyntaxNode:
        start = self._advance()
        bindings: list[SyntaxNode] = []

        if self.current.kind is TokenKind.STRING:
            self._advance()
            self._end_statement()
            return SyntaxNode(NodeKind.IMPORT, self._span_from(start))

        if self.current.kind is TokenKind.IDENTIFIER and not self._at_word("from"):
            token = self._advance()
            bindings.append(SyntaxNode(NodeKind.DECLARATOR, token.span, name=token.text))
            self._accept(",")

        if self._accept("*"):
            self._expect_word("as")
            token = self._expect_kind(TokenKind.IDENTIFIER, "a namespace name")
            bindings.append(SyntaxNode(NodeKind.DECLARATOR, token.span, name=token.text))
        elif self._accept("{"):
            while not self._at("}"):
                token = self._advance()
                if token.kind not in (TokenKind.IDENTIFIER, TokenKind.KEYWORD, TokenKind.STRING):
                    raise self._error(f"Expected an import name but found {_describe(token)}", token)
                if self._accept_word("as"):
                    token = self._expect_kind(TokenKind.IDENTIFIER, "a local name")
                bindings.append(SyntaxNode(NodeKind.DECLARATOR, token.span, name=token.text))
                if not self._accept(","):
                    break
            self._expect("}")

        self._expect_word("from")
        self._expect_kind(TokenKind.STRING, "a module specifier")
        self._end_statement()
        return SyntaxNode(NodeKind.IMPORT, self._span_from(start), tuple(bindings))

    # -- expressions ---------------------------------------------------

    def _expression(self) -> SyntaxNode:
        start = self.current
        expression = self._assignment()
        if not self._at(","):
            return expression

        items = [expression]
        while self._accept(","):
            items.append(self._assignment())
        return SyntaxNode(NodeKind.SEQUENCE, self._span_from(start), tuple(items))

    def _assignment(self) -> SyntaxNode:
        if self._arrow_ahead():
            return self._arrow()

        start = self.current
        left = self._conditional()
        token = self.current
        if token.kind is TokenKind.PUNCTUATOR and token.text in ASSIGNMENT_OPERATORS:
            if left.kind not in _ASSIGNABLE:
                raise self._error("Invalid assignment target", start)
            self._advance()
            right = self._assignment()
            return SyntaxNode(NodeKind.ASSIGNMENT, self._span_from(start), (left, right), operator=token.text)
        return left

    def _arrow_ahead(self) -> bool:
        offset = 0
        if self._at_word("async") and self._peek().kind in (TokenKind.IDENTIFIER, TokenKind.PUNCTUATOR):
            if self._peek().text not in ("=>",) and (self._peek().kind is TokenKind.IDENTIFIER or self._peek().text == "("):
                offset = 1

        token = self._peek(offset)
        if token.kind is TokenKind.IDENTIFIER:
            after = self._peek(offset + 1)
            return after.kind is TokenKind.PUNCTUATOR and after.text == "=>"

        if token.kind is not TokenKind.PUNCTUATOR or token.text != "(":
            return False

        depth = 0
        index = self.index + offset
        while index < len(self.tokens):
            item = self.tokens[index]
            if item.kind is TokenKind.EOF:
                return False
            if item.kind is TokenKind.PUNCTUATOR:
                if item.text == "(":
                    depth += 1
                elif item.text == ")":
                    depth -= 1
                    if depth == 0:
                        after = self.tokens[index + 1]
                        return after.kind is TokenKind.PUNCTUATOR and after.text == "=>"
            index += 1
        return False

    def _arrow(self) -> SyntaxNode:
        start = self.current
        modifier = None
        if self._at_word("async") and self._peek().text != "=>":
            self._advance()
            modifier = "async"

        if self.current.kind is TokenKind.IDENTIFIER:
            token = self._advance()
            parameter = SyntaxNode(NodeKind.PARAMETER, token.span, name=token.text)
            parameters = SyntaxNode(NodeKind.PARAMETERS, token.span, (parameter,))
        else:
            parameters = self._parameters()

        self._expect("=>")
        body = self._block() if self._at("{") else self._assignment()
        return SyntaxNode(NodeKind.ARROW_FUNCTION, self._span_from(start), (parameters, body), operator=modifier)

    def _conditional(self) -> SyntaxNode:
        start = self.current
        test = self._binary(1)
        if not self._accept("?"):
            return test
        consequent = self._assignment()
        self._expect(":")
        alternate = self._assignment()
        return SyntaxNode(NodeKind.CONDITIONAL, self._span_from(start), (test, consequent, alternate))

    def _binary(self, min_precedence: int) -> SyntaxNode:
        start = self.current
        left = self._unary()
        while True:
            token = self.current
            if token.kind not in (TokenKind.PUNCTUATOR, TokenKind.KEYWORD):
                break
            precedence = BINARY_PRECEDENCE.get(token.text)
            if precedence is None or precedence < min_precedence:
                break
            self._advance()
            # "**" is right-associative.
            right = self._binary(precedence if token.text == "**" else precedence + 1)
            left = SyntaxNode(NodeKind.BINARY, self._span_from(start), (left, right), operator=token.text)
        return left

    def _unary(self) -> SyntaxNode:
        token = self.current
        if token.kind in (TokenKind.PUNCTUATOR, TokenKind.KEYWORD) and token.text in UNARY_OPERATORS:
            self._advance()
            argument = self._unary()
            return SyntaxNode(NodeKind.UNARY, self._span_from(token), (argument,), operator=token.text)

        if token.kind is TokenKind.PUNCTUATOR and token.text in ("++", "--"):
            self._advance()
            target = self._unary()
            if target.kind not in (NodeKind.IDENTIFIER, NodeKind.MEMBER):
                raise self._error("Invalid update target", token)
            return SyntaxNode(NodeKind.UPDATE, self._span_from(token), (target,), operator=token.text)

        if token.text == "await" and token.kind is TokenKind.IDENTIFIER and _starts_expression(self._peek()):
            self._advance()
            argument = self._unary()
            return SyntaxNode(NodeKind.UNARY, self._span_from(token), (argument,), operator="await")

        return self._postfix()

    def _postfix(self) -> SyntaxNode:
        start = self.current
        expression = self._call_member()
        token = self.current
        if token.kind is TokenKind.PUNCTUATOR and token.text in ("++", "--") and self._same_line():
            if expression.kind not in (NodeKind.IDENTIFIER, NodeKind.MEMBER):
                raise self._error("Invalid update target", token)
            self._advance()
            return SyntaxNode(NodeKind.UPDATE, self._span_from(start), (expression,), operator=token.text)
        return expression

    def _call_member(self) -> SyntaxNode:
        start = self.current
        expression = self._new() if self._at("new") else self._primary()

        while True:
            token = self.current
            if self._at(".", "?."):
                self._advance()
                if token.text == "?." and self._at("("):
                    arguments = self._arguments()
                    expression = SyntaxNode(
                        NodeKind.CALL, self._span_from(start), (expression, *arguments), operator="?."
                    )
                elif token.text == "?." and self._at("["):
                    expression = self._computed_member(start, expression, "?.[]")
                else:
                    name = self._property_name()
                    expression = SyntaxNode(
                        NodeKind.MEMBER, self._span_from(start), (expression,), name=name, operator=token.text
                    )
            elif self._at("["):
                expression = self._computed_member(start, expression, "[]")
            elif self._at("("):
                arguments = self._arguments()
                expression = SyntaxNode(NodeKind.CALL, self._span_from(start), (expression, *arguments))
            elif token.kind is TokenKind.TEMPLATE:
                self._advance()
                template = self._template(token)
                expression = SyntaxNode(
                    NodeKind.CALL, self._span_from(start), (expression, template), operator="tag"
                )
            else:
                return expression

    def _computed_member(self, start: Token, target: SyntaxNode, operator: str) -> SyntaxNode:
        self._expect("[")
        key = self._expression()
        self._expect("]")
        return SyntaxNode(NodeKind.MEMBER, self._span_from(start), (target, key), operator=operator)

    def _property_name(self) -> str:
        token = self.current
        if token.kind not in (TokenKind.IDENTIFIER, TokenKind.KEYWORD):
            raise self._error(f"Expected a property name but found {_describe(token)}")
        self._advance()
        return token.text

    def _new(self) -> SyntaxNode:
        start = self._expect("new")
        callee = self._new() if self._at("new") else self._primary()
        while self._at(".", "["):
            if self._accept("."):
                name = self._property_name()
                callee = SyntaxNode(NodeKind.MEMBER, self._span_from(start), (callee,), name=name, operator=".")
            else:
                callee = self._computed_member(start, callee, "[]")
        arguments = self._arguments() if self._at("(") else []
        return SyntaxNode(NodeKind.NEW, self._span_from(start), (callee, *arguments))

    def _arguments(self) -> list[SyntaxNode]:
        self._expect("(")
        arguments: list[SyntaxNode] = []
        while not self._at(")"):
            arguments.append(self._element())
            if not self._accept(","):
                break
        self._expect(")")
        return arguments

    def _element(self) -> SyntaxNode:
        start = self._accept("...")
        if start is None:
            return self._assignment()
        argument = self._assignment()
        return SyntaxNode(NodeKind.SPREAD, self._span_from(start), (argument,))

    def _template(self, token: Token) -> SyntaxNode:
        substitutions = []
        for source, line, column in template_substitutions(token):
            substitutions.append(Parser(Lexer(source, line, column).tokenize()).parse_expression())
        return SyntaxNode(NodeKind.TEMPLATE, token.span, tuple(substitutions), value=token.text)

    def _literal_value(self, convert, token: Token):
        try:
            return convert(token.text)
        except (ValueError, OverflowError) as exc:
            raise self._error(f"Invalid literal {token.text}: {exc}", token) from exc

    def _primary(self) -> SyntaxNode:
        token = self.current
        kind = token.kind

        if kind is TokenKind.NUMBER:
            self._advance()
            return SyntaxNode(NodeKind.LITERAL, token.span, value=self._literal_value(_number_value, token))
        if kind is TokenKind.STRING:
            self._advance()
            return SyntaxNode(NodeKind.LITERAL, token.span, value=self._literal_value(_string_value, token))
        if kind is TokenKind.TEMPLATE:
            self._advance()
            return self._template(token)
        if kind is TokenKind.REGEX:
            self._advance()
            return SyntaxNode(NodeKind.LITERAL, token.span, value=token.text, operator="regex")

        if kind is TokenKind.IDENTIFIER:
            if token.text == "async" and self._peek().text == "function" and self._peek().kind is TokenKind.KEYWORD:
                return self._function(NodeKind.FUNCTION_EXPRESSION)
            self._advance()
            return SyntaxNode(NodeKind.IDENTIFIER, token.span, name=token.text)

        if kind is TokenKind.KEYWORD:
            if token.text in ("true", "false"):
                self._advance()
                return SyntaxNode(NodeKind.LITERAL, token.span, value=token.text == "true")
            if token.text == "null":
                self._advance()
                return SyntaxNode(NodeKind.LITERAL, token.span, operator="null")
            if token.text == "this":
                self._advance()
                return SyntaxNode(NodeKind.THIS, token.span)
            if token.text == "super":
                self._advance()
                return SyntaxNode(NodeKind.SUPER, token.span)
            if token.text == "import":
                self._advance()
                return SyntaxNode(NodeKind.IDENTIFIER, token.span, name="import")
            if token.text == "function":
                return self._function(NodeKind.FUNCTION_EXPRESSION)
            if token.text == "class":
                return self._class(require_name=False)

        if kind is TokenKind.PUNCTUATOR:
            if token.text == "(":
                self._advance()
                expression = self._expression()
                self._expect(")")
                return expression
            if token.text == "[":
                return self._array()
            if token.text == "{":
                return self._object()

        raise self._error(f"Unexpected {_describe(token)}")

    def _array(self) -> SyntaxNode:
        start = self._expect("[")
        elements: list[SyntaxNode] = []
        while not self._at("]"):
            if self._accept(","):
                continue
            elements.append(self._element())
            if not self._at("]"):
                self._expect(",")
        self._advance()
        return SyntaxNode(NodeKind.ARRAY, self._span_from(start), tuple(elements))

    def _object(self) -> SyntaxNode:
        start = self._expect("{")
        members: list[SyntaxNode] = []
        while not self._at("}"):
            members.append(self._object_member())
            if not self._accept(","):
                break
        self._expect("}")
        return SyntaxNode(NodeKind.OBJECT, self._span_from(start), tuple(members))

    def _object_member(self) -> SyntaxNode:
        start = self.current
        if self._at("..."):
            return self._element()

        modifiers: list[str] = []
        while self._at_word("async", "get", "set") and self._peek().text not in (",", ":", "(", "}", "="):
            modifiers.append(self._advance().text)
        if self._accept("*"):
            modifiers.append("generator")

        key_token = self.current
        name, key = self._property_key()

        if self._at("("):
            parameters = self._parameters()
            body = self._block()
            children = (key, parameters, body) if key is not None else (parameters, body)
            return SyntaxNode(
                NodeKind.METHOD,
                self._span_from(start),
                children,
                name=name,
                operator=" ".join(modifiers) or None,
            )

        if self._accept(":"):
            value = self._assignment()
            children = (key, value) if key is not None else (value,)
            return SyntaxNode(NodeKind.PROPERTY, self._span_from(start), children, name=name)

        if key_token.kind is not TokenKind.IDENTIFIER:
            raise self._error(f"Expected ':' but found {_describe(self.current)}")
        value = SyntaxNode(NodeKind.IDENTIFIER, key_token.span, name=name)
        if self._accept("="):
            default = self._assignment()
            value = SyntaxNode(NodeKind.ASSIGNMENT, self._span_from(key_token), (value, default), operator="=")
        return SyntaxNode(NodeKind.PROPERTY, self._span_from(start), (value,), name=name, operator="shorthand")

    def _property_key(self) -> tuple[str | None, SyntaxNode | None]:
        token = self.current
        if token.kind in (TokenKind.IDENTIFIER, TokenKind.KEYWORD, TokenKind.NUMBER):
            self._advance()
            return token.text, None
        if token.kind is TokenKind.STRING:
            self._advance()
            return self._literal_value(_string_value, token), None
        if self._accept("["):
            key = self._assignment()
            self._expect("]")
            return None, key
        raise self._error(f"Expected a property name but found {_describe(token)}")


def _starts_expression(token: Token) -> bool:
    if token.kind in (TokenKind.IDENTIFIER, TokenKind.NUMBER, TokenKind.STRING, TokenKind.TEMPLATE, TokenKind.REGEX):
        return True
    if token.kind is TokenKind.KEYWORD:
        return token.text in _EXPRESSION_KEYWORDS
    return token.kind is TokenKind.PUNCTUATOR and token.text in _EXPRESSION_PUNCTUATORS


def _describe(token: Token) -> str:
    if token.kind is TokenKind.EOF:
        return "end of input"
    return f"{token.kind.value} '{token.text}'"


def _number_value(text: str) -> int | float:
    cleaned = text.replace("_", "")
    if cleaned.endswith("n"):
        return int(cleaned[:-1], 0)
    lowered = cleaned.lower()
    if lowered.startswith(("0x", "0o", "0b")):
        return int(cleaned, 0)
    if "." in lowered or "e" in lowered:
        return float(cleaned)
    return int(cleaned, 10)


def _string_value(text: str) -> str:
    return _ESCAPE_RE.sub(_unescape, text[1:-1])


def _unescape(match: re.Match[str]) -> str:
    sequence = match.group(1)
    if sequence.startswith("u{"):
        return chr(int(sequence[2:-1], 16))
    if sequence[0] in "ux" and len(sequence) > 1:
        return chr(int(sequence[1:], 16))
    if sequence in ("\n", "\r\n"):
        return ""
    return _SIMPLE_ESCAPES.get(sequence, sequence)
