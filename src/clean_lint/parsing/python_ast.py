from __future__ import annotations

import ast
import io
import keyword
import tokenize

from clean_lint.models import NodeKind, SourceSpan, SyntaxNode, Token, TokenKind
from clean_lint.parsing.errors import SourceSyntaxError


TOKEN_KIND_MAP = {
    tokenize.NUMBER: TokenKind.NUMBER,
    tokenize.STRING: TokenKind.STRING,
    tokenize.OP: TokenKind.PUNCTUATOR,
}

# f-string pieces are tokenized separately from Python 3.12 on.
for _name in ("FSTRING_START", "FSTRING_MIDDLE", "FSTRING_END"):
    if hasattr(tokenize, _name):
        TOKEN_KIND_MAP[getattr(tokenize, _name)] = TokenKind.STRING

SKIPPED_TOKENS = {
    tokenize.NEWLINE,
    tokenize.NL,
    tokenize.COMMENT,
    tokenize.INDENT,
    tokenize.DEDENT,
    tokenize.ENCODING,
    tokenize.ERRORTOKEN,
}

BINARY_OPERATORS = {
    ast.Add: "+",
    ast.Sub: "-",
    ast.Mult: "*",
    ast.MatMult: "@",
    ast.Div: "/",
    ast.FloorDiv: "//",
    ast.Mod: "%",
    ast.Pow: "**",
    ast.LShift: "<<",
    ast.RShift: ">>",
    ast.BitOr: "|",
    ast.BitXor: "^",
    ast.BitAnd: "&",
}

UNARY_OPERATORS = {ast.USub: "-", ast.UAdd: "+", ast.Not: "not", ast.Invert: "~"}

COMPARE_OPERATORS = {
    ast.Eq: "==",
    ast.NotEq: "!=",
    ast.Lt: "<",
    ast.LtE: "<=",
    ast.Gt: ">",
    ast.GtE: ">=",
    ast.Is: "is",
    ast.IsNot: "is not",
    ast.In: "in",
    ast.NotIn: "not in",
}


def tokenize_python(text: str) -> list[Token]:
    tokens: list[Token] = []
    try:
        for item in tokenize.generate_tokens(io.StringIO(text).readline):
            if item.type in SKIPPED_TOKENS:
                continue
            (start_line, start_col), (end_line, end_col) = item.start, item.end
            span = SourceSpan(start_line, start_col + 1, end_line, end_col + 1)
            if item.type == tokenize.ENDMARKER:
                tokens.append(Token(TokenKind.EOF, "", span))
            elif item.type == tokenize.NAME:
                kind = TokenKind.KEYWORD if keyword.iskeyword(item.string) else TokenKind.IDENTIFIER
                tokens.append(Token(kind, item.string, span))
            elif item.type in TOKEN_KIND_MAP:
                tokens.append(Token(TOKEN_KIND_MAP[item.type], item.string, span))
    except tokenize.TokenError as exc:
        message = exc.args[0] if exc.args else "Invalid token"
        line, column = exc.args[1] if len(exc.args) > 1 else (1, 0)
        raise SourceSyntaxError(str(message), line, column + 1) from exc
    except SyntaxError as exc:
        raise SourceSyntaxError(exc.msg, exc.lineno or 1, exc.offset or 1) from exc
    return tokens


def parse_python(text: str) -> SyntaxNode:
    try:
        tree = ast.parse(text)
    except SyntaxError as exc:
        raise SourceSyntaxError(exc.msg, exc.lineno or 1, exc.offset or 1) from exc
    except ValueError as exc:
        raise SourceSyntaxError(str(exc), 1, 1) from exc
    return PythonTreeConverter(text).convert(tree)


def _is_constant_name(name: str) -> bool:
    return name.isupper() and any(ch.isalpha() for ch in name)


class PythonTreeConverter:
    """Maps a Python ``ast`` tree onto the shared ``SyntaxNode`` model.

    Children are emitted in source order so a pre-order walk visits nodes in
    position order. Decorators become statements placed before the definition
    they decorate. Names bound by ``for``/``with``/comprehension targets become
    ``DECLARATOR`` nodes; plain assignments stay ``ASSIGNMENT`` nodes except
    module- and class-level UPPER_CASE names, which are constant declarations.
    """

    def __init__(self, text: str):
        self.lines = text.split("\n")
        self.containers: list[str] = []

    def convert(self, tree: ast.Module) -> SyntaxNode:
        last_line = max(len(self.lines), 1)
        span = SourceSpan(1, 1, last_line, len(self.lines[-1]) + 1 if self.lines else 1)
        self.containers.append("module")
        statements = self._statements(tree.body, span)
        self.containers.pop()
        return SyntaxNode(NodeKind.PROGRAM, span, tuple(statements))

    # -- positions -----------------------------------------------------

    def _column(self, line: int, offset: int) -> int:
        # ast offsets count UTF-8 bytes; spans count characters.
        if not 0 < line <= len(self.lines):
            return offset + 1
        prefix = self.lines[line - 1].encode("utf-8")[:offset]
        return len(prefix.decode("utf-8", errors="ignore")) + 1

    def _span(self, node: ast.AST, fallback: SourceSpan) -> SourceSpan:
        line = getattr(node, "lineno", None)
        if line is None:
            return fallback
        end_line = getattr(node, "end_lineno", None) or line
        end_offset = getattr(node, "end_col_offset", None)
        start = self._column(line, node.col_offset)
        end = self._column(end_line, end_offset) if end_offset is not None else start
        return SourceSpan(line, start, end_line, end)

    # -- statements ----------------------------------------------------

    def _statements(self, body: list[ast.stmt], fallback: SourceSpan) -> list[SyntaxNode]:
        statements: list[SyntaxNode] = []
        for item in body:
            statements.extend(self._statement(item, fallback))
        return statements

    def _block(self, body: list[ast.stmt], fallback: SourceSpan) -> SyntaxNode:
        statements = self._statements(body, fallback)
        if statements:
            span = SourceSpan.between(statements[0].span, statements[-1].span)
        else:
            span = fallback
        return SyntaxNode(NodeKind.BLOCK, span, tuple(statements))

    def _statement(self, node: ast.stmt, fallback: SourceSpan) -> list[SyntaxNode]:
        span = self._span(node, fallback)

        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
            decorators = [
                SyntaxNode(
                    NodeKind.EXPRESSION_STATEMENT,
                    self._span(item, span),
                    (self._expr(item, span),),
                    operator="decorator",
                )
                for item in node.decorator_list
            ]
            if isinstance(node, ast.ClassDef):
                return decorators + [self._class(node, span)]
            return decorators + [self._function(node, span)]

        if isinstance(node, ast.Assign):
            return [self._assign(node, span)]

        if isinstance(node, ast.AnnAssign):
            if node.value is None:
                return [SyntaxNode(NodeKind.EMPTY, span)]
            return [self._assign_value([node.target], node.value, span)]

        if isinstance(node, ast.AugAssign):
            operator = BINARY_OPERATORS.get(type(node.op), "?") + "="
            target = self._target(node.target, span)
            value = self._expr(node.value, span)
            assignment = SyntaxNode(NodeKind.ASSIGNMENT, span, (target, value), operator=operator)
            return [SyntaxNode(NodeKind.EXPRESSION_STATEMENT, span, (assignment,))]

        if isinstance(node, ast.Expr):
            return [SyntaxNode(NodeKind.EXPRESSION_STATEMENT, span, (self._expr(node.value, span),))]

        if isinstance(node, ast.Return):
            children = (self._expr(node.value, span),) if node.value is not None else ()
            return [SyntaxNode(NodeKind.RETURN, span, children)]

        if isinstance(node, ast.If):
            children = [self._expr(node.test, span), self._block(node.body, span)]
            if node.orelse:
                children.append(self._block(node.orelse, span))
            return [SyntaxNode(NodeKind.IF, span, tuple(children))]

        if isinstance(node, ast.While):
            children = [self._expr(node.test, span), self._block(node.body, span)]
            if node.orelse:
                children.append(self._block(node.orelse, span))
            return [SyntaxNode(NodeKind.WHILE, span, tuple(children))]

        if isinstance(node, (ast.For, ast.AsyncFor)):
            children = [
                self._binding(node.target, span),
                self._expr(node.iter, span),
                self._block(node.body, span),
            ]
            if node.orelse:
                children.append(self._block(node.orelse, span))
            return [SyntaxNode(NodeKind.FOR_OF, span, tuple(children), operator="in")]

        if isinstance(node, (ast.With, ast.AsyncWith)):
            children: list[SyntaxNode] = []
            for item in node.items:
                children.append(self._expr(item.context_expr, span))
                if item.optional_vars is not None:
                    children.append(self._binding(item.optional_vars, span))
            children.append(self._block(node.body, span))
            return [SyntaxNode(NodeKind.OTHER, span, tuple(children), operator="with")]

        if isinstance(node, ast.Try) or type(node).__name__ == "TryStar":
            return [self._try(node, span)]

        if isinstance(node, ast.Raise):
            children = tuple(self._expr(item, span) for item in (node.exc, node.cause) if item is not None)
            return [SyntaxNode(NodeKind.THROW, span, children)]

        if isinstance(node, ast.Global):
            return [SyntaxNode(NodeKind.GLOBAL, span, value=tuple(node.names))]

        if isinstance(node, ast.Nonlocal):
            return [SyntaxNode(NodeKind.NONLOCAL, span, value=tuple(node.names))]

        if isinstance(node, (ast.Import, ast.ImportFrom)):
            bindings = []
            for alias in node.names:
                if alias.name == "*":
                    continue
                local = alias.asname or alias.name.split(".")[0]
                bindings.append(SyntaxNode(NodeKind.DECLARATOR, self._span(alias, span), name=local))
            return [SyntaxNode(NodeKind.IMPORT, span, tuple(bindings))]

        if isinstance(node, ast.Pass):
            return [SyntaxNode(NodeKind.EMPTY, span)]
        if isinstance(node, ast.Break):
            return [SyntaxNode(NodeKind.BREAK, span)]
        if isinstance(node, ast.Continue):
            return [SyntaxNode(NodeKind.CONTINUE, span)]

        return [self._generic(node, span)]

    def _function(self, node: ast.FunctionDef | ast.AsyncFunctionDef, span: SourceSpan) -> SyntaxNode:
        in_class = bool(self.containers) and self.containers[-1] == "class"
        static = any(_decorator_name(item) == "staticmethod" for item in node.decorator_list)
        parameters = self._parameters(node.args, span, receiver=in_class and not static)

        self.containers.append("function")
        body = self._block(node.body, span)
        self.containers.pop()

        kind = NodeKind.METHOD if in_class else NodeKind.FUNCTION_DECLARATION
        operator = "async" if isinstance(node, ast.AsyncFunctionDef) else None
        return SyntaxNode(kind, span, (parameters, body), name=node.name, operator=operator)

    def _parameters(self, args: ast.arguments, span: SourceSpan, *, receiver: bool = False) -> SyntaxNode:
        parameters: list[SyntaxNode] = []
        positional = list(args.posonlyargs) + list(args.args)
        defaults: list[ast.expr | None] = [None] * (len(positional) - len(args.defaults)) + list(args.defaults)

        for index, (arg, default) in enumerate(zip(positional, defaults)):
            operator = "receiver" if receiver and index == 0 else None
            parameters.append(self._parameter(arg, default, span, operator))
        if args.vararg is not None:
            parameters.append(self._parameter(args.vararg, None, span, "..."))
        for arg, default in zip(args.kwonlyargs, args.kw_defaults):
            parameters.append(self._parameter(arg, default, span, None))
        if args.kwarg is not None:
            parameters.append(self._parameter(args.kwarg, None, span, "**"))

        if parameters:
            params_span = SourceSpan.between(parameters[0].span, parameters[-1].span)
        else:
            params_span = span
        return SyntaxNode(NodeKind.PARAMETERS, params_span, tuple(parameters))

    def _parameter(
        self,
        arg: ast.arg,
        default: ast.expr | None,
        span: SourceSpan,
        operator: str | None,
    ) -> SyntaxNode:
        arg_span = self._span(arg, span)
        children: tuple[SyntaxNode, ...] = ()
        if default is not None:
            children = (self._expr(default, span),)
            arg_span = SourceSpan.between(arg_span, children[0].span)
        return SyntaxNode(NodeKind.PARAMETER, arg_span, children, name=arg.arg, operator=operator)

    def _class(self, node: ast.ClassDef, span: SourceSpan) -> SyntaxNode:
        children = [self._expr(item, span) for item in node.bases]
        children.extend(
            SyntaxNode(NodeKind.PROPERTY, self._span(item, span), (self._expr(item.value, span),), name=item.arg)
            for item in node.keywords
        )
        self.containers.append("class")
        children.extend(self._statements(node.body, span))
        self.containers.pop()
        return SyntaxNode(NodeKind.CLASS_DECLARATION, span, tuple(children), name=node.name)

    def _assign(self, node: ast.Assign, span: SourceSpan) -> SyntaxNode:
        return self._assign_value(node.targets, node.value, span)

    def _assign_value(self, targets: list[ast.expr], value: ast.expr, span: SourceSpan) -> SyntaxNode:
        top_level = self.containers and self.containers[-1] in ("module", "class")
        if (
            top_level
            and len(targets) == 1
            and isinstance(targets[0], ast.Name)
            and _is_constant_name(targets[0].id)
        ):
            declarator = SyntaxNode(
                NodeKind.DECLARATOR,
                span,
                (self._expr(value, span),),
                name=targets[0].id,
            )
            return SyntaxNode(NodeKind.VARIABLE_DECLARATION, span, (declarator,), operator="const")

        # a = b = value is emitted as a = (b = value) to keep one value node.
        converted = self._expr(value, span)
        for target in reversed(targets[1:]):
            target_node = self._target(target, span)
            converted = SyntaxNode(
                NodeKind.ASSIGNMENT,
                SourceSpan.between(target_node.span, converted.span),
                (target_node, converted),
                operator="=",
            )
        assignment = SyntaxNode(NodeKind.ASSIGNMENT, span, (self._target(targets[0], span), converted), operator="=")
        return SyntaxNode(NodeKind.EXPRESSION_STATEMENT, span, (assignment,))

    def _try(self, node: ast.AST, span: SourceSpan) -> SyntaxNode:
        children = [self._block(node.body, span)]
        for handler in node.handlers:
            handler_span = self._span(handler, span)
            handler_children = []
            if handler.type is not None:
                handler_children.append(self._expr(handler.type, handler_span))
            handler_children.append(self._block(handler.body, handler_span))
            children.append(
                SyntaxNode(NodeKind.CATCH, handler_span, tuple(handler_children), name=handler.name)
            )
        if node.orelse:
            children.append(self._block(node.orelse, span))
        if node.finalbody:
            children.append(self._block(node.finalbody, span))
        return SyntaxNode(NodeKind.TRY, span, tuple(children))

    # -- targets -------------------------------------------------------

    def _target(self, node: ast.expr, fallback: SourceSpan) -> SyntaxNode:
        span = self._span(node, fallback)
        if isinstance(node, ast.Name):
            return SyntaxNode(NodeKind.IDENTIFIER, span, name=node.id)
        if isinstance(node, (ast.Tuple, ast.List)):
            return SyntaxNode(NodeKind.ARRAY, span, tuple(self._target(item, span) for item in node.elts))
        if isinstance(node, ast.Starred):
            return SyntaxNode(NodeKind.SPREAD, span, (self._target(node.value, span),))
        return self._expr(node, fallback)

    def _binding(self, node: ast.expr, fallback: SourceSpan) -> SyntaxNode:
        span = self._span(node, fallback)
        if isinstance(node, ast.Name):
            return SyntaxNode(NodeKind.DECLARATOR, span, name=node.id)
        return SyntaxNode(NodeKind.DECLARATOR, span, (self._target(node, span),), operator="pattern")

    # -- expressions ---------------------------------------------------

    def _expr(self, node: ast.expr, fallback: SourceSpan) -> SyntaxNode:
        span = self._span(node, fallback)

        if isinstance(node, ast.Constant):
            if node.value is None:
                return SyntaxNode(NodeKind.LITERAL, span, operator="null")
            if node.value is Ellipsis:
                return SyntaxNode(NodeKind.LITERAL, span, operator="ellipsis")
            return SyntaxNode(NodeKind.LITERAL, span, value=node.value)

        if isinstance(node, ast.Name):
            return SyntaxNode(NodeKind.IDENTIFIER, span, name=node.id)

        if isinstance(node, ast.Attribute):
            return SyntaxNode(NodeKind.MEMBER, span, (self._expr(node.value, span),), name=node.attr, operator=".")

        if isinstance(node, ast.Subscript):
            children = (self._expr(node.value, span), self._expr(node.slice, span))
            return SyntaxNode(NodeKind.MEMBER, span, children, operator="[]")

        if isinstance(node, ast.Call):
            children = [self._expr(node.func, span)]
            arguments = [(item, None) for item in node.args] + [(item.value, item) for item in node.keywords]
            # Keyword arguments may be written between positional ones.
            arguments.sort(key=lambda pair: (pair[0].lineno, pair[0].col_offset))
            for value, keyword_arg in arguments:
                if keyword_arg is None:
                    children.append(self._expr(value, span))
                elif keyword_arg.arg is None:
                    children.append(SyntaxNode(NodeKind.SPREAD, self._span(keyword_arg, span), (self._expr(value, span),)))
                else:
                    children.append(
                        SyntaxNode(
                            NodeKind.PROPERTY,
                            self._span(keyword_arg, span),
                            (self._expr(value, span),),
                            name=keyword_arg.arg,
                        )
                    )
            return SyntaxNode(NodeKind.CALL, span, tuple(children))

        if isinstance(node, ast.UnaryOp):
            operator = UNARY_OPERATORS.get(type(node.op), "?")
            return SyntaxNode(NodeKind.UNARY, span, (self._expr(node.operand, span),), operator=operator)

        if isinstance(node, ast.BinOp):
            operator = BINARY_OPERATORS.get(type(node.op), "?")
            children = (self._expr(node.left, span), self._expr(node.right, span))
            return SyntaxNode(NodeKind.BINARY, span, children, operator=operator)

        if isinstance(node, ast.BoolOp):
            operator = "and" if isinstance(node.op, ast.And) else "or"
            children = tuple(self._expr(item, span) for item in node.values)
            return SyntaxNode(NodeKind.BINARY, span, children, operator=operator)

        if isinstance(node, ast.Compare):
            children = (self._expr(node.left, span),) + tuple(self._expr(item, span) for item in node.comparators)
            operator = COMPARE_OPERATORS.get(type(node.ops[0]), "?")
            return SyntaxNode(NodeKind.BINARY, span, children, operator=operator)

        if isinstance(node, ast.IfExp):
            # Source order: body if test else orelse.
            children = (self._expr(node.body, span), self._expr(node.test, span), self._expr(node.orelse, span))
            return SyntaxNode(NodeKind.CONDITIONAL, span, children)

        if isinstance(node, ast.Lambda):
            parameters = self._parameters(node.args, span)
            self.containers.append("function")
            body = self._expr(node.body, span)
            self.containers.pop()
            return SyntaxNode(NodeKind.ARROW_FUNCTION, span, (parameters, body))

        if isinstance(node, ast.NamedExpr):
            children = (self._target(node.target, span), self._expr(node.value, span))
            return SyntaxNode(NodeKind.ASSIGNMENT, span, children, operator=":=")

        if isinstance(node, (ast.Tuple, ast.List, ast.Set)):
            return SyntaxNode(NodeKind.ARRAY, span, tuple(self._expr(item, span) for item in node.elts))

        if isinstance(node, ast.Dict):
            entries = []
            for key, value in zip(node.keys, node.values):
                value_node = self._expr(value, span)
                if key is None:
                    entries.append(SyntaxNode(NodeKind.SPREAD, value_node.span, (value_node,)))
                    continue
                key_node = self._expr(key, span)
                entries.append(
                    SyntaxNode(
                        NodeKind.PROPERTY,
                        SourceSpan.between(key_node.span, value_node.span),
                        (key_node, value_node),
                    )
                )
            return SyntaxNode(NodeKind.OBJECT, span, tuple(entries))

        if isinstance(node, (ast.ListComp, ast.SetComp, ast.GeneratorExp, ast.DictComp)):
            return self._comprehension(node, span)

        if isinstance(node, ast.Starred):
            return SyntaxNode(NodeKind.SPREAD, span, (self._expr(node.value, span),))

        if isinstance(node, ast.Await):
            return SyntaxNode(NodeKind.UNARY, span, (self._expr(node.value, span),), operator="await")

        if isinstance(node, ast.JoinedStr):
            children = tuple(
                self._expr(item.value, span) for item in node.values if isinstance(item, ast.FormattedValue)
            )
            return SyntaxNode(NodeKind.TEMPLATE, span, children)

        return self._generic(node, span)

    def _comprehension(self, node: ast.expr, span: SourceSpan) -> SyntaxNode:
        self.containers.append("comprehension")
        if isinstance(node, ast.DictComp):
            children = [self._expr(node.key, span), self._expr(node.value, span)]
        else:
            children = [self._expr(node.elt, span)]
        for generator in node.generators:
            children.append(self._binding(generator.target, span))
            children.append(self._expr(generator.iter, span))
            children.extend(self._expr(item, span) for item in generator.ifs)
        self.containers.pop()
        return SyntaxNode(NodeKind.COMPREHENSION, span, tuple(children))

    def _generic(self, node: ast.AST, span: SourceSpan) -> SyntaxNode:
        children: list[SyntaxNode] = []
        for item in ast.iter_child_nodes(node):
            if isinstance(item, ast.stmt):
                children.extend(self._statement(item, span))
            elif isinstance(item, ast.expr):
                children.append(self._expr(item, span))
            elif isinstance(item, (ast.expr_context, ast.operator, ast.unaryop, ast.cmpop, ast.boolop)):
                continue
            else:
                children.append(self._generic(item, self._span(item, span)))
        return SyntaxNode(NodeKind.OTHER, span, tuple(children), operator=type(node).__name__)


def _decorator_name(node: ast.expr) -> str | None:
    if isinstance(node, ast.Call):
        node = node.func
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    return None
