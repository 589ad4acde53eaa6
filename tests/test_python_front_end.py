import pytest

from clean_lint.models import NodeKind, TokenKind
from clean_lint.parsing.errors import SourceSyntaxError
from clean_lint.parsing.python_ast import parse_python, tokenize_python


def find(root, kind):
    return [node for node in root.walk() if node.kind is kind]


def test_module_level_upper_case_assignment_is_constant():
    root = parse_python("TIMEOUT = 30\nretries = 3\n")

    constant, assignment = root.children
    assert constant.kind is NodeKind.VARIABLE_DECLARATION
    assert constant.operator == "const"
    assert constant.children[0].name == "TIMEOUT"
    assert assignment.kind is NodeKind.EXPRESSION_STATEMENT
    assert assignment.children[0].kind is NodeKind.ASSIGNMENT


def test_upper_case_assignment_inside_function_is_not_constant():
    root = parse_python("def run():\n    LIMIT = 5\n    return LIMIT\n")

    assert not find(root, NodeKind.VARIABLE_DECLARATION)
    assert find(root, NodeKind.ASSIGNMENT)


def test_method_receiver_is_marked():
    root = parse_python(
        "class Box:\n"
        "    def resize(self, width, height):\n"
        "        pass\n"
        "\n"
        "    @staticmethod\n"
        "    def build(width):\n"
        "        pass\n"
    )

    methods = find(root, NodeKind.METHOD)
    assert [item.name for item in methods] == ["resize", "build"]
    resize_params = methods[0].child(NodeKind.PARAMETERS).children
    assert [item.operator for item in resize_params] == ["receiver", None, None]
    build_params = methods[1].child(NodeKind.PARAMETERS).children
    assert [item.operator for item in build_params] == [None]


def test_parameter_flavours():
    root = parse_python("def call(a, b=2, *args, flag=False, **kwargs):\n    pass\n")

    parameters = root.children[0].child(NodeKind.PARAMETERS).children
    assert [item.name for item in parameters] == ["a", "b", "args", "flag", "kwargs"]
    assert [item.operator for item in parameters] == [None, None, "...", None, "**"]
    assert parameters[1].children[0].value == 2


def test_decorators_precede_definition():
    root = parse_python("@cache\ndef compute():\n    return 1\n")

    decorator, function = root.children
    assert decorator.operator == "decorator"
    assert function.kind is NodeKind.FUNCTION_DECLARATION
    assert function.span.start_line == 2


def test_global_and_keyword_arguments():
    root = parse_python("def bump():\n    global counter\n    counter += 1\n    show(counter, verbose=True)\n")

    assert find(root, NodeKind.GLOBAL)[0].value == ("counter",)
    call = find(root, NodeKind.CALL)[0]
    assert call.children[-1].kind is NodeKind.PROPERTY
    assert call.children[-1].name == "verbose"


def test_columns_count_characters_not_bytes():
    root = parse_python('label = "é" + 7\n')

    literal = [item for item in find(root, NodeKind.LITERAL) if item.value == 7][0]
    assert literal.span.start_column == 15
    assert literal.span.end_column == 16


def test_walk_visits_nodes_in_source_order():
    root = parse_python(
        "@register(3)\n"
        "def handler(event, retries=2):\n"
        "    value = compute(event, 4) if event else {'a': 5, 'b': [6, 7]}\n"
        "    return [item * 8 for item in value if item > 9]\n"
    )

    positions = [(item.span.start_line, item.span.start_column) for item in root.walk()]
    assert positions == sorted(positions)


def test_syntax_error_is_converted():
    with pytest.raises(SourceSyntaxError) as exc_info:
        parse_python("x = = 1\n")

    assert exc_info.value.line == 1


def test_tokenize_python_maps_kinds():
    tokens = tokenize_python("if x: y = 1\n")

    assert [item.kind for item in tokens] == [
        TokenKind.KEYWORD,
        TokenKind.IDENTIFIER,
        TokenKind.PUNCTUATOR,
        TokenKind.IDENTIFIER,
        TokenKind.PUNCTUATOR,
        TokenKind.NUMBER,
        TokenKind.EOF,
    ]
    assert tokens[0].span.start_column == 1
