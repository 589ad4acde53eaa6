import pytest

from clean_lint.models import NodeKind, SourceSpan
from clean_lint.parsing.errors import SourceSyntaxError
from clean_lint.parsing.lexer import tokenize
from clean_lint.parsing.parser import parse_tokens
from clean_lint.scope import pattern_identifiers


def parse(text):
    return parse_tokens(tokenize(text))


def find(root, kind):
    return [node for node in root.walk() if node.kind is kind]


def test_function_declaration_with_parameters_and_span():
    root = parse("function add(a, b) {\n  return a + b;\n}\n")

    function = root.children[0]
    assert function.kind is NodeKind.FUNCTION_DECLARATION
    assert function.name == "add"
    assert [item.name for item in function.child(NodeKind.PARAMETERS).children] == ["a", "b"]
    assert function.span == SourceSpan(1, 1, 3, 2)


def test_const_arrow_function():
    root = parse("const sum = (a, b) => a + b;")

    declaration = root.children[0]
    assert declaration.kind is NodeKind.VARIABLE_DECLARATION
    assert declaration.operator == "const"
    declarator = declaration.children[0]
    assert declarator.name == "sum"
    arrow = declarator.children[0]
    assert arrow.kind is NodeKind.ARROW_FUNCTION
    assert len(arrow.child(NodeKind.PARAMETERS).children) == 2
    assert arrow.children[1].kind is NodeKind.BINARY


def test_single_parameter_and_async_arrows():
    root = parse("items.map(item => item * 2);\nconst load = async (url) => fetch(url);")

    arrows = find(root, NodeKind.ARROW_FUNCTION)
    assert len(arrows) == 2
    assert arrows[0].child(NodeKind.PARAMETERS).children[0].name == "item"
    assert arrows[1].operator == "async"


def test_destructured_parameter_counts_as_one():
    root = parse("function createMenu({ title, body, buttonText, cancellable }) {}")

    parameters = root.children[0].child(NodeKind.PARAMETERS).children
    assert len(parameters) == 1
    assert parameters[0].operator == "pattern"
    assert [item.name for item in pattern_identifiers(parameters[0].children[0])] == [
        "title",
        "body",
        "buttonText",
        "cancellable",
    ]


def test_destructuring_declaration():
    root = parse("const { a, b: renamed } = obj;")

    declarator = root.children[0].children[0]
    assert declarator.operator == "pattern"
    assert [item.name for item in pattern_identifiers(declarator.children[0])] == ["a", "renamed"]


def test_literal_values():
    root = parse("f(0x1F, 1_000, 2.5, 'it\\'s', true, null);")

    call = root.children[0].children[0]
    values = [item.value for item in call.children[1:]]
    assert values[:5] == [31, 1000, 2.5, "it's", True]
    assert call.children[-1].operator == "null"


def test_class_members():
    root = parse(
        "class Account extends Base {\n"
        "  constructor(owner) { super(); this.owner = owner; }\n"
        "  get balance() { return this.total; }\n"
        "  static open() { return new Account('x'); }\n"
        "}\n"
    )

    cls = root.children[0]
    assert cls.kind is NodeKind.CLASS_DECLARATION
    assert cls.name == "Account"
    methods = [item for item in cls.children if item.kind is NodeKind.METHOD]
    assert [item.name for item in methods] == ["constructor", "balance", "open"]
    assert methods[1].operator == "get"
    assert methods[2].operator == "static"


def test_object_literal_members():
    root = parse("const o = { a: 1, [key]: 2, method() { return 3; }, ...rest, shorthand };")

    obj = root.children[0].children[0].children[0]
    assert [item.kind for item in obj.children] == [
        NodeKind.PROPERTY,
        NodeKind.PROPERTY,
        NodeKind.METHOD,
        NodeKind.SPREAD,
        NodeKind.PROPERTY,
    ]
    assert obj.children[-1].operator == "shorthand"


def test_loops():
    root = parse(
        "for (let i = 0; i < n; i++) { total += i; }\n"
        "for (const item of items) { use(item); }\n"
        "for (key in table) {}\n"
        "while (busy) { busy = step(); }\n"
        "do { tick(); } while (running)\n"
    )

    kinds = [item.kind for item in root.children]
    assert kinds == [NodeKind.FOR, NodeKind.FOR_OF, NodeKind.FOR_OF, NodeKind.WHILE, NodeKind.DO_WHILE]
    assert root.children[1].operator == "of"
    assert root.children[2].operator == "in"
    assert root.children[2].children[0].name == "key"
    assert find(root.children[0], NodeKind.UPDATE)[0].operator == "++"


def test_switch_try_and_labels():
    root = parse(
        "switch (kind) {\n"
        "  case 'a':\n"
        "    run();\n"
        "    break;\n"
        "  default:\n"
        "    stop();\n"
        "}\n"
        "try { risky(); } catch (err) { log(err); } finally { done(); }\n"
        "outer: for (;;) { break outer; }\n"
    )

    switch, attempt, loop = root.children
    assert switch.kind is NodeKind.SWITCH
    assert [item.operator for item in switch.children[1:]] == ["case", "default"]
    assert attempt.kind is NodeKind.TRY
    assert attempt.child(NodeKind.CATCH).name == "err"
    assert loop.kind is NodeKind.FOR


def test_semicolons_are_optional():
    root = parse("let a = 1\nlet b = a + 2\nb++\n")

    assert [item.kind for item in root.children] == [
        NodeKind.VARIABLE_DECLARATION,
        NodeKind.VARIABLE_DECLARATION,
        NodeKind.EXPRESSION_STATEMENT,
    ]


def test_import_and_export_forms():
    root = parse(
        "import fs, { readFile as rf } from 'fs';\n"
        "export function api() {}\n"
        "export const VERSION = '1';\n"
        "export default api;\n"
        "export { helper };\n"
    )

    imported = root.children[0]
    assert imported.kind is NodeKind.IMPORT
    assert [item.name for item in imported.children] == ["fs", "rf"]
    exports = root.children[1:]
    assert all(item.kind is NodeKind.EXPORT for item in exports)
    assert exports[0].children[0].kind is NodeKind.FUNCTION_DECLARATION
    assert exports[2].operator == "default"
    assert exports[3].children[0].name == "helper"


def test_member_access_and_calls():
    root = parse("config?.servers[0].connect(retry, { verbose: false });")

    call = root.children[0].children[0]
    assert call.kind is NodeKind.CALL
    callee = call.children[0]
    assert callee.kind is NodeKind.MEMBER
    assert callee.name == "connect"
    assert any(item.operator == "?." for item in find(root, NodeKind.MEMBER))


def test_missing_variable_name_reports_location():
    with pytest.raises(SourceSyntaxError) as exc_info:
        parse("let = 1;")

    assert (exc_info.value.line, exc_info.value.column) == (1, 5)


def test_unbalanced_parenthesis():
    with pytest.raises(SourceSyntaxError) as exc_info:
        parse("if (x {")

    assert exc_info.value.column == 7
    assert "Expected ')'" in exc_info.value.message


def test_unterminated_block_points_at_end_of_input():
    with pytest.raises(SourceSyntaxError) as exc_info:
        parse("function f() {\n  return 1;\n")

    assert exc_info.value.line == 3
    assert "end of input" in exc_info.value.message


def test_invalid_assignment_target():
    with pytest.raises(SourceSyntaxError):
        parse("f() = 3;")


def test_children_are_in_source_order():
    root = parse("const x = cond ? first(1) : second[2] + third(3, 4);")

    positions = [(item.span.start_line, item.span.start_column) for item in root.walk()]
    assert positions == sorted(positions)


def test_template_substitutions_are_parsed():
    root = parse("render(`${count} of ${items.length}`);")

    template = find(root, NodeKind.TEMPLATE)[0]
    assert [item.kind for item in template.children] == [NodeKind.IDENTIFIER, NodeKind.MEMBER]
    assert template.children[0].name == "count"
    assert template.children[0].span == SourceSpan(1, 11, 1, 16)


def test_nested_and_tagged_templates():
    root = parse("const view = html`<b>${`inner ${value}`}</b>`;")

    call = find(root, NodeKind.CALL)[0]
    assert call.operator == "tag"
    assert [item.name for item in find(root, NodeKind.IDENTIFIER)] == ["html", "value"]
    assert len(find(root, NodeKind.TEMPLATE)) == 2


def test_bad_template_substitution_reports_location():
    with pytest.raises(SourceSyntaxError) as exc_info:
        parse("`${a b}`")

    assert (exc_info.value.line, exc_info.value.column) == (1, 6)


def test_out_of_range_escape_is_a_syntax_error():
    with pytest.raises(SourceSyntaxError) as exc_info:
        parse('const S = "\\u{110000}";')

    assert (exc_info.value.line, exc_info.value.column) == (1, 11)
    assert "Invalid literal" in exc_info.value.message
