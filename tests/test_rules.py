from clean_lint.config import parse_config
from clean_lint.models import LANGUAGE_JAVASCRIPT, LANGUAGE_PYTHON, SEVERITY_ERROR, SourceSpan
from clean_lint.pipeline import lint_text


def findings_for(rule_id, text, language=LANGUAGE_JAVASCRIPT, config=None):
    result = lint_text(text, language=language, path="sample", config=config)
    assert not result.diagnostics, result.diagnostics
    return [item for item in result.findings if item.rule_id == rule_id]


def test_max_parameters_within_limit_has_no_findings():
    source = "function sum(a, b, c) { return a + b + c; }\nconst pair = (left, right) => [left, right];\n"

    assert findings_for("max-parameters", source) == []


def test_max_parameters_flags_function_at_declaration_span():
    source = "function createMenu(title, body, buttonText, cancellable) {\n  return title;\n}\n"

    findings = findings_for("max-parameters", source)

    assert len(findings) == 1
    assert findings[0].span == SourceSpan(1, 1, 3, 2)
    assert findings[0].severity == SEVERITY_ERROR
    assert "4 parameters" in findings[0].message


def test_max_parameters_covers_methods_and_arrows():
    source = (
        "class Menu {\n"
        "  open(a, b, c, d) {}\n"
        "}\n"
        "const build = (a, b, c, d, e) => a;\n"
    )

    findings = findings_for("max-parameters", source)

    assert [item.span.start_line for item in findings] == [2, 4]


def test_max_parameters_uses_configured_threshold():
    config = parse_config({"rules": {"max-parameters": {"max": 1}}})

    findings = findings_for("max-parameters", "function pair(a, b) {}", config=config)

    assert len(findings) == 1


def test_max_parameters_ignores_python_receiver():
    source = (
        "class Menu:\n"
        "    def open(self, title, body, button):\n"
        "        pass\n"
        "\n"
        "    def close(self, title, body, button, cancellable):\n"
        "        pass\n"
    )

    findings = findings_for("max-parameters", source, LANGUAGE_PYTHON)

    assert [item.span.start_line for item in findings] == [5]


def test_magic_number_bound_to_constant_is_allowed():
    assert findings_for("no-magic-number", "const MILLISECONDS_PER_DAY = 86400000;") == []


def test_magic_number_inline_is_flagged_once():
    findings = findings_for("no-magic-number", "setTimeout(blastOff, 86400000);")

    assert len(findings) == 1
    assert findings[0].span == SourceSpan(1, 22, 1, 30)
    assert "86400000" in findings[0].message


def test_magic_number_default_exclusions_and_sign():
    source = "let a = 0;\nlet b = 1;\nlet c = -1;\nlet d = -5;\nconst E = -12;\n"

    findings = findings_for("no-magic-number", source)

    assert len(findings) == 1
    assert findings[0].span.start_line == 4
    assert "-5" in findings[0].message


def test_magic_number_let_binding_is_flagged():
    assert len(findings_for("no-magic-number", "let timeout = 3000;")) == 1


def test_magic_number_python_constants():
    source = "TIMEOUT_SECONDS = 30\nretries = 3\n\ndef wait():\n    return sleep(0.5)\n"

    findings = findings_for("no-magic-number", source, LANGUAGE_PYTHON)

    assert [item.span.start_line for item in findings] == [2, 5]


def test_magic_number_custom_ignore_list():
    config = parse_config({"rules": {"no-magic-number": {"ignore": [0, 1, 60]}}})

    findings = findings_for("no-magic-number", "wait(60);\nwait(90);", config=config)

    assert [item.span.start_line for item in findings] == [2]


def test_global_mutation_inside_function():
    source = (
        "let counter = 0;\n"
        "function increment() {\n"
        "  counter++;\n"
        "}\n"
        "function local() {\n"
        "  let total = 0;\n"
        "  total += 1;\n"
        "  return total;\n"
        "}\n"
        "function leak() {\n"
        "  undeclared = true;\n"
        "}\n"
        "counter = 2;\n"
    )

    findings = findings_for("no-global-mutation", source)

    assert [item.span.start_line for item in findings] == [3, 11]
    assert "counter" in findings[0].message
    assert "undeclared" in findings[1].message


def test_global_mutation_nested_closure_is_not_global():
    source = (
        "function makeCounter() {\n"
        "  let count = 0;\n"
        "  return () => { count += 1; return count; };\n"
        "}\n"
    )

    assert findings_for("no-global-mutation", source) == []


def test_global_mutation_block_scoped_module_binding():
    source = "if (ready) {\n  let state = 'idle';\n  const reset = () => { state = 'reset'; };\n}\n"

    assert len(findings_for("no-global-mutation", source)) == 1


def test_global_mutation_member_targets_are_opt_in():
    source = "const config = {};\nfunction setup() {\n  config.debug = true;\n}\n"
    enabled = parse_config({"rules": {"no-global-mutation": {"check_members": True}}})

    assert findings_for("no-global-mutation", source) == []
    assert len(findings_for("no-global-mutation", source, config=enabled)) == 1


def test_global_mutation_destructuring_assignment():
    source = "let a = 1, b = 2;\nfunction swap() {\n  [a, b] = [b, a];\n}\n"

    assert len(findings_for("no-global-mutation", source)) == 2


def test_global_mutation_python_requires_global_statement():
    source = (
        "counter = 0\n"
        "\n"
        "def shadow():\n"
        "    counter = 5\n"
        "    return counter\n"
        "\n"
        "def bump():\n"
        "    global counter\n"
        "    counter += 1\n"
    )

    findings = findings_for("no-global-mutation", source, LANGUAGE_PYTHON)

    assert [item.span.start_line for item in findings] == [9]


def test_unused_function():
    source = (
        "function used() { return 1; }\n"
        "function unused() { return used(); }\n"
        "function recursive(n) { return recursive(n - 1); }\n"
        "export function api() {}\n"
        "function listed() {}\n"
        "export { listed };\n"
    )

    findings = findings_for("no-unused-function", source)

    assert [item.span.start_line for item in findings] == [2, 3]
    assert "unused" in findings[0].message


def test_unused_function_python():
    source = (
        "import functools\n"
        "\n"
        "def _helper():\n"
        "    return 1\n"
        "\n"
        "def public():\n"
        "    return 2\n"
        "\n"
        "@functools.cache\n"
        "def _cached():\n"
        "    return 3\n"
    )

    findings = findings_for("no-unused-function", source, LANGUAGE_PYTHON)

    assert [item.span.start_line for item in findings] == [3]


def test_flag_argument():
    findings = findings_for("no-flag-argument", "render(items, true);\nconst options = { verbose: false };\n")

    assert len(findings) == 1
    assert findings[0].span == SourceSpan(1, 15, 1, 19)


def test_flag_argument_python_keyword_is_allowed():
    source = "render(items, True)\nrender(items, verbose=True)\n"

    findings = findings_for("no-flag-argument", source, LANGUAGE_PYTHON)

    assert [item.span.start_line for item in findings] == [1]


def test_min_identifier_length():
    source = "const a = compute();\nfor (let i = 0; i < size; i++) {}\nfunction f(q, value) {}\n"

    findings = findings_for("min-identifier-length", source)

    assert [item.message.split("'")[1] for item in findings] == ["a", "f", "q"]


def test_min_identifier_length_python_targets():
    source = "for n in range(3):\n    total = n\nz = 1\n"

    findings = findings_for("min-identifier-length", source, LANGUAGE_PYTHON)

    assert [item.message.split("'")[1] for item in findings] == ["n", "z"]


def test_disabled_rule_reports_nothing():
    config = parse_config({"rules": {"max-parameters": {"enabled": False}}})

    assert findings_for("max-parameters", "function f(a, b, c, d) {}", config=config) == []


def test_unused_function_sees_template_references():
    source = "function label(text) { return text; }\nexport const out = `${label(title)}`;\n"

    assert findings_for("no-unused-function", source) == []


def test_global_mutation_inside_template_substitution():
    source = "let count = 0;\nfunction next() {\n  return `#${count++}`;\n}\n"

    findings = findings_for("no-global-mutation", source)

    assert [item.span.start_line for item in findings] == [3]
    assert "count" in findings[0].message
