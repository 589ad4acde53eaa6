from clean_lint.config import parse_config
from clean_lint.models import LANGUAGE_JAVASCRIPT, LANGUAGE_PYTHON
from clean_lint.pipeline import lint_paths, lint_text


def write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_lint_paths_walks_directories(tmp_path):
    write(tmp_path / "src" / "menu.js", "function createMenu(title, body, buttonText, cancellable) {}\nexport { createMenu };\n")
    write(tmp_path / "src" / "clean.py", "LIMIT = 3\n")
    write(tmp_path / "node_modules" / "dep.js", "function dep(a, b, c, d) {}\n")
    write(tmp_path / "README.md", "function ignored(a, b, c, d) {}\n")

    run = lint_paths([tmp_path])

    paths = [result.path for result in run.results]
    assert len(paths) == 2
    assert paths[0].endswith("src/clean.py")
    assert paths[1].endswith("src/menu.js")
    assert [item.rule_id for item in run.findings] == ["max-parameters"]
    assert run.exit_code == 1


def test_syntax_error_is_isolated_to_its_file(tmp_path):
    write(tmp_path / "broken.js", "function (\n")
    write(tmp_path / "fine.js", "setTimeout(tick, 250);\n")

    run = lint_paths([tmp_path])

    broken, fine = run.results
    assert broken.findings == ()
    assert broken.diagnostics[0].kind == "syntax-error"
    assert broken.diagnostics[0].span.start_line == 1
    assert [item.rule_id for item in fine.findings] == ["no-magic-number"]
    assert run.exit_code == 1


def test_warnings_alone_exit_zero(tmp_path):
    write(tmp_path / "timer.js", "setTimeout(tick, 250);\n")

    run = lint_paths([tmp_path])

    assert run.findings
    assert run.exit_code == 0
    assert run.summary()["warning_count"] == 1


def test_explicit_file_with_unknown_extension(tmp_path):
    path = write(tmp_path / "notes.txt", "hello\n")

    run = lint_paths([path])

    assert run.results[0].diagnostics[0].kind == "read-error"
    assert run.exit_code == 0


def test_language_override_for_explicit_file(tmp_path):
    path = write(tmp_path / "script", "def run(alpha, beta, gamma, delta):\n    pass\n")

    run = lint_paths([path], language=LANGUAGE_PYTHON)

    assert [item.rule_id for item in run.findings] == ["max-parameters"]


def test_size_and_count_limits(tmp_path):
    write(tmp_path / "a.js", "let first = 1;\n")
    write(tmp_path / "b.js", "let second = 1;\n")
    write(tmp_path / "c.js", "let third = 1;\n" * 100)

    config = parse_config({"scan": {"max_file_size_bytes": 100, "max_files": 1}})
    run = lint_paths([tmp_path], config)

    assert [result.path.rsplit("/", 1)[-1] for result in run.results] == ["a.js"]


def test_lint_text_reports_syntax_error_location():
    result = lint_text("let value = 'unterminated;\n", language=LANGUAGE_JAVASCRIPT)

    assert result.findings == ()
    assert result.diagnostics[0].span.start_line == 1
    assert result.diagnostics[0].span.start_column == 13
    assert result.has_errors


def test_lint_text_uses_config():
    config = parse_config({"rules": {"max-parameters": {"max": 4}}})

    result = lint_text("function f4(alpha, beta, gamma, delta) {}\nf4(1, 2, 3, 4);\n", language=LANGUAGE_JAVASCRIPT, config=config)

    assert [item.rule_id for item in result.findings] == ["no-magic-number"] * 3


def test_malformed_literal_fails_only_its_file(tmp_path):
    write(tmp_path / "a_bad.js", "const X = 0x;\n")
    write(tmp_path / "b_escape.js", 'const S = "\\u{110000}";\n')
    write(tmp_path / "c_good.js", "function run(alpha, beta, gamma, delta) {}\nrun();\n")

    run = lint_paths([tmp_path])

    bad, escape, good = run.results
    assert bad.diagnostics[0].kind == "syntax-error"
    assert (bad.diagnostics[0].span.start_line, bad.diagnostics[0].span.start_column) == (1, 11)
    assert escape.diagnostics[0].kind == "syntax-error"
    assert [item.rule_id for item in good.findings] == ["max-parameters"]


def test_python_file_with_byte_order_mark(tmp_path):
    path = tmp_path / "handler.py"
    path.write_bytes(b"\xef\xbb\xbfdef handler(alpha, beta, gamma, delta):\n    pass\n")

    run = lint_paths([path])

    assert run.diagnostics == []
    assert [item.rule_id for item in run.findings] == ["max-parameters"]
    assert run.findings[0].span.start_column == 1
