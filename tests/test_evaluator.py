from clean_lint.evaluator import evaluate
from clean_lint.models import LANGUAGE_JAVASCRIPT, NodeKind, SourceSpan
from clean_lint.parsing import parse_unit
from clean_lint.rules import build_registry
from clean_lint.rules.base import Rule
from clean_lint.rules.registry import ConfiguredRule
from clean_lint.sources import build_unit


SAMPLE = (
    "let attempts = 0;\n"
    "function configure(host, port, user, password) {\n"
    "  attempts = attempts + 1;\n"
    "  return connect(host, port * 2, true);\n"
    "}\n"
    "setTimeout(configure, 86400000);\n"
)


class ExplodingRule(Rule):
    rule_id = "exploding"
    node_kinds = frozenset({NodeKind.CALL})

    def check(self, node, context):
        raise RuntimeError("boom")


class WanderingRule(Rule):
    rule_id = "wandering"
    node_kinds = frozenset({NodeKind.PROGRAM})

    def check(self, node, context):
        yield context.finding(SourceSpan(99, 1, 99, 2), "nowhere")


def run(source, extra=()):
    unit = build_unit("sample.js", source, LANGUAGE_JAVASCRIPT)
    rules = build_registry(extra).configure()
    return evaluate(unit, parse_unit(unit), rules)


def test_findings_are_in_traversal_order():
    evaluation = run(SAMPLE)

    positions = [(item.span.start_line, item.span.start_column) for item in evaluation.findings]
    assert positions == sorted(positions)
    assert {item.rule_id for item in evaluation.findings} == {
        "max-parameters",
        "no-global-mutation",
        "no-magic-number",
        "no-flag-argument",
    }
    assert evaluation.errors == ()


def test_evaluation_is_repeatable():
    assert run(SAMPLE).findings == run(SAMPLE).findings


def test_rule_failure_is_isolated():
    evaluation = run(SAMPLE, extra=[ExplodingRule()])

    assert len(evaluation.errors) == 2
    assert all(item.rule_id == "exploding" for item in evaluation.errors)
    assert evaluation.errors[0].span.start_line == 4
    assert "RuntimeError: boom" in str(evaluation.errors[0])
    assert evaluation.findings == run(SAMPLE).findings


def test_finding_outside_source_becomes_error():
    evaluation = run("let ok = 0;\n", extra=[WanderingRule()])

    assert evaluation.findings == ()
    assert len(evaluation.errors) == 1
    diagnostic = evaluation.errors[0].to_diagnostic("sample.js")
    assert diagnostic.kind == "evaluation-error"
    assert diagnostic.rule_id == "wandering"


def test_rules_only_see_their_node_kinds():
    seen = []

    class RecordingRule(Rule):
        rule_id = "recording"
        node_kinds = frozenset({NodeKind.IDENTIFIER})

        def check(self, node, context):
            seen.append(node.name)
            return ()

    unit = build_unit("sample.js", "call(first, second);", LANGUAGE_JAVASCRIPT)
    evaluate(unit, parse_unit(unit), [ConfiguredRule(rule=RecordingRule(), severity="warning")])

    assert seen == ["call", "first", "second"]
