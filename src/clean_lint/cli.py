from __future__ import annotations

import argparse
import json
import logging
import sys

from clean_lint.config import ConfigError, default_config, load_config
from clean_lint.models import LANGUAGES, LintRun
from clean_lint.pipeline import lint_paths, lint_text
from clean_lint.reporting import render_json, render_text, write_reports
from clean_lint.rules import DuplicateRuleError, build_registry


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clean-lint",
        description="Style-rule linter for JavaScript and Python sources",
    )
    parser.add_argument("--log-level", choices=LOG_LEVELS, default="WARNING")
    subparsers = parser.add_subparsers(dest="command", required=True)

    check_parser = subparsers.add_parser("check", help="Lint files and directories")
    check_parser.add_argument("paths", nargs="+", help="Files or directories; '-' reads stdin")
    check_parser.add_argument("--config", default=None)
    check_parser.add_argument("--format", choices=["text", "json"], default="text")
    check_parser.add_argument("--output-dir", default=None)
    check_parser.add_argument("--language", choices=LANGUAGES, default=None)
    check_parser.add_argument("--stdin-path", default="<stdin>")

    rules_parser = subparsers.add_parser("rules", help="List registered rules and their settings")
    rules_parser.add_argument("--config", default=None)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        config = load_config(args.config) if args.config else default_config()
        registry = build_registry()
        rules = registry.configure(config)
    except ConfigError as exc:
        parser.error(str(exc))
        return 2
    except DuplicateRuleError as exc:
        print(f"clean-lint: error: {exc}", file=sys.stderr)
        return 2

    if args.command == "rules":
        enabled = {item.rule_id: item for item in rules}
        payload = []
        for rule in registry.all_rules():
            entry = rule.describe()
            configured = enabled.get(rule.rule_id)
            entry["enabled"] = configured is not None
            if configured is not None:
                entry["severity"] = configured.severity
                entry["options"] = configured.options
            payload.append(entry)
        print(json.dumps(payload, indent=2, ensure_ascii=True))
        return 0

    if args.command == "check":
        if "-" in args.paths:
            if args.paths != ["-"]:
                parser.error("'-' cannot be combined with other paths")
            if args.language is None:
                parser.error("--language is required when reading from stdin")
            result = lint_text(sys.stdin.read(), language=args.language, path=args.stdin_path, rules=rules)
            run = LintRun(results=(result,))
        else:
            run = lint_paths(args.paths, config, rules=rules, language=args.language)

        print(render_json(run) if args.format == "json" else render_text(run))
        if args.output_dir:
            write_reports(run, args.output_dir)
        return run.exit_code

    parser.error(f"Unsupported command: {args.command}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
