from __future__ import annotations

import csv
import json
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from clean_lint.models import SEVERITY_ERROR, Diagnostic, Finding, LintRun


def sort_findings(findings: Iterable[Finding]) -> list[Finding]:
    return sorted(findings, key=lambda item: (item.path, item.span.start_line, item.span.start_column))


def group_findings(findings: Iterable[Finding]) -> list[tuple[str, list[Finding]]]:
    grouped: dict[str, list[Finding]] = {}
    for item in sort_findings(findings):
        grouped.setdefault(item.path, []).append(item)
    return list(grouped.items())


def _diagnostic_key(item: Diagnostic) -> tuple:
    if item.span is None:
        return (item.path, 0, 0)
    return (item.path, item.span.start_line, item.span.start_column)


def render_text(run: LintRun) -> str:
    findings_by_path = dict(group_findings(run.findings))
    diagnostics_by_path: dict[str, list[Diagnostic]] = {}
    for item in sorted(run.diagnostics, key=_diagnostic_key):
        diagnostics_by_path.setdefault(item.path, []).append(item)

    lines: list[str] = []
    for path in sorted(set(findings_by_path) | set(diagnostics_by_path)):
        lines.append(path)
        for diagnostic in diagnostics_by_path.get(path, []):
            location = f"{diagnostic.span.start_line}:{diagnostic.span.start_column}" if diagnostic.span else "-"
            label = diagnostic.rule_id or diagnostic.kind
            lines.append(f"  {location:<8} {diagnostic.severity:<8} {diagnostic.message}  [{label}]")
        for finding in findings_by_path.get(path, []):
            location = f"{finding.span.start_line}:{finding.span.start_column}"
            lines.append(f"  {location:<8} {finding.severity:<8} {finding.message}  [{finding.rule_id}]")
        lines.append("")

    summary = run.summary()
    problems = summary["findings_count"] + summary["diagnostics_count"]
    if problems == 0:
        lines.append(f"No problems found in {summary['files_scanned']} file(s).")
    else:
        lines.append(
            f"{problems} problem(s) in {summary['files_scanned']} file(s): "
            f"{summary['error_count']} error(s), {summary['warning_count']} warning(s), "
            f"{summary['diagnostics_count']} diagnostic(s)."
        )
    return "\n".join(lines)


def render_json(run: LintRun) -> str:
    files = []
    for result in sorted(run.results, key=lambda item: item.path):
        files.append(
            {
                "path": result.path,
                "language": result.language,
                "findings": [item.to_dict() for item in sort_findings(result.findings)],
                "diagnostics": [item.to_dict() for item in sorted(result.diagnostics, key=_diagnostic_key)],
            }
        )
    return json.dumps({"summary": run.summary(), "files": files}, indent=2, ensure_ascii=True)


def write_reports(run: LintRun, output_dir: str | Path) -> dict:
    out_dir = Path(output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    findings = sort_findings(run.findings)
    rule_counts = Counter((item.rule_id, item.severity) for item in findings)
    by_rule = [
        {"rule_id": rule_id, "severity": severity, "finding_count": count}
        for (rule_id, severity), count in sorted(rule_counts.items(), key=lambda pair: (-pair[1], pair[0]))
    ]

    summary = {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "run": run.summary(),
        "counts": {
            "files_with_findings": len({item.path for item in findings}),
            "rules_triggered": len(by_rule),
            "error_findings": sum(1 for item in findings if item.severity == SEVERITY_ERROR),
        },
        "files": {},
    }

    summary_json = out_dir / "summary.json"
    findings_csv = out_dir / "findings.csv"
    rule_csv = out_dir / "findings_by_rule.csv"
    diagnostics_csv = out_dir / "diagnostics.csv"

    _write_json(summary_json, summary)
    _write_csv(findings_csv, [item.to_dict() for item in findings])
    _write_csv(rule_csv, by_rule)
    _write_csv(diagnostics_csv, [item.to_dict() for item in sorted(run.diagnostics, key=_diagnostic_key)])

    summary["files"] = {
        "summary": str(summary_json.resolve()),
        "findings": str(findings_csv.resolve()),
        "findings_by_rule": str(rule_csv.resolve()),
        "diagnostics": str(diagnostics_csv.resolve()),
    }

    _write_json(summary_json, summary)
    return summary


def _write_json(path: Path, payload: dict) -> None:
    with path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2, ensure_ascii=True)


def _write_csv(path: Path, rows: list[dict]) -> None:
    with path.open("w", encoding="utf-8", newline="") as handle:
        if not rows:
            handle.write("")
            return

        fieldnames: list[str] = []
        seen = set()
        for row in rows:
            for key in row:
                if key not in seen:
                    seen.add(key)
                    fieldnames.append(key)

        writer = csv.DictWriter(handle, fieldnames=fieldnames)
        writer.writeheader()
        for row in rows:
            writer.writerow(row)
