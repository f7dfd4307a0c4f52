"""Report aggregation and text rendering for validation runs.

The aggregation is a straight fold over the issue list; rule order is
preserved everywhere, including inside each severity section of the text
rendering.
"""

from __future__ import annotations

from data_audit.engines.validation.issue_models import (
    SEVERITY_ORDER,
    Issue,
    SkippedCheck,
    ValidationReport,
)

_RULE = "=" * 63
_THIN = "-" * 63


def build_report(
    issues: list[Issue],
    skipped: list[SkippedCheck],
    mode: str,
    duration_ms: int,
) -> ValidationReport:
    """Build a ValidationReport from the concatenated rule outputs."""
    by_severity: dict[str, int] = {sev: 0 for sev in SEVERITY_ORDER}
    by_category: dict[str, int] = {}
    for issue in issues:
        by_severity[issue.severity] += 1
        by_category[issue.category] = by_category.get(issue.category, 0) + 1

    level = _compute_level(by_severity)
    return ValidationReport(
        mode=mode,
        duration_ms=duration_ms,
        total_issues=len(issues),
        counts_by_severity=by_severity,
        counts_by_category=by_category,
        issues=tuple(issues),
        skipped_rules=tuple(skipped),
        overall_level=level,
        summary=_build_summary(level, by_severity),
        recommendations=tuple(_recommend_actions(issues, skipped)),
    )


def _compute_level(by_severity: dict[str, int]) -> str:
    if by_severity.get("critical", 0) > 0:
        return "CRITICAL"
    if by_severity.get("high", 0) > 0:
        return "HIGH PRIORITY"
    if by_severity.get("medium", 0) > 0:
        return "MODERATE"
    if by_severity.get("low", 0) > 0:
        return "LOW PRIORITY"
    return "HEALTHY"


def _build_summary(level: str, by_severity: dict[str, int]) -> str:
    if level == "CRITICAL":
        return (
            f"CRITICAL: Found {by_severity['critical']} critical issue(s) requiring immediate "
            "attention. Database integrity may be compromised."
        )
    if level == "HIGH PRIORITY":
        return f"HIGH PRIORITY: Found {by_severity['high']} high-priority issue(s) that should be addressed soon."
    if level == "MODERATE":
        return (
            f"MODERATE: Found {by_severity['medium']} medium-priority issue(s). "
            "Consider addressing during maintenance."
        )
    if level == "LOW PRIORITY":
        return f"LOW PRIORITY: Found {by_severity['low']} low-priority issue(s). Can be addressed as time permits."
    return "HEALTHY: No data quality issues detected. Database is in good condition."


def _recommend_actions(issues: list[Issue], skipped: list[SkippedCheck]) -> list[str]:
    recs: list[str] = []
    critical = sum(1 for i in issues if i.severity == "critical")
    orphans = sum(i.affected_count for i in issues if i.category in ("orphaned_case", "orphaned_assignment"))
    duplicates = sum(1 for i in issues if i.category == "duplicate_external_id")
    overlaps = sum(1 for i in issues if i.category == "temporal_overlap")
    fixable = sum(1 for i in issues if i.auto_fixable)

    if critical:
        recs.append(f"Address {critical} critical issue(s) immediately to restore data integrity")
    if orphans:
        recs.append(f"Clean up {orphans} orphaned record(s) to prevent query failures")
    if duplicates:
        recs.append(f"Resolve {duplicates} duplicate external id group(s) to ensure data uniqueness")
    if overlaps:
        recs.append(f"Fix overlapping assignment ranges for {overlaps} judge(s)")
    if fixable:
        recs.append(f"{fixable} issue(s) can be auto-fixed. Run remediation with --dry-run first.")
    if skipped:
        recs.append(f"{len(skipped)} check(s) could not run; inspect the warnings and re-run")
    if not issues and not skipped:
        recs.append("Continue the regular validation schedule to maintain data quality")
    return recs


def render_report_text(report: ValidationReport) -> str:
    """Human-readable rendering of a validation report."""
    lines = [
        _RULE,
        "        DATA QUALITY VALIDATION REPORT",
        _RULE,
        "",
        f"Report ID: {report.report_id}",
        f"Mode:      {report.mode}",
        f"Completed: {report.timestamp.isoformat()}",
        f"Duration:  {report.duration_ms / 1000:.2f}s",
        "",
        _THIN,
        "SUMMARY",
        _THIN,
        report.summary,
        "",
        f"Total Issues: {report.total_issues}",
    ]
    for sev in SEVERITY_ORDER:
        lines.append(f"  {sev.capitalize() + ':':<10} {report.counts_by_severity.get(sev, 0)}")
    lines.append("")

    if report.recommendations:
        lines += [_THIN, "RECOMMENDATIONS", _THIN]
        lines += [f"{n}. {rec}" for n, rec in enumerate(report.recommendations, 1)]
        lines.append("")

    for sev in SEVERITY_ORDER:
        bucket = [i for i in report.issues if i.severity == sev]
        if not bucket:
            continue
        lines += [_THIN, f"{sev.upper()} ISSUES", _THIN]
        for n, issue in enumerate(bucket, 1):
            lines.append(f"{n}. [{issue.entity.upper()}] {issue.description}")
            lines.append(f"   Category: {issue.category} ({issue.affected_count} affected)")
            lines.append(f"   Action: {issue.suggested_action}")
            lines.append(f"   Auto-fixable: {'Yes' if issue.auto_fixable else 'No'}")
            lines.append("")

    if report.skipped_rules:
        lines += [_THIN, "SKIPPED CHECKS", _THIN]
        lines += [f"- {s.name}: {s.error}" for s in report.skipped_rules]
        lines.append("")

    lines.append(_RULE)
    return "\n".join(lines)
