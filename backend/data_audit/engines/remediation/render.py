"""Text rendering for remediation plans and execution summaries."""

from __future__ import annotations

from data_audit.engines.remediation.plan_models import RemediationPlan, RemediationSummary

_THIN = "-" * 63


def render_plan_text(plan: RemediationPlan) -> str:
    risk = plan.risk_assessment
    summary = plan.summary
    lines = [
        _THIN,
        "REMEDIATION PLAN",
        _THIN,
        f"Plan ID: {plan.plan_id}",
        f"Actions: {summary.total_actions} ({summary.auto_fixable_count} auto-fixable, "
        f"{summary.requires_review_count} need review)",
        f"Records affected (estimated): {summary.total_records_affected}",
        f"Overall risk: {risk.overall_risk.upper()}",
        f"Backup recommended: {'Yes' if risk.recommended_backup else 'No'}",
    ]
    if risk.warnings:
        lines.append("Warnings:")
        lines += [f"  ! {w}" for w in risk.warnings]
    if plan.actions:
        lines.append("")
        for n, action in enumerate(plan.actions, 1):
            flag = "auto" if action.auto_fixable else "review"
            lines.append(
                f"{n}. [{action.risk_level.upper()}] {action.action_kind} "
                f"{action.entity} {action.target_ids[:5]}{'...' if len(action.target_ids) > 5 else ''} "
                f"({flag}) id={action.action_id}"
            )
    return "\n".join(lines)


def render_summary_text(summary: RemediationSummary) -> str:
    mode = "DRY RUN" if summary.dry_run else "LIVE"
    lines = [
        _THIN,
        f"REMEDIATION RESULTS ({mode})",
        _THIN,
        f"Plan ID:    {summary.plan_id}",
        f"Attempted:  {summary.attempted}",
        f"Successful: {summary.successful}",
        f"Failed:     {summary.failed}",
        f"Skipped:    {summary.skipped}",
        f"Duration:   {summary.duration_ms}ms",
    ]
    failures = [r for r in summary.results if r.status == "failed"]
    if failures:
        lines.append("")
        lines.append("Failures:")
        lines += [f"  x {r.action_ref}: {r.error}" for r in failures]
    if summary.recording_errors:
        lines.append("")
        lines.append("Not recorded:")
        lines += [f"  ! {err}" for err in summary.recording_errors]
    return "\n".join(lines)
