"""RemediationPlanner — turns a ValidationReport into a risk-scored plan.

Design:
- Issue.category -> action via the static REMEDIATION_CATALOG (no state machine)
- Per-record categories (orphans) expand to one action per affected row
- Risk is a fixed weight per action kind; overall risk is the max
- Backup is recommended when any action is high risk or deletes rows
- Warnings come from fixed templates per action kind
- Actions keep report order
"""

from __future__ import annotations

import logging

from data_audit.engines.remediation.catalog import (
    READ_ONLY_KINDS,
    RISK_BY_KIND,
    RISK_ORDER,
    catalog_entry,
)
from data_audit.engines.remediation.plan_models import (
    PlanSummary,
    RemediationAction,
    RemediationPlan,
    RiskAssessment,
)
from data_audit.engines.validation.issue_models import Issue, ValidationReport

logger = logging.getLogger(__name__)

WARNING_TEMPLATES: dict[str, str] = {
    "delete_record": "This will permanently delete {rows} row(s) across {actions} action(s)",
    "merge_duplicate": (
        "This will merge {actions} duplicate group(s), re-pointing references and "
        "deleting {rows} redundant row(s)"
    ),
    "nullify_reference": "This will clear {rows} dangling reference(s)",
    "recompute_field": "This will overwrite stored values in {actions} action(s) ({rows} row(s) estimated)",
    "flag_for_review": "{actions} issue(s) need manual review and will not be changed automatically",
}


class RemediationPlanner:
    """Builds RemediationPlans from ValidationReports.

    Usage:
        planner = RemediationPlanner()
        plan = planner.create_plan(report)
    """

    def create_plan(self, report: ValidationReport) -> RemediationPlan:
        actions: list[RemediationAction] = []
        for issue in report.issues:
            actions.extend(self._actions_for(issue))

        plan = RemediationPlan(
            report_id=report.report_id,
            actions=actions,
            summary=self._build_summary(report, actions),
            risk_assessment=self._assess_risk(actions),
        )
        logger.info(
            "Plan %s: %d action(s), overall risk %s, backup recommended: %s",
            plan.plan_id, len(actions), plan.risk_assessment.overall_risk,
            plan.risk_assessment.recommended_backup,
        )
        return plan

    @staticmethod
    def _actions_for(issue: Issue) -> list[RemediationAction]:
        entry = catalog_entry(issue.category)
        auto_fixable = issue.auto_fixable and entry.auto_fixable
        # Issues nothing can write for are reviewed by hand, whatever the catalog says
        kind = entry.action_kind if auto_fixable else "flag_for_review"
        common = dict(
            issue_ref=issue.id,
            category=issue.category,
            action_kind=kind,
            fix_id=entry.fix_id if auto_fixable else None,
            entity=issue.entity,
            risk_level=RISK_BY_KIND[kind],
            requires_confirmation=kind not in READ_ONLY_KINDS,
            auto_fixable=auto_fixable,
        )

        if entry.per_record and auto_fixable:
            return [
                RemediationAction(
                    action_id=f"{issue.id}#{target}",
                    target_ids=[target],
                    description=f"{kind} on {issue.entity} {target}: {issue.suggested_action}",
                    estimated_rows=1,
                    **common,
                )
                for target in issue.affected_ids
            ]

        if kind == "merge_duplicate":
            estimated = max(issue.affected_count - 1, 0)
        elif kind in READ_ONLY_KINDS:
            estimated = 0
        else:
            estimated = issue.affected_count
        return [RemediationAction(
            action_id=f"{issue.id}#0",
            target_ids=list(issue.affected_ids),
            description=issue.suggested_action or issue.description,
            estimated_rows=estimated,
            **common,
        )]

    @staticmethod
    def _build_summary(report: ValidationReport, actions: list[RemediationAction]) -> PlanSummary:
        fixable = [a for a in actions if a.auto_fixable]
        return PlanSummary(
            total_issues=report.total_issues,
            total_actions=len(actions),
            auto_fixable_count=len(fixable),
            requires_review_count=len(actions) - len(fixable),
            total_records_affected=sum(a.estimated_rows for a in fixable),
        )

    @staticmethod
    def _assess_risk(actions: list[RemediationAction]) -> RiskAssessment:
        if not actions:
            return RiskAssessment()

        overall = max((a.risk_level for a in actions), key=lambda r: RISK_ORDER[r])
        recommended_backup = any(
            a.risk_level == "high" or a.action_kind == "delete_record" for a in actions
        )

        # One warning per action kind present, in catalog template order
        warnings: list[str] = []
        for kind, template in WARNING_TEMPLATES.items():
            of_kind = [a for a in actions if a.action_kind == kind]
            if of_kind:
                warnings.append(template.format(
                    actions=len(of_kind),
                    rows=sum(a.estimated_rows for a in of_kind),
                ))
        if recommended_backup:
            warnings.append("Create a database backup before applying this plan")

        return RiskAssessment(
            overall_risk=overall,
            recommended_backup=recommended_backup,
            warnings=warnings,
        )
