"""DataQualityValidator — runs the rule catalog and aggregates a report.

Rule failures never abort a run: each rule executes through run_rule(),
which returns a RuleOutcome value instead of raising. A failed outcome is
logged as a warning and listed in ValidationReport.skipped_rules.
"""

from __future__ import annotations

import logging
import time
from datetime import date

from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError

from data_audit.config import Settings
from data_audit.db.store import AuditStore
from data_audit.engines.validation.issue_models import Issue, SkippedCheck, ValidationReport
from data_audit.engines.validation.report import build_report
from data_audit.engines.validation.rules import QUICK_RULES, RULES, Rule

logger = logging.getLogger(__name__)


class RuleOutcome(BaseModel):
    """Result of one rule execution: issues on success, an error message otherwise."""

    rule: str
    ok: bool = True
    issues: list[Issue] = Field(default_factory=list)
    error: str | None = None


def run_rule(name: str, rule: Rule, store: AuditStore, settings: Settings, today: date) -> RuleOutcome:
    """Execute one rule, converting any failure into a failed RuleOutcome."""
    try:
        issues = rule(store, settings, today)
    except SQLAlchemyError as e:
        logger.warning("Rule %s skipped, query failed: %s", name, e)
        return RuleOutcome(rule=name, ok=False, error=f"query failed: {e}")
    except Exception as e:
        logger.warning("Rule %s failed: %s", name, e)
        return RuleOutcome(rule=name, ok=False, error=str(e))
    return RuleOutcome(rule=name, issues=issues)


class DataQualityValidator:
    """Runs validation rules against the store.

    Usage:
        validator = DataQualityValidator(store, settings)
        report = validator.run_full_validation()
        quick = validator.run_quick_validation()
    """

    def __init__(self, store: AuditStore, settings: Settings, today: date | None = None) -> None:
        self.store = store
        self.settings = settings
        self._today = today

    @property
    def today(self) -> date:
        return self._today or date.today()

    def validate(self, mode: str = "full") -> ValidationReport:
        """Run the rule set for the given mode ("full" or "quick")."""
        if mode not in ("full", "quick"):
            raise ValueError(f"Unknown validation mode: {mode}")
        rules = QUICK_RULES if mode == "quick" else RULES
        start = time.monotonic()
        today = self.today

        issues: list[Issue] = []
        skipped: list[SkippedCheck] = []
        for name, rule in rules:
            outcome = run_rule(name, rule, self.store, self.settings, today)
            if outcome.ok:
                issues.extend(outcome.issues)
            else:
                skipped.append(SkippedCheck(name=name, error=outcome.error or "unknown error"))

        duration_ms = int((time.monotonic() - start) * 1000)
        report = build_report(issues, skipped, mode, duration_ms)
        logger.info(
            "%s validation: %d issue(s), %d rule(s) skipped, level=%s",
            mode, report.total_issues, len(skipped), report.overall_level,
        )
        return report

    def run_full_validation(self) -> ValidationReport:
        return self.validate("full")

    def run_quick_validation(self) -> ValidationReport:
        return self.validate("quick")
