"""Auto-Remediation Engine — executes a RemediationPlan against the store.

Per-action state machine:

    pending -> simulated                  (dry run, no write)
    pending -> skipped                    (not auto-fixable / not selected)
    pending -> executing -> success       (confirmed live run)
                         -> failed

Guarantees:
- Fail-closed: without dry_run or confirm, execute() raises
  ConfirmationRequiredError before any action runs
- Each action is one store transaction; there is no cross-action transaction
- A failing action is recorded and the batch continues (no retry)
- attempted == successful + failed + skipped (simulated counts as successful)
- The run row and audit log entry are written after the actions; if either
  write fails the summary is still returned, with the failure in
  recording_errors
"""

from __future__ import annotations

import logging
import time
from datetime import date
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError

from data_audit.db.store import AuditStore, StoreWrite
from data_audit.engines.remediation.audit_log import AuditLog
from data_audit.engines.remediation.plan_models import (
    RemediationAction,
    RemediationPlan,
    RemediationResult,
    RemediationSummary,
    RollbackInfo,
)
from data_audit.engines.validation.normalizers import standardize_judge_name, suggest_outcome
from data_audit.models.remediation import RemediationRun

logger = logging.getLogger(__name__)

# === State Transition Table ===
# Key: (from_state, to_state) -> guard description
# Absent pair -> illegal transition

LEGAL_TRANSITIONS: dict[tuple[str, str], str] = {
    ("pending", "simulated"): "Dry run records a synthetic result",
    ("pending", "skipped"): "Action not auto-fixable or not selected",
    ("pending", "executing"): "Confirmed live run starts the write",
    ("executing", "success"): "Store command committed",
    ("executing", "failed"): "Store command raised",
}

TERMINAL_STATES = {"simulated", "skipped", "success", "failed"}


class RemediationError(Exception):
    """Base class for remediation failures that abort a whole run."""


class ConfirmationRequiredError(RemediationError):
    """Raised when remediation is invoked with neither dry_run nor confirm."""

    def __init__(self, pending_actions: int) -> None:
        self.pending_actions = pending_actions
        super().__init__(
            f"Refusing to execute {pending_actions} action(s): pass dry_run to simulate "
            f"or confirm to apply changes"
        )


class IllegalTransitionError(Exception):
    """Raised when an action result moves along an edge not in LEGAL_TRANSITIONS."""

    def __init__(self, from_state: str, to_state: str) -> None:
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(f"Illegal transition: {from_state} -> {to_state}")


class RollbackError(RemediationError):
    """Raised when recorded rollback info cannot be applied."""


def transition(result: RemediationResult, to_state: str) -> None:
    """Move a result to a new state with transition-table enforcement."""
    from_state = result.status
    if from_state in TERMINAL_STATES or (from_state, to_state) not in LEGAL_TRANSITIONS:
        raise IllegalTransitionError(from_state, to_state)
    result.status = to_state
    result.success = to_state in ("simulated", "success")


class AutoRemediationEngine:
    """Executes plan actions in list order.

    Usage:
        engine = AutoRemediationEngine(store, dry_run=True)
        summary = engine.execute(plan)

        live = AutoRemediationEngine(store, confirm=True, audit_log=AuditLog(path))
        summary = live.execute(plan, action_ids=["orphaned_case:ab12#7"])
        live.rollback(summary.results)
    """

    def __init__(
        self,
        store: AuditStore,
        dry_run: bool = False,
        confirm: bool = False,
        audit_log: AuditLog | None = None,
        operator: str = "",
        today: date | None = None,
    ) -> None:
        self.store = store
        self.dry_run = dry_run
        self.confirm = confirm
        self.audit_log = audit_log
        self.operator = operator
        self._today = today
        self._handlers: dict[str, Callable[[RemediationAction], tuple[StoreWrite, str | None]]] = {
            "nullify_case_judge": self._nullify_case_judge,
            "delete_assignment": self._delete_assignment,
            "demote_extra_primaries": self._demote_extra_primaries,
            "trim_overlapping_assignments": self._trim_overlapping_assignments,
            "merge_duplicate_records": self._merge_duplicate_records,
            "recalculate_case_counts": self._recalculate_case_counts,
            "standardize_judge_names": self._standardize_judge_names,
            "map_case_outcomes": self._map_case_outcomes,
        }

    @property
    def today(self) -> date:
        return self._today or date.today()

    def can_handle(self, fix_id: str | None) -> bool:
        return fix_id is not None and fix_id in self._handlers

    # === Execution ===

    def execute(
        self,
        plan: RemediationPlan,
        action_ids: list[str] | None = None,
    ) -> RemediationSummary:
        """Run every action of the plan in order and summarize the outcome.

        Args:
            plan: The plan to execute.
            action_ids: Optional allow-list; other actions are recorded as skipped.

        Raises:
            ConfirmationRequiredError: neither dry_run nor confirm was given.
                Raised before any action is touched.
        """
        if not self.dry_run and not self.confirm:
            pending = sum(1 for a in plan.actions if a.requires_confirmation)
            logger.error("Remediation refused: no --dry-run or --confirm (%d action(s))", pending)
            raise ConfirmationRequiredError(pending)

        selected = set(action_ids) if action_ids is not None else None
        start = time.monotonic()
        results = [self._run_action(action, selected) for action in plan.actions]
        duration_ms = int((time.monotonic() - start) * 1000)

        summary = RemediationSummary(
            plan_id=plan.plan_id,
            total_issues=plan.summary.total_issues,
            attempted=len(results),
            successful=sum(1 for r in results if r.status in ("simulated", "success")),
            failed=sum(1 for r in results if r.status == "failed"),
            skipped=sum(1 for r in results if r.status == "skipped"),
            duration_ms=duration_ms,
            dry_run=self.dry_run,
            results=results,
        )
        logger.info(
            "Remediation %s%s: %d attempted, %d successful, %d failed, %d skipped",
            plan.plan_id, " (dry run)" if self.dry_run else "",
            summary.attempted, summary.successful, summary.failed, summary.skipped,
        )

        # Writes are already committed: recording failures are reported, never raised
        if not self.dry_run:
            try:
                self._record_run(summary)
            except SQLAlchemyError as e:
                logger.error("Could not record remediation run %s: %s", plan.plan_id, e)
                summary.recording_errors.append(f"run history: {e}")
        if self.audit_log is not None:
            try:
                self.audit_log.append(summary)
            except (OSError, ValueError) as e:
                logger.error("Could not append to audit log %s: %s", self.audit_log.path, e)
                summary.recording_errors.append(f"audit log: {e}")
        return summary

    def _run_action(self, action: RemediationAction, selected: set[str] | None) -> RemediationResult:
        result = RemediationResult(
            action_ref=action.action_id,
            issue_ref=action.issue_ref,
            action_kind=action.action_kind,
            dry_run=self.dry_run,
        )

        if selected is not None and action.action_id not in selected:
            transition(result, "skipped")
            return result
        if not action.auto_fixable or not self.can_handle(action.fix_id):
            transition(result, "skipped")
            return result

        if self.dry_run:
            transition(result, "simulated")
            result.rows_affected = action.estimated_rows
            return result

        transition(result, "executing")
        try:
            write, entity = self._handlers[action.fix_id](action)
        except Exception as e:
            logger.error("Action %s (%s) failed: %s", action.action_id, action.fix_id, e)
            transition(result, "failed")
            result.error = str(e)
            return result

        transition(result, "success")
        result.rows_affected = write.rows_affected
        if entity is not None and write.changes:
            result.rollback_info = RollbackInfo(entity=entity, changes=write.changes)
        return result

    def _record_run(self, summary: RemediationSummary) -> None:
        run = RemediationRun(
            plan_id=summary.plan_id,
            operator=self.operator,
            dry_run=summary.dry_run,
            total_issues=summary.total_issues,
            attempted=summary.attempted,
            successful=summary.successful,
            failed=summary.failed,
            skipped=summary.skipped,
            duration_ms=summary.duration_ms,
            results=[r.model_dump(mode="json") for r in summary.results],
        )
        self.store.insert_remediation_run(run)

    # === Fix handlers ===
    # Each returns (StoreWrite, rollback entity or None when the write cannot be undone)

    def _nullify_case_judge(self, action: RemediationAction) -> tuple[StoreWrite, str | None]:
        return self.store.nullify_case_judge(action.target_ids[0]), "case"

    def _delete_assignment(self, action: RemediationAction) -> tuple[StoreWrite, str | None]:
        return self.store.delete_assignment(action.target_ids[0]), None

    def _demote_extra_primaries(self, action: RemediationAction) -> tuple[StoreWrite, str | None]:
        return self.store.demote_extra_primaries(action.target_ids[0], self.today), "assignment"

    def _trim_overlapping_assignments(self, action: RemediationAction) -> tuple[StoreWrite, str | None]:
        return self.store.trim_overlapping_assignments(action.target_ids[0], self.today), "assignment"

    def _merge_duplicate_records(self, action: RemediationAction) -> tuple[StoreWrite, str | None]:
        keep_id = min(action.target_ids)
        return self.store.merge_duplicates(action.entity, keep_id, action.target_ids), None

    def _recalculate_case_counts(self, action: RemediationAction) -> tuple[StoreWrite, str | None]:
        return self.store.recalculate_case_counts(action.target_ids), "judge"

    def _standardize_judge_names(self, action: RemediationAction) -> tuple[StoreWrite, str | None]:
        current = self.store.get_judge_names(action.target_ids)
        names = {}
        for judge_id, name in current.items():
            fixed = standardize_judge_name(name or "")
            if fixed:
                names[judge_id] = fixed
        return self.store.update_judge_names(names), "judge"

    def _map_case_outcomes(self, action: RemediationAction) -> tuple[StoreWrite, str | None]:
        current = self.store.get_case_outcomes(action.target_ids)
        outcomes = {}
        for case_id, outcome in current.items():
            mapped = suggest_outcome(outcome) if outcome else None
            if mapped:
                outcomes[case_id] = mapped
        return self.store.update_case_outcomes(outcomes), "case"

    # === Rollback ===

    def rollback(self, results: list[RemediationResult]) -> int:
        """Restore the old values recorded by successful live actions.

        Deletes and merges carry no rollback info and are left as they are.
        Returns the number of restored rows.
        """
        restored = 0
        for result in reversed(results):
            if result.status != "success" or result.rollback_info is None:
                continue
            info = result.rollback_info
            try:
                restored += self.store.restore_values(info.entity, info.changes)
            except (KeyError, ValueError) as e:
                raise RollbackError(f"Cannot roll back {result.action_ref}: {e}") from e
        logger.info("Rollback restored %d row(s)", restored)
        return restored
