"""CLI entry point for the data audit.

Usage:
    data-audit                          # full validation + plan (text)
    data-audit --quick --format json
    data-audit --snapshot --save-snapshot
    data-audit --remediate --dry-run
    data-audit --remediate --confirm --operator alice --backup-dir data/backups
    data-audit --full --output report.json --format json

Exit codes:
    0  success (no issues, or remediation without failures)
    2  passed with warnings (issues found, none critical)
    1  critical issues, failed remediation actions, a live run that could not be
       recorded, missing --dry-run/--confirm, or an unexpected error
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from data_audit.backup.manager import BackupManager
from data_audit.config import Settings, load_settings
from data_audit.db.database import create_db_and_tables, create_db_engine
from data_audit.db.store import AuditStore
from data_audit.engines.remediation.audit_log import AuditLog
from data_audit.engines.remediation.engine import AutoRemediationEngine, ConfirmationRequiredError
from data_audit.engines.remediation.planner import RemediationPlanner
from data_audit.engines.remediation.render import render_plan_text, render_summary_text
from data_audit.engines.snapshot.generator import SnapshotGenerator, render_snapshot_text
from data_audit.engines.validation.report import render_report_text
from data_audit.engines.validation.validator import DataQualityValidator

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_WARNINGS = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="data-audit",
        description="Validate, snapshot and remediate the legal directory data store",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--full", action="store_const", dest="mode", const="full",
                      help="Run all validation rules (default)")
    mode.add_argument("--quick", action="store_const", dest="mode", const="quick",
                      help="Run the primary-court, overlap and case-threshold rules only")
    mode.add_argument("--snapshot", action="store_const", dest="mode", const="snapshot",
                      help="Compute a data snapshot with health score")
    mode.add_argument("--remediate", action="store_const", dest="mode", const="remediate",
                      help="Validate, plan and execute fixes")
    parser.set_defaults(mode="full")

    safety = parser.add_mutually_exclusive_group()
    safety.add_argument("--dry-run", action="store_true", help="Simulate remediation, no writes")
    safety.add_argument("--confirm", action="store_true", help="Apply remediation writes")

    parser.add_argument("--action-id", action="append", dest="action_ids",
                        help="Only execute this plan action (repeatable)")
    parser.add_argument("--save-snapshot", action="store_true", help="Persist the snapshot")
    parser.add_argument("--output", "-o", help="Write the rendered result to this file")
    parser.add_argument("--format", choices=["json", "text"], default="text", help="Output format")
    parser.add_argument("--database-url", help="Override DATABASE_URL")
    parser.add_argument("--operator", help="Operator name recorded in the audit log")
    parser.add_argument("--backup-dir", help="Back up SQLite here before a risky confirmed run")
    return parser


def _emit(text: str, output: str | None, headline: str) -> None:
    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(text)
            if not text.endswith("\n"):
                f.write("\n")
        logger.info("Results written to %s", output)
        print(headline)
    else:
        print(text)


def _run_validation(args, store: AuditStore, settings: Settings) -> int:
    report = DataQualityValidator(store, settings).validate(args.mode)
    plan = RemediationPlanner().create_plan(report)

    if args.format == "json":
        text = json.dumps(
            {"report": report.model_dump(mode="json"), "plan": plan.model_dump(mode="json")},
            indent=2,
        )
    else:
        text = render_report_text(report) + "\n" + render_plan_text(plan)
    _emit(text, args.output, report.summary)

    if report.has_critical:
        return EXIT_FAILED
    if report.total_issues:
        return EXIT_WARNINGS
    return EXIT_OK


def _run_snapshot(args, store: AuditStore, settings: Settings) -> int:
    generator = SnapshotGenerator(store, settings)
    snapshot = generator.generate()
    if args.save_snapshot:
        generator.save_snapshot(snapshot)

    if args.format == "json":
        text = snapshot.model_dump_json(indent=2)
    else:
        text = render_snapshot_text(snapshot)
    _emit(text, args.output, f"Health score: {snapshot.health_score:.1f}/100")
    return EXIT_OK


def _run_remediation(args, store: AuditStore, settings: Settings) -> int:
    report = DataQualityValidator(store, settings).run_full_validation()
    plan = RemediationPlanner().create_plan(report)

    operator = args.operator or settings.operator
    engine = AutoRemediationEngine(
        store,
        dry_run=args.dry_run,
        confirm=args.confirm,
        audit_log=AuditLog(settings.audit_log_path, operator=operator),
        operator=operator,
    )

    backup_dir = args.backup_dir or settings.backup_dir
    if args.confirm and backup_dir and plan.risk_assessment.recommended_backup:
        manager = BackupManager.from_database_url(
            settings.database_url, backup_dir, max_backups=settings.max_backups,
        )
        if manager is None:
            logger.warning("Backup recommended but store is not a SQLite file; skipping backup")
        else:
            manager.create_backup(label=plan.plan_id[:8])

    summary = engine.execute(plan, action_ids=args.action_ids)

    if args.format == "json":
        text = json.dumps(
            {"plan": plan.model_dump(mode="json"), "summary": summary.model_dump(mode="json")},
            indent=2,
        )
    else:
        text = render_plan_text(plan) + "\n" + render_summary_text(summary)
    _emit(
        text, args.output,
        f"{summary.successful}/{summary.attempted} successful, {summary.failed} failed",
    )
    for err in summary.recording_errors:
        print(f"Remediation applied but not recorded: {err}", file=sys.stderr)
    return EXIT_FAILED if summary.failed or summary.recording_errors else EXIT_OK


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    args = build_parser().parse_args(argv)

    # Fail closed before touching the store
    if args.mode == "remediate" and not (args.dry_run or args.confirm):
        print("Refusing to remediate: pass --dry-run to simulate or --confirm to apply.",
              file=sys.stderr)
        return EXIT_FAILED

    try:
        settings = load_settings(database_url=args.database_url)
        engine = create_db_engine(settings)
        create_db_and_tables(engine)
        store = AuditStore(engine)

        logger.info("Starting data audit: mode=%s", args.mode)
        if args.mode == "snapshot":
            return _run_snapshot(args, store, settings)
        if args.mode == "remediate":
            return _run_remediation(args, store, settings)
        return _run_validation(args, store, settings)
    except ConfirmationRequiredError as e:
        print(str(e), file=sys.stderr)
        return EXIT_FAILED
    except Exception:
        logger.exception("Data audit failed")
        return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
