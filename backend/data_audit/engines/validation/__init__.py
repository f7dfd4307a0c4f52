"""Data-quality validation engines — rule catalog, report aggregation."""

from data_audit.engines.validation.issue_models import (
    Issue,
    IssueCategory,
    Severity,
    SkippedCheck,
    ValidationReport,
)
from data_audit.engines.validation.validator import DataQualityValidator, RuleOutcome

__all__ = [
    "DataQualityValidator",
    "Issue",
    "IssueCategory",
    "RuleOutcome",
    "Severity",
    "SkippedCheck",
    "ValidationReport",
]
