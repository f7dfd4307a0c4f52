"""Static remediation catalog: issue category -> fix action.

Both the validation rules (to set Issue.auto_fixable / suggested_fix_id)
and the planner (to build actions) read this table. A category maps to an
auto-fixable action only when the engine has a handler for its fix_id.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict

ActionKind = Literal[
    "nullify_reference",
    "delete_record",
    "recompute_field",
    "merge_duplicate",
    "flag_for_review",
]

RiskLevel = Literal["low", "medium", "high"]

RISK_ORDER: dict[str, int] = {"low": 0, "medium": 1, "high": 2}

RISK_BY_KIND: dict[str, RiskLevel] = {
    "nullify_reference": "low",
    "recompute_field": "medium",
    "merge_duplicate": "high",
    "delete_record": "high",
    "flag_for_review": "low",
}

# Kinds that never write to the store
READ_ONLY_KINDS = frozenset({"flag_for_review"})


class CatalogEntry(BaseModel):
    """How one issue category is remediated."""

    model_config = ConfigDict(frozen=True)

    action_kind: ActionKind
    fix_id: str | None = None  # Engine handler key; None = manual review only
    per_record: bool = False  # Expand into one action per affected id

    @property
    def auto_fixable(self) -> bool:
        return self.fix_id is not None


REMEDIATION_CATALOG: dict[str, CatalogEntry] = {
    "missing_primary_court": CatalogEntry(action_kind="flag_for_review"),
    "multiple_primary_courts": CatalogEntry(
        action_kind="recompute_field", fix_id="demote_extra_primaries",
    ),
    "temporal_overlap": CatalogEntry(
        action_kind="recompute_field", fix_id="trim_overlapping_assignments",
    ),
    "below_case_threshold": CatalogEntry(action_kind="flag_for_review"),
    "orphaned_case": CatalogEntry(
        action_kind="nullify_reference", fix_id="nullify_case_judge", per_record=True,
    ),
    "orphaned_assignment": CatalogEntry(
        action_kind="delete_record", fix_id="delete_assignment", per_record=True,
    ),
    "duplicate_external_id": CatalogEntry(
        action_kind="merge_duplicate", fix_id="merge_duplicate_records",
    ),
    "case_count_mismatch": CatalogEntry(
        action_kind="recompute_field", fix_id="recalculate_case_counts",
    ),
    "jurisdiction_mismatch": CatalogEntry(action_kind="flag_for_review"),
    "missing_required_field": CatalogEntry(action_kind="flag_for_review"),
    "nonstandard_judge_name": CatalogEntry(
        action_kind="recompute_field", fix_id="standardize_judge_names",
    ),
    "nonstandard_outcome": CatalogEntry(
        action_kind="recompute_field", fix_id="map_case_outcomes",
    ),
    "duplicate_docket_number": CatalogEntry(action_kind="flag_for_review"),
    "case_jurisdiction_mismatch": CatalogEntry(action_kind="flag_for_review"),
}


def catalog_entry(category: str) -> CatalogEntry:
    """Look up the catalog entry; unknown categories fall back to manual review."""
    return REMEDIATION_CATALOG.get(category, CatalogEntry(action_kind="flag_for_review"))
