"""Judge-name and case-outcome normalization.

Used by the validation rules to detect non-standard values and by the
remediation engine to compute the replacement at execution time.
"""

from __future__ import annotations

import re

_TITLE_PREFIX = re.compile(r"^(Hon\.|Hon |Honorable |Judge |Justice )", re.IGNORECASE)
_MULTI_SPACE = re.compile(r"\s{2,}")
_INVALID_CHARS = re.compile(r"[^a-zA-Z\s\-'.,’]")

VALID_OUTCOMES = (
    "settled",
    "dismissed",
    "judgment",
    "granted",
    "denied",
    "withdrawn",
    "remanded",
    "affirmed",
    "reversed",
    "vacated",
    "other",
)

# Checked in order; first substring hit wins
_OUTCOME_SYNONYMS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("settle",), "settled"),
    (("dismiss",), "dismissed"),
    (("judgment", "judgement"), "judgment"),
    (("grant",), "granted"),
    (("deny", "denied", "denial"), "denied"),
    (("withdraw",), "withdrawn"),
    (("remand",), "remanded"),
    (("affirm",), "affirmed"),
    (("revers",), "reversed"),
    (("vacat",), "vacated"),
)


def name_problems(name: str) -> list[str]:
    """List the standardization problems found in a judge name."""
    problems: list[str] = []
    has_letters = any(c.isalpha() for c in name)
    if _TITLE_PREFIX.search(name):
        problems.append("title_prefix")
    if has_letters and name == name.upper() and len(name) > 3:
        problems.append("all_uppercase")
    if has_letters and name == name.lower():
        problems.append("all_lowercase")
    if _MULTI_SPACE.search(name):
        problems.append("excess_whitespace")
    if _INVALID_CHARS.search(name):
        problems.append("invalid_characters")
    return problems


def _title_words(name: str) -> str:
    return " ".join(w[:1].upper() + w[1:] for w in name.split(" "))


def standardize_judge_name(name: str) -> str | None:
    """Return the standardized form of a name, or None if nothing can be fixed.

    Invalid characters are reported but never rewritten automatically.
    """
    fixed = _TITLE_PREFIX.sub("", name).strip()
    fixed = _MULTI_SPACE.sub(" ", fixed)
    if fixed and fixed == fixed.upper() and any(c.isalpha() for c in fixed):
        fixed = _title_words(fixed.lower())
    elif fixed == fixed.lower():
        fixed = _title_words(fixed)
    if not fixed or fixed == name:
        return None
    return fixed


def suggest_outcome(outcome: str) -> str | None:
    """Map an outcome onto the standard taxonomy. None means already standard."""
    normalized = outcome.strip().lower()
    if normalized in VALID_OUTCOMES:
        return normalized if normalized != outcome else None
    for needles, mapped in _OUTCOME_SYNONYMS:
        if any(n in normalized for n in needles):
            return mapped
    return "other"
