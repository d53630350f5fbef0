"""Responsibility taxonomy and the category/reason classifier."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

CATEGORY_EXTERNAL = "社外"
CATEGORY_INTERNAL = "自社"
CATEGORY_FINALIZED = "納期確定"
CATEGORY_UNKNOWN = "その他"

REASON_TO_CATEGORY: Mapping[str, str] = MappingProxyType(
    {
        "施主要望": CATEGORY_EXTERNAL,
        "元請要望": CATEGORY_EXTERNAL,
        "行政指導": CATEGORY_EXTERNAL,
        "営業対応": CATEGORY_INTERNAL,
        "設計対応": CATEGORY_INTERNAL,
        "製造対応": CATEGORY_INTERNAL,
        "施工対応": CATEGORY_INTERNAL,
        "その他": CATEGORY_INTERNAL,
        "納期確定": CATEGORY_FINALIZED,
        "確定": CATEGORY_FINALIZED,
        CATEGORY_EXTERNAL: CATEGORY_EXTERNAL,
        CATEGORY_INTERNAL: CATEGORY_INTERNAL,
    }
)

# Display order of the cross-tab rows.
RESPONSIBILITY_TAXONOMY: tuple[tuple[str, tuple[str, ...]], ...] = (
    (CATEGORY_EXTERNAL, ("施主要望", "元請要望", "行政指導")),
    (CATEGORY_INTERNAL, ("営業対応", "設計対応", "製造対応", "施工対応", "その他")),
    (CATEGORY_FINALIZED, ("確定",)),
)

CATEGORIES: tuple[str, ...] = tuple(category for category, _ in RESPONSIBILITY_TAXONOMY)


def taxonomy_pairs() -> list[tuple[str, str]]:
    return [(category, reason) for category, reasons in RESPONSIBILITY_TAXONOMY for reason in reasons]


@dataclass(frozen=True)
class Responsibility:
    category: str
    reason: str


def classify_responsibility(responsibility_raw: str | None, change_reason_raw: str | None) -> Responsibility:
    """Split the overloaded responsibility field into (category, reason).

    The raw field holds either a bare category or a detailed reason; table
    membership decides which. An explicit change reason always wins.
    """
    raw = (responsibility_raw or "").strip()
    explicit_reason = (change_reason_raw or "").strip()

    if not raw:
        category = CATEGORY_UNKNOWN
    else:
        category = REASON_TO_CATEGORY.get(raw, raw)

    if explicit_reason:
        reason = explicit_reason
    elif raw in REASON_TO_CATEGORY and REASON_TO_CATEGORY[raw] != raw:
        reason = raw
    else:
        reason = ""
    return Responsibility(category=category, reason=reason)
