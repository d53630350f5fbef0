"""Display ordering for persons, offices and regions."""

from __future__ import annotations

import unicodedata
from typing import Iterable

from delivery_rate.domain.organization import OTHER, REGION_ORDER, UNASSIGNED, office_order_index


def name_sort_key(name: str) -> str:
    return unicodedata.normalize("NFKC", name or "")


def office_sort_key(office: str) -> tuple[int, int, str]:
    # Known offices by table order, then unknown offices by name, 未設定 last.
    return (office_order_index(office), 1 if office == UNASSIGNED else 0, name_sort_key(office))


def person_sort_key(office: str, name: str) -> tuple[tuple[int, int, str], int, str]:
    return (office_sort_key(office), 1 if name == UNASSIGNED else 0, name_sort_key(name))


def ordered_regions(present: Iterable[str]) -> list[str]:
    """Fixed region order; the catch-all region only appears when something landed in it."""
    present_set = set(present)
    regions = list(REGION_ORDER)
    if OTHER in present_set:
        regions.append(OTHER)
    return regions
