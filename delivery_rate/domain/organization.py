"""Static person → office → region directory."""

from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping

UNASSIGNED = "未設定"
OTHER = "その他"
HEAD_OFFICE = "本社"
REGION_EAST = "東日本"
REGION_WEST = "西日本"
HEAD_OFFICE_PERSON = "山口 篤樹"

REGION_ORDER: tuple[str, ...] = (REGION_EAST, REGION_WEST, HEAD_OFFICE)

# Display order, west to east.
OFFICE_ORDER: tuple[str, ...] = (
    "佐賀営業所",
    "福岡営業所",
    "八女営業所",
    "北九州営業所",
    "宮崎営業所",
    "大阪営業所",
    "名古屋営業所",
    "東京営業所",
    "北関東営業所",
    "仙台営業所",
)

OFFICE_REGION_MAP: Mapping[str, str] = MappingProxyType(
    {
        "仙台営業所": REGION_EAST,
        "北関東営業所": REGION_EAST,
        "東京営業所": REGION_EAST,
        "名古屋営業所": REGION_EAST,
        "大阪営業所": REGION_WEST,
        "北九州営業所": REGION_WEST,
        "福岡営業所": REGION_WEST,
        "佐賀営業所": REGION_WEST,
        "八女営業所": REGION_WEST,
        "宮崎営業所": REGION_WEST,
        HEAD_OFFICE: HEAD_OFFICE,
    }
)

# Tag matching scans offices in this order; first match wins.
OFFICE_NAMES: tuple[str, ...] = (
    "仙台営業所",
    "北関東営業所",
    "東京営業所",
    "名古屋営業所",
    "大阪営業所",
    "北九州営業所",
    "福岡営業所",
    "佐賀営業所",
    "八女営業所",
    "宮崎営業所",
    HEAD_OFFICE,
)

# Used only when a record carries no department tags.
PERSON_OFFICE_MAP: Mapping[str, str] = MappingProxyType(
    {
        "野中一良": "佐賀営業所",
        "北原裕二": "福岡営業所",
        "吉村一彦": "福岡営業所",
        "小川智": "福岡営業所",
        "宮地正義": "福岡営業所",
        "富永健二": "福岡営業所",
        "野田章善": "福岡営業所",
        "若山典亮": "福岡営業所",
        "山口秀樹": "福岡営業所",
        "小野克也": "北九州営業所",
        "瀧澤宜規": "北九州営業所",
        "宮脇智宏": "宮崎営業所",
        "山口大介": "大阪営業所",
        "多田幸彦": "大阪営業所",
        "井上鉄男": "大阪営業所",
        "宍戸祐貴": "名古屋営業所",
        "郷田哲雄": "東京営業所",
        "浅野衛": "東京営業所",
        "柴田美枝": "東京営業所",
        "西野拓磨": "北関東営業所",
        "芦川努": "北関東営業所",
        "内山英一郎": "北関東営業所",
        "山田新一郎": "仙台営業所",
        "齋藤佑飛": "仙台営業所",
    }
)

_WHITESPACE = re.compile(r"\s+")


def normalize_person_name(name: str | None) -> str:
    """Strip all whitespace (half- and full-width) for name comparison."""
    return _WHITESPACE.sub("", name or "")


def person_key(name: str | None) -> str:
    """Join key for a person across events, snapshots and the directory."""
    return normalize_person_name(name) or UNASSIGNED


@dataclass(frozen=True)
class OfficeInfo:
    office: str
    region: str


def region_of(office: str) -> str:
    return OFFICE_REGION_MAP.get(office, OTHER)


def office_order_index(office: str) -> int:
    try:
        return OFFICE_ORDER.index(office)
    except ValueError:
        return len(OFFICE_ORDER)


def match_office(tags: Iterable[str], office_names: tuple[str, ...] = OFFICE_NAMES) -> str | None:
    """Resolve department tags to an office: exact match first, then first substring match."""
    cleaned = [str(tag).strip() for tag in tags if tag is not None and str(tag).strip()]
    if not cleaned:
        return None
    for tag in cleaned:
        if tag in office_names:
            return tag
    for tag in cleaned:
        for office in office_names:
            if tag in office or office in tag:
                return office
    return cleaned[0]


class OrganizationDirectory:
    """Read-only lookup from a person (and optional department tags) to office and region."""

    def __init__(
        self,
        person_office_map: Mapping[str, str] = PERSON_OFFICE_MAP,
        head_office_person: str = HEAD_OFFICE_PERSON,
    ) -> None:
        self._person_office = MappingProxyType(
            {normalize_person_name(name): office for name, office in person_office_map.items()}
        )
        self._head_office_key = normalize_person_name(head_office_person)

    def is_head_office_person(self, person_name: str | None) -> bool:
        return bool(self._head_office_key) and normalize_person_name(person_name) == self._head_office_key

    def resolve(self, person_name: str | None, department_tags: Iterable[str] = ()) -> OfficeInfo:
        if self.is_head_office_person(person_name):
            return OfficeInfo(office=HEAD_OFFICE, region=HEAD_OFFICE)

        office = match_office(department_tags)
        if office is None:
            office = self._person_office.get(normalize_person_name(person_name), UNASSIGNED)
        return OfficeInfo(office=office, region=region_of(office))


DEFAULT_DIRECTORY = OrganizationDirectory()
