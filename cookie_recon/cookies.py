"""
Cookie Registry

Single source of truth for every cookie variety the troop can sell:
- Nine physical varieties plus the Cookie Share donation pseudo-variety
- Name / API id / report code / transfer abbreviation lookups
- Prices and the troop proceeds tier schedule

Adding a new cookie means adding one CookieInfo entry to COOKIE_REGISTRY.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Mapping, Optional, Tuple


class CookieType(str, Enum):
    """Canonical cookie varieties"""
    THIN_MINTS = "THIN_MINTS"
    CARAMEL_DELITES = "CARAMEL_DELITES"
    PEANUT_BUTTER_PATTIES = "PEANUT_BUTTER_PATTIES"
    PEANUT_BUTTER_SANDWICH = "PEANUT_BUTTER_SANDWICH"
    TREFOILS = "TREFOILS"
    ADVENTUREFULS = "ADVENTUREFULS"
    LEMONADES = "LEMONADES"
    EXPLOREMORES = "EXPLOREMORES"
    CARAMEL_CHOCOLATE_CHIP = "CARAMEL_CHOCOLATE_CHIP"
    COOKIE_SHARE = "COOKIE_SHARE"   # Donation, never physical inventory


@dataclass(frozen=True)
class CookieInfo:
    type: CookieType
    display_name: str
    price: float
    is_physical: bool
    dc_column: Optional[str]         # Digital Cookie export column header
    sc_api_id: Optional[int]         # Smart Cookie API numeric id
    sc_report_code: Optional[str]    # Smart Cookie report C1-C11 code
    sc_abbr: Optional[str]           # Smart Cookie transfer abbreviation
    name_variations: Tuple[str, ...] = ()


# =============================================================================
# Registry
# =============================================================================

COOKIE_REGISTRY: Tuple[CookieInfo, ...] = (
    CookieInfo(CookieType.THIN_MINTS, "Thin Mints", 6.0, True,
               "Thin Mints", 4, "C6", "TM", ("Thin Mint", "Thin Mints")),
    CookieInfo(CookieType.CARAMEL_DELITES, "Caramel deLites", 6.0, True,
               "Caramel deLites", 1, "C8", "CD", ("Caramel deLite", "Caramel deLites")),
    CookieInfo(CookieType.PEANUT_BUTTER_PATTIES, "Peanut Butter Patties", 6.0, True,
               "Peanut Butter Patties", 2, "C7", "PBP", ("Peanut Butter Patty", "Peanut Butter Patties")),
    CookieInfo(CookieType.PEANUT_BUTTER_SANDWICH, "Peanut Butter Sandwich", 6.0, True,
               "Peanut Butter Sandwich", 5, "C9", "PBS", ("Peanut Butter Sandwich", "Peanut Butter Sandwiches")),
    CookieInfo(CookieType.TREFOILS, "Trefoils", 6.0, True,
               "Trefoils", 3, "C5", "TRE", ("Trefoil", "Trefoils")),
    CookieInfo(CookieType.ADVENTUREFULS, "Adventurefuls", 6.0, True,
               "Adventurefuls", 48, "C2", "ADV", ("Adventureful", "Adventurefuls")),
    CookieInfo(CookieType.LEMONADES, "Lemonades", 6.0, True,
               "Lemonades", 34, "C4", "LEM", ("Lemonade", "Lemonades")),
    CookieInfo(CookieType.EXPLOREMORES, "Exploremores", 6.0, True,
               "Exploremores", 56, "C3", "EXP", ("Exploremore", "Exploremores")),
    CookieInfo(CookieType.CARAMEL_CHOCOLATE_CHIP, "Caramel Chocolate Chip", 7.0, True,
               "Caramel Chocolate Chip", 52, "C11", "GFC", ("Caramel Chocolate Chip", "Caramel Chocolate Chips")),
    CookieInfo(CookieType.COOKIE_SHARE, "Cookie Share", 6.0, False,
               None, 37, "C1", "CShare", ("Cookie Share",)),
)

_BY_TYPE: Dict[CookieType, CookieInfo] = {c.type: c for c in COOKIE_REGISTRY}

# Display order used by every report
COOKIE_ORDER: List[CookieType] = [c.type for c in COOKIE_REGISTRY]
PHYSICAL_COOKIE_TYPES: List[CookieType] = [c.type for c in COOKIE_REGISTRY if c.is_physical]

DC_COOKIE_COLUMNS: List[str] = [c.dc_column for c in COOKIE_REGISTRY if c.dc_column]
COOKIE_ID_MAP: Dict[int, CookieType] = {c.sc_api_id: c.type for c in COOKIE_REGISTRY if c.sc_api_id is not None}
COOKIE_COLUMN_MAP: Dict[str, CookieType] = {c.sc_report_code: c.type for c in COOKIE_REGISTRY if c.sc_report_code}
COOKIE_ABBR_MAP: Dict[str, CookieType] = {c.sc_abbr: c.type for c in COOKIE_REGISTRY if c.sc_abbr}

# Lower-cased, whitespace-collapsed spelling -> canonical variety
_NAME_NORMALIZATION: Dict[str, CookieType] = {}
for _c in COOKIE_REGISTRY:
    for _v in _c.name_variations + (_c.display_name, _c.type.value):
        _NAME_NORMALIZATION[" ".join(_v.lower().split())] = _c.type


# =============================================================================
# Proceeds
# =============================================================================

# (minimum per-girl average, rate) from highest tier down; lower edge inclusive
PROCEEDS_TIERS: Tuple[Tuple[float, float], ...] = (
    (350.0, 0.95),
    (200.0, 0.90),
    (0.0, 0.85),
)

# First N packages per active scout are exempt from troop proceeds
PROCEEDS_EXEMPT_PACKAGES = 50

PACKAGES_PER_CASE = 12


def get_troop_proceeds_rate(pga: float) -> float:
    """Proceeds rate for a per-girl average"""
    for floor, rate in PROCEEDS_TIERS:
        if pga >= floor:
            return rate
    return PROCEEDS_TIERS[-1][1]


# =============================================================================
# Helpers
# =============================================================================

def normalize_cookie_name(raw_name: Optional[str]) -> Optional[CookieType]:
    """
    Map a vendor variety name onto a canonical CookieType.

    Matching ignores case and repeated whitespace and accepts the singular and
    plural spellings both vendors use. Returns None for unknown names; the
    caller is responsible for surfacing a warning.
    """
    if not raw_name:
        return None
    key = " ".join(str(raw_name).lower().split())
    return _NAME_NORMALIZATION.get(key)


def cookie_info(cookie_type: CookieType) -> CookieInfo:
    return _BY_TYPE[CookieType(cookie_type)]


def display_name(cookie_type: CookieType) -> str:
    return cookie_info(cookie_type).display_name


def cookie_price(cookie_type: CookieType) -> float:
    return cookie_info(cookie_type).price


def calculate_revenue(varieties: Mapping[CookieType, int]) -> float:
    """Dollar value of a variety breakdown at list price"""
    return sum(cookie_price(v) * count for v, count in varieties.items())


def physical_varieties(varieties: Mapping[CookieType, int]) -> Dict[CookieType, int]:
    """Copy of a breakdown without Cookie Share"""
    return {v: n for v, n in varieties.items() if v != CookieType.COOKIE_SHARE}


def sum_physical_packages(varieties: Optional[Mapping[CookieType, int]]) -> int:
    if not varieties:
        return 0
    return sum(n for v, n in varieties.items() if v != CookieType.COOKIE_SHARE)


def add_varieties(
    target: Dict[CookieType, int],
    source: Optional[Mapping[CookieType, int]],
    sign: int = 1,
    physical_only: bool = False,
) -> None:
    """Accumulate source counts into target in place"""
    if not source:
        return
    for variety, count in source.items():
        if physical_only and variety == CookieType.COOKIE_SHARE:
            continue
        target[variety] = target.get(variety, 0) + sign * count


def sort_varieties(varieties: Mapping[CookieType, int]) -> Dict[CookieType, int]:
    """Re-key a breakdown in standard display order"""
    return {v: varieties[v] for v in COOKIE_ORDER if v in varieties}


def varieties_to_dict(varieties: Mapping[CookieType, int]) -> Dict[str, int]:
    return {v.value: n for v, n in sort_varieties(varieties).items()}


def varieties_from_dict(data: Optional[Mapping[str, int]]) -> Dict[CookieType, int]:
    if not data:
        return {}
    return {CookieType(k): int(n) for k, n in data.items()}
