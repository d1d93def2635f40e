"""
Scout Resolver

Collapses every scout reference in a snapshot (DC export rows, registered
scouts, orders, transfers, divider allocations) into canonical Scout shells.

Canonical key:
- the vendor girl id, when any source links the name to one
- otherwise the normalized name (case and whitespace insensitive)
- "site" for the troop pseudo-scout (last name "Site")
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .classification import SITE_ORDER_LASTNAME
from .health import record_warning
from .models import Scout, TransferCategory, Warning, WarningType

logger = logging.getLogger(__name__)

SITE_SCOUT_KEY = "site"

DC_FIRST_NAME = "Girl First Name"
DC_LAST_NAME = "Girl Last Name"


def normalize_name(name: Optional[str]) -> str:
    return " ".join(str(name or "").lower().split())


def normalize_id(value: Any) -> Optional[str]:
    """Vendor ids arrive as int, float or str ("42", 42, 42.0); compare as digits"""
    if value is None or value == "":
        return None
    text = str(value).strip()
    if re.fullmatch(r"\d+\.0+", text):
        text = text.split(".")[0]
    return text or None


def is_site_name(name: Optional[str]) -> bool:
    parts = str(name or "").split()
    return bool(parts) and parts[-1] == SITE_ORDER_LASTNAME


def split_name(name: str):
    parts = name.split()
    if not parts:
        return "", ""
    return " ".join(parts[:-1]), parts[-1]


@dataclass(frozen=True)
class _Claim:
    """One source's statement about a scout's identity"""
    name: str = ""
    scout_id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    gsusa_id: Optional[str] = None
    grade_level: Optional[str] = None
    service_unit: Optional[str] = None
    origin: str = ""


class ScoutResolver:
    """
    Canonical scout lookup for one snapshot.

    resolve() maps a (name, id) reference to a key in .scouts or returns None;
    callers report misses through mark_unresolved().
    """

    def __init__(self, snapshot, warnings: List[Warning]):
        self._warnings = warnings
        self._name_to_id: Dict[str, str] = {}
        self._known_ids: Dict[str, str] = {}     # id -> first name seen with it
        self.scouts: Dict[str, Scout] = {}
        self.unresolved: List[Dict[str, Any]] = []
        self._name_rank: Dict[str, Tuple[int, int]] = {}

        claims = list(self._collect_claims(snapshot))
        self._link_names_to_ids(claims)
        sequence = snapshot.name_sequence
        for position, claim in enumerate(claims):
            self._apply_claim(claim, (sequence.get(claim.name.strip(), 0), position))
        logger.debug("Resolved %d scouts from %d identity claims", len(self.scouts), len(claims))

    # ------------------------------------------------------------------
    # Claims
    # ------------------------------------------------------------------

    @staticmethod
    def _collect_claims(snapshot) -> Iterator[_Claim]:
        for row in snapshot.raw_dc_rows:
            first = str(row.get(DC_FIRST_NAME) or "").strip()
            last = str(row.get(DC_LAST_NAME) or "").strip()
            name = f"{first} {last}".strip()
            if name:
                yield _Claim(name=name, first_name=first, last_name=last, origin="dc-row")

        for order in snapshot.orders:
            if order.scout or order.scout_id:
                yield _Claim(
                    name=order.scout,
                    scout_id=normalize_id(order.scout_id),
                    gsusa_id=order.gsusa_id,
                    grade_level=order.grade_level,
                    origin="order",
                )

        for transfer in snapshot.transfers:
            name = transfer_scout_name(transfer)
            if name:
                yield _Claim(name=name, origin="transfer")

        for raw in snapshot.scouts.values():
            yield _Claim(
                name=raw.name,
                scout_id=normalize_id(raw.scout_id),
                gsusa_id=raw.gsusa_id,
                grade_level=raw.grade_level,
                service_unit=raw.service_unit,
                origin="registry",
            )

        for alloc in snapshot.allocations:
            if alloc.scout and alloc.girl_id is not None:
                yield _Claim(name=alloc.scout, scout_id=normalize_id(alloc.girl_id), origin="allocation")

    def _link_names_to_ids(self, claims: List[_Claim]) -> None:
        for claim in claims:
            if not claim.scout_id or not claim.name or is_site_name(claim.name):
                continue
            key = normalize_name(claim.name)
            known = self._name_to_id.get(key)
            if known is None:
                self._name_to_id[key] = claim.scout_id
            elif known != claim.scout_id:
                record_warning(
                    self._warnings,
                    WarningType.AMBIGUOUS_SCOUT_NAME,
                    f'Scout name "{claim.name}" maps to ids {known} and {claim.scout_id}; using {known}',
                    record_id=claim.scout_id,
                    raw_value=claim.name,
                    scout=claim.name,
                )
            self._known_ids.setdefault(claim.scout_id, claim.name)

    def _apply_claim(self, claim: _Claim, rank: Tuple[int, int]) -> None:
        """
        Fold one claim into its scout. rank is (write sequence, claim position):
        the display name comes from the most recently imported claim.
        """
        key = self.resolve(claim.name, claim.scout_id)
        if key is None:
            return
        name = claim.name.strip()
        scout = self.scouts.get(key)
        if scout is None:
            scout = Scout(key=key, name=name, is_site_order=(key == SITE_SCOUT_KEY))
            self.scouts[key] = scout

        if name and rank >= self._name_rank.get(key, (-1, -1)):
            self._name_rank[key] = rank
            renamed = name != scout.name
            scout.name = name
            if claim.first_name is not None or claim.last_name is not None:
                scout.first_name = claim.first_name or scout.first_name
                scout.last_name = claim.last_name or scout.last_name
            elif renamed or not (scout.first_name or scout.last_name):
                scout.first_name, scout.last_name = split_name(name)
        elif name and not (scout.first_name or scout.last_name):
            scout.first_name, scout.last_name = split_name(name)

        if claim.scout_id and scout.girl_id is None and claim.scout_id.isdigit():
            scout.girl_id = int(claim.scout_id)
        scout.gsusa_id = scout.gsusa_id or claim.gsusa_id
        scout.grade_level = scout.grade_level or claim.grade_level
        scout.service_unit = scout.service_unit or claim.service_unit

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def resolve(self, name: Optional[str] = None, scout_id: Any = None) -> Optional[str]:
        """Canonical key for a reference, or None when nothing identifies it"""
        if is_site_name(name):
            return SITE_SCOUT_KEY
        sid = normalize_id(scout_id)
        if sid and sid in self._known_ids:
            return sid
        if sid and not name:
            return None
        normalized = normalize_name(name)
        if not normalized:
            return None
        return self._name_to_id.get(normalized, normalized)

    def get(self, name: Optional[str] = None, scout_id: Any = None) -> Optional[Scout]:
        key = self.resolve(name, scout_id)
        return self.scouts.get(key) if key else None

    def mark_unresolved(self, kind: str, record_id: Optional[str], name: Optional[str] = None,
                        scout_id: Any = None, packages: int = 0) -> None:
        self.unresolved.append({
            "kind": kind,
            "recordId": record_id,
            "scout": name or None,
            "scoutId": normalize_id(scout_id),
            "packages": packages,
        })
        record_warning(
            self._warnings,
            WarningType.UNRESOLVED_SCOUT,
            f"{kind} {record_id or '(no id)'} could not be matched to a scout",
            record_id=record_id,
            raw_value=name or normalize_id(scout_id),
            scout=name or None,
        )


def transfer_scout_name(transfer) -> Optional[str]:
    """The scout side of a troop/scout movement, if any"""
    if transfer.category in (
        TransferCategory.GIRL_PICKUP,
        TransferCategory.VIRTUAL_BOOTH_ALLOCATION,
        TransferCategory.BOOTH_SALES_ALLOCATION,
        TransferCategory.DIRECT_SHIP_ALLOCATION,
        TransferCategory.COOKIE_SHARE_RECORD,
    ):
        return transfer.to or None
    if transfer.category == TransferCategory.GIRL_RETURN:
        return transfer.from_ or None
    return None


def resolve_scouts(snapshot, warnings: List[Warning]) -> ScoutResolver:
    return ScoutResolver(snapshot, warnings)
