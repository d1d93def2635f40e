"""
Transfer Breakdown Builder

Partitions Smart Cookie transfers into the four troop buckets and checks
that troop stock conserves:

    inventory = C2T - T2T_out - (T2G_physical - G2T)

both in aggregate and per variety. Cookie Share never counts as stock.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Sequence, Tuple

import pandas as pd

from .cookies import PHYSICAL_COOKIE_TYPES, CookieType, add_varieties
from .health import record_warning
from .models import (
    C2T_CATEGORIES,
    G2T_CATEGORIES,
    T2G_CATEGORIES,
    T2T_OUT_CATEGORIES,
    Transfer,
    TransferBreakdowns,
    TransferCategory,
    TransferTotals,
    Warning,
    WarningType,
)
from .resolver import ScoutResolver

logger = logging.getLogger(__name__)


def _date_sort_key(transfer: Transfer) -> Tuple[int, int]:
    ts = pd.to_datetime(transfer.date, errors="coerce", utc=True) if transfer.date else pd.NaT
    if pd.isna(ts):
        return (0, 0)
    return (1, ts.value)


def sort_by_date_desc(transfers: Iterable[Transfer]) -> Tuple[Transfer, ...]:
    """Newest first; undated last; ties keep insertion order"""
    return tuple(sorted(transfers, key=_date_sort_key, reverse=True))


def build_transfer_breakdowns(
    transfers: Sequence[Transfer],
    warnings: List[Warning],
) -> Tuple[TransferBreakdowns, Dict[CookieType, int]]:
    """
    Returns the breakdowns and troop inventory per physical variety.

    Transfers with an unrecognised type raise one UNKNOWN_TRANSFER_TYPE
    warning each and stay out of every bucket.
    """
    c2t: List[Transfer] = []
    t2t_out: List[Transfer] = []
    t2g: List[Transfer] = []
    g2t: List[Transfer] = []
    c2t_total = t2t_in_total = t2t_out_total = t2g_total = g2t_total = 0
    inventory: Dict[CookieType, int] = {}

    for transfer in transfers:
        category = transfer.category
        if category == TransferCategory.UNKNOWN:
            record_warning(
                warnings,
                WarningType.UNKNOWN_TRANSFER_TYPE,
                f'Unknown transfer type "{transfer.type}" (order {transfer.order_number or "n/a"})',
                record_id=transfer.order_number or None,
                raw_value=transfer.type,
            )
            continue

        if category in C2T_CATEGORIES:
            c2t.append(transfer)
            c2t_total += transfer.physical_packages
            if transfer.is_t2t_in:
                t2t_in_total += transfer.physical_packages
            add_varieties(inventory, transfer.physical_varieties)
        elif category in T2T_OUT_CATEGORIES:
            t2t_out.append(transfer)
            t2t_out_total += transfer.physical_packages
            add_varieties(inventory, transfer.physical_varieties, sign=-1)
        elif category in T2G_CATEGORIES:
            t2g.append(transfer)
            t2g_total += transfer.physical_packages
            add_varieties(inventory, transfer.physical_varieties, sign=-1)
        elif category in G2T_CATEGORIES:
            g2t.append(transfer)
            g2t_total += transfer.physical_packages
            add_varieties(inventory, transfer.physical_varieties)

    totals = TransferTotals(
        c2t=c2t_total,
        t2t_in=t2t_in_total,
        t2t_out=t2t_out_total,
        t2g_physical=t2g_total,
        g2t=g2t_total,
    )

    by_variety_sum = sum(inventory.values())
    if by_variety_sum != totals.troop_inventory:
        record_warning(
            warnings,
            WarningType.CONSERVATION_MISMATCH,
            f"Troop inventory {totals.troop_inventory} does not match variety sum {by_variety_sum}",
            raw_value=str(by_variety_sum - totals.troop_inventory),
        )

    breakdowns = TransferBreakdowns(
        c2t=sort_by_date_desc(c2t),
        t2t_out=sort_by_date_desc(t2t_out),
        t2g=sort_by_date_desc(t2g),
        g2t=sort_by_date_desc(g2t),
        totals=totals,
    )
    logger.debug(
        "Transfer buckets: c2t=%d t2t_out=%d t2g=%d g2t=%d",
        totals.c2t, totals.t2t_out, totals.t2g_physical, totals.g2t,
    )
    return breakdowns, {v: inventory.get(v, 0) for v in PHYSICAL_COOKIE_TYPES if v in inventory}


def scout_received(
    transfers: Sequence[Transfer],
    resolver: ScoutResolver,
) -> Dict[str, Dict[CookieType, int]]:
    """Physical varieties each scout picked up (T2G) net of returns (G2T)"""
    received: Dict[str, Dict[CookieType, int]] = {}
    for transfer in transfers:
        if transfer.category == TransferCategory.GIRL_PICKUP:
            name, sign = transfer.to, 1
        elif transfer.category == TransferCategory.GIRL_RETURN:
            name, sign = transfer.from_, -1
        else:
            continue

        key = resolver.resolve(name)
        if key is None or key not in resolver.scouts:
            resolver.mark_unresolved("transfer", transfer.order_number or None, name, packages=transfer.physical_packages)
            continue
        add_varieties(received.setdefault(key, {}), transfer.physical_varieties, sign=sign)
    return received


def category_totals(transfers: Iterable[Transfer]) -> Dict[TransferCategory, int]:
    """Physical packages per category (DIRECT_SHIP counts all packages)"""
    totals: Dict[TransferCategory, int] = {}
    for transfer in transfers:
        count = transfer.packages if transfer.category == TransferCategory.DIRECT_SHIP else transfer.physical_packages
        totals[transfer.category] = totals.get(transfer.category, 0) + count
    return totals


def cookie_share_total(transfers: Iterable[Transfer]) -> int:
    """Cookie Share packages reported across all transfers"""
    return sum(t.varieties.get(CookieType.COOKIE_SHARE, 0) for t in transfers)
