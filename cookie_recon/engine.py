"""
Reconciliation / unification engine.

build_unified_dataset() takes a frozen DataSnapshot and returns one
UnifiedDataset in a single deterministic pass:

    resolve scouts -> classify orders -> credit allocations ->
    transfer buckets -> scout totals -> site orders -> troop totals ->
    varieties -> cookie share -> health checks

Data problems become warnings; only contract violations raise. Two runs over
the same snapshot differ only in metadata.unified_build_time.
"""
from __future__ import annotations

import logging
from typing import Dict, Mapping, Optional

from .allocations import build_site_orders_dataset, credit_allocations
from .cookies import CookieType, add_varieties, sort_varieties
from .datastore import DataSnapshot, DataStore
from .health import build_cookie_share_tracking, build_timestamp, build_unified_metadata
from .models import OrderType, Scout, Source, UnifiedDataset, VarietiesResult
from .orders import assign_orders, calculate_scout_counts, calculate_scout_totals
from .proceeds import build_troop_totals
from .resolver import ScoutResolver, resolve_scouts
from .transfers import build_transfer_breakdowns, category_totals, cookie_share_total, scout_received

logger = logging.getLogger(__name__)


def _build_varieties(scouts: Dict[str, Scout], troop_inventory: Mapping[CookieType, int]) -> VarietiesResult:
    """Packages sold per variety (scout orders + credited allocations) and troop stock"""
    by_cookie: Dict[CookieType, int] = {}
    for scout in scouts.values():
        for order in scout.orders:
            if order.needs_inventory or order.order_type == OrderType.DIRECT_SHIP:
                add_varieties(by_cookie, order.varieties, physical_only=True)
        if not scout.is_site_order:
            for summary in scout.allocation_summary.values():
                add_varieties(by_cookie, summary.varieties, physical_only=True)
    by_cookie = sort_varieties({v: n for v, n in by_cookie.items() if n})
    return VarietiesResult(
        by_cookie=by_cookie,
        inventory=dict(troop_inventory),
        total=sum(by_cookie.values()),
    )


def _virtual_cookie_shares_by_scout(snapshot: DataSnapshot, resolver: ScoutResolver) -> Dict[str, int]:
    shares: Dict[str, int] = {}
    for girl_id, quantity in snapshot.virtual_cookie_shares.items():
        key = resolver.resolve(scout_id=girl_id)
        if key is None or key not in resolver.scouts:
            resolver.mark_unresolved("virtual cookie share", str(girl_id), scout_id=girl_id, packages=quantity)
            continue
        shares[key] = shares.get(key, 0) + quantity
    return shares


def build_unified_dataset(
    snapshot: DataSnapshot,
    build_time: Optional[str] = None,
    timezone: str = "UTC",
) -> UnifiedDataset:
    """
    Build the season ledger from a frozen snapshot.

    Raises TypeError when given None or a DataStore that has not been frozen.
    """
    if snapshot is None:
        raise TypeError("build_unified_dataset() requires a DataSnapshot, got None")
    if isinstance(snapshot, DataStore):
        raise TypeError("DataStore must be frozen first: pass store.freeze()")
    if not isinstance(snapshot, DataSnapshot):
        raise TypeError(f"build_unified_dataset() requires a DataSnapshot, got {type(snapshot).__name__}")

    warnings = list(snapshot.warnings)

    resolver = resolve_scouts(snapshot, warnings)
    scouts = resolver.scouts

    assign_orders(snapshot.orders, resolver, warnings)
    channel_totals = credit_allocations(snapshot.allocations, resolver)

    breakdowns, troop_inventory = build_transfer_breakdowns(snapshot.transfers, warnings)
    received = scout_received(snapshot.transfers, resolver)
    virtual_shares = _virtual_cookie_shares_by_scout(snapshot, resolver)

    calculate_scout_totals(scouts, received, warnings)
    site_orders = build_site_orders_dataset(scouts, snapshot.allocations, resolver.unresolved)
    scout_counts = calculate_scout_counts(scouts)

    troop_totals = build_troop_totals(
        scouts,
        breakdowns.totals,
        category_totals(snapshot.transfers),
        channel_totals,
        donations=cookie_share_total(snapshot.transfers),
        ordered_count=sum(1 for o in snapshot.orders if Source.DIGITAL_COOKIE.value in o.sources),
        scout_counts=scout_counts,
    )
    varieties = _build_varieties(scouts, troop_inventory)
    cookie_share = build_cookie_share_tracking(scouts, snapshot.transfers, virtual_shares)

    metadata = build_unified_metadata(snapshot, warnings, scouts, build_time or build_timestamp(timezone))
    logger.debug(
        "Built unified dataset: %d scouts, %d orders, %d warnings",
        metadata.scout_count, metadata.order_count, len(warnings),
    )

    return UnifiedDataset(
        scouts=scouts,
        site_orders=site_orders,
        troop_totals=troop_totals,
        transfer_breakdowns=breakdowns,
        varieties=varieties,
        cookie_share=cookie_share,
        booth_reservations=tuple(snapshot.booth_reservations),
        booth_locations=tuple(snapshot.booth_locations),
        metadata=metadata,
        warnings=tuple(warnings),
    )
