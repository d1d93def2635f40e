"""
Allocation Credit Engine

Credits booth, direct-ship and virtual-booth allocations to scouts (each
allocation to exactly one scout and one channel) and measures how much of
the troop's own site orders those allocations cover.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Sequence

from .cookies import add_varieties
from .models import (
    Allocation,
    AllocationChannel,
    AllocationSummary,
    OrderType,
    Owner,
    Scout,
    SiteOrderCategory,
    SiteOrderEntry,
    SiteOrdersDataset,
)
from .resolver import SITE_SCOUT_KEY, ScoutResolver

logger = logging.getLogger(__name__)


def credit_allocations(allocations: Sequence[Allocation], resolver: ScoutResolver) -> Dict[AllocationChannel, AllocationSummary]:
    """
    Attach each allocation to its scout and accumulate per-channel totals.

    Returns troop-wide channel totals (including allocations no scout
    could claim, which are reported as unresolved).
    """
    troop: Dict[AllocationChannel, AllocationSummary] = {c: AllocationSummary() for c in AllocationChannel}

    for alloc in allocations:
        channel_total = troop[alloc.channel]
        channel_total.packages += alloc.packages
        channel_total.donations += alloc.donations
        add_varieties(channel_total.varieties, alloc.varieties)

        key = resolver.resolve(alloc.scout, alloc.girl_id)
        scout = resolver.scouts.get(key) if key else None
        if scout is None:
            record_id = alloc.reservation_id or alloc.order_id or (str(alloc.girl_id) if alloc.girl_id is not None else None)
            resolver.mark_unresolved(f"{alloc.channel.value} allocation", record_id, alloc.scout, alloc.girl_id, alloc.packages)
            continue

        scout.allocations.append(alloc)
        scout.allocations_by_channel[alloc.channel].append(alloc)
        summary = scout.allocation_summary[alloc.channel]
        summary.packages += alloc.packages
        summary.donations += alloc.donations
        add_varieties(summary.varieties, alloc.varieties)

    logger.debug(
        "Credited allocations: %s",
        {c.value: s.packages for c, s in troop.items()},
    )
    return troop


# =============================================================================
# Site orders
# =============================================================================

def _fifo(entries: List[SiteOrderEntry], pool: int) -> None:
    """Consume the pool oldest order first"""
    for entry in entries:
        consumed = min(entry.packages, pool)
        entry.allocated = consumed
        pool -= consumed


def _category(entries: List[SiteOrderEntry], allocated: int) -> SiteOrderCategory:
    total = sum(e.packages for e in entries)
    return SiteOrderCategory(
        orders=entries,
        total=total,
        allocated=allocated,
        unallocated=max(0, total - allocated),
        has_warning=total > allocated,
    )


def build_site_orders_dataset(
    scouts: Dict[str, Scout],
    allocations: Sequence[Allocation],
    unresolved: Sequence[Dict],
) -> SiteOrdersDataset:
    """
    Split the troop's site orders into direct ship, girl delivery and booth
    sale, and compare each with the allocations that should cover it.
    """
    direct_ship: List[SiteOrderEntry] = []
    girl_delivery: List[SiteOrderEntry] = []
    booth_sale: List[SiteOrderEntry] = []

    site = scouts.get(SITE_SCOUT_KEY)
    if site is not None:
        for order in sorted(site.orders, key=lambda o: (o.date or "", o.order_number)):
            if order.order_type == OrderType.DONATION:
                continue
            entry = SiteOrderEntry(
                order_number=order.order_number,
                packages=order.physical_packages,
                owner=Owner.TROOP,
                order_type=order.order_type,
            )
            if order.order_type == OrderType.DIRECT_SHIP:
                direct_ship.append(entry)
            elif order.order_type == OrderType.BOOTH:
                booth_sale.append(entry)
            else:
                girl_delivery.append(entry)

    by_channel = {c: [a for a in allocations if a.channel == c] for c in AllocationChannel}
    direct_ship_pool = sum(a.packages for a in by_channel[AllocationChannel.DIRECT_SHIP])
    virtual_booth_pool = sum(a.packages for a in by_channel[AllocationChannel.VIRTUAL_BOOTH])
    booth_pool = sum(a.packages for a in by_channel[AllocationChannel.BOOTH])

    # Direct ship: match divider order ids first, FIFO from the pool otherwise
    for entry in direct_ship:
        for alloc in by_channel[AllocationChannel.DIRECT_SHIP]:
            if alloc.order_id in (entry.order_number, f"D{entry.order_number}"):
                entry.allocated += alloc.packages
    if not any(e.allocated for e in direct_ship):
        _fifo(direct_ship, direct_ship_pool)

    # Virtual booth divider is not per order
    _fifo(girl_delivery, virtual_booth_pool)

    dataset = SiteOrdersDataset(
        direct_ship=_category(direct_ship, direct_ship_pool),
        girl_delivery=_category(girl_delivery, virtual_booth_pool),
        booth_sale=_category(booth_sale, booth_pool),
        unresolved=[dict(u) for u in unresolved],
    )
    if site is not None:
        site.has_unallocated_site_orders = any(
            c.has_warning for c in (dataset.direct_ship, dataset.girl_delivery, dataset.booth_sale)
        )
    return dataset
