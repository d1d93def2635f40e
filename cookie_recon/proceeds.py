"""
Proceeds Calculator and troop totals.

The proceeds rate is tiered on the per-girl average (PGA) of packages
credited to the troop; the first PROCEEDS_EXEMPT_PACKAGES of every active
scout earn nothing for the troop.
"""
from __future__ import annotations

import logging
from typing import Dict, Mapping

from .cookies import PROCEEDS_EXEMPT_PACKAGES, get_troop_proceeds_rate
from .models import (
    AllocationChannel,
    AllocationSummary,
    Scout,
    ScoutCounts,
    TransferCategory,
    TransferTotals,
    TroopTotals,
)

logger = logging.getLogger(__name__)


def per_girl_average(packages_credited: int, active_scouts: int) -> float:
    if active_scouts <= 0:
        return 0.0
    return packages_credited / active_scouts


def proceeds_rate(packages_credited: int, active_scouts: int) -> float:
    return get_troop_proceeds_rate(per_girl_average(packages_credited, active_scouts))


def exempt_packages(scouts: Dict[str, Scout]) -> int:
    return sum(
        min(s.totals.total_sold, PROCEEDS_EXEMPT_PACKAGES)
        for s in scouts.values()
        if not s.is_site_order and s.totals.total_sold > 0
    )


def build_troop_totals(
    scouts: Dict[str, Scout],
    transfer_totals: TransferTotals,
    by_category: Mapping[TransferCategory, int],
    channel_totals: Mapping[AllocationChannel, AllocationSummary],
    donations: int,
    ordered_count: int,
    scout_counts: ScoutCounts,
) -> TroopTotals:
    """
    Troop-wide totals.

    packages_credited is what the troop answers to the council for: stock
    received net of troop-to-troop transfers out, plus direct ship, plus
    Cookie Share.
    """
    direct_ship = by_category.get(TransferCategory.DIRECT_SHIP, 0)
    packages_credited = (transfer_totals.c2t - transfer_totals.t2t_out) + direct_ship + donations
    pga = per_girl_average(packages_credited, scout_counts.active)
    rate = get_troop_proceeds_rate(pga)
    gross = packages_credited * rate
    exempt = exempt_packages(scouts)
    deduction = exempt * rate

    girl_delivery = 0
    girl_inventory = 0
    pending_pickup = 0
    for scout in scouts.values():
        if scout.is_site_order:
            continue
        girl_delivery += scout.totals.delivered
        girl_inventory += scout.totals.inventory
        pending_pickup += sum(issue.shortfall for issue in scout.negative_inventory)

    booth = channel_totals.get(AllocationChannel.BOOTH, AllocationSummary())
    totals = TroopTotals(
        troop_proceeds=gross - deduction,
        proceeds_rate=rate,
        proceeds_deduction=deduction,
        proceeds_exempt_packages=exempt,
        inventory=transfer_totals.troop_inventory,
        donations=donations,
        ordered=ordered_count,
        direct_ship=direct_ship,
        booth_divider_t2g=by_category.get(TransferCategory.BOOTH_SALES_ALLOCATION, 0),
        virtual_booth_t2g=by_category.get(TransferCategory.VIRTUAL_BOOTH_ALLOCATION, 0),
        girl_delivery=girl_delivery,
        girl_inventory=girl_inventory,
        pending_pickup=pending_pickup,
        booth_sales_packages=booth.packages,
        booth_sales_donations=booth.donations,
        packages_credited=packages_credited,
        per_girl_average=pga,
        gross_proceeds=gross,
        scouts=scout_counts,
    )
    logger.debug("Troop PGA %.1f -> rate %.2f", pga, rate)
    return totals
