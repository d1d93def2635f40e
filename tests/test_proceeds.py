from __future__ import annotations

import pytest

from cookie_recon.cookies import CookieType
from cookie_recon.models import (
    AllocationChannel,
    AllocationSummary,
    NegativeInventoryIssue,
    Scout,
    ScoutCounts,
    ScoutTotals,
    TransferCategory,
    TransferTotals,
)
from cookie_recon.proceeds import build_troop_totals, exempt_packages, per_girl_average, proceeds_rate


def _scout(key: str, total_sold: int, site: bool = False, **totals) -> Scout:
    return Scout(
        key=key,
        name=key,
        is_site_order=site,
        totals=ScoutTotals(total_sold=total_sold, **totals),
    )


def test_per_girl_average_with_no_active_scouts_is_zero():
    assert per_girl_average(500, 0) == 0.0
    assert proceeds_rate(500, 0) == 0.85


def test_exempt_packages_caps_each_active_scout_at_fifty():
    scouts = {
        "a": _scout("a", 80),
        "b": _scout("b", 30),
        "c": _scout("c", 0),
        "site": _scout("site", 100, site=True),
    }
    assert exempt_packages(scouts) == 80


def test_troop_totals_proceeds():
    scouts = {"a": _scout("a", 300, delivered=250, inventory=4)}
    totals = build_troop_totals(
        scouts,
        TransferTotals(c2t=400, t2t_out=100, t2g_physical=300, g2t=0),
        {TransferCategory.DIRECT_SHIP: 20},
        {AllocationChannel.BOOTH: AllocationSummary(packages=12, donations=2)},
        donations=10,
        ordered_count=3,
        scout_counts=ScoutCounts(total=1, active=1),
    )

    assert totals.packages_credited == 330
    assert totals.per_girl_average == pytest.approx(330.0)
    assert totals.proceeds_rate == 0.90
    assert totals.gross_proceeds == pytest.approx(297.0)
    assert totals.proceeds_exempt_packages == 50
    assert totals.proceeds_deduction == pytest.approx(45.0)
    assert totals.troop_proceeds == pytest.approx(252.0)
    assert totals.inventory == 0
    assert totals.direct_ship == 20
    assert totals.girl_delivery == 250
    assert totals.girl_inventory == 4
    assert totals.booth_sales_packages == 12
    assert totals.booth_sales_donations == 2
    assert totals.ordered == 3


def test_pending_pickup_sums_negative_inventory_shortfalls():
    scout = _scout("a", 10, inventory=-5)
    scout.negative_inventory = [
        NegativeInventoryIssue(CookieType.THIN_MINTS, inventory=2, sales=5, shortfall=3),
        NegativeInventoryIssue(CookieType.TREFOILS, inventory=0, sales=2, shortfall=2),
    ]
    totals = build_troop_totals(
        {"a": scout},
        TransferTotals(),
        {},
        {},
        donations=0,
        ordered_count=0,
        scout_counts=ScoutCounts(total=1, active=1),
    )
    assert totals.pending_pickup == 5
    assert totals.girl_inventory == -5
