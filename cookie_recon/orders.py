"""
Order Aggregator

Classifies each resolved order (order type, owner, payment method), attaches
it to its scout, then rolls up per-scout order totals, financials and net
inventory. Negative inventory is reported as an issue, never clamped.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Dict, List, Mapping

from .classification import classify_dc_order, classify_payment_method, order_needs_inventory
from .cookies import (
    PHYSICAL_COOKIE_TYPES,
    CookieType,
    add_varieties,
    calculate_revenue,
    physical_varieties,
)
from .health import record_warning
from .models import (
    NegativeInventoryIssue,
    Order,
    OrderType,
    Owner,
    PaymentMethod,
    Scout,
    ScoutCounts,
    ScoutFinancials,
    Source,
    Warning,
    WarningType,
)
from .resolver import ScoutResolver

logger = logging.getLogger(__name__)


def classify_order(order: Order, is_site_order: bool, warnings: List[Warning]) -> Order:
    """Return a copy of the order with its type, owner and payment method filled in"""
    owner, order_type = classify_dc_order(is_site_order, order.dc_order_type)
    if order_type == OrderType.UNKNOWN:
        record_warning(
            warnings,
            WarningType.UNKNOWN_ORDER_TYPE,
            f'Unknown Digital Cookie order type "{order.dc_order_type}" (order {order.order_number})',
            record_id=order.order_number,
            raw_value=order.dc_order_type,
            scout=order.scout,
        )

    payment_method = classify_payment_method(order.payment_status)
    if payment_method == PaymentMethod.UNKNOWN:
        record_warning(
            warnings,
            WarningType.UNKNOWN_PAYMENT_METHOD,
            f'Unknown payment status "{order.payment_status}" (order {order.order_number})',
            record_id=order.order_number,
            raw_value=order.payment_status,
            scout=order.scout,
        )

    return dataclasses.replace(
        order,
        owner=owner,
        order_type=order_type,
        payment_method=payment_method,
        needs_inventory=order_needs_inventory(owner, order_type),
    )


def assign_orders(orders, resolver: ScoutResolver, warnings: List[Warning]) -> None:
    """
    Classify every Digital Cookie order and append it to its scout.

    Orders only Smart Cookie knows about carry no DC order type or payment
    status to classify; they are reported and left out of scout totals.
    """
    for order in orders:
        if Source.DIGITAL_COOKIE.value not in order.sources:
            record_warning(
                warnings,
                WarningType.SC_ONLY_ORDER,
                f"Order {order.order_number} appears only in Smart Cookie",
                record_id=order.order_number,
                raw_value=",".join(order.sources),
                scout=order.scout or None,
            )
            continue

        scout = resolver.get(order.scout, order.scout_id)
        if scout is None:
            resolver.mark_unresolved("order", order.order_number, order.scout, order.scout_id, order.packages)
            continue

        scout.orders.append(classify_order(order, scout.is_site_order, warnings))


# =============================================================================
# Per-scout totals
# =============================================================================

def _physical_revenue(order: Order) -> float:
    return calculate_revenue(physical_varieties(order.varieties))


def sales_by_variety(scout: Scout) -> Dict[CookieType, int]:
    """Physical packages the scout sold out of her own inventory"""
    sales: Dict[CookieType, int] = {}
    for order in scout.orders:
        if order.needs_inventory:
            add_varieties(sales, order.varieties, physical_only=True)
    return sales


def _order_totals(scout: Scout) -> None:
    totals = scout.totals
    totals.orders = len(scout.orders)
    for order in scout.orders:
        if order.needs_inventory:
            totals.delivered += order.physical_packages
        elif order.order_type == OrderType.DIRECT_SHIP:
            totals.shipped += order.physical_packages
            add_varieties(totals.shipped_by_variety, order.varieties, physical_only=True)
        totals.donations += order.donations


def _financials(scout: Scout, received: Mapping[CookieType, int]) -> ScoutFinancials:
    cash_collected = 0.0
    inventory_electronic = 0.0
    inventory_cash = 0.0

    for order in scout.orders:
        if order.owner != Owner.GIRL:
            continue
        is_electronic = order.payment_method not in (None, PaymentMethod.CASH, PaymentMethod.UNKNOWN)
        if is_electronic:
            if order.needs_inventory:
                inventory_electronic += _physical_revenue(order)
        else:
            # All cash is turned in, whatever the order type
            cash_collected += order.amount
            if order.needs_inventory:
                inventory_cash += _physical_revenue(order)

    inventory_value = calculate_revenue(received)
    unsold_value = max(0.0, inventory_value - (inventory_electronic + inventory_cash))
    return ScoutFinancials(
        cash_collected=cash_collected,
        electronic_payments=inventory_electronic,
        inventory_value=inventory_value,
        unsold_value=unsold_value,
        cash_owed=cash_collected + unsold_value,
    )


def _inventory(scout: Scout, received: Mapping[CookieType, int], warnings: List[Warning]) -> None:
    """
    Net inventory per variety = packages credited (pickups - returns +
    allocations) - packages sold from inventory.
    """
    credited: Dict[CookieType, int] = dict(received)
    for summary in scout.allocation_summary.values():
        add_varieties(credited, summary.varieties, physical_only=True)
    sales = sales_by_variety(scout)
    scout.totals.sales_by_variety = sales

    net_by_variety: Dict[CookieType, int] = {}
    for variety in PHYSICAL_COOKIE_TYPES:
        have = credited.get(variety, 0)
        sold = sales.get(variety, 0)
        net = have - sold
        net_by_variety[variety] = net
        if net < 0:
            issue = NegativeInventoryIssue(variety=variety, inventory=have, sales=sold, shortfall=-net)
            scout.negative_inventory.append(issue)
            record_warning(
                warnings,
                WarningType.NEGATIVE_INVENTORY,
                f"{scout.name} sold {sold} {variety.value} but was credited {have}",
                record_id=scout.key,
                raw_value=str(net),
                scout=scout.name,
            )

    scout.totals.inventory_display = net_by_variety
    scout.inventory.varieties = {v: n for v, n in net_by_variety.items() if n != 0}
    scout.inventory.total = sum(net_by_variety.values())
    scout.totals.inventory = scout.inventory.total


def calculate_scout_totals(
    scouts: Dict[str, Scout],
    received: Mapping[str, Mapping[CookieType, int]],
    warnings: List[Warning],
) -> None:
    """
    Fill in totals for every scout. received maps scout key -> physical
    varieties picked up from the troop net of returns.
    """
    for key, scout in scouts.items():
        scout_received = dict(received.get(key, {}))
        _order_totals(scout)
        scout.totals.credited = scout.total_credited
        scout.totals.total_sold = (
            scout.totals.delivered + scout.totals.shipped + scout.totals.donations + scout.totals.credited
        )
        scout.totals.received = sum(scout_received.values())
        scout.totals.financials = _financials(scout, scout_received)
        _inventory(scout, scout_received, warnings)
    logger.debug("Calculated totals for %d scouts", len(scouts))


def calculate_scout_counts(scouts: Dict[str, Scout]) -> ScoutCounts:
    """Scout head counts; the site pseudo-scout is not a scout"""
    total = active = negative = 0
    for scout in scouts.values():
        if scout.is_site_order:
            continue
        total += 1
        if scout.totals.total_sold > 0:
            active += 1
        if scout.negative_inventory:
            negative += 1
    return ScoutCounts(total=total, active=active, inactive=total - active, with_negative_inventory=negative)
