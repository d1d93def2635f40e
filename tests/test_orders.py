from __future__ import annotations

import pytest

from cookie_recon.engine import build_unified_dataset
from cookie_recon.models import Order, OrderType, Owner, PaymentMethod, Source, WarningType
from cookie_recon.orders import classify_order

from .fixtures import BUILD_TIME, IN_HAND, LEM, SHIPPED, TM, TROOP, add_dc_order, add_transfer


def test_classify_order_fills_in_derived_fields():
    warnings = []
    order = classify_order(
        Order(order_number="1", dc_order_type=IN_HAND, payment_status="CASH"), False, warnings
    )
    assert order.order_type == OrderType.IN_HAND
    assert order.owner == Owner.GIRL
    assert order.payment_method == PaymentMethod.CASH
    assert order.needs_inventory
    assert warnings == []


def test_unknown_values_are_warned_not_guessed():
    warnings = []
    order = classify_order(
        Order(order_number="9", dc_order_type="Telepathic Delivery", payment_status="BITCOIN"), False, warnings
    )
    assert order.order_type == OrderType.UNKNOWN
    assert order.payment_method == PaymentMethod.UNKNOWN
    assert not order.needs_inventory
    assert {w.type for w in warnings} == {WarningType.UNKNOWN_ORDER_TYPE, WarningType.UNKNOWN_PAYMENT_METHOD}
    assert {w.raw_value for w in warnings} == {"Telepathic Delivery", "BITCOIN"}


def test_overselling_reports_shortfall_without_clamping(store):
    add_transfer(store, "C2T", {TM: 20}, to=TROOP)
    add_transfer(store, "T2G", {TM: 5}, to="Ann", sender=TROOP)
    add_dc_order(store, "1", "Ann", {TM: 8})
    dataset = build_unified_dataset(store.freeze(), build_time=BUILD_TIME)

    ann = dataset.scouts["ann"]
    assert ann.totals.inventory == -3
    assert ann.inventory.varieties == {TM: -3}
    (issue,) = ann.negative_inventory
    assert (issue.variety, issue.inventory, issue.sales, issue.shortfall) == (TM, 5, 8, 3)
    assert dataset.metadata.health_checks.negative_inventory == 1
    assert dataset.troop_totals.pending_pickup == 3
    assert dataset.troop_totals.girl_inventory == -3
    assert dataset.troop_totals.inventory == 15
    assert dataset.troop_totals.scouts.with_negative_inventory == 1


def test_shipped_and_donation_orders_do_not_draw_inventory(store):
    add_transfer(store, "T2G", {TM: 2}, to="Ann", sender=TROOP)
    add_dc_order(store, "1", "Ann", {TM: 12}, dc_order_type=SHIPPED)
    add_dc_order(store, "2", "Ann", donations=3, dc_order_type="Donation")
    dataset = build_unified_dataset(store.freeze(), build_time=BUILD_TIME)

    totals = dataset.scouts["ann"].totals
    assert totals.shipped == 12
    assert totals.shipped_by_variety == {TM: 12}
    assert totals.delivered == 0
    assert totals.donations == 3
    assert totals.inventory == 2
    assert totals.total_sold == 15
    assert dataset.scouts["ann"].negative_inventory == []


def test_scout_financials(store):
    add_transfer(store, "T2G", {TM: 10}, to="Ann", sender=TROOP)
    add_dc_order(store, "1", "Ann", {TM: 5}, dc_order_type=IN_HAND, payment_status="CASH")
    add_dc_order(store, "2", "Ann", {TM: 2}, payment_status="CAPTURED")
    dataset = build_unified_dataset(store.freeze(), build_time=BUILD_TIME)

    financials = dataset.scouts["ann"].totals.financials
    assert financials.inventory_value == pytest.approx(60.0)
    assert financials.electronic_payments == pytest.approx(12.0)
    assert financials.cash_collected == pytest.approx(30.0)
    assert financials.unsold_value == pytest.approx(18.0)
    assert financials.cash_owed == pytest.approx(48.0)


def test_sc_only_orders_are_excluded(store):
    add_dc_order(store, "1", "Ann", {TM: 1})
    store.merge_or_create_order(Order(order_number="2", scout="Ann", packages=4), Source.SMART_COOKIE_API.value)
    dataset = build_unified_dataset(store.freeze(), build_time=BUILD_TIME)

    assert [o.order_number for o in dataset.scouts["ann"].orders] == ["1"]
    assert dataset.metadata.health_checks.sc_only_orders == 1
    assert dataset.troop_totals.ordered == 1
