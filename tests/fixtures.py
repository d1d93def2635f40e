"""Snapshot builders shared by the tests."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Mapping, Optional

from cookie_recon.adapters import import_pipeline, parse_api_cookies
from cookie_recon.cookies import COOKIE_ID_MAP, CookieType, sum_physical_packages
from cookie_recon.datastore import DataSnapshot, DataStore
from cookie_recon.models import Allocation, AllocationChannel, AllocationSource, Order, Source, Warning
from cookie_recon.validators import validate_sc_orders

TROOP = "3990"
BUILD_TIME = "2025-03-01T12:00:00+00:00"
SITE_SCOUT = "Troop3990 Site"

DELIVERY = "In-Person Delivery"
IN_HAND = "Cookies in Hand"
SHIPPED = "Shipped with Donation"

TM = CookieType.THIN_MINTS
TREF = CookieType.TREFOILS
LEM = CookieType.LEMONADES
CS = CookieType.COOKIE_SHARE


def add_dc_order(
    store: DataStore,
    order_number: str,
    scout: str,
    varieties: Optional[Mapping[CookieType, int]] = None,
    dc_order_type: str = DELIVERY,
    payment_status: str = "CAPTURED",
    donations: int = 0,
    status: str = "Completed",
    date: str = "2025-02-01T10:00:00",
    scout_id: Optional[str] = None,
    gsusa_id: Optional[str] = None,
) -> Order:
    varieties = dict(varieties or {})
    if donations:
        varieties[CS] = donations
    physical = sum_physical_packages(varieties)
    order = Order(
        order_number=order_number,
        scout=scout,
        scout_id=scout_id,
        gsusa_id=gsusa_id,
        date=date,
        dc_order_type=dc_order_type,
        packages=physical + donations,
        physical_packages=physical,
        donations=donations,
        amount=6.0 * (physical + donations),
        status=status,
        payment_status=payment_status,
        varieties=varieties,
    )
    return store.merge_or_create_order(order, Source.DIGITAL_COOKIE.value)


def add_transfer(
    store: DataStore,
    transfer_type: str,
    varieties: Mapping[CookieType, int],
    to: str = "",
    sender: str = "",
    date: str = "2025-01-15",
    order_number: str = "",
    **flags,
):
    return store.add_transfer(
        transfer_type,
        date=date,
        order_number=order_number,
        sender=sender,
        to=to,
        packages=sum(varieties.values()),
        varieties=dict(varieties),
        **flags,
    )


def booth_allocation(girl_id: int, varieties: Dict[CookieType, int], reservation_id: str = "R1") -> Allocation:
    return Allocation(
        channel=AllocationChannel.BOOTH,
        source=AllocationSource.SMART_BOOTH_DIVIDER,
        girl_id=girl_id,
        packages=sum_physical_packages(varieties),
        donations=varieties.get(CS, 0),
        varieties=dict(varieties),
        reservation_id=reservation_id,
        store_name="Grocery Outlet",
        date="2025-02-08",
    )


def scenario_store() -> DataStore:
    """C2T 100, T2G 40 to scout A, booth allocation of 10 to scout A"""
    store = DataStore()
    add_transfer(store, "C2T", {TM: 100}, to=TROOP, sender="Council", order_number="C1")
    add_transfer(store, "T2G", {TM: 40}, to="Scout A", sender=TROOP, order_number="T1", date="2025-01-20")
    store.register_scout("Scout A", scout_id=101)
    store.add_allocation(booth_allocation(101, {TM: 10}))
    return store


def scenario_snapshot() -> DataSnapshot:
    return scenario_store().freeze()


def season_store() -> DataStore:
    """A clean, busier season: two scouts, returns, T2T both ways, dividers and site orders"""
    store = DataStore()
    add_transfer(store, "C2T(P)", {TM: 120, TREF: 60, LEM: 36}, to=TROOP, sender="Council", order_number="C1",
                 date="2025-01-10")
    add_transfer(store, "T2T", {TREF: 12}, to=TROOP, sender="4100", order_number="TT1", date="2025-01-12")
    add_transfer(store, "T2T", {LEM: 6}, to="4100", sender=TROOP, order_number="TT2", date="2025-01-13")

    store.register_scout("Ann Lee", scout_id=101)
    store.register_scout("Bea Ruiz", scout_id=102)

    add_transfer(store, "T2G", {TM: 30, TREF: 10}, to="Ann Lee", sender=TROOP, order_number="T1", date="2025-01-20")
    add_transfer(store, "T2G", {TM: 20, LEM: 12}, to="Bea Ruiz", sender=TROOP, order_number="T2", date="2025-01-21")
    add_transfer(store, "G2T", {LEM: 4}, to=TROOP, sender="Bea Ruiz", order_number="G1", date="2025-02-10")
    add_transfer(store, "T2G", {TM: 6}, to="Ann Lee", sender=TROOP, order_number="V1", date="2025-02-02",
                 virtual_booth=True)
    add_transfer(store, "COOKIE_SHARE", {CS: 2}, to="Ann Lee", sender=TROOP, order_number="S1", date="2025-02-03")

    add_dc_order(store, "1001", "Ann Lee", {TM: 10, TREF: 4}, donations=2)
    add_dc_order(store, "1002", "Ann Lee", {TM: 5}, dc_order_type=IN_HAND, payment_status="CASH")
    add_dc_order(store, "1003", "Bea Ruiz", {TM: 12}, dc_order_type=SHIPPED)
    add_dc_order(store, "1004", "Bea Ruiz", {LEM: 6}, payment_status="VENMO")
    add_dc_order(store, "2001", SITE_SCOUT, {TM: 6}, date="2025-02-01T09:00:00")

    store.add_allocation(booth_allocation(102, {TM: 8, CS: 1}))
    store.add_virtual_cookie_share(101, 2)
    return store


def inject_anomalies(snapshot: DataSnapshot) -> DataSnapshot:
    """
    Copy of a snapshot with one record for every warning path: unknown
    transfer type, payment method, order type and variety, unresolved and
    ambiguous scouts, an order conflict, an SC-only order, negative
    inventory, a conservation mismatch, skipped imports and a payload that
    fails validation. Also leaves a site girl-delivery order unallocated.
    """
    data = snapshot.to_dict()
    # Physical count disagrees with its varieties
    data["transfers"].append({
        "type": "C2T",
        "category": "COUNCIL_TO_TROOP",
        "date": "2025-01-05",
        "orderNumber": "C-BAD",
        "from": "Council",
        "to": data.get("troopNumber") or TROOP,
        "packages": 7,
        "physicalPackages": 7,
        "varieties": {TM.value: 5},
        "physicalVarieties": {TM.value: 5},
    })
    store = DataStore.from_dict(data)
    troop = store.troop_number or TROOP

    scout = next((name for name in store.scouts if not name.endswith(" Site")), "Scout A")

    add_transfer(store, "XYZZY", {TM: 5}, to=scout, sender=troop, order_number="X1")
    add_dc_order(store, "9001", scout, {TM: 2}, payment_status="BITCOIN")
    add_dc_order(store, "9002", scout, {TM: 1}, dc_order_type="Telepathic Delivery")
    add_dc_order(store, "9003", scout, {LEM: 500})
    add_dc_order(store, "9004", SITE_SCOUT, {TM: 12}, date="2025-03-01T12:00:00")

    # Same order from Smart Cookie with a different count
    store.merge_or_create_order(Order(order_number="9001", scout=scout, packages=9), Source.SMART_COOKIE_API.value)
    store.merge_or_create_order(Order(order_number="9005", scout=scout, packages=3), Source.SMART_COOKIE_API.value)

    add_dc_order(store, "9006", "Ambi Guous", {TM: 1}, scout_id="801")
    store.register_scout("Ambi Guous", scout_id=802)
    store.add_allocation(booth_allocation(999999, {TM: 4}, reservation_id="R-GHOST"))

    parse_api_cookies([{"id": 999, "quantity": 3}], COOKIE_ID_MAP, store, record_id="X2", source="fixture")
    problems: list[Warning] = []
    validate_sc_orders({"orders": [{"to": scout}]}, problems, source="fixture")
    store.extend_warnings(problems)
    import_pipeline(Path(__file__).parent / "no-such-season", store)

    return store.freeze()
