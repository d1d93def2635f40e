from __future__ import annotations

from cookie_recon.datastore import DataStore
from cookie_recon.models import Transfer, TransferCategory, WarningType
from cookie_recon.transfers import build_transfer_breakdowns, category_totals, cookie_share_total, sort_by_date_desc

from .fixtures import CS, LEM, TM, TREF, TROOP, add_transfer


def _movements() -> DataStore:
    store = DataStore()
    add_transfer(store, "C2T", {TM: 60, TREF: 40}, to=TROOP, sender="Council", order_number="C1", date="2025-01-10")
    add_transfer(store, "T2T", {TM: 10}, to="4100", sender=TROOP, order_number="TT1", date="2025-01-11")
    add_transfer(store, "T2G", {TM: 30, CS: 5}, to="Ann", sender=TROOP, order_number="T1", date="2025-01-12")
    add_transfer(store, "G2T", {TM: 5}, to=TROOP, sender="Ann", order_number="G1", date="2025-01-13")
    add_transfer(store, "T2T", {TREF: 12}, to=TROOP, sender="4100", order_number="TT2", date="2025-01-14")
    return store


def test_buckets_and_conservation():
    store = _movements()
    warnings = []
    breakdowns, inventory = build_transfer_breakdowns(store.transfers, warnings)
    totals = breakdowns.totals

    assert totals.c2t == 112
    assert totals.t2t_in == 12
    assert totals.t2t_out == 10
    assert totals.t2g_physical == 30
    assert totals.g2t == 5
    assert totals.troop_inventory == 77
    assert inventory == {TM: 25, TREF: 52}
    assert sum(inventory.values()) == totals.troop_inventory
    assert [t.order_number for t in breakdowns.c2t] == ["TT2", "C1"]
    assert warnings == []


def test_cookie_share_never_counts_as_stock():
    store = DataStore()
    add_transfer(store, "C2T", {TM: 10, CS: 4}, to=TROOP, sender="Council")
    breakdowns, inventory = build_transfer_breakdowns(store.transfers, [])
    assert breakdowns.totals.c2t == 10
    assert inventory == {TM: 10}
    assert cookie_share_total(store.transfers) == 4


def test_unknown_transfer_type_is_warned_and_excluded():
    store = _movements()
    add_transfer(store, "XYZZY", {TM: 7}, to="Ann", sender=TROOP, order_number="X1")
    warnings = []
    breakdowns, inventory = build_transfer_breakdowns(store.transfers, warnings)

    assert breakdowns.totals.troop_inventory == 77
    assert [w.type for w in warnings] == [WarningType.UNKNOWN_TRANSFER_TYPE]
    assert warnings[0].record_id == "X1"
    assert warnings[0].raw_value == "XYZZY"


def test_physical_count_disagreeing_with_varieties_is_a_mismatch():
    bad = Transfer(
        type="C2T",
        category=TransferCategory.COUNCIL_TO_TROOP,
        order_number="C9",
        packages=7,
        physical_packages=7,
        varieties={TM: 5},
        physical_varieties={TM: 5},
    )
    warnings = []
    build_transfer_breakdowns([bad], warnings)
    assert [w.type for w in warnings] == [WarningType.CONSERVATION_MISMATCH]


def test_sort_is_newest_first_with_stable_ties():
    def t(order_number: str, date: str) -> Transfer:
        return Transfer(type="T2G", category=TransferCategory.GIRL_PICKUP, order_number=order_number, date=date)

    ordered = sort_by_date_desc([
        t("old", "2025-02-03"),
        t("undated", ""),
        t("newest", "2025-02-05"),
        t("tie-a", "2025-02-04"),
        t("tie-b", "2025-02-04"),
    ])
    assert [x.order_number for x in ordered] == ["newest", "tie-a", "tie-b", "old", "undated"]


def test_category_totals_count_direct_ship_in_full():
    store = DataStore()
    add_transfer(store, "DIRECT_SHIP", {TM: 3, CS: 2}, to=TROOP)
    add_transfer(store, "T2G", {LEM: 6}, to="Ann", sender=TROOP, booth_divider=True)
    totals = category_totals(store.transfers)
    assert totals[TransferCategory.DIRECT_SHIP] == 5
    assert totals[TransferCategory.BOOTH_SALES_ALLOCATION] == 6
