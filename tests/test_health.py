from __future__ import annotations

import pytest

from cookie_recon.engine import build_unified_dataset
from cookie_recon.health import build_health_checks, build_timestamp, record_warning
from cookie_recon.models import Warning, WarningType

from .fixtures import BUILD_TIME, CS, SHIPPED, TM, TROOP, add_dc_order, add_transfer


def test_record_warning_appends_and_logs(caplog):
    warnings = []
    with caplog.at_level("WARNING"):
        warning = record_warning(warnings, WarningType.VALIDATION, "bad row", record_id="7", raw_value="x")
    assert warnings == [warning]
    assert warning.to_dict()["recordId"] == "7"
    assert "VALIDATION: bad row" in caplog.text


def test_health_counters_match_filtered_warnings():
    warnings = [
        Warning(WarningType.ORDER_CONFLICT, "a"),
        Warning(WarningType.ORDER_CONFLICT, "b"),
        Warning(WarningType.IMPORT_SKIPPED, "c"),
    ]
    checks = build_health_checks(warnings)
    assert checks.warnings_count == 3
    assert checks.order_conflicts == 2
    assert checks.import_skipped == 1
    assert checks.unknown_varieties == 0


def test_every_warning_path_is_counted(anomalies):
    dataset = build_unified_dataset(anomalies, build_time=BUILD_TIME)
    checks = dataset.metadata.health_checks

    assert checks.warnings_count == len(dataset.warnings)
    for warning_type in WarningType:
        matching = [w for w in dataset.warnings if w.type == warning_type]
        assert checks.count_for(warning_type) == len(matching), warning_type
        assert matching, f"no {warning_type.value} warning produced"
    assert dataset.metadata.warnings == dataset.warnings


def test_anomalies_leave_the_ledger_usable(anomalies):
    dataset = build_unified_dataset(anomalies, build_time=BUILD_TIME)

    assert dataset.site_orders.girl_delivery.has_warning
    assert dataset.scouts["site"].has_unallocated_site_orders
    assert any(i.variety.value == "LEMONADES" for i in dataset.scouts["101"].negative_inventory)
    assert "9005" not in {o.order_number for s in dataset.scouts.values() for o in s.orders}
    assert {u["recordId"] for u in dataset.site_orders.unresolved} == {"R-GHOST"}


def test_cookie_share_reconciliation(store):
    store.register_scout("Ann", scout_id=101)
    add_dc_order(store, "1", "Ann", {TM: 1}, donations=2)
    add_dc_order(store, "2", "Ann", {TM: 1}, donations=3, dc_order_type=SHIPPED)
    add_transfer(store, "COOKIE_SHARE", {CS: 2}, to="Ann", sender=TROOP, order_number="S100")
    add_transfer(store, "COOKIE_SHARE", {CS: 3}, to="Ann", sender=TROOP, order_number="D2")
    store.add_virtual_cookie_share(101, 2)
    dataset = build_unified_dataset(store.freeze(), build_time=BUILD_TIME)
    share = dataset.cookie_share

    assert share.dc_total == 5
    assert share.dc_manual_entry == 2
    assert share.sc_manual_entries == 2
    assert share.reconciled
    (ann,) = share.by_scout
    assert (ann.scout, ann.dc_manual_entry, ann.sc_virtual, ann.reconciled) == ("Ann", 2, 2, True)
    assert dataset.troop_totals.donations == 5


def test_virtual_cookie_share_for_unknown_girl_is_unresolved(store):
    store.add_virtual_cookie_share(555, 4)
    dataset = build_unified_dataset(store.freeze(), build_time=BUILD_TIME)
    assert dataset.cookie_share.by_scout == ()
    (entry,) = dataset.site_orders.unresolved
    assert entry["kind"] == "virtual cookie share"
    assert entry["packages"] == 4


@pytest.mark.parametrize("tz_name", ["UTC", "US/Pacific"])
def test_build_timestamp_is_zone_aware(tz_name):
    stamp = build_timestamp(tz_name)
    assert stamp[-6] in "+-"
