from __future__ import annotations

from cookie_recon.datastore import DataStore
from cookie_recon.engine import build_unified_dataset
from cookie_recon.models import Order, Source, WarningType
from cookie_recon.resolver import SITE_SCOUT_KEY, ScoutResolver, is_site_name, normalize_id, normalize_name

from .fixtures import BUILD_TIME, TM, add_dc_order, booth_allocation


def _build(store: DataStore):
    return build_unified_dataset(store.freeze(), build_time=BUILD_TIME)


def test_normalizers():
    assert normalize_name("  Jane   DOE ") == "jane doe"
    assert normalize_id(42) == "42"
    assert normalize_id(42.0) == "42"
    assert normalize_id(" 42 ") == "42"
    assert normalize_id("") is None
    assert is_site_name("Troop3990 Site")
    assert not is_site_name("Sitel Jones")
    assert not is_site_name(None)


def test_same_girl_id_merges_regardless_of_name_spelling(store):
    add_dc_order(store, "1", "Jane Doe", {TM: 3}, scout_id="42")
    add_dc_order(store, "2", "JANE  doe", {TM: 3}, scout_id="42.0")
    dataset = _build(store)

    scouts = [s for s in dataset.scouts.values() if not s.is_site_order]
    assert len(scouts) == 1
    (scout,) = scouts
    assert scout.key == "42"
    assert scout.girl_id == 42
    assert scout.totals.orders == 2
    assert scout.totals.delivered == 6


def test_name_only_references_merge_case_insensitively(store):
    add_dc_order(store, "1", "Ann Lee", {TM: 1})
    add_dc_order(store, "2", "ann  lee", {TM: 2})
    dataset = _build(store)
    assert list(dataset.scouts) == ["ann lee"]
    assert dataset.scouts["ann lee"].totals.delivered == 3


def test_name_reference_resolves_to_linked_girl_id(store):
    store.register_scout("Ann Lee", scout_id=101)
    add_dc_order(store, "1", "Ann Lee", {TM: 2}, gsusa_id="G-1")
    store.add_allocation(booth_allocation(101, {TM: 5}))
    dataset = _build(store)

    scout = dataset.scouts["101"]
    assert scout.name == "Ann Lee"
    assert scout.first_name == "Ann"
    assert scout.last_name == "Lee"
    assert scout.gsusa_id == "G-1"
    assert scout.totals.credited == 5
    assert scout.totals.orders == 1


def test_registry_is_the_last_writer_for_display_name(store):
    add_dc_order(store, "1", "JANE DOE", {TM: 1}, scout_id="42")
    store.register_scout("Jane Doe", scout_id=42, grade_level="4")
    dataset = _build(store)
    assert dataset.scouts["42"].name == "Jane Doe"
    assert dataset.scouts["42"].grade_level == "4"


def test_site_scout_gets_the_site_key(store):
    add_dc_order(store, "1", "Troop 3990 Site", {TM: 4})
    dataset = _build(store)
    site = dataset.scouts[SITE_SCOUT_KEY]
    assert site.is_site_order
    assert dataset.troop_totals.scouts.total == 0


def test_name_with_two_ids_is_ambiguous(store):
    add_dc_order(store, "1", "Bo Peep", {TM: 1}, scout_id="1")
    store.register_scout("Bo Peep", scout_id=2)
    snapshot = store.freeze()

    warnings = []
    resolver = ScoutResolver(snapshot, warnings)
    assert [w.type for w in warnings] == [WarningType.AMBIGUOUS_SCOUT_NAME]
    assert resolver.resolve("Bo Peep") == "1"
    assert resolver.resolve(scout_id=2) == "2"


def test_unknown_girl_id_is_unresolved(store):
    store.add_allocation(booth_allocation(999, {TM: 4}, reservation_id="R9"))
    dataset = _build(store)

    assert dataset.scouts == {}
    assert dataset.metadata.health_checks.unresolved_scouts == 1
    (entry,) = dataset.site_orders.unresolved
    assert entry["kind"] == "booth allocation"
    assert entry["recordId"] == "R9"
    assert entry["scoutId"] == "999"
    assert entry["packages"] == 4


def test_display_name_follows_import_order_not_record_kind(store):
    add_dc_order(store, "1001", "jane doe", {TM: 2})
    store.register_scout("jane doe")
    store.merge_or_create_order(Order(order_number="1001", scout="Jane Doe"), Source.SMART_COOKIE_API.value)
    snapshot = store.freeze()

    scout = build_unified_dataset(snapshot, build_time=BUILD_TIME).scouts["jane doe"]
    assert scout.name == "Jane Doe"
    assert (scout.first_name, scout.last_name) == ("Jane", "Doe")

    rebuilt = build_unified_dataset(DataStore.from_dict(snapshot.to_dict()).freeze(), build_time=BUILD_TIME)
    assert rebuilt.scouts["jane doe"].name == "Jane Doe"


def test_order_imported_after_the_registry_sets_the_display_name(store):
    store.register_scout("ann lee", scout_id=101)
    add_dc_order(store, "1", "Ann Lee", {TM: 1})
    assert _build(store).scouts["101"].name == "Ann Lee"
