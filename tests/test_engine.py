from __future__ import annotations

import json

import pytest

from cookie_recon.cookies import PHYSICAL_COOKIE_TYPES
from cookie_recon.engine import build_unified_dataset
from cookie_recon.models import (
    C2T_CATEGORIES,
    G2T_CATEGORIES,
    T2G_CATEGORIES,
    T2T_OUT_CATEGORIES,
    AllocationChannel,
)

from .fixtures import BUILD_TIME, LEM, TM, TREF, scenario_store


def test_pickup_plus_booth_allocation_scenario(scenario):
    dataset = build_unified_dataset(scenario, build_time=BUILD_TIME)

    assert dataset.transfer_breakdowns.totals.c2t == 100
    assert dataset.troop_totals.inventory == 60
    assert dataset.varieties.inventory == {TM: 60}

    scout = dataset.scouts["101"]
    assert scout.name == "Scout A"
    assert scout.totals.received == 40
    assert scout.allocation_summary[AllocationChannel.BOOTH].packages == 10
    assert scout.totals.inventory == 50
    assert scout.inventory.varieties == {TM: 50}

    totals = dataset.troop_totals
    assert totals.packages_credited == 100
    assert totals.scouts.active == 1
    assert totals.proceeds_rate == 0.85
    assert totals.proceeds_exempt_packages == 10
    assert totals.troop_proceeds == pytest.approx(76.5)
    assert dataset.warnings == ()


def test_conservation_holds_per_variety(season):
    dataset = build_unified_dataset(season, build_time=BUILD_TIME)

    expected = {v: 0 for v in PHYSICAL_COOKIE_TYPES}
    for transfer in season.transfers:
        if transfer.category in C2T_CATEGORIES or transfer.category in G2T_CATEGORIES:
            sign = 1
        elif transfer.category in T2T_OUT_CATEGORIES or transfer.category in T2G_CATEGORIES:
            sign = -1
        else:
            continue
        for variety, count in transfer.physical_varieties.items():
            expected[variety] += sign * count

    assert {v: n for v, n in expected.items() if n} == {v: n for v, n in dataset.varieties.inventory.items() if n}
    assert sum(dataset.varieties.inventory.values()) == dataset.troop_totals.inventory
    assert dataset.varieties.inventory == {TM: 64, TREF: 62, LEM: 22}
    assert dataset.metadata.health_checks.conservation_mismatches == 0


def test_season_totals(season):
    dataset = build_unified_dataset(season, build_time=BUILD_TIME)
    totals = dataset.troop_totals

    assert totals.inventory == 148
    assert totals.packages_credited == 224
    assert totals.donations == 2
    assert totals.ordered == 5
    assert totals.scouts.total == 2
    assert totals.scouts.active == 2
    assert totals.proceeds_rate == 0.85
    assert dataset.varieties.by_cookie == {TM: 41, TREF: 4, LEM: 6}
    assert dataset.varieties.total == 51
    assert dataset.metadata.health_checks.warnings_count == 0


def test_builds_are_deterministic(season):
    first = build_unified_dataset(season, build_time=BUILD_TIME).to_dict()
    second = build_unified_dataset(season, build_time=BUILD_TIME).to_dict()
    assert json.dumps(first, sort_keys=True) == json.dumps(second, sort_keys=True)


def test_only_build_time_differs_between_runs(season):
    first = build_unified_dataset(season).to_dict()
    second = build_unified_dataset(season, timezone="US/Pacific").to_dict()
    first["metadata"].pop("unifiedBuildTime")
    second["metadata"].pop("unifiedBuildTime")
    assert first == second


def test_building_does_not_touch_the_snapshot(anomalies):
    before = anomalies.to_dict()
    build_unified_dataset(anomalies, build_time=BUILD_TIME)
    assert anomalies.to_dict() == before


def test_output_is_json_native(anomalies):
    data = build_unified_dataset(anomalies, build_time=BUILD_TIME).to_dict()
    assert json.loads(json.dumps(data)) == data
    assert data["metadata"]["unifiedBuildTime"] == BUILD_TIME


@pytest.mark.parametrize("bad", [None, {}, "snapshot"])
def test_rejects_anything_but_a_snapshot(bad):
    with pytest.raises(TypeError):
        build_unified_dataset(bad)


def test_rejects_an_unfrozen_store():
    with pytest.raises(TypeError, match="frozen"):
        build_unified_dataset(scenario_store())
