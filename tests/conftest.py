from __future__ import annotations

import pytest

from cookie_recon.datastore import DataSnapshot, DataStore

from .fixtures import inject_anomalies, scenario_store, season_store


@pytest.fixture
def store() -> DataStore:
    return DataStore()


@pytest.fixture
def scenario() -> DataSnapshot:
    return scenario_store().freeze()


@pytest.fixture
def season() -> DataSnapshot:
    return season_store().freeze()


@pytest.fixture
def anomalies(season) -> DataSnapshot:
    return inject_anomalies(season)
