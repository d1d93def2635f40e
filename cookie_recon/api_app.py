from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from .classification import classify_order_status
from .datastore import DataStore
from .engine import build_unified_dataset
from .health import build_timestamp
from .outputs import read_unified_json
from .settings import DEFAULT_SETTINGS, TrackerSettings

logger = logging.getLogger(__name__)

app = FastAPI(title="Cookie Recon API", version="1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_settings: TrackerSettings = DEFAULT_SETTINGS


class StatusRequest(BaseModel):
    status: Optional[str] = None


def _unified_path() -> Path:
    return Path(_settings.output_dir) / _settings.pipeline_files["unified"]


# ============================================================================
# API Endpoints
# ============================================================================

@app.get("/health")
def health():
    """Simple health check endpoint"""
    return {"ok": True, "status": "running"}


@app.get("/status")
def status():
    """Settings plus a digest of the last unified.json, if one has been built"""
    path = _unified_path()
    last_build: Optional[Dict[str, Any]] = None
    if path.exists():
        metadata = read_unified_json(path).get("metadata") or {}
        last_build = {
            "unifiedBuildTime": metadata.get("unifiedBuildTime"),
            "scoutCount": metadata.get("scoutCount"),
            "orderCount": metadata.get("orderCount"),
            "healthChecks": metadata.get("healthChecks"),
        }
    return {
        "settings": {
            "data_dir": _settings.data_dir,
            "output_dir": _settings.output_dir,
            "troop_number": _settings.troop_number,
            "timezone": _settings.timezone,
        },
        "last_build": last_build,
    }


@app.get("/unified")
def unified():
    """The last unified.json written to the output directory"""
    path = _unified_path()
    if not path.exists():
        raise HTTPException(status_code=404, detail="No unified dataset has been built")
    return read_unified_json(path)


@app.post("/build")
def build(store: Dict[str, Any]):
    """
    Build a UnifiedDataset from a serialized DataStore (DataSnapshot.to_dict()
    shape) and return it as JSON.
    """
    try:
        snapshot = DataStore.from_dict(store).freeze()
    except (KeyError, TypeError, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid store payload: {e}")
    dataset = build_unified_dataset(snapshot, build_time=build_timestamp(_settings.timezone))
    logger.info("Built unified dataset with %d warnings", len(dataset.warnings))
    return dataset.to_dict()


@app.post("/classify/status")
def classify_status(body: StatusRequest):
    return {"status": body.status, "class": classify_order_status(body.status).value}
