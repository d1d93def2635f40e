from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict

# NOTE:
# - Paths may be relative to the working directory.
# - You can override ANY value with environment variables.
#
# Suggested env overrides:
#   RECON_DATA_DIR       (folder with the season's pipeline files)
#   RECON_OUTPUT_DIR     (where unified.json / unified.xlsx land)
#   RECON_TROOP_NUMBER   (e.g. 3990; decides T2T direction)
#   RECON_TIMEZONE       (default US/Pacific)
#   RECON_LOG_LEVEL      (default INFO)
#   RECON_LOG_FILE
#   RECON_PORT           (default 8000)

# Pipeline file names inside the data directory
PIPELINE_FILES: Dict[str, str] = {
    "dc_export": "dc-export.xlsx",
    "sc_orders": "sc-orders.json",
    "sc_direct_ship": "sc-direct-ship.json",
    "sc_cookie_shares": "sc-cookie-shares.json",
    "sc_reservations": "sc-reservations.json",
    "sc_booth_allocations": "sc-booth-allocations.json",
    "sc_booth_locations": "sc-booth-locations.json",
    "sc_cookie_id_map": "sc-cookie-id-map.json",
    "unified": "unified.json",
}


@dataclass(frozen=True)
class TrackerSettings:
    data_dir: str = os.environ.get("RECON_DATA_DIR", os.path.join(".", "data", "current"))
    output_dir: str = os.environ.get("RECON_OUTPUT_DIR", os.path.join(".", "data", "output"))

    # Empty means "learn it from the first C2T transfer"
    troop_number: str = os.environ.get("RECON_TROOP_NUMBER", "")

    # Zone for human-facing timestamps (workbook title, CLI output)
    timezone: str = os.environ.get("RECON_TIMEZONE", "US/Pacific")

    log_level: str = os.environ.get("RECON_LOG_LEVEL", "INFO")
    log_file: str = os.environ.get("RECON_LOG_FILE", "")

    port: int = int(os.environ.get("RECON_PORT", "8000"))

    pipeline_files: Dict[str, str] = field(default_factory=lambda: dict(PIPELINE_FILES))

    def pipeline_path(self, name: str) -> str:
        return os.path.join(self.data_dir, self.pipeline_files[name])


DEFAULT_SETTINGS = TrackerSettings()
