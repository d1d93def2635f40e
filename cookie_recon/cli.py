from __future__ import annotations

import argparse
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import pytz
import uvicorn

from .adapters import import_pipeline
from .datastore import DataStore
from .engine import build_unified_dataset
from .logging_utils import configure_logging
from .models import UnifiedDataset
from .outputs import write_unified_json, write_unified_xlsx
from .settings import DEFAULT_SETTINGS, TrackerSettings

logger = logging.getLogger(__name__)

STORE_FILENAME = "store.json"


def local_now(tz_name: str) -> datetime:
    return datetime.now(pytz.timezone(tz_name))


def build_from_data_dir(settings: TrackerSettings, data_dir: Path) -> tuple:
    """Import every pipeline file, freeze, build. Returns (snapshot, dataset)."""
    store = DataStore(troop_number=settings.troop_number or None)
    counts = import_pipeline(data_dir, store, settings.pipeline_files)
    logger.info("Imported %s from %s", counts, data_dir)
    snapshot = store.freeze()
    dataset = build_unified_dataset(snapshot, build_time=local_now(settings.timezone).isoformat())
    return snapshot, dataset


def write_outputs(settings: TrackerSettings, dataset: UnifiedDataset, out_dir: Path, xlsx: bool = True) -> List[Path]:
    out_dir.mkdir(parents=True, exist_ok=True)
    written = [write_unified_json(dataset, out_dir / settings.pipeline_files["unified"])]
    if xlsx:
        stamp = local_now(settings.timezone).strftime("%Y-%m-%d")
        path = out_dir / f"unified_{stamp}.xlsx"
        write_unified_xlsx(path, dataset)
        written.append(path)
    return written


def run_build(settings: TrackerSettings, data_dir: Path, out_dir: Path, xlsx: bool = True) -> UnifiedDataset:
    snapshot, dataset = build_from_data_dir(settings, data_dir)

    out_dir.mkdir(parents=True, exist_ok=True)
    store_path = out_dir / STORE_FILENAME
    with open(store_path, "w", encoding="utf-8") as f:
        json.dump(snapshot.to_dict(), f, indent=2)

    for path in [store_path] + write_outputs(settings, dataset, out_dir, xlsx):
        print(f"Wrote: {path}")
    _print_summary(dataset)
    return dataset


def run_rebuild(settings: TrackerSettings, store_path: Path, out_dir: Path, xlsx: bool = True) -> UnifiedDataset:
    """Rebuild the ledger offline from a saved DataSnapshot"""
    with open(store_path, "r", encoding="utf-8") as f:
        store = DataStore.from_dict(json.load(f))
    dataset = build_unified_dataset(store.freeze(), build_time=local_now(settings.timezone).isoformat())
    for path in write_outputs(settings, dataset, out_dir, xlsx):
        print(f"Wrote: {path}")
    _print_summary(dataset)
    return dataset


def _print_summary(dataset: UnifiedDataset) -> None:
    totals = dataset.troop_totals
    health = dataset.metadata.health_checks
    print(
        f"{totals.scouts.active} active scouts, {totals.packages_credited} packages credited, "
        f"proceeds ${totals.troop_proceeds:,.2f} at {totals.proceeds_rate:.0%}, "
        f"{health.warnings_count} warnings"
    )


def main(argv: Optional[List[str]] = None):
    s = DEFAULT_SETTINGS
    ap = argparse.ArgumentParser(prog="cookie-recon")
    ap.add_argument("--log-level", default=s.log_level)
    ap.add_argument("--log-file", default=s.log_file or None)
    sub = ap.add_subparsers(dest="command", required=True)

    build = sub.add_parser("build", help="import the pipeline files and build the ledger")
    build.add_argument("--data-dir", default=s.data_dir)
    build.add_argument("--output-dir", default=s.output_dir)
    build.add_argument("--troop-number", default=s.troop_number)
    build.add_argument("--no-xlsx", action="store_true")

    rebuild = sub.add_parser("rebuild", help="rebuild the ledger from a saved store.json")
    rebuild.add_argument("--store", required=True)
    rebuild.add_argument("--output-dir", default=s.output_dir)
    rebuild.add_argument("--no-xlsx", action="store_true")

    serve = sub.add_parser("serve", help="run the API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=s.port)

    args = ap.parse_args(argv)
    configure_logging(args.log_level, args.log_file)

    if args.command == "build":
        settings = TrackerSettings(
            data_dir=args.data_dir,
            output_dir=args.output_dir,
            troop_number=args.troop_number,
            timezone=s.timezone,
            log_level=args.log_level,
            log_file=args.log_file or "",
            port=s.port,
        )
        run_build(settings, Path(args.data_dir), Path(args.output_dir), xlsx=not args.no_xlsx)
    elif args.command == "rebuild":
        run_rebuild(s, Path(args.store), Path(args.output_dir), xlsx=not args.no_xlsx)
    elif args.command == "serve":
        uvicorn.run("cookie_recon.api_app:app", host=args.host, port=args.port, log_level=args.log_level.lower())


if __name__ == "__main__":
    main()
