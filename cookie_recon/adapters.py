"""
Source Adapters

Each adapter reads one pipeline file and writes normalized records into a
DataStore. Adapters never reconcile anything; that is the engine's job.

Supported sources:
- Digital Cookie order export (xlsx / csv)
- Smart Cookie orders/transfers (orders/search API JSON)
- Smart Cookie direct ship divider, booth dividers, virtual cookie shares
- Smart Cookie booth reservations and booth locations
- Smart Cookie cookie id map
"""
from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import pandas as pd

from .classification import DC_ORDER_PREFIX
from .cookies import (
    COOKIE_ID_MAP,
    DC_COOKIE_COLUMNS,
    PACKAGES_PER_CASE,
    CookieType,
    normalize_cookie_name,
    sum_physical_packages,
)
from .datastore import DataStore
from .models import (
    Allocation,
    AllocationChannel,
    AllocationSource,
    BoothLocation,
    BoothReservation,
    Order,
    Source,
    Warning,
    WarningType,
)
from .settings import PIPELINE_FILES
from .validators import validate_booth_dividers, validate_dc_columns, validate_sc_orders

logger = logging.getLogger(__name__)

# Digital Cookie export columns
DC_ORDER_NUMBER = "Order Number"
DC_FIRST_NAME = "Girl First Name"
DC_LAST_NAME = "Girl Last Name"
DC_ORDER_DATE = "Order Date (Central Time)"
DC_ORDER_TYPE = "Order Type"
DC_TOTAL_PACKAGES = "Total Packages (Includes Donate & Gift)"
DC_REFUNDED_PACKAGES = "Refunded Packages"
DC_SALE_AMOUNT = "Current Sale Amount"
DC_ORDER_STATUS = "Order Status"
DC_PAYMENT_STATUS = "Payment Status"
DC_DONATION = "Donation"

# Excel serial day 0
EXCEL_EPOCH = datetime(1899, 12, 30)


# =============================================================================
# Parsing helpers
# =============================================================================

def parse_int(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, float) and pd.isna(value):
        return 0
    try:
        return int(float(str(value).strip().replace(",", "")))
    except ValueError:
        return 0


def parse_amount(value: Any) -> float:
    """Parse "$1,234.50" style amounts; blanks are zero"""
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return 0.0 if pd.isna(value) else float(value)
    s = str(value).strip().replace(",", "").replace("$", "")
    if s.startswith("(") and s.endswith(")"):
        s = "-" + s[1:-1]
    try:
        return float(s)
    except ValueError:
        return 0.0


def parse_excel_date(value: Any) -> str:
    """ISO date string from an Excel serial number, a timestamp or text"""
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    if isinstance(value, (int, float)):
        return (EXCEL_EPOCH + timedelta(days=float(value))).isoformat()
    if isinstance(value, (datetime, pd.Timestamp)):
        return pd.Timestamp(value).isoformat()
    return str(value).strip()


def json_safe(value: Any) -> Any:
    """Make a pandas cell storable in a JSON snapshot"""
    if value is None:
        return None
    if isinstance(value, pd.Timestamp):
        return value.isoformat()
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, float) and pd.isna(value):
        return None
    if hasattr(value, "item"):
        # numpy scalar
        return value.item()
    return value


def _report_malformed(store: Optional[DataStore], what: str, value: Any, record_id: Optional[str], source: Optional[str]) -> None:
    if store is None:
        return
    store.add_warning(
        WarningType.VALIDATION,
        f"Skipped malformed {what} in {record_id or 'record'}: got {type(value).__name__}",
        record_id=record_id,
        raw_value=repr(value)[:80],
        source=source,
    )


def as_record(
    value: Any,
    store: Optional[DataStore],
    what: str,
    record_id: Optional[str] = None,
    source: Optional[str] = None,
) -> Dict[str, Any]:
    """A nested JSON object, or {} (with a VALIDATION warning) when it is something else"""
    if value in (None, ""):
        return {}
    if isinstance(value, Mapping):
        return dict(value)
    _report_malformed(store, what, value, record_id, source)
    return {}


def as_records(
    values: Any,
    store: Optional[DataStore],
    what: str,
    record_id: Optional[str] = None,
    source: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    The JSON objects of a list. Anything that is not an object (and a value
    that is not a list at all) is skipped with a VALIDATION warning.
    """
    if values in (None, ""):
        return []
    if not isinstance(values, (list, tuple)):
        _report_malformed(store, f"{what} list", values, record_id, source)
        return []
    records = []
    for value in values:
        if isinstance(value, Mapping):
            records.append(dict(value))
        else:
            _report_malformed(store, what, value, record_id, source)
    return records


def parse_api_cookies(
    cookies: Optional[Iterable[Mapping[str, Any]]],
    id_map: Mapping[int, CookieType],
    store: Optional[DataStore] = None,
    record_id: Optional[str] = None,
    source: Optional[str] = None,
) -> Tuple[Dict[CookieType, int], int]:
    """
    Varieties from a Smart Cookie cookies array ([{id|cookieId, quantity}]).

    Quantities are stored as absolute values. An id missing from the map is
    reported as UNKNOWN_VARIETY and an entry that is not an object as
    VALIDATION, when a store is given.
    """
    varieties: Dict[CookieType, int] = {}
    total = 0
    for cookie in as_records(cookies, store, "cookie entry", record_id, source):
        cookie_id = cookie.get("id") or cookie.get("cookieId")
        quantity = parse_int(cookie.get("quantity"))
        if cookie_id is None or quantity == 0:
            continue
        variety = id_map.get(parse_int(cookie_id))
        if variety is None:
            if store is not None:
                store.add_warning(
                    WarningType.UNKNOWN_VARIETY,
                    f"Unknown cookie id {cookie_id} (quantity {quantity}) in {record_id or 'record'}",
                    record_id=record_id,
                    raw_value=str(cookie_id),
                    source=source,
                )
            continue
        varieties[variety] = varieties.get(variety, 0) + abs(quantity)
        total += abs(quantity)
    return varieties, total


def girl_name(girl: Mapping[str, Any]) -> str:
    return f"{girl.get('first_name') or ''} {girl.get('last_name') or ''}".strip()


# =============================================================================
# Base Adapter
# =============================================================================

class BaseAdapter(ABC):
    """Base class for all pipeline file adapters"""

    pipeline_key: str
    source: str

    def can_handle(self, file_path: Path) -> bool:
        return file_path.name == PIPELINE_FILES[self.pipeline_key]

    @abstractmethod
    def load(self, file_path: Path, store: DataStore) -> int:
        """Import the file into the store; return the number of records read"""

    def _read_json(self, file_path: Path) -> Any:
        with open(file_path, "r", encoding="utf-8") as f:
            return json.load(f)

    def _read_file(self, file_path: Path) -> pd.DataFrame:
        """Read a spreadsheet export into a DataFrame"""
        ext = file_path.suffix.lower()
        if ext in (".xlsx", ".xls"):
            return pd.read_excel(file_path)
        if ext == ".csv":
            for encoding in ("utf-8", "latin-1", "cp1252"):
                try:
                    return pd.read_csv(file_path, encoding=encoding)
                except UnicodeDecodeError:
                    continue
            return pd.read_csv(file_path, encoding="utf-8", encoding_errors="replace")
        raise ValueError(f"Unsupported file type: {ext}")

    def _id_map(self, store: DataStore) -> Mapping[int, CookieType]:
        return store.cookie_id_map or COOKIE_ID_MAP


# =============================================================================
# Digital Cookie
# =============================================================================

class DigitalCookieAdapter(BaseAdapter):
    """
    Digital Cookie order export.

    One row per order. Packages are net of refunds; the Donation column is
    Cookie Share and the rest of the package count is physical.
    """

    pipeline_key = "dc_export"
    source = Source.DIGITAL_COOKIE.value

    def load(self, file_path: Path, store: DataStore) -> int:
        df = self._read_file(file_path)
        return self.import_frame(df, store, source_name=file_path.name)

    def import_frame(self, df: pd.DataFrame, store: DataStore, source_name: str = "dc-export") -> int:
        problems: List[Warning] = []
        if not validate_dc_columns(list(df.columns), problems, source=source_name):
            store.extend_warnings(problems)
            if DC_ORDER_NUMBER not in df.columns:
                return 0

        rows = [
            {str(k): json_safe(v) for k, v in row.items()}
            for row in df.astype(object).to_dict(orient="records")
        ]
        store.add_raw_dc_rows(rows)

        for row in rows:
            order_number = row.get(DC_ORDER_NUMBER)
            if order_number in (None, ""):
                continue
            order_number = str(parse_int(order_number)) if isinstance(order_number, float) else str(order_number)
            scout = f"{row.get(DC_FIRST_NAME) or ''} {row.get(DC_LAST_NAME) or ''}".strip()

            donations = parse_int(row.get(DC_DONATION))
            varieties: Dict[CookieType, int] = {}
            for column in DC_COOKIE_COLUMNS:
                count = parse_int(row.get(column))
                if count > 0:
                    variety = normalize_cookie_name(column)
                    if variety is not None:
                        varieties[variety] = count
            if donations > 0:
                varieties[CookieType.COOKIE_SHARE] = donations

            packages = parse_int(row.get(DC_TOTAL_PACKAGES)) - parse_int(row.get(DC_REFUNDED_PACKAGES))
            order = Order(
                order_number=order_number,
                scout=scout,
                date=parse_excel_date(row.get(DC_ORDER_DATE)),
                dc_order_type=str(row.get(DC_ORDER_TYPE) or ""),
                packages=packages,
                physical_packages=packages - donations,
                donations=donations,
                amount=parse_amount(row.get(DC_SALE_AMOUNT)),
                status=str(row.get(DC_ORDER_STATUS) or ""),
                payment_status=str(row.get(DC_PAYMENT_STATUS) or ""),
                varieties=varieties,
            )
            store.merge_or_create_order(order, self.source, row)
            store.register_scout(scout)

        store.record_import(self.source, len(rows), "dc")
        logger.info("Imported %d Digital Cookie rows from %s", len(rows), source_name)
        return len(rows)


# =============================================================================
# Smart Cookie
# =============================================================================

class SmartCookieOrdersAdapter(BaseAdapter):
    """
    Smart Cookie orders/search payload ({"orders": [...]}).

    Every entry becomes a Transfer. Entries whose order number carries the
    "D" prefix mirror a Digital Cookie order and are merged into it.
    """

    pipeline_key = "sc_orders"
    source = Source.SMART_COOKIE_API.value

    def load(self, file_path: Path, store: DataStore) -> int:
        return self.import_payload(self._read_json(file_path), store, source_name=file_path.name)

    def import_payload(self, data: Any, store: DataStore, source_name: str = "sc-orders") -> int:
        problems: List[Warning] = []
        validate_sc_orders(data, problems, source=source_name)
        store.extend_warnings(problems)

        # Non-object entries were already reported by validate_sc_orders
        orders = data.get("orders") if isinstance(data, dict) else None
        orders = [o for o in orders if isinstance(o, dict)] if isinstance(orders, list) else []
        id_map = self._id_map(store)

        for entry in orders:
            transfer_type = entry.get("transfer_type") or entry.get("type") or entry.get("orderType") or ""
            order_number = str(entry.get("order_number") or entry.get("orderNumber") or "")
            to = str(entry.get("to") or "")
            sender = str(entry.get("from") or "")
            varieties, total_packages = parse_api_cookies(
                entry.get("cookies"), id_map, store, record_id=order_number, source=source_name
            )
            date = entry.get("date") or entry.get("createdDate") or ""
            total = entry.get("total") if entry.get("total") is not None else entry.get("totalPrice")
            actions = as_record(entry.get("actions"), store, "actions", order_number, source_name)
            virtual_booth = bool(entry.get("virtual_booth"))

            store.add_transfer(
                transfer_type,
                date=date,
                order_number=order_number,
                sender=sender,
                to=to,
                packages=total_packages,
                cases=round(abs(parse_int(entry.get("total_cases"))) / PACKAGES_PER_CASE),
                varieties=varieties,
                amount=abs(parse_amount(total)),
                status=str(entry.get("status") or ""),
                submittable=bool(actions.get("submittable")),
                approvable=bool(actions.get("approvable")),
                virtual_booth=virtual_booth,
                booth_divider=bool(entry.get("smart_divider_id")) and not virtual_booth,
            )

            if order_number.startswith(DC_ORDER_PREFIX):
                self._merge_dc_order(store, order_number, to, date, varieties, total_packages, parse_amount(total), entry)
            self._register_scouts(store, transfer_type, to, sender)

        store.record_import(self.source, len(orders), "sc")
        logger.info("Imported %d Smart Cookie orders from %s", len(orders), source_name)
        return len(orders)

    def _merge_dc_order(self, store, order_number, scout, date, varieties, packages, amount, raw) -> None:
        # Status stays blank so the Digital Cookie status is never overwritten
        physical = sum_physical_packages(varieties)
        order = Order(
            order_number=order_number[len(DC_ORDER_PREFIX):],
            scout=scout,
            date=date,
            packages=abs(packages),
            physical_packages=physical,
            donations=varieties.get(CookieType.COOKIE_SHARE, 0),
            amount=abs(amount),
            varieties=dict(varieties),
        )
        store.merge_or_create_order(order, self.source, raw)

    @staticmethod
    def _register_scouts(store: DataStore, transfer_type: str, to: str, sender: str) -> None:
        if transfer_type == "T2G" and to != sender:
            store.register_scout(to)
        if transfer_type == "G2T" and to != sender:
            store.register_scout(sender)
        if "COOKIE_SHARE" in transfer_type:
            store.register_scout(to)


class _DividerAdapter(BaseAdapter):
    """Shared girl-allocation parsing for the Smart Cookie dividers"""

    def _girl_allocation(
        self,
        girl: Mapping[str, Any],
        dedupe_prefix: Any,
        seen: set,
        store: DataStore,
        source_name: str,
    ) -> Optional[Tuple[int, Dict[CookieType, int]]]:
        girl_id = parse_int(girl.get("id"))
        varieties, total = parse_api_cookies(
            girl.get("cookies"), self._id_map(store), store, record_id=str(dedupe_prefix), source=source_name
        )
        if total == 0:
            return None
        key = f"{dedupe_prefix}-{girl_id}"
        if key in seen:
            return None
        seen.add(key)
        name = girl_name(girl)
        if girl_id and name:
            store.register_scout(name, scout_id=girl_id)
        return girl_id, varieties


class DirectShipDividerAdapter(_DividerAdapter):
    """
    Smart Direct Ship Divider. Accepts the single-divider shape
    ({"girls": [...]}) or a list of {orderId, divider: {girls}} entries.
    """

    pipeline_key = "sc_direct_ship"
    source = "SC-DirectShip"

    def load(self, file_path: Path, store: DataStore) -> int:
        return self.import_payload(self._read_json(file_path), store, source_name=file_path.name)

    def import_payload(self, data: Any, store: DataStore, source_name: str = "sc-direct-ship") -> int:
        if isinstance(data, dict):
            entries = [{"orderId": data.get("orderId") or data.get("id") or "", "divider": data}]
        else:
            entries = as_records(data, store, "direct ship divider", source=source_name)

        seen: set = set()
        count = 0
        for entry in entries:
            order_id = str(entry.get("orderId") or entry.get("id") or "")
            divider = as_record(entry.get("divider"), store, "divider", order_id, source_name) or entry
            for girl in as_records(divider.get("girls"), store, "girl", order_id, source_name):
                parsed = self._girl_allocation(girl, order_id, seen, store, source_name)
                if parsed is None:
                    continue
                girl_id, varieties = parsed
                store.add_allocation(Allocation(
                    channel=AllocationChannel.DIRECT_SHIP,
                    source=AllocationSource.SMART_DIRECT_SHIP_DIVIDER,
                    girl_id=girl_id,
                    packages=sum_physical_packages(varieties),
                    donations=varieties.get(CookieType.COOKIE_SHARE, 0),
                    varieties=varieties,
                    order_id=order_id or None,
                ))
                count += 1
        logger.info("Imported %d direct ship allocations from %s", count, source_name)
        return count


class BoothDividerAdapter(_DividerAdapter):
    """Smart Booth Divider results, one entry per reservation"""

    pipeline_key = "sc_booth_allocations"
    source = "SC-BoothDivider"

    def load(self, file_path: Path, store: DataStore) -> int:
        return self.import_payload(self._read_json(file_path), store, source_name=file_path.name)

    def import_payload(self, data: Any, store: DataStore, source_name: str = "sc-booth-allocations") -> int:
        problems: List[Warning] = []
        validate_booth_dividers(data, problems, source=source_name)
        store.extend_warnings(problems)
        if not isinstance(data, list):
            return 0

        seen: set = set()
        count = 0
        for entry in data:
            # Entry and divider shapes were already reported by validate_booth_dividers
            if not isinstance(entry, dict):
                continue
            divider = entry.get("divider") if isinstance(entry.get("divider"), dict) else {}
            reservation_id = entry.get("reservationId")
            record_id = str(reservation_id) if reservation_id is not None else None

            raw_booth = as_record(entry.get("booth"), store, "booth", record_id, source_name)
            booth = raw_booth if raw_booth.get("booth_id") else (
                as_record(raw_booth.get("booth"), store, "booth", record_id, source_name) or raw_booth
            )
            timeslot = as_record(
                raw_booth.get("timeslot") or entry.get("timeslot"), store, "timeslot", record_id, source_name
            )

            for girl in as_records(divider.get("girls"), store, "girl", record_id, source_name):
                parsed = self._girl_allocation(girl, reservation_id, seen, store, source_name)
                if parsed is None:
                    continue
                girl_id, varieties = parsed
                store.add_allocation(Allocation(
                    channel=AllocationChannel.BOOTH,
                    source=AllocationSource.SMART_BOOTH_DIVIDER,
                    girl_id=girl_id,
                    packages=sum_physical_packages(varieties),
                    donations=varieties.get(CookieType.COOKIE_SHARE, 0),
                    varieties=varieties,
                    reservation_id=record_id,
                    store_name=booth.get("store_name") or booth.get("booth_name") or booth.get("location") or "",
                    date=timeslot.get("date") or "",
                    start_time=timeslot.get("start_time") or timeslot.get("startTime") or "",
                    end_time=timeslot.get("end_time") or timeslot.get("endTime") or "",
                    reservation_type=booth.get("reservation_type") or booth.get("type") or "",
                ))
                count += 1
        logger.info("Imported %d booth allocations from %s", count, source_name)
        return count


class CookieShareAdapter(BaseAdapter):
    """
    Virtual Cookie Share allocations entered by hand in Smart Cookie.
    Entries tied to a booth divider are skipped; the booth divider already
    carries them.
    """

    pipeline_key = "sc_cookie_shares"
    source = "SC-CookieShare"

    def load(self, file_path: Path, store: DataStore) -> int:
        return self.import_payload(self._read_json(file_path), store)

    def import_payload(self, data: Any, store: DataStore) -> int:
        count = 0
        for share in as_records(data, store, "cookie share", source=self.source):
            if share.get("smart_divider_id"):
                continue
            record_id = str(share.get("id") or "") or None
            for girl in as_records(share.get("girls"), store, "girl", record_id, self.source):
                girl_id = parse_int(girl.get("id"))
                if not girl_id:
                    continue
                name = girl_name(girl)
                if name:
                    store.register_scout(name, scout_id=girl_id)
                store.add_virtual_cookie_share(girl_id, parse_int(girl.get("quantity")))
                count += 1
        return count


class ReservationsAdapter(BaseAdapter):
    pipeline_key = "sc_reservations"
    source = "SC-Reservations"

    def load(self, file_path: Path, store: DataStore) -> int:
        return self.import_payload(self._read_json(file_path), store)

    def import_payload(self, data: Any, store: DataStore) -> int:
        reservations = data.get("reservations") if isinstance(data, dict) else data
        if not isinstance(reservations, list) or not reservations:
            return 0
        id_map = self._id_map(store)

        parsed: List[BoothReservation] = []
        for r in as_records(reservations, store, "reservation", source=self.source):
            reservation_id = str(r.get("id") or r.get("reservation_id") or "")
            booth = as_record(r.get("booth"), store, "booth", reservation_id, self.source)
            timeslot = as_record(r.get("timeslot"), store, "timeslot", reservation_id, self.source)
            cookies, total = parse_api_cookies(r.get("cookies"), id_map, store, record_id=reservation_id, source=self.source)
            parsed.append(BoothReservation(
                id=reservation_id,
                troop_id=str(r.get("troop_id") or ""),
                booth_id=str(booth.get("booth_id") or ""),
                store_name=booth.get("store_name") or "",
                address=booth.get("address") or "",
                reservation_type=booth.get("reservation_type") or "",
                is_distributed=bool(booth.get("is_distributed")),
                is_virtually_distributed=bool(booth.get("is_virtually_distributed")),
                date=timeslot.get("date") or "",
                start_time=timeslot.get("start_time") or "",
                end_time=timeslot.get("end_time") or "",
                cookies=cookies,
                total_packages=total,
                physical_packages=sum_physical_packages(cookies),
                tracked_cookie_share=cookies.get(CookieType.COOKIE_SHARE, 0),
            ))
        store.set_booth_reservations(parsed)
        return len(parsed)


def normalize_booth_location(
    loc: Mapping[str, Any],
    store: Optional[DataStore] = None,
    source: Optional[str] = None,
) -> BoothLocation:
    record_id = str(loc.get("id") or loc.get("booth_id") or "") or None
    addr = as_record(loc.get("address"), store, "address", record_id, source)
    available = []
    for d in as_records(loc.get("availableDates"), store, "available date", record_id, source):
        available.append({
            "date": d.get("date") or "",
            "timeSlots": [
                {"startTime": s.get("start_time") or s.get("startTime") or "",
                 "endTime": s.get("end_time") or s.get("endTime") or ""}
                for s in as_records(d.get("timeSlots"), store, "time slot", record_id, source)
            ],
        })
    return BoothLocation(
        id=parse_int(loc.get("id") or loc.get("booth_id")),
        store_name=loc.get("store_name") or loc.get("name") or "",
        street=addr.get("street") or addr.get("address_1") or "",
        city=addr.get("city") or "",
        state=addr.get("state") or "",
        zip=str(addr.get("zip") or addr.get("postal_code") or ""),
        reservation_type=loc.get("reservation_type") or "",
        notes=loc.get("notes") or "",
        available_dates=tuple(available),
    )


class BoothLocationsAdapter(BaseAdapter):
    pipeline_key = "sc_booth_locations"
    source = "SC-BoothLocations"

    def load(self, file_path: Path, store: DataStore) -> int:
        data = self._read_json(file_path)
        if not isinstance(data, list) or not data:
            return 0
        locations = [
            normalize_booth_location(loc, store, file_path.name)
            for loc in as_records(data, store, "booth location", source=file_path.name)
        ]
        store.set_booth_locations(locations)
        return len(locations)


class CookieIdMapAdapter(BaseAdapter):
    """{"<sc cookie id>": "<CookieType value or display name>"}"""

    pipeline_key = "sc_cookie_id_map"
    source = "SC-CookieIdMap"

    def load(self, file_path: Path, store: DataStore) -> int:
        data = self._read_json(file_path)
        if not isinstance(data, dict):
            raise ValueError("cookie id map must be a JSON object")
        id_map: Dict[int, CookieType] = {}
        for raw_id, name in data.items():
            variety = normalize_cookie_name(name)
            if variety is None:
                store.add_warning(
                    WarningType.UNKNOWN_VARIETY,
                    f'Cookie id {raw_id} maps to unknown variety "{name}"',
                    record_id=str(raw_id),
                    raw_value=str(name),
                    source=file_path.name,
                )
                continue
            id_map[parse_int(raw_id)] = variety
        store.set_cookie_id_map(id_map)
        return len(id_map)


# =============================================================================
# Adapter Registry
# =============================================================================

class AdapterRegistry:
    """Adapters in import order; the cookie id map must load first"""

    def __init__(self):
        self.adapters: List[BaseAdapter] = [
            CookieIdMapAdapter(),
            DigitalCookieAdapter(),
            SmartCookieOrdersAdapter(),
            DirectShipDividerAdapter(),
            CookieShareAdapter(),
            ReservationsAdapter(),
            BoothDividerAdapter(),
            BoothLocationsAdapter(),
        ]

    def get_adapter(self, file_path: Path) -> Optional[BaseAdapter]:
        for adapter in self.adapters:
            if adapter.can_handle(file_path):
                return adapter
        return None

    def import_pipeline(self, data_dir: Path, store: DataStore, files: Optional[Mapping[str, str]] = None) -> Dict[str, int]:
        """
        Load every pipeline file present in data_dir into the store.

        Missing or unreadable files are recorded as IMPORT_SKIPPED warnings.
        Returns records imported per pipeline key.
        """
        files = dict(files or PIPELINE_FILES)
        counts: Dict[str, int] = {}
        for adapter in self.adapters:
            path = Path(data_dir) / files[adapter.pipeline_key]
            if not path.exists():
                store.add_warning(
                    WarningType.IMPORT_SKIPPED,
                    f"{path.name} not found in {data_dir}",
                    raw_value=str(path),
                    source=adapter.source,
                )
                continue
            try:
                counts[adapter.pipeline_key] = adapter.load(path, store)
            except (OSError, ValueError) as e:
                logger.error("Failed reading %s: %s", path, e)
                store.add_warning(
                    WarningType.IMPORT_SKIPPED,
                    f"{path.name} could not be read: {e}",
                    raw_value=str(path),
                    source=adapter.source,
                )
        return counts


def import_pipeline(data_dir: Path, store: DataStore, files: Optional[Mapping[str, str]] = None) -> Dict[str, int]:
    return AdapterRegistry().import_pipeline(data_dir, store, files)
