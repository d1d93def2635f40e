"""
Season data accumulator.

Importers write into a DataStore one source at a time (single writer,
sequential). freeze() hands back an immutable DataSnapshot, the only thing
the engine accepts; any write after freezing raises FrozenDataStoreError.
"""
from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

import pytz

from .classification import classify_transfer_category, is_c2t_transfer
from .cookies import (
    CookieType,
    physical_varieties,
    sum_physical_packages,
)
from .health import record_warning
from .models import (
    SOURCE_METADATA_KEY,
    Allocation,
    AllocationChannel,
    AllocationSource,
    BoothLocation,
    BoothReservation,
    ImportSource,
    Order,
    RawScoutData,
    Transfer,
    TransferCategory,
    Warning,
    WarningType,
)
from .resolver import transfer_scout_name

logger = logging.getLogger(__name__)

# Order fields where the newest non-empty value wins
_DISPLAY_FIELDS = ("scout", "scout_id", "gsusa_id", "grade_level", "date", "dc_order_type", "status", "payment_status")

# Order fields compared across sources; a disagreement is an ORDER_CONFLICT
_COUNT_FIELDS = ("packages",)


class FrozenDataStoreError(RuntimeError):
    """Raised when a frozen DataStore is written to"""


def _read_only(mapping: Mapping[Any, Any]) -> Mapping[Any, Any]:
    return MappingProxyType(dict(mapping))


def _freeze_record(record):
    """Copy of an input record whose mapping fields are read-only views"""
    changes: Dict[str, Any] = {}
    for name in ("varieties", "physical_varieties", "cookies"):
        if hasattr(record, name):
            changes[name] = _read_only(getattr(record, name))
    if isinstance(record, Order):
        changes["metadata"] = MappingProxyType({
            key: _read_only(row) if isinstance(row, Mapping) else row
            for key, row in record.metadata.items()
        })
    return dataclasses.replace(record, **changes)


@dataclass(frozen=True)
class DataSnapshot:
    """Read-only view of a finished accumulation. Built only by DataStore.freeze()."""
    orders: Tuple[Order, ...] = ()
    transfers: Tuple[Transfer, ...] = ()
    allocations: Tuple[Allocation, ...] = ()
    scouts: Mapping[str, RawScoutData] = field(default_factory=lambda: MappingProxyType({}))
    raw_dc_rows: Tuple[Mapping[str, Any], ...] = ()
    troop_number: Optional[str] = None
    virtual_cookie_shares: Mapping[int, int] = field(default_factory=lambda: MappingProxyType({}))
    booth_reservations: Tuple[BoothReservation, ...] = ()
    booth_locations: Tuple[BoothLocation, ...] = ()
    cookie_id_map: Mapping[int, CookieType] = field(default_factory=lambda: MappingProxyType({}))
    last_import_dc: Optional[str] = None
    last_import_sc: Optional[str] = None
    last_import_sc_report: Optional[str] = None
    sources: Tuple[ImportSource, ...] = ()
    warnings: Tuple[Warning, ...] = ()
    # Display name -> write sequence of its most recent import
    name_sequence: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "orders": [o.to_dict() for o in self.orders],
            "transfers": [t.to_dict() for t in self.transfers],
            "allocations": [a.to_dict() for a in self.allocations],
            "scouts": [s.to_dict() for s in self.scouts.values()],
            "rawDCRows": [dict(r) for r in self.raw_dc_rows],
            "troopNumber": self.troop_number,
            "virtualCookieShares": {str(k): v for k, v in self.virtual_cookie_shares.items()},
            "boothReservations": [r.to_dict() for r in self.booth_reservations],
            "boothLocations": [loc.to_dict() for loc in self.booth_locations],
            "metadata": {
                "lastImportDC": self.last_import_dc,
                "lastImportSC": self.last_import_sc,
                "lastImportSCReport": self.last_import_sc_report,
                "cookieIdMap": {str(k): v.value for k, v in self.cookie_id_map.items()},
                "sources": [s.to_dict() for s in self.sources],
                "warnings": [w.to_dict() for w in self.warnings],
                "nameSequence": dict(self.name_sequence),
            },
        }


class DataStore:
    """
    Mutable, season-scoped accumulator of normalized but unreconciled records.
    """

    def __init__(self, troop_number: Optional[str] = None):
        self.troop_number: Optional[str] = troop_number
        self._orders: Dict[str, Order] = {}
        self._transfers: List[Transfer] = []
        self._allocations: List[Allocation] = []
        self._scouts: Dict[str, RawScoutData] = {}
        self._raw_dc_rows: List[Dict[str, Any]] = []
        self._virtual_cookie_shares: Dict[int, int] = {}
        self._booth_reservations: List[BoothReservation] = []
        self._booth_locations: List[BoothLocation] = []
        self._cookie_id_map: Dict[int, CookieType] = {}
        self._last_import: Dict[str, Optional[str]] = {"dc": None, "sc": None, "sc_report": None}
        self._sources: List[ImportSource] = []
        self._warnings: List[Warning] = []
        self._name_sequence: Dict[str, int] = {}
        self._sequence = 0
        self._snapshot: Optional[DataSnapshot] = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def frozen(self) -> bool:
        return self._snapshot is not None

    def _check_writable(self) -> None:
        if self._snapshot is not None:
            raise FrozenDataStoreError("DataStore is frozen; start a new DataStore for the next sync")

    @property
    def orders(self) -> Mapping[str, Order]:
        return MappingProxyType(self._orders)

    @property
    def transfers(self) -> Tuple[Transfer, ...]:
        return tuple(self._transfers)

    @property
    def allocations(self) -> Tuple[Allocation, ...]:
        return tuple(self._allocations)

    @property
    def scouts(self) -> Mapping[str, RawScoutData]:
        return MappingProxyType(self._scouts)

    @property
    def warnings(self) -> Tuple[Warning, ...]:
        return tuple(self._warnings)

    @property
    def cookie_id_map(self) -> Mapping[int, CookieType]:
        return MappingProxyType(self._cookie_id_map)

    def set_troop_number(self, troop_number: Optional[str]) -> None:
        self._check_writable()
        self.troop_number = troop_number

    def add_warning(self, warning_type: WarningType, message: str, **context: Any) -> Warning:
        self._check_writable()
        return record_warning(self._warnings, warning_type, message, **context)

    def extend_warnings(self, warnings: List[Warning]) -> None:
        """Adopt warnings an importer already recorded (and logged)"""
        self._check_writable()
        self._warnings.extend(warnings)

    def _stamp_name(self, name: Optional[str]) -> None:
        name = (name or "").strip()
        if name:
            self._sequence += 1
            self._name_sequence[name] = self._sequence

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def merge_or_create_order(self, order: Order, source: str, raw_data: Optional[Dict[str, Any]] = None) -> Order:
        """
        Store an order, merging into an existing one with the same number.

        Display fields are last-writer-wins but an empty value never
        overwrites a known one. Package counts that disagree between sources
        keep the first value and raise an ORDER_CONFLICT warning.
        """
        self._check_writable()
        self._stamp_name(order.scout)
        metadata_key = SOURCE_METADATA_KEY.get(source, source)
        existing = self._orders.get(order.order_number)

        if existing is None:
            stored = dataclasses.replace(
                order,
                sources=(source,),
                metadata={metadata_key: dict(raw_data or {})},
            )
            self._orders[order.order_number] = stored
            return stored

        changes: Dict[str, Any] = {}
        for name in _DISPLAY_FIELDS:
            value = getattr(order, name)
            if value not in (None, ""):
                changes[name] = value

        for name in _COUNT_FIELDS:
            old, new = getattr(existing, name), getattr(order, name)
            if old and new and old != new:
                self.add_warning(
                    WarningType.ORDER_CONFLICT,
                    f"Order {order.order_number}: {name} differs between sources ({old} vs {new} from {source})",
                    record_id=order.order_number,
                    raw_value=str(new),
                    scout=existing.scout or order.scout,
                    source=source,
                )
            elif not old and new:
                changes[name] = new

        if not existing.physical_packages and order.physical_packages:
            changes["physical_packages"] = order.physical_packages
        if not existing.amount and order.amount:
            changes["amount"] = order.amount
        if not existing.varieties and order.varieties:
            changes["varieties"] = dict(order.varieties)

        sources = existing.sources if source in existing.sources else existing.sources + (source,)
        metadata = dict(existing.metadata)
        metadata[metadata_key] = dict(raw_data or {})

        merged = dataclasses.replace(existing, sources=sources, metadata=metadata, **changes)
        self._orders[order.order_number] = merged
        return merged

    # ------------------------------------------------------------------
    # Transfers and allocations
    # ------------------------------------------------------------------

    def add_transfer(
        self,
        transfer_type: str,
        date: str = "",
        order_number: str = "",
        sender: str = "",
        to: str = "",
        packages: int = 0,
        cases: int = 0,
        varieties: Optional[Mapping[CookieType, int]] = None,
        amount: float = 0.0,
        status: str = "",
        submittable: bool = False,
        approvable: bool = False,
        virtual_booth: bool = False,
        booth_divider: bool = False,
        direct_ship_divider: bool = False,
    ) -> Transfer:
        """Classify and store one Smart Cookie transfer record"""
        self._check_writable()
        varieties = dict(varieties or {})

        if is_c2t_transfer(transfer_type) and to and not self.troop_number:
            self.troop_number = to

        category = classify_transfer_category(
            transfer_type,
            virtual_booth=virtual_booth,
            booth_divider=booth_divider,
            direct_ship_divider=direct_ship_divider,
            sender=sender,
            troop_number=self.troop_number,
        )
        if category == TransferCategory.UNKNOWN:
            logger.debug("Transfer %s has unrecognised type %r", order_number, transfer_type)
        if transfer_type == "T2T" and not self.troop_number:
            self.add_warning(
                WarningType.VALIDATION,
                f"T2T {order_number or '(no number)'} from {sender or '?'} arrived before the troop number "
                "was known; counted as incoming",
                record_id=str(order_number or "") or None,
                raw_value=sender or None,
            )

        transfer = Transfer(
            type=transfer_type or "",
            category=category,
            date=date or "",
            order_number=str(order_number or ""),
            from_=sender or "",
            to=to or "",
            packages=packages,
            physical_packages=sum_physical_packages(varieties),
            cases=cases,
            varieties=varieties,
            physical_varieties=physical_varieties(varieties),
            amount=amount,
            status=status or "",
            submittable=submittable,
            approvable=approvable,
        )
        self._transfers.append(transfer)
        self._stamp_name(transfer_scout_name(transfer))

        # Virtual booth credit lives on the transfer; mirror it as an allocation
        if category == TransferCategory.VIRTUAL_BOOTH_ALLOCATION:
            self._allocations.append(Allocation(
                channel=AllocationChannel.VIRTUAL_BOOTH,
                source=AllocationSource.VIRTUAL_BOOTH_TRANSFER,
                scout=transfer.to,
                packages=transfer.physical_packages,
                donations=varieties.get(CookieType.COOKIE_SHARE, 0),
                varieties=dict(varieties),
                order_id=transfer.order_number or None,
                date=transfer.date,
            ))
        return transfer

    def add_allocation(self, allocation: Allocation) -> None:
        self._check_writable()
        self._allocations.append(allocation)
        self._stamp_name(allocation.scout)

    # ------------------------------------------------------------------
    # Scouts and supplemental data
    # ------------------------------------------------------------------

    def register_scout(self, name: str, **fields: Any) -> Optional[RawScoutData]:
        """Register a scout by name; known fields are never overwritten with None"""
        self._check_writable()
        name = (name or "").strip()
        if not name:
            return None
        scout = self._scouts.get(name) or RawScoutData(name=name)
        updates = {k: v for k, v in fields.items() if v is not None and v != ""}
        scout = dataclasses.replace(scout, **updates)
        self._scouts[name] = scout
        self._stamp_name(name)
        return scout

    def add_raw_dc_rows(self, rows: List[Dict[str, Any]]) -> None:
        self._check_writable()
        self._raw_dc_rows.extend(dict(r) for r in rows)

    def add_virtual_cookie_share(self, girl_id: int, quantity: int) -> None:
        self._check_writable()
        self._virtual_cookie_shares[girl_id] = self._virtual_cookie_shares.get(girl_id, 0) + quantity

    def set_booth_reservations(self, reservations: List[BoothReservation]) -> None:
        self._check_writable()
        self._booth_reservations = list(reservations)

    def set_booth_locations(self, locations: List[BoothLocation]) -> None:
        self._check_writable()
        self._booth_locations = list(locations)

    def set_cookie_id_map(self, cookie_id_map: Mapping[int, CookieType]) -> None:
        self._check_writable()
        self._cookie_id_map = dict(cookie_id_map)

    def record_import(self, source: str, records: int, timestamp_field: str, when: Optional[str] = None) -> None:
        """Stamp the last-import time for a source and log it in the sources list"""
        self._check_writable()
        if timestamp_field not in self._last_import:
            raise ValueError(f"Unknown import timestamp field: {timestamp_field}")
        when = when or datetime.now(pytz.utc).isoformat()
        self._last_import[timestamp_field] = when
        self._sources.append(ImportSource(type=source, date=when, records=records))
        logger.debug("Imported %d records from %s", records, source)

    # ------------------------------------------------------------------
    # Freeze / persistence
    # ------------------------------------------------------------------

    def freeze(self) -> DataSnapshot:
        """End the accumulation phase and return the read-only snapshot"""
        if self._snapshot is None:
            self._snapshot = DataSnapshot(
                orders=tuple(_freeze_record(o) for o in self._orders.values()),
                transfers=tuple(_freeze_record(t) for t in self._transfers),
                allocations=tuple(_freeze_record(a) for a in self._allocations),
                scouts=MappingProxyType(dict(self._scouts)),
                raw_dc_rows=tuple(MappingProxyType(dict(r)) for r in self._raw_dc_rows),
                troop_number=self.troop_number,
                virtual_cookie_shares=MappingProxyType(dict(self._virtual_cookie_shares)),
                booth_reservations=tuple(_freeze_record(r) for r in self._booth_reservations),
                booth_locations=tuple(self._booth_locations),
                cookie_id_map=MappingProxyType(dict(self._cookie_id_map)),
                last_import_dc=self._last_import["dc"],
                last_import_sc=self._last_import["sc"],
                last_import_sc_report=self._last_import["sc_report"],
                sources=tuple(self._sources),
                warnings=tuple(self._warnings),
                name_sequence=_read_only(self._name_sequence),
            )
            logger.debug(
                "Froze DataStore: %d orders, %d transfers, %d allocations",
                len(self._orders), len(self._transfers), len(self._allocations),
            )
        return self._snapshot

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DataStore":
        """Rebuild an (unfrozen) store from DataSnapshot.to_dict() output"""
        store = cls(troop_number=data.get("troopNumber"))
        for item in data.get("orders") or []:
            order = Order.from_dict(item)
            store._orders[order.order_number] = order
        store._transfers = [Transfer.from_dict(t) for t in data.get("transfers") or []]
        store._allocations = [Allocation.from_dict(a) for a in data.get("allocations") or []]
        for item in data.get("scouts") or []:
            scout = RawScoutData.from_dict(item)
            store._scouts[scout.name] = scout
        store._raw_dc_rows = [dict(r) for r in data.get("rawDCRows") or []]
        store._virtual_cookie_shares = {int(k): int(v) for k, v in (data.get("virtualCookieShares") or {}).items()}
        store._booth_reservations = [BoothReservation.from_dict(r) for r in data.get("boothReservations") or []]
        store._booth_locations = [BoothLocation.from_dict(loc) for loc in data.get("boothLocations") or []]

        metadata = data.get("metadata") or {}
        store._cookie_id_map = {int(k): CookieType(v) for k, v in (metadata.get("cookieIdMap") or {}).items()}
        store._last_import = {
            "dc": metadata.get("lastImportDC"),
            "sc": metadata.get("lastImportSC"),
            "sc_report": metadata.get("lastImportSCReport"),
        }
        store._sources = [
            ImportSource(type=s["type"], date=s["date"], records=int(s["records"]))
            for s in metadata.get("sources") or []
        ]
        store._warnings = [Warning.from_dict(w) for w in metadata.get("warnings") or []]
        store._name_sequence = {str(k): int(v) for k, v in (metadata.get("nameSequence") or {}).items()}
        store._sequence = max(store._name_sequence.values(), default=0)
        return store
