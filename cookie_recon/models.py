"""
Cookie Tracker Data Models

This module defines the data structures shared by the accumulator and the
unification engine:
- Input records (Order, Transfer, Allocation, ...) written by importers
- Closed enumerations for every loosely-typed vendor string
- Result records (Scout, TroopTotals, ...) assembled into one UnifiedDataset

Key concepts:
- Input records are frozen; the engine derives new values, never edits them
- Every vendor string is classified into an enum with an explicit UNKNOWN
- Anomalies are Warning records, never exceptions
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .cookies import CookieType, varieties_from_dict, varieties_to_dict


# =============================================================================
# Enums
# =============================================================================

class Source(str, Enum):
    """Data source identifiers"""
    DIGITAL_COOKIE = "DC"
    SMART_COOKIE = "SC"
    SMART_COOKIE_REPORT = "SC-Report"
    SMART_COOKIE_API = "SC-API"


# Order.metadata key for each source's raw row
SOURCE_METADATA_KEY: Dict[str, str] = {
    Source.DIGITAL_COOKIE.value: "dc",
    Source.SMART_COOKIE.value: "sc",
    Source.SMART_COOKIE_REPORT.value: "scReport",
    Source.SMART_COOKIE_API.value: "scApi",
}


class Owner(str, Enum):
    """Who the sale belongs to"""
    GIRL = "GIRL"
    TROOP = "TROOP"


class OrderType(str, Enum):
    """How the sale was made"""
    DELIVERY = "DELIVERY"          # Online order delivered in person by the scout
    DIRECT_SHIP = "DIRECT_SHIP"    # Shipped by the supplier, no local inventory
    BOOTH = "BOOTH"                # Troop booth sale
    IN_HAND = "IN_HAND"            # Door-to-door with cookies in hand
    DONATION = "DONATION"          # Cookie Share only
    UNKNOWN = "UNKNOWN"


class PaymentMethod(str, Enum):
    CREDIT_CARD = "CREDIT_CARD"
    VENMO = "VENMO"
    CASH = "CASH"
    UNKNOWN = "UNKNOWN"


class OrderStatusClass(str, Enum):
    NEEDS_APPROVAL = "NEEDS_APPROVAL"
    COMPLETED = "COMPLETED"
    PENDING = "PENDING"
    UNKNOWN = "UNKNOWN"


class TransferCategory(str, Enum):
    """Every transfer gets exactly one category at creation time"""
    # Inventory movements
    COUNCIL_TO_TROOP = "COUNCIL_TO_TROOP"                  # C2T, C2T(P), PLANNED, incoming T2T
    TROOP_OUTGOING = "TROOP_OUTGOING"                      # T2T sent by this troop
    GIRL_PICKUP = "GIRL_PICKUP"                            # T2G physical pickup
    VIRTUAL_BOOTH_ALLOCATION = "VIRTUAL_BOOTH_ALLOCATION"  # T2G virtual booth
    BOOTH_SALES_ALLOCATION = "BOOTH_SALES_ALLOCATION"      # T2G booth divider
    DIRECT_SHIP_ALLOCATION = "DIRECT_SHIP_ALLOCATION"      # T2G direct ship divider
    GIRL_RETURN = "GIRL_RETURN"                            # G2T
    # Sales records the vendor API reports through the same endpoint
    DC_ORDER_RECORD = "DC_ORDER_RECORD"
    COOKIE_SHARE_RECORD = "COOKIE_SHARE_RECORD"
    BOOTH_COOKIE_SHARE = "BOOTH_COOKIE_SHARE"
    DIRECT_SHIP = "DIRECT_SHIP"
    UNKNOWN = "UNKNOWN"


# Bucket membership for the troop conservation figures
C2T_CATEGORIES = frozenset({TransferCategory.COUNCIL_TO_TROOP})
T2T_OUT_CATEGORIES = frozenset({TransferCategory.TROOP_OUTGOING})
T2G_CATEGORIES = frozenset({
    TransferCategory.GIRL_PICKUP,
    TransferCategory.VIRTUAL_BOOTH_ALLOCATION,
    TransferCategory.BOOTH_SALES_ALLOCATION,
})
G2T_CATEGORIES = frozenset({TransferCategory.GIRL_RETURN})

# Known categories that never move troop stock
NON_BUCKET_CATEGORIES = frozenset({
    TransferCategory.DIRECT_SHIP_ALLOCATION,
    TransferCategory.DC_ORDER_RECORD,
    TransferCategory.COOKIE_SHARE_RECORD,
    TransferCategory.BOOTH_COOKIE_SHARE,
    TransferCategory.DIRECT_SHIP,
})


class AllocationChannel(str, Enum):
    BOOTH = "booth"
    DIRECT_SHIP = "directShip"
    VIRTUAL_BOOTH = "virtualBooth"


class AllocationSource(str, Enum):
    DIRECT_SHIP_DIVIDER = "DirectShipDivider"
    SMART_BOOTH_DIVIDER = "SmartBoothDivider"
    SMART_DIRECT_SHIP_DIVIDER = "SmartDirectShipDivider"
    VIRTUAL_BOOTH_TRANSFER = "VirtualBoothTransfer"


class WarningType(str, Enum):
    """Anomaly categories surfaced through UnifiedDataset.warnings"""
    UNKNOWN_ORDER_TYPE = "UNKNOWN_ORDER_TYPE"
    UNKNOWN_PAYMENT_METHOD = "UNKNOWN_PAYMENT_METHOD"
    UNKNOWN_TRANSFER_TYPE = "UNKNOWN_TRANSFER_TYPE"
    UNKNOWN_VARIETY = "UNKNOWN_VARIETY"
    UNRESOLVED_SCOUT = "UNRESOLVED_SCOUT"
    AMBIGUOUS_SCOUT_NAME = "AMBIGUOUS_SCOUT_NAME"
    ORDER_CONFLICT = "ORDER_CONFLICT"
    SC_ONLY_ORDER = "SC_ONLY_ORDER"
    NEGATIVE_INVENTORY = "NEGATIVE_INVENTORY"
    CONSERVATION_MISMATCH = "CONSERVATION_MISMATCH"
    IMPORT_SKIPPED = "IMPORT_SKIPPED"
    VALIDATION = "VALIDATION"


# =============================================================================
# Input Records
# =============================================================================

@dataclass(frozen=True)
class Warning:
    """
    One anomaly. Carries enough context (record id, offending raw value)
    for an operator to find the source record.
    """
    type: WarningType
    message: str
    record_id: Optional[str] = None   # Order number, transfer order number, girl id
    raw_value: Optional[str] = None   # The vendor string that failed to classify
    scout: Optional[str] = None
    source: Optional[str] = None      # File or importer that produced the record

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "message": self.message,
            "recordId": self.record_id,
            "rawValue": self.raw_value,
            "scout": self.scout,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Warning":
        return cls(
            type=WarningType(data["type"]),
            message=data.get("message", ""),
            record_id=data.get("recordId"),
            raw_value=data.get("rawValue"),
            scout=data.get("scout"),
            source=data.get("source"),
        )


@dataclass(frozen=True)
class Order:
    """
    One storefront or manual sale. Raw vendor strings are kept as imported;
    order_type / owner / payment_method are filled in by the engine.
    """
    order_number: str
    scout: str = ""                          # Display name as the source spelled it
    scout_id: Optional[str] = None           # Vendor girl id, when the source has one
    gsusa_id: Optional[str] = None
    grade_level: Optional[str] = None
    date: str = ""
    dc_order_type: str = ""                  # e.g. "Shipped with Donation"
    order_type: Optional[OrderType] = None
    owner: Owner = Owner.GIRL
    needs_inventory: bool = False
    packages: int = 0
    physical_packages: int = 0
    donations: int = 0
    amount: float = 0.0
    status: str = ""
    payment_status: str = ""
    payment_method: Optional[PaymentMethod] = None
    varieties: Dict[CookieType, int] = field(default_factory=dict)
    sources: Tuple[str, ...] = ()
    metadata: Dict[str, Any] = field(default_factory=dict)   # source key -> raw row

    def to_dict(self) -> Dict[str, Any]:
        return {
            "orderNumber": self.order_number,
            "scout": self.scout,
            "scoutId": self.scout_id,
            "gsusaId": self.gsusa_id,
            "gradeLevel": self.grade_level,
            "date": self.date,
            "dcOrderType": self.dc_order_type,
            "orderType": self.order_type.value if self.order_type else None,
            "owner": self.owner.value,
            "needsInventory": self.needs_inventory,
            "packages": self.packages,
            "physicalPackages": self.physical_packages,
            "donations": self.donations,
            "amount": self.amount,
            "status": self.status,
            "paymentStatus": self.payment_status,
            "paymentMethod": self.payment_method.value if self.payment_method else None,
            "varieties": varieties_to_dict(self.varieties),
            "sources": list(self.sources),
            "metadata": {k: dict(v) if isinstance(v, Mapping) else v for k, v in self.metadata.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Order":
        return cls(
            order_number=str(data["orderNumber"]),
            scout=data.get("scout") or "",
            scout_id=data.get("scoutId"),
            gsusa_id=data.get("gsusaId"),
            grade_level=data.get("gradeLevel"),
            date=data.get("date") or "",
            dc_order_type=data.get("dcOrderType") or "",
            order_type=OrderType(data["orderType"]) if data.get("orderType") else None,
            owner=Owner(data.get("owner") or Owner.GIRL.value),
            needs_inventory=bool(data.get("needsInventory", False)),
            packages=int(data.get("packages") or 0),
            physical_packages=int(data.get("physicalPackages") or 0),
            donations=int(data.get("donations") or 0),
            amount=float(data.get("amount") or 0.0),
            status=data.get("status") or "",
            payment_status=data.get("paymentStatus") or "",
            payment_method=PaymentMethod(data["paymentMethod"]) if data.get("paymentMethod") else None,
            varieties=varieties_from_dict(data.get("varieties")),
            sources=tuple(data.get("sources") or ()),
            metadata=dict(data.get("metadata") or {}),
        )


@dataclass(frozen=True)
class Transfer:
    """One Smart Cookie inventory movement or sales record"""
    type: str                                # Raw vendor type, e.g. "C2T(P)"
    category: TransferCategory
    date: str = ""
    order_number: str = ""
    from_: str = ""
    to: str = ""
    packages: int = 0
    physical_packages: int = 0
    cases: int = 0
    varieties: Dict[CookieType, int] = field(default_factory=dict)
    physical_varieties: Dict[CookieType, int] = field(default_factory=dict)
    amount: float = 0.0
    status: str = ""                         # e.g. "SAVED" while pending
    submittable: bool = False
    approvable: bool = False

    @property
    def is_pending(self) -> bool:
        return self.submittable or self.approvable

    @property
    def is_t2t_in(self) -> bool:
        return self.type == "T2T" and self.category == TransferCategory.COUNCIL_TO_TROOP

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "category": self.category.value,
            "date": self.date,
            "orderNumber": self.order_number,
            "from": self.from_,
            "to": self.to,
            "packages": self.packages,
            "physicalPackages": self.physical_packages,
            "cases": self.cases,
            "varieties": varieties_to_dict(self.varieties),
            "physicalVarieties": varieties_to_dict(self.physical_varieties),
            "amount": self.amount,
            "status": self.status,
            "actions": {"submittable": self.submittable, "approvable": self.approvable},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Transfer":
        actions = data.get("actions") or {}
        return cls(
            type=data.get("type") or "",
            category=TransferCategory(data.get("category") or TransferCategory.UNKNOWN.value),
            date=data.get("date") or "",
            order_number=str(data.get("orderNumber") or ""),
            from_=data.get("from") or "",
            to=data.get("to") or "",
            packages=int(data.get("packages") or 0),
            physical_packages=int(data.get("physicalPackages") or 0),
            cases=int(data.get("cases") or 0),
            varieties=varieties_from_dict(data.get("varieties")),
            physical_varieties=varieties_from_dict(data.get("physicalVarieties")),
            amount=float(data.get("amount") or 0.0),
            status=data.get("status") or "",
            submittable=bool(actions.get("submittable", False)),
            approvable=bool(actions.get("approvable", False)),
        )


@dataclass(frozen=True)
class Allocation:
    """
    A credited allocation from one of three channels. Divider allocations
    identify the scout by girl_id; virtual booth transfers by name.
    """
    channel: AllocationChannel
    source: AllocationSource
    girl_id: Optional[int] = None
    scout: Optional[str] = None
    packages: int = 0                        # Physical packages
    donations: int = 0                       # Cookie Share
    varieties: Dict[CookieType, int] = field(default_factory=dict)
    # Channel specific
    reservation_id: Optional[str] = None
    order_id: Optional[str] = None
    store_name: str = ""
    date: str = ""
    start_time: str = ""
    end_time: str = ""
    reservation_type: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "channel": self.channel.value,
            "source": self.source.value,
            "girlId": self.girl_id,
            "scout": self.scout,
            "packages": self.packages,
            "donations": self.donations,
            "varieties": varieties_to_dict(self.varieties),
            "reservationId": self.reservation_id,
            "orderId": self.order_id,
            "storeName": self.store_name,
            "date": self.date,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "reservationType": self.reservation_type,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Allocation":
        return cls(
            channel=AllocationChannel(data["channel"]),
            source=AllocationSource(data["source"]),
            girl_id=data.get("girlId"),
            scout=data.get("scout"),
            packages=int(data.get("packages") or 0),
            donations=int(data.get("donations") or 0),
            varieties=varieties_from_dict(data.get("varieties")),
            reservation_id=data.get("reservationId"),
            order_id=data.get("orderId"),
            store_name=data.get("storeName") or "",
            date=data.get("date") or "",
            start_time=data.get("startTime") or "",
            end_time=data.get("endTime") or "",
            reservation_type=data.get("reservationType") or "",
        )


@dataclass(frozen=True)
class RawScoutData:
    """Identity facts about one scout as registered by an importer"""
    name: str
    scout_id: Optional[int] = None
    gsusa_id: Optional[str] = None
    grade_level: Optional[str] = None
    service_unit: Optional[str] = None
    troop_id: Optional[str] = None
    council: Optional[str] = None
    district: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "scoutId": self.scout_id,
            "gsusaId": self.gsusa_id,
            "gradeLevel": self.grade_level,
            "serviceUnit": self.service_unit,
            "troopId": self.troop_id,
            "council": self.council,
            "district": self.district,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RawScoutData":
        return cls(
            name=data["name"],
            scout_id=data.get("scoutId"),
            gsusa_id=data.get("gsusaId"),
            grade_level=data.get("gradeLevel"),
            service_unit=data.get("serviceUnit"),
            troop_id=data.get("troopId"),
            council=data.get("council"),
            district=data.get("district"),
        )


@dataclass(frozen=True)
class BoothReservation:
    id: str
    troop_id: str = ""
    booth_id: str = ""
    store_name: str = ""
    address: str = ""
    reservation_type: str = ""
    is_distributed: bool = False
    is_virtually_distributed: bool = False
    date: str = ""
    start_time: str = ""
    end_time: str = ""
    cookies: Dict[CookieType, int] = field(default_factory=dict)
    total_packages: int = 0
    physical_packages: int = 0
    tracked_cookie_share: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "troopId": self.troop_id,
            "booth": {
                "boothId": self.booth_id,
                "storeName": self.store_name,
                "address": self.address,
                "reservationType": self.reservation_type,
                "isDistributed": self.is_distributed,
                "isVirtuallyDistributed": self.is_virtually_distributed,
            },
            "timeslot": {"date": self.date, "startTime": self.start_time, "endTime": self.end_time},
            "cookies": varieties_to_dict(self.cookies),
            "totalPackages": self.total_packages,
            "physicalPackages": self.physical_packages,
            "trackedCookieShare": self.tracked_cookie_share,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BoothReservation":
        booth = data.get("booth") or {}
        timeslot = data.get("timeslot") or {}
        return cls(
            id=str(data.get("id") or ""),
            troop_id=str(data.get("troopId") or ""),
            booth_id=str(booth.get("boothId") or ""),
            store_name=booth.get("storeName") or "",
            address=booth.get("address") or "",
            reservation_type=booth.get("reservationType") or "",
            is_distributed=bool(booth.get("isDistributed", False)),
            is_virtually_distributed=bool(booth.get("isVirtuallyDistributed", False)),
            date=timeslot.get("date") or "",
            start_time=timeslot.get("startTime") or "",
            end_time=timeslot.get("endTime") or "",
            cookies=varieties_from_dict(data.get("cookies")),
            total_packages=int(data.get("totalPackages") or 0),
            physical_packages=int(data.get("physicalPackages") or 0),
            tracked_cookie_share=int(data.get("trackedCookieShare") or 0),
        )


@dataclass(frozen=True)
class BoothLocation:
    id: int
    store_name: str = ""
    street: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    reservation_type: str = ""
    notes: str = ""
    available_dates: Tuple[Dict[str, Any], ...] = ()   # {date, timeSlots: [{startTime, endTime}]}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "storeName": self.store_name,
            "address": {"street": self.street, "city": self.city, "state": self.state, "zip": self.zip},
            "reservationType": self.reservation_type,
            "notes": self.notes,
            "availableDates": [dict(d) for d in self.available_dates],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BoothLocation":
        address = data.get("address") or {}
        return cls(
            id=int(data.get("id") or 0),
            store_name=data.get("storeName") or "",
            street=address.get("street") or "",
            city=address.get("city") or "",
            state=address.get("state") or "",
            zip=address.get("zip") or "",
            reservation_type=data.get("reservationType") or "",
            notes=data.get("notes") or "",
            available_dates=tuple(data.get("availableDates") or ()),
        )


@dataclass(frozen=True)
class ImportSource:
    type: str
    date: str
    records: int

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "date": self.date, "records": self.records}


# =============================================================================
# Result Records
# =============================================================================

@dataclass
class ScoutFinancials:
    cash_collected: float = 0.0
    electronic_payments: float = 0.0
    inventory_value: float = 0.0
    unsold_value: float = 0.0
    cash_owed: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cashCollected": round(self.cash_collected, 2),
            "electronicPayments": round(self.electronic_payments, 2),
            "inventoryValue": round(self.inventory_value, 2),
            "unsoldValue": round(self.unsold_value, 2),
            "cashOwed": round(self.cash_owed, 2),
        }


@dataclass
class AllocationSummary:
    """Per-channel credited totals for one scout"""
    packages: int = 0
    donations: int = 0
    varieties: Dict[CookieType, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "packages": self.packages,
            "donations": self.donations,
            "varieties": varieties_to_dict(self.varieties),
        }


@dataclass
class ScoutTotals:
    orders: int = 0
    delivered: int = 0            # Physical packages the scout delivered from inventory
    shipped: int = 0              # Scout's own direct ship orders
    donations: int = 0            # Cookie Share from the scout's orders
    credited: int = 0             # Booth + direct ship + virtual booth allocations
    total_sold: int = 0
    inventory: int = 0
    received: int = 0             # Pickups minus returns
    financials: ScoutFinancials = field(default_factory=ScoutFinancials)
    inventory_display: Dict[CookieType, int] = field(default_factory=dict)
    sales_by_variety: Dict[CookieType, int] = field(default_factory=dict)
    shipped_by_variety: Dict[CookieType, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "orders": self.orders,
            "delivered": self.delivered,
            "shipped": self.shipped,
            "donations": self.donations,
            "credited": self.credited,
            "totalSold": self.total_sold,
            "inventory": self.inventory,
            "received": self.received,
            "financials": self.financials.to_dict(),
            "inventoryDisplay": varieties_to_dict(self.inventory_display),
            "salesByVariety": varieties_to_dict(self.sales_by_variety),
            "shippedByVariety": varieties_to_dict(self.shipped_by_variety),
        }


@dataclass(frozen=True)
class NegativeInventoryIssue:
    variety: CookieType
    inventory: int
    sales: int
    shortfall: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "variety": self.variety.value,
            "inventory": self.inventory,
            "sales": self.sales,
            "shortfall": self.shortfall,
        }


@dataclass
class ScoutInventory:
    total: int = 0
    varieties: Dict[CookieType, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"total": self.total, "varieties": varieties_to_dict(self.varieties)}


def _empty_channels() -> Dict[AllocationChannel, Any]:
    return {channel: [] for channel in AllocationChannel}


def _empty_summaries() -> Dict[AllocationChannel, AllocationSummary]:
    return {channel: AllocationSummary() for channel in AllocationChannel}


@dataclass
class Scout:
    """
    Canonical per-scout record. Shells come out of the resolver with
    identity only; the aggregation stages fill in the rest.
    """
    key: str
    name: str
    first_name: str = ""
    last_name: str = ""
    girl_id: Optional[int] = None
    gsusa_id: Optional[str] = None
    grade_level: Optional[str] = None
    service_unit: Optional[str] = None
    is_site_order: bool = False
    orders: List[Order] = field(default_factory=list)
    inventory: ScoutInventory = field(default_factory=ScoutInventory)
    allocations: List[Allocation] = field(default_factory=list)
    allocations_by_channel: Dict[AllocationChannel, List[Allocation]] = field(default_factory=_empty_channels)
    allocation_summary: Dict[AllocationChannel, AllocationSummary] = field(default_factory=_empty_summaries)
    totals: ScoutTotals = field(default_factory=ScoutTotals)
    negative_inventory: List[NegativeInventoryIssue] = field(default_factory=list)
    has_unallocated_site_orders: bool = False

    @property
    def total_credited(self) -> int:
        return sum(s.packages + s.donations for s in self.allocation_summary.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "name": self.name,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "girlId": self.girl_id,
            "gsusaId": self.gsusa_id,
            "gradeLevel": self.grade_level,
            "serviceUnit": self.service_unit,
            "isSiteOrder": self.is_site_order,
            "orders": [o.to_dict() for o in self.orders],
            "inventory": self.inventory.to_dict(),
            "allocations": [a.to_dict() for a in self.allocations],
            "allocationsByChannel": {
                c.value: [a.to_dict() for a in allocs] for c, allocs in self.allocations_by_channel.items()
            },
            "allocationSummary": {c.value: s.to_dict() for c, s in self.allocation_summary.items()},
            "totals": self.totals.to_dict(),
            "hasUnallocatedSiteOrders": self.has_unallocated_site_orders,
            "issues": {"negativeInventory": [i.to_dict() for i in self.negative_inventory]},
        }


@dataclass
class SiteOrderEntry:
    order_number: str
    packages: int
    allocated: int = 0
    owner: Owner = Owner.TROOP
    order_type: Optional[OrderType] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "orderNumber": self.order_number,
            "packages": self.packages,
            "allocated": self.allocated,
            "owner": self.owner.value,
            "orderType": self.order_type.value if self.order_type else None,
        }


@dataclass
class SiteOrderCategory:
    orders: List[SiteOrderEntry] = field(default_factory=list)
    total: int = 0
    allocated: int = 0
    unallocated: int = 0
    has_warning: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "orders": [o.to_dict() for o in self.orders],
            "total": self.total,
            "allocated": self.allocated,
            "unallocated": self.unallocated,
            "hasWarning": self.has_warning,
        }


@dataclass
class SiteOrdersDataset:
    direct_ship: SiteOrderCategory = field(default_factory=SiteOrderCategory)
    girl_delivery: SiteOrderCategory = field(default_factory=SiteOrderCategory)
    booth_sale: SiteOrderCategory = field(default_factory=SiteOrderCategory)
    unresolved: List[Dict[str, Any]] = field(default_factory=list)   # Records no scout could claim

    def to_dict(self) -> Dict[str, Any]:
        return {
            "directShip": self.direct_ship.to_dict(),
            "girlDelivery": self.girl_delivery.to_dict(),
            "boothSale": self.booth_sale.to_dict(),
            "unresolved": [dict(u) for u in self.unresolved],
        }


@dataclass(frozen=True)
class ScoutCounts:
    total: int = 0
    active: int = 0
    inactive: int = 0
    with_negative_inventory: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "active": self.active,
            "inactive": self.inactive,
            "withNegativeInventory": self.with_negative_inventory,
        }


@dataclass(frozen=True)
class TroopTotals:
    troop_proceeds: float = 0.0
    proceeds_rate: float = 0.0
    proceeds_deduction: float = 0.0
    proceeds_exempt_packages: int = 0
    inventory: int = 0
    donations: int = 0
    ordered: int = 0
    direct_ship: int = 0
    booth_divider_t2g: int = 0
    virtual_booth_t2g: int = 0
    girl_delivery: int = 0
    girl_inventory: int = 0
    pending_pickup: int = 0
    booth_sales_packages: int = 0
    booth_sales_donations: int = 0
    packages_credited: int = 0
    per_girl_average: float = 0.0
    gross_proceeds: float = 0.0
    scouts: ScoutCounts = field(default_factory=ScoutCounts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "troopProceeds": round(self.troop_proceeds, 2),
            "proceedsRate": self.proceeds_rate,
            "proceedsDeduction": round(self.proceeds_deduction, 2),
            "proceedsExemptPackages": self.proceeds_exempt_packages,
            "inventory": self.inventory,
            "donations": self.donations,
            "ordered": self.ordered,
            "directShip": self.direct_ship,
            "boothDividerT2G": self.booth_divider_t2g,
            "virtualBoothT2G": self.virtual_booth_t2g,
            "girlDelivery": self.girl_delivery,
            "girlInventory": self.girl_inventory,
            "pendingPickup": self.pending_pickup,
            "boothSalesPackages": self.booth_sales_packages,
            "boothSalesDonations": self.booth_sales_donations,
            "packagesCredited": self.packages_credited,
            "perGirlAverage": round(self.per_girl_average, 2),
            "grossProceeds": round(self.gross_proceeds, 2),
            "scouts": self.scouts.to_dict(),
        }


@dataclass(frozen=True)
class TransferTotals:
    c2t: int = 0
    t2t_in: int = 0          # Subset of c2t
    t2t_out: int = 0
    t2g_physical: int = 0
    g2t: int = 0

    @property
    def troop_inventory(self) -> int:
        return self.c2t - self.t2t_out - (self.t2g_physical - self.g2t)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "c2t": self.c2t,
            "t2tIn": self.t2t_in,
            "t2tOut": self.t2t_out,
            "t2gPhysical": self.t2g_physical,
            "g2t": self.g2t,
        }


@dataclass(frozen=True)
class TransferBreakdowns:
    c2t: Tuple[Transfer, ...] = ()
    t2t_out: Tuple[Transfer, ...] = ()
    t2g: Tuple[Transfer, ...] = ()
    g2t: Tuple[Transfer, ...] = ()
    totals: TransferTotals = field(default_factory=TransferTotals)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "c2t": [t.to_dict() for t in self.c2t],
            "t2tOut": [t.to_dict() for t in self.t2t_out],
            "t2g": [t.to_dict() for t in self.t2g],
            "g2t": [t.to_dict() for t in self.g2t],
            "totals": self.totals.to_dict(),
        }


@dataclass(frozen=True)
class VarietiesResult:
    by_cookie: Dict[CookieType, int] = field(default_factory=dict)   # Packages sold
    inventory: Dict[CookieType, int] = field(default_factory=dict)   # Troop stock on hand
    total: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "byCookie": varieties_to_dict(self.by_cookie),
            "inventory": varieties_to_dict(self.inventory),
            "total": self.total,
        }


@dataclass(frozen=True)
class ScoutCookieShare:
    scout: str
    dc_manual_entry: int
    sc_virtual: int

    @property
    def reconciled(self) -> bool:
        return self.dc_manual_entry == self.sc_virtual

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scout": self.scout,
            "dcManualEntry": self.dc_manual_entry,
            "scVirtual": self.sc_virtual,
            "reconciled": self.reconciled,
        }


@dataclass(frozen=True)
class CookieShareTracking:
    dc_total: int = 0
    dc_manual_entry: int = 0
    sc_manual_entries: int = 0
    by_scout: Tuple[ScoutCookieShare, ...] = ()

    @property
    def reconciled(self) -> bool:
        return self.dc_manual_entry == self.sc_manual_entries

    def to_dict(self) -> Dict[str, Any]:
        return {
            "digitalCookie": {"total": self.dc_total, "manualEntry": self.dc_manual_entry},
            "smartCookie": {"manualEntries": self.sc_manual_entries},
            "reconciled": self.reconciled,
            "byScout": [s.to_dict() for s in self.by_scout],
        }


# HealthChecks field for each warning type
HEALTH_COUNTERS: Dict[WarningType, str] = {
    WarningType.UNKNOWN_ORDER_TYPE: "unknown_order_types",
    WarningType.UNKNOWN_PAYMENT_METHOD: "unknown_payment_methods",
    WarningType.UNKNOWN_TRANSFER_TYPE: "unknown_transfer_types",
    WarningType.UNKNOWN_VARIETY: "unknown_varieties",
    WarningType.UNRESOLVED_SCOUT: "unresolved_scouts",
    WarningType.AMBIGUOUS_SCOUT_NAME: "ambiguous_scout_names",
    WarningType.ORDER_CONFLICT: "order_conflicts",
    WarningType.SC_ONLY_ORDER: "sc_only_orders",
    WarningType.NEGATIVE_INVENTORY: "negative_inventory",
    WarningType.CONSERVATION_MISMATCH: "conservation_mismatches",
    WarningType.IMPORT_SKIPPED: "import_skipped",
    WarningType.VALIDATION: "validation_warnings",
}


@dataclass(frozen=True)
class HealthChecks:
    warnings_count: int = 0
    unknown_order_types: int = 0
    unknown_payment_methods: int = 0
    unknown_transfer_types: int = 0
    unknown_varieties: int = 0
    unresolved_scouts: int = 0
    ambiguous_scout_names: int = 0
    order_conflicts: int = 0
    sc_only_orders: int = 0
    negative_inventory: int = 0
    conservation_mismatches: int = 0
    import_skipped: int = 0
    validation_warnings: int = 0

    def count_for(self, warning_type: WarningType) -> int:
        return getattr(self, HEALTH_COUNTERS[warning_type])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "warningsCount": self.warnings_count,
            "unknownOrderTypes": self.unknown_order_types,
            "unknownPaymentMethods": self.unknown_payment_methods,
            "unknownTransferTypes": self.unknown_transfer_types,
            "unknownVarieties": self.unknown_varieties,
            "unresolvedScouts": self.unresolved_scouts,
            "ambiguousScoutNames": self.ambiguous_scout_names,
            "orderConflicts": self.order_conflicts,
            "scOnlyOrders": self.sc_only_orders,
            "negativeInventory": self.negative_inventory,
            "conservationMismatches": self.conservation_mismatches,
            "importSkipped": self.import_skipped,
            "validationWarnings": self.validation_warnings,
        }


@dataclass(frozen=True)
class UnifiedMetadata:
    last_import_dc: Optional[str] = None
    last_import_sc: Optional[str] = None
    last_import_sc_report: Optional[str] = None
    cookie_id_map: Dict[int, CookieType] = field(default_factory=dict)
    sources: Tuple[ImportSource, ...] = ()
    unified_build_time: str = ""
    scout_count: int = 0
    order_count: int = 0
    warnings: Tuple[Warning, ...] = ()
    health_checks: HealthChecks = field(default_factory=HealthChecks)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lastImportDC": self.last_import_dc,
            "lastImportSC": self.last_import_sc,
            "lastImportSCReport": self.last_import_sc_report,
            "cookieIdMap": {str(k): v.value for k, v in self.cookie_id_map.items()},
            "sources": [s.to_dict() for s in self.sources],
            "unifiedBuildTime": self.unified_build_time,
            "scoutCount": self.scout_count,
            "orderCount": self.order_count,
            "warnings": [w.to_dict() for w in self.warnings],
            "healthChecks": self.health_checks.to_dict(),
        }


@dataclass(frozen=True)
class UnifiedDataset:
    """
    The sole engine output. Built fresh on every run and never mutated
    afterwards; consumers treat it as read-only.
    """
    scouts: Dict[str, Scout]
    site_orders: SiteOrdersDataset
    troop_totals: TroopTotals
    transfer_breakdowns: TransferBreakdowns
    varieties: VarietiesResult
    cookie_share: CookieShareTracking
    booth_reservations: Tuple[BoothReservation, ...]
    booth_locations: Tuple[BoothLocation, ...]
    metadata: UnifiedMetadata
    warnings: Tuple[Warning, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scouts": {key: s.to_dict() for key, s in self.scouts.items()},
            "siteOrders": self.site_orders.to_dict(),
            "troopTotals": self.troop_totals.to_dict(),
            "transferBreakdowns": self.transfer_breakdowns.to_dict(),
            "varieties": self.varieties.to_dict(),
            "cookieShare": self.cookie_share.to_dict(),
            "boothReservations": [r.to_dict() for r in self.booth_reservations],
            "boothLocations": [loc.to_dict() for loc in self.booth_locations],
            "metadata": self.metadata.to_dict(),
            "warnings": [w.to_dict() for w in self.warnings],
        }
