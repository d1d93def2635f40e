"""
Classification helpers.

Every function here maps a loosely-typed vendor string onto a closed enum
and returns the UNKNOWN member (or None for "no class") instead of raising.
Callers decide whether a miss is worth a Warning.
"""
from __future__ import annotations

import re
from typing import Optional, Tuple

from .models import OrderStatusClass, OrderType, Owner, PaymentMethod, TransferCategory


# Digital Cookie status markers
STATUS_NEEDS_APPROVAL = "Needs Approval"
STATUS_DELIVERED_EXACT = "Status Delivered"
STATUS_COMPLETED_MARKERS = ("Completed", "Delivered", "Shipped")
STATUS_PENDING_MARKERS = ("Pending", "Approved for Delivery")

# Digital Cookie order type / payment markers
DC_ORDER_TYPE_DONATION = "Donation"
DC_ORDER_TYPE_SHIPPED = "Shipped"
PAYMENT_CAPTURED = "CAPTURED"
PAYMENT_AUTHORIZED = "AUTHORIZED"
PAYMENT_CASH = "CASH"
PAYMENT_VENMO = "VENMO"

DELIVERY_MARKERS = ("in-person delivery", "in person delivery", "pick up")
IN_HAND_MARKER = "cookies in hand"

# Site (troop-level) orders are entered under this last name
SITE_ORDER_LASTNAME = "Site"
# SC records mirroring a DC order carry the DC number with this prefix
DC_ORDER_PREFIX = "D"


def classify_order_status(status: Optional[str]) -> OrderStatusClass:
    """
    Classify a raw Digital Cookie status string.

    Precedence is fixed: the approval marker wins over any delivered-like
    marker in a compound status such as "Needs Approval - Delivered".
    """
    if not status:
        return OrderStatusClass.UNKNOWN
    if STATUS_NEEDS_APPROVAL in status:
        return OrderStatusClass.NEEDS_APPROVAL
    if status == STATUS_DELIVERED_EXACT or any(m in status for m in STATUS_COMPLETED_MARKERS):
        return OrderStatusClass.COMPLETED
    if any(m in status for m in STATUS_PENDING_MARKERS):
        return OrderStatusClass.PENDING
    return OrderStatusClass.UNKNOWN


def is_dc_auto_sync(dc_order_type: Optional[str], payment_status: Optional[str]) -> bool:
    """True when the order syncs to Smart Cookie without a manual entry.

    Shipped matches as a substring; Donation and CAPTURED must match exactly.
    """
    dc_order_type = dc_order_type or ""
    return (
        (DC_ORDER_TYPE_SHIPPED in dc_order_type or dc_order_type == DC_ORDER_TYPE_DONATION)
        and payment_status == PAYMENT_CAPTURED
    )


def classify_payment_method(payment_status: Optional[str]) -> PaymentMethod:
    ps = (payment_status or "").upper()
    if ps == PAYMENT_CASH:
        return PaymentMethod.CASH
    if PAYMENT_VENMO in ps:
        return PaymentMethod.VENMO
    if ps in (PAYMENT_CAPTURED, PAYMENT_AUTHORIZED):
        return PaymentMethod.CREDIT_CARD
    # Never assume credit card
    return PaymentMethod.UNKNOWN


def is_site_order_name(last_name: Optional[str]) -> bool:
    return (last_name or "").strip() == SITE_ORDER_LASTNAME


def classify_dc_order(is_site_order: bool, dc_order_type: Optional[str]) -> Tuple[Owner, OrderType]:
    """Split a DC order type string into (owner, order type)"""
    owner = Owner.TROOP if is_site_order else Owner.GIRL
    raw = dc_order_type or ""
    lc = raw.lower()

    if raw == DC_ORDER_TYPE_DONATION:
        return owner, OrderType.DONATION
    if DC_ORDER_TYPE_SHIPPED.lower() in lc:
        return owner, OrderType.DIRECT_SHIP
    if IN_HAND_MARKER in lc:
        return owner, OrderType.BOOTH if is_site_order else OrderType.IN_HAND
    if any(m in lc for m in DELIVERY_MARKERS):
        return owner, OrderType.DELIVERY
    return owner, OrderType.UNKNOWN


def order_needs_inventory(owner: Owner, order_type: Optional[OrderType]) -> bool:
    """Only a scout's own delivery / in-hand sales draw from her inventory"""
    return owner == Owner.GIRL and order_type in (OrderType.DELIVERY, OrderType.IN_HAND)


# =============================================================================
# Transfers
# =============================================================================

def is_c2t_transfer(transfer_type: Optional[str]) -> bool:
    t = transfer_type or ""
    return t in ("C2T", "C2T(P)") or t.startswith("C2T")


def matches_troop_number(value: Optional[str], troop_number: Optional[str]) -> bool:
    """Compare a from/to field with the troop number ("Troop 3990" matches "3990")"""
    if not value or not troop_number:
        return False
    if value == troop_number:
        return True
    value_digits = re.search(r"\d+", value)
    troop_digits = re.search(r"\d+", troop_number)
    return bool(value_digits and troop_digits and value_digits.group(0) == troop_digits.group(0))


def classify_transfer_category(
    transfer_type: Optional[str],
    virtual_booth: bool = False,
    booth_divider: bool = False,
    direct_ship_divider: bool = False,
    sender: Optional[str] = None,
    troop_number: Optional[str] = None,
) -> TransferCategory:
    t = transfer_type or ""
    if not t:
        return TransferCategory.UNKNOWN
    if is_c2t_transfer(t) or t == "PLANNED":
        return TransferCategory.COUNCIL_TO_TROOP
    if t == "T2T":
        if matches_troop_number(sender, troop_number):
            return TransferCategory.TROOP_OUTGOING
        return TransferCategory.COUNCIL_TO_TROOP
    if t == "T2G":
        if virtual_booth:
            return TransferCategory.VIRTUAL_BOOTH_ALLOCATION
        if booth_divider:
            return TransferCategory.BOOTH_SALES_ALLOCATION
        if direct_ship_divider:
            return TransferCategory.DIRECT_SHIP_ALLOCATION
        return TransferCategory.GIRL_PICKUP
    if t in ("COOKIE_SHARE", "COOKIE_SHARE_D"):
        return TransferCategory.BOOTH_COOKIE_SHARE if booth_divider else TransferCategory.COOKIE_SHARE_RECORD
    if t == "G2T":
        return TransferCategory.GIRL_RETURN
    if t == DC_ORDER_PREFIX:
        return TransferCategory.DC_ORDER_RECORD
    if t == "DIRECT_SHIP":
        return TransferCategory.DIRECT_SHIP
    return TransferCategory.UNKNOWN
