"""
Health checks, warning collection, cookie-share tracking and build metadata.

Warnings are accumulated Result-style: every stage receives the shared
list and appends to it through record_warning(), which also logs.
"""
from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

import pytz

from .classification import DC_ORDER_PREFIX, is_dc_auto_sync
from .models import (
    HEALTH_COUNTERS,
    CookieShareTracking,
    HealthChecks,
    Scout,
    ScoutCookieShare,
    Transfer,
    TransferCategory,
    UnifiedMetadata,
    Warning,
    WarningType,
)

logger = logging.getLogger(__name__)


def record_warning(
    warnings: List[Warning],
    warning_type: WarningType,
    message: str,
    record_id: Optional[str] = None,
    raw_value: Optional[str] = None,
    scout: Optional[str] = None,
    source: Optional[str] = None,
) -> Warning:
    """Append a Warning to the shared list and log it"""
    warning = Warning(
        type=warning_type,
        message=message,
        record_id=record_id,
        raw_value=raw_value,
        scout=scout,
        source=source,
    )
    warnings.append(warning)
    logger.warning("%s: %s (record=%s, value=%r)", warning_type.value, message, record_id, raw_value)
    return warning


def build_health_checks(warnings: Sequence[Warning]) -> HealthChecks:
    """Count warnings per type. Each counter equals the filtered list length."""
    counts = Counter(w.type for w in warnings)
    fields = {attr: counts.get(wtype, 0) for wtype, attr in HEALTH_COUNTERS.items()}
    return HealthChecks(warnings_count=len(warnings), **fields)


# =============================================================================
# Cookie Share
# =============================================================================

def build_cookie_share_tracking(
    scouts: Dict[str, Scout],
    transfers: Iterable[Transfer],
    virtual_cookie_shares: Dict[str, int],
) -> CookieShareTracking:
    """
    Reconcile Cookie Share donations between the two vendors.

    Digital Cookie donations on orders that do not auto-sync must be entered
    by hand in Smart Cookie; those manual entries are COOKIE_SHARE records
    whose order number is not a synced "D" number. Site orders are skipped:
    booth donations arrive through the booth divider.

    virtual_cookie_shares maps canonical scout key -> virtual cookie share count.
    """
    dc_total = 0
    dc_manual = 0
    manual_by_scout: Dict[str, int] = {}

    for key, scout in scouts.items():
        if scout.is_site_order:
            continue
        for order in scout.orders:
            if order.donations <= 0:
                continue
            dc_total += order.donations
            if not is_dc_auto_sync(order.dc_order_type, order.payment_status):
                dc_manual += order.donations
                manual_by_scout[key] = manual_by_scout.get(key, 0) + order.donations

    sc_manual = 0
    for transfer in transfers:
        if transfer.category != TransferCategory.COOKIE_SHARE_RECORD:
            continue
        if str(transfer.order_number or "").startswith(DC_ORDER_PREFIX):
            continue
        sc_manual += abs(transfer.packages)

    by_scout = []
    for key, scout in scouts.items():
        dc_count = manual_by_scout.get(key, 0)
        sc_count = virtual_cookie_shares.get(key, 0)
        if dc_count or sc_count:
            by_scout.append(ScoutCookieShare(scout=scout.name, dc_manual_entry=dc_count, sc_virtual=sc_count))

    return CookieShareTracking(
        dc_total=dc_total,
        dc_manual_entry=dc_manual,
        sc_manual_entries=sc_manual,
        by_scout=tuple(by_scout),
    )


# =============================================================================
# Metadata
# =============================================================================

def build_timestamp(tz_name: str = "UTC") -> str:
    return datetime.now(pytz.timezone(tz_name)).isoformat()


def build_unified_metadata(
    snapshot,
    warnings: Sequence[Warning],
    scouts: Dict[str, Scout],
    build_time: str,
) -> UnifiedMetadata:
    return UnifiedMetadata(
        last_import_dc=snapshot.last_import_dc,
        last_import_sc=snapshot.last_import_sc,
        last_import_sc_report=snapshot.last_import_sc_report,
        cookie_id_map=dict(snapshot.cookie_id_map),
        sources=tuple(snapshot.sources),
        unified_build_time=build_time,
        scout_count=len(scouts),
        order_count=sum(len(s.orders) for s in scouts.values()),
        warnings=tuple(warnings),
        health_checks=build_health_checks(warnings),
    )
