"""
Shape checks for vendor payloads.

Validation is advisory: a payload that fails still gets imported as far as
it can be, and each problem becomes a VALIDATION warning.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, ValidationError

from .models import Warning, WarningType
from .health import record_warning

logger = logging.getLogger(__name__)

DC_REQUIRED_COLUMNS = ("Girl First Name", "Order Number")


class SCOrderPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    order_number: Union[str, int]


class SCOrdersPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    orders: List[SCOrderPayload]


class DividerGirl(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int


class BoothDividerPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    reservationId: Optional[Union[str, int]] = None
    divider: Optional[Dict[str, Any]] = None


def _report(warnings: List[Warning], source: str, err: ValidationError) -> int:
    for problem in err.errors():
        location = ".".join(str(p) for p in problem["loc"])
        record_warning(
            warnings,
            WarningType.VALIDATION,
            f"{source}: {location}: {problem['msg']}",
            raw_value=location,
            source=source,
        )
    return len(err.errors())


def validate_sc_orders(data: Any, warnings: List[Warning], source: str = "sc-orders") -> bool:
    """Every order needs an order_number"""
    try:
        SCOrdersPayload.model_validate(data)
    except ValidationError as e:
        _report(warnings, source, e)
        return False
    return True


def validate_booth_dividers(data: Any, warnings: List[Warning], source: str = "sc-booth-allocations") -> bool:
    if not isinstance(data, list):
        record_warning(warnings, WarningType.VALIDATION, f"{source}: expected a list of dividers", source=source)
        return False
    ok = True
    for index, entry in enumerate(data):
        try:
            divider = BoothDividerPayload.model_validate(entry)
            girls = (divider.divider or {}).get("girls")
            # Non-object girls and cookie entries are reported by the importer
            for girl in girls if isinstance(girls, list) else []:
                if isinstance(girl, dict):
                    DividerGirl.model_validate(girl)
        except ValidationError as e:
            _report(warnings, f"{source}[{index}]", e)
            ok = False
    return ok


def validate_dc_columns(columns: Sequence[str], warnings: List[Warning], source: str = "dc-export") -> bool:
    """The DC export must carry at least the scout name and order number"""
    missing = [c for c in DC_REQUIRED_COLUMNS if c not in columns]
    for column in missing:
        record_warning(
            warnings,
            WarningType.VALIDATION,
            f'{source}: missing column "{column}"',
            raw_value=column,
            source=source,
        )
    return not missing
