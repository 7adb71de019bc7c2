from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from stockcount.utils import parse_date, parse_dt, to_iso

DEFAULT_LOCATION = "Main Warehouse"


class EventType(str, Enum):
    FULL = "FULL"
    CYCLE = "CYCLE"
    SPOT = "SPOT"


class EventStatus(str, Enum):
    PLANNED = "PLANNED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ABCGroup(str, Enum):
    A = "A"
    B = "B"
    C = "C"


class AdjustmentStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    ADJUSTED = "ADJUSTED"


class AdjustmentType(str, Enum):
    INCREASE = "INCREASE"
    DECREASE = "DECREASE"


class DiscrepancyReason(str, Enum):
    DAMAGED = "DAMAGED"
    LOST = "LOST"
    FOUND = "FOUND"
    THEFT = "THEFT"
    DATA_ERROR = "DATA_ERROR"
    TRANSFER = "TRANSFER"
    OTHER = "OTHER"


class Severity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


def _enum_or_none(enum_cls, value):
    if value is None or value == "":
        return None
    return enum_cls(value)


def _value_or_none(member: Optional[Enum]) -> Optional[str]:
    return member.value if member is not None else None


def make_product_key(brand: str, product_code: str, color_code: str, size: str) -> str:
    return f"{brand}-{product_code}-{color_code}-{size}"


@dataclass(frozen=True)
class StockItem:
    brand: str
    product_code: str
    product_group: str = ""
    color_code: str = ""
    size: str = ""
    barcode: str = ""
    quantity: int = 0
    season: str = ""
    location: str = DEFAULT_LOCATION

    @property
    def product_key(self) -> str:
        return make_product_key(self.brand, self.product_code, self.color_code, self.size)


@dataclass
class CountingEvent:
    id: str
    event_code: str
    event_type: EventType
    scheduled_date: date
    created_at: datetime
    updated_at: datetime
    status: EventStatus = EventStatus.PLANNED
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_by: str = ""
    assigned_to: list[str] = field(default_factory=list)
    location_id: Optional[str] = None
    abc_group: Optional[ABCGroup] = None

    # Cached over the event's details; refreshed by CountingSession on every change.
    total_items_planned: int = 0
    total_items_counted: int = 0
    discrepancy_count: int = 0

    notes: str = ""
    version: int = 1

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "event_code": self.event_code,
            "event_type": self.event_type.value,
            "status": self.status.value,
            "scheduled_date": to_iso(self.scheduled_date),
            "started_at": to_iso(self.started_at),
            "completed_at": to_iso(self.completed_at),
            "created_by": self.created_by,
            "assigned_to": list(self.assigned_to),
            "location_id": self.location_id,
            "abc_group": _value_or_none(self.abc_group),
            "total_items_planned": int(self.total_items_planned),
            "total_items_counted": int(self.total_items_counted),
            "discrepancy_count": int(self.discrepancy_count),
            "notes": self.notes,
            "created_at": to_iso(self.created_at),
            "updated_at": to_iso(self.updated_at),
            "version": int(self.version),
        }

    @classmethod
    def from_record(cls, r: dict[str, Any]) -> "CountingEvent":
        return cls(
            id=str(r["id"]),
            event_code=str(r["event_code"]),
            event_type=EventType(r["event_type"]),
            status=EventStatus(r.get("status") or EventStatus.PLANNED.value),
            scheduled_date=parse_date(r["scheduled_date"]),
            started_at=parse_dt(r.get("started_at")),
            completed_at=parse_dt(r.get("completed_at")),
            created_by=r.get("created_by") or "",
            assigned_to=list(r.get("assigned_to") or []),
            location_id=r.get("location_id"),
            abc_group=_enum_or_none(ABCGroup, r.get("abc_group")),
            total_items_planned=int(r.get("total_items_planned") or 0),
            total_items_counted=int(r.get("total_items_counted") or 0),
            discrepancy_count=int(r.get("discrepancy_count") or 0),
            notes=r.get("notes") or "",
            created_at=parse_dt(r["created_at"]),
            updated_at=parse_dt(r["updated_at"]),
            version=int(r.get("version") or 1),
        )


@dataclass
class CountingDetail:
    id: str
    counting_event_id: str
    product_key: str
    brand: str
    product_code: str
    system_quantity: int
    created_at: datetime
    updated_at: datetime
    product_group: str = ""
    color_code: str = ""
    size: str = ""
    barcode: str = ""
    location: str = DEFAULT_LOCATION
    counted_quantity: int = 0
    counted_by: str = ""
    counted_at: Optional[datetime] = None
    adjustment_status: AdjustmentStatus = AdjustmentStatus.PENDING
    discrepancy_reason: Optional[DiscrepancyReason] = None
    discrepancy_notes: str = ""
    adjusted_quantity: Optional[int] = None
    adjusted_by: Optional[str] = None
    adjusted_at: Optional[datetime] = None
    version: int = 1

    @property
    def discrepancy(self) -> int:
        return int(self.counted_quantity) - int(self.system_quantity)

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "counting_event_id": self.counting_event_id,
            "product_key": self.product_key,
            "brand": self.brand,
            "product_code": self.product_code,
            "product_group": self.product_group,
            "color_code": self.color_code,
            "size": self.size,
            "barcode": self.barcode,
            "location": self.location,
            "system_quantity": int(self.system_quantity),
            "counted_quantity": int(self.counted_quantity),
            "discrepancy": self.discrepancy,
            "counted_by": self.counted_by,
            "counted_at": to_iso(self.counted_at),
            "adjustment_status": self.adjustment_status.value,
            "discrepancy_reason": _value_or_none(self.discrepancy_reason),
            "discrepancy_notes": self.discrepancy_notes,
            "adjusted_quantity": self.adjusted_quantity,
            "adjusted_by": self.adjusted_by,
            "adjusted_at": to_iso(self.adjusted_at),
            "created_at": to_iso(self.created_at),
            "updated_at": to_iso(self.updated_at),
            "version": int(self.version),
        }

    @classmethod
    def from_record(cls, r: dict[str, Any]) -> "CountingDetail":
        # "discrepancy" in the record is informational; it is always re-derived.
        adjusted = r.get("adjusted_quantity")
        return cls(
            id=str(r["id"]),
            counting_event_id=str(r["counting_event_id"]),
            product_key=str(r["product_key"]),
            brand=r.get("brand") or "",
            product_code=r.get("product_code") or "",
            product_group=r.get("product_group") or "",
            color_code=r.get("color_code") or "",
            size=r.get("size") or "",
            barcode=r.get("barcode") or "",
            location=r.get("location") or DEFAULT_LOCATION,
            system_quantity=int(r.get("system_quantity") or 0),
            counted_quantity=int(r.get("counted_quantity") or 0),
            counted_by=r.get("counted_by") or "",
            counted_at=parse_dt(r.get("counted_at")),
            adjustment_status=AdjustmentStatus(r.get("adjustment_status") or AdjustmentStatus.PENDING.value),
            discrepancy_reason=_enum_or_none(DiscrepancyReason, r.get("discrepancy_reason")),
            discrepancy_notes=r.get("discrepancy_notes") or "",
            adjusted_quantity=int(adjusted) if adjusted is not None else None,
            adjusted_by=r.get("adjusted_by"),
            adjusted_at=parse_dt(r.get("adjusted_at")),
            created_at=parse_dt(r["created_at"]),
            updated_at=parse_dt(r["updated_at"]),
            version=int(r.get("version") or 1),
        )


@dataclass(frozen=True)
class CountingAdjustment:
    id: str
    counting_detail_id: str
    adjustment_type: AdjustmentType
    quantity_change: int
    reason: DiscrepancyReason
    approved_by: str
    approved_at: datetime
    created_at: datetime
    financial_impact: float = 0.0
    applied_to_inventory: bool = False
    applied_at: Optional[datetime] = None

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "counting_detail_id": self.counting_detail_id,
            "adjustment_type": self.adjustment_type.value,
            "quantity_change": int(self.quantity_change),
            "reason": self.reason.value,
            "financial_impact": float(self.financial_impact),
            "approved_by": self.approved_by,
            "approved_at": to_iso(self.approved_at),
            "applied_to_inventory": bool(self.applied_to_inventory),
            "applied_at": to_iso(self.applied_at),
            "created_at": to_iso(self.created_at),
        }

    @classmethod
    def from_record(cls, r: dict[str, Any]) -> "CountingAdjustment":
        return cls(
            id=str(r["id"]),
            counting_detail_id=str(r["counting_detail_id"]),
            adjustment_type=AdjustmentType(r["adjustment_type"]),
            quantity_change=int(r["quantity_change"]),
            reason=DiscrepancyReason(r["reason"]),
            financial_impact=float(r.get("financial_impact") or 0.0),
            approved_by=r.get("approved_by") or "",
            approved_at=parse_dt(r["approved_at"]),
            applied_to_inventory=bool(r.get("applied_to_inventory")),
            applied_at=parse_dt(r.get("applied_at")),
            created_at=parse_dt(r["created_at"]),
        )
