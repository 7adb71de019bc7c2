from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any, Callable, Iterable, Optional, Union

from stockcount.errors import InvalidTransition, NotFound
from stockcount.models import (
    ABCGroup,
    AdjustmentStatus,
    AdjustmentType,
    CountingAdjustment,
    CountingDetail,
    CountingEvent,
    DiscrepancyReason,
    EventStatus,
    EventType,
    StockItem,
)
from stockcount.utils import new_id, now_utc

EVENT_CODE_PREFIX = "SCE"
STATUS_FILTER_ALL = "ALL"

PAYLOAD_VERSION = 1


@dataclass
class ScanResult:
    """
    Outcome of a barcode scan. An unknown barcode is a normal result
    (wrong or unlabelled item), not an error.
    """

    barcode: str
    found: bool
    detail: Optional[CountingDetail]
    detail_count: int

    @property
    def message(self) -> str:
        if self.found and self.detail is not None:
            d = self.detail
            return f"Counted {d.brand} {d.product_code} {d.color_code} {d.size}: {d.counted_quantity} pcs"
        return f"Barcode not found: {self.barcode} ({self.detail_count} items in this count)"


class CountingSession:
    """
    In-memory state for counting events, their details and the adjustment audit trail.

    Every mutating call keeps the derived fields consistent before it returns:
    detail discrepancies are computed from counted/system quantities, and the
    event aggregates are recomputed from the event's current details.
    Nothing here does I/O; see services.persistence for load/save.
    """

    def __init__(
        self,
        events: Optional[Iterable[CountingEvent]] = None,
        details: Optional[Iterable[CountingDetail]] = None,
        adjustments: Optional[Iterable[CountingAdjustment]] = None,
        *,
        clock: Callable[[], datetime] = now_utc,
        id_factory: Callable[[], str] = new_id,
    ):
        self.events: dict[str, CountingEvent] = {e.id: e for e in (events or [])}
        self.details: dict[str, CountingDetail] = {d.id: d for d in (details or [])}
        self.adjustments: list[CountingAdjustment] = list(adjustments or [])
        self._clock = clock
        self._new_id = id_factory

    # -------------------------
    # Lookups
    # -------------------------

    def get_event(self, event_id: str) -> CountingEvent:
        ev = self.events.get(event_id)
        if ev is None:
            raise NotFound("event", event_id)
        return ev

    def get_detail(self, detail_id: str) -> CountingDetail:
        d = self.details.get(detail_id)
        if d is None:
            raise NotFound("detail", detail_id)
        return d

    def list_events(self) -> list[CountingEvent]:
        return list(self.events.values())

    def details_for_event(self, event_id: str) -> list[CountingDetail]:
        self.get_event(event_id)
        return [d for d in self.details.values() if d.counting_event_id == event_id]

    def adjustments_for_detail(self, detail_id: str) -> list[CountingAdjustment]:
        return [a for a in self.adjustments if a.counting_detail_id == detail_id]

    def pending_details(self, event_id: Optional[str] = None, *, discrepant_only: bool = True) -> list[CountingDetail]:
        details = self.details_for_event(event_id) if event_id else list(self.details.values())
        out = [d for d in details if d.adjustment_status == AdjustmentStatus.PENDING]
        if discrepant_only:
            out = [d for d in out if d.discrepancy != 0]
        return out

    # -------------------------
    # Event lifecycle
    # -------------------------

    def _next_event_code(self, year: int) -> str:
        prefix = f"{EVENT_CODE_PREFIX}-{year}-"
        seqs = []
        for ev in self.events.values():
            if ev.event_code.startswith(prefix):
                tail = ev.event_code[len(prefix):]
                if tail.isdigit():
                    seqs.append(int(tail))
        seq = max(seqs, default=0) + 1
        return f"{prefix}{seq:03d}"

    def create_event(
        self,
        event_type: Union[EventType, str],
        scheduled_date: date,
        abc_group: Optional[Union[ABCGroup, str]] = None,
        notes: Optional[str] = None,
        *,
        location_id: Optional[str] = None,
        created_by: str = "",
        assigned_to: Optional[Iterable[str]] = None,
    ) -> CountingEvent:
        event_type = EventType(event_type)
        group = ABCGroup(abc_group) if abc_group and event_type == EventType.CYCLE else None
        now = self._clock()

        ev = CountingEvent(
            id=self._new_id(),
            event_code=self._next_event_code(now.year),
            event_type=event_type,
            scheduled_date=scheduled_date,
            created_at=now,
            updated_at=now,
            created_by=created_by,
            assigned_to=list(assigned_to or []),
            location_id=(location_id or None),
            abc_group=group,
            notes=(notes or "").strip(),
        )
        self.events[ev.id] = ev
        return ev

    def _require_event_status(self, ev: CountingEvent, action: str, *allowed: EventStatus) -> None:
        if ev.status not in allowed:
            raise InvalidTransition(
                "event", ev.event_code, action, ev.status.value, [s.value for s in allowed]
            )

    def _touch_event(self, ev: CountingEvent, now: datetime) -> None:
        ev.updated_at = now
        ev.version += 1

    def start_counting(self, event_id: str, catalog: Iterable[StockItem]) -> list[CountingDetail]:
        """
        PLANNED -> IN_PROGRESS. One detail per catalog item, with the item's
        quantity frozen as system_quantity. CYCLE/location filtering is up to the caller.
        """
        ev = self.get_event(event_id)
        self._require_event_status(ev, "start counting", EventStatus.PLANNED)

        now = self._clock()
        created: list[CountingDetail] = []
        for item in catalog:
            created.append(
                CountingDetail(
                    id=self._new_id(),
                    counting_event_id=ev.id,
                    product_key=item.product_key,
                    brand=item.brand,
                    product_code=item.product_code,
                    product_group=item.product_group,
                    color_code=item.color_code,
                    size=item.size,
                    barcode=item.barcode,
                    location=item.location,
                    system_quantity=int(item.quantity),
                    created_at=now,
                    updated_at=now,
                )
            )

        for d in created:
            self.details[d.id] = d

        ev.status = EventStatus.IN_PROGRESS
        ev.started_at = now
        self._refresh_aggregates(ev)
        self._touch_event(ev, now)
        return created

    def complete_counting(self, event_id: str) -> CountingEvent:
        ev = self.get_event(event_id)
        self._require_event_status(ev, "complete", EventStatus.IN_PROGRESS)
        now = self._clock()
        ev.status = EventStatus.COMPLETED
        ev.completed_at = now
        self._touch_event(ev, now)
        return ev

    def cancel_event(self, event_id: str) -> CountingEvent:
        ev = self.get_event(event_id)
        self._require_event_status(ev, "cancel", EventStatus.PLANNED, EventStatus.IN_PROGRESS)
        ev.status = EventStatus.CANCELLED
        self._touch_event(ev, self._clock())
        return ev

    def delete_event(self, event_id: str) -> int:
        """Drops the event and its details. Returns the number of details removed."""
        ev = self.get_event(event_id)
        owned = [d.id for d in self.details.values() if d.counting_event_id == ev.id]
        for detail_id in owned:
            del self.details[detail_id]
        del self.events[ev.id]
        return len(owned)

    # -------------------------
    # Counting
    # -------------------------

    def _refresh_aggregates(self, ev: CountingEvent) -> None:
        details = [d for d in self.details.values() if d.counting_event_id == ev.id]
        ev.total_items_planned = len(details)
        ev.total_items_counted = sum(1 for d in details if d.counted_quantity > 0)
        ev.discrepancy_count = sum(1 for d in details if d.discrepancy != 0)

    def _set_count(self, ev: CountingEvent, d: CountingDetail, quantity: int, counted_by: Optional[str]) -> None:
        # A reviewed line is frozen so its count keeps matching the adjustment record.
        self._require_pending(d, "recount")
        now = self._clock()
        d.counted_quantity = max(0, int(quantity))
        d.counted_at = now
        if counted_by:
            d.counted_by = counted_by
        d.updated_at = now
        d.version += 1

        self._refresh_aggregates(ev)
        self._touch_event(ev, now)

    def record_scan(self, event_id: str, barcode: str, counted_by: Optional[str] = None) -> ScanResult:
        ev = self.get_event(event_id)
        self._require_event_status(ev, "record counts for", EventStatus.IN_PROGRESS)

        code = str(barcode or "").strip()
        details = [d for d in self.details.values() if d.counting_event_id == ev.id]
        match = next((d for d in details if code and d.barcode == code), None)
        if match is None:
            return ScanResult(barcode=code, found=False, detail=None, detail_count=len(details))

        self._set_count(ev, match, match.counted_quantity + 1, counted_by)
        return ScanResult(barcode=code, found=True, detail=match, detail_count=len(details))

    def record_manual_count(
        self,
        event_id: str,
        detail_id: str,
        quantity: Optional[int],
        counted_by: Optional[str] = None,
    ) -> CountingDetail:
        ev = self.get_event(event_id)
        d = self.get_detail(detail_id)
        if d.counting_event_id != ev.id:
            raise NotFound("detail", f"{detail_id} in event {ev.event_code}")
        self._require_event_status(ev, "record counts for", EventStatus.IN_PROGRESS)

        self._set_count(ev, d, int(quantity or 0), counted_by)
        return d

    # -------------------------
    # Discrepancy workflow
    # -------------------------

    def _require_pending(self, d: CountingDetail, action: str) -> None:
        if d.adjustment_status != AdjustmentStatus.PENDING:
            raise InvalidTransition(
                "detail", d.product_key, action, d.adjustment_status.value, [AdjustmentStatus.PENDING.value]
            )

    def approve_discrepancy(
        self,
        detail_id: str,
        reason: Union[DiscrepancyReason, str],
        notes: str,
        approver_id: str,
    ) -> CountingAdjustment:
        d = self.get_detail(detail_id)
        self._require_pending(d, "approve")
        reason = DiscrepancyReason(reason)

        now = self._clock()
        d.adjustment_status = AdjustmentStatus.APPROVED
        d.discrepancy_reason = reason
        d.discrepancy_notes = (notes or "").strip()
        d.adjusted_by = approver_id
        d.adjusted_at = now
        d.adjusted_quantity = d.counted_quantity
        d.updated_at = now
        d.version += 1

        adjustment = CountingAdjustment(
            id=self._new_id(),
            counting_detail_id=d.id,
            adjustment_type=AdjustmentType.INCREASE if d.discrepancy > 0 else AdjustmentType.DECREASE,
            quantity_change=abs(d.discrepancy),
            reason=reason,
            approved_by=approver_id,
            approved_at=now,
            created_at=now,
        )
        self.adjustments.append(adjustment)
        return adjustment

    def reject_discrepancy(self, detail_id: str, notes: str, reviewer_id: Optional[str] = None) -> CountingDetail:
        d = self.get_detail(detail_id)
        self._require_pending(d, "reject")

        now = self._clock()
        d.adjustment_status = AdjustmentStatus.REJECTED
        d.discrepancy_notes = (notes or "").strip()
        if reviewer_id:
            d.adjusted_by = reviewer_id
            d.adjusted_at = now
        d.updated_at = now
        d.version += 1
        return d

    def apply_adjustment(self, detail_id: str) -> CountingAdjustment:
        """
        APPROVED -> ADJUSTED once the change has been booked in the real inventory.
        The adjustment record gets its applied flag/time; nothing else on it changes.
        """
        d = self.get_detail(detail_id)
        if d.adjustment_status != AdjustmentStatus.APPROVED:
            raise InvalidTransition(
                "detail", d.product_key, "apply", d.adjustment_status.value, [AdjustmentStatus.APPROVED.value]
            )

        idx = next(
            (i for i, a in enumerate(self.adjustments) if a.counting_detail_id == d.id and not a.applied_to_inventory),
            None,
        )
        if idx is None:
            raise NotFound("adjustment", f"for detail {d.product_key}")

        now = self._clock()
        applied = replace(self.adjustments[idx], applied_to_inventory=True, applied_at=now)
        self.adjustments[idx] = applied

        d.adjustment_status = AdjustmentStatus.ADJUSTED
        d.updated_at = now
        d.version += 1
        return applied

    # -------------------------
    # Filtering
    # -------------------------

    def filter_events(self, query: str = "", status_filter: str = STATUS_FILTER_ALL) -> list[CountingEvent]:
        needle = (query or "").strip().lower()
        status = (status_filter.value if isinstance(status_filter, EventStatus) else str(status_filter or "")).upper()

        out = []
        for ev in self.events.values():
            if needle and needle not in ev.event_code.lower() and needle not in (ev.notes or "").lower():
                continue
            if status and status != STATUS_FILTER_ALL and ev.status.value != status:
                continue
            out.append(ev)
        return out

    def filter_details(self, event_id: str, query: str = "") -> list[CountingDetail]:
        details = self.details_for_event(event_id)
        needle = (query or "").strip().lower()
        if not needle:
            return details

        def _hit(d: CountingDetail) -> bool:
            fields = (d.brand, d.product_code, d.color_code, d.size, d.barcode)
            return any(needle in (f or "").lower() for f in fields)

        return [d for d in details if _hit(d)]

    # -------------------------
    # Serialization
    # -------------------------

    def clear_all(self) -> None:
        self.events.clear()
        self.details.clear()
        self.adjustments.clear()

    def to_payload(self) -> dict[str, Any]:
        return {
            "version": PAYLOAD_VERSION,
            "events": [e.to_record() for e in self.events.values()],
            "details": [d.to_record() for d in self.details.values()],
            "adjustments": [a.to_record() for a in self.adjustments],
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any], **kwargs) -> "CountingSession":
        session = cls(
            events=[CountingEvent.from_record(r) for r in payload.get("events", [])],
            details=[CountingDetail.from_record(r) for r in payload.get("details", [])],
            adjustments=[CountingAdjustment.from_record(r) for r in payload.get("adjustments", [])],
            **kwargs,
        )
        # Stored aggregates are a cache; rebuild them from the loaded lines.
        for ev in session.events.values():
            session._refresh_aggregates(ev)
        return session
