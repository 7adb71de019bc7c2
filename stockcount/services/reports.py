from __future__ import annotations

from typing import Any, Iterable

import pandas as pd

from stockcount.models import AdjustmentStatus, CountingDetail, DiscrepancyReason, EventStatus, Severity
from stockcount.services.counting import CountingSession
from stockcount.utils import safe_div

LOW_THRESHOLD_PCT = 5.0
MEDIUM_THRESHOLD_PCT = 15.0

DETAIL_COLUMNS = [
    "id", "product_key", "brand", "product_code", "color_code", "size", "barcode", "location",
    "system_quantity", "counted_quantity", "discrepancy", "severity", "adjustment_status",
    "discrepancy_reason",
]


def discrepancy_percentage(system_qty: int, counted_qty: int) -> float:
    """
    |counted - system| as a percentage of system.
    With nothing on the books, any count is a 100% miss and no count is 0%.
    """
    diff = abs(int(counted_qty) - int(system_qty))
    if system_qty > 0:
        return diff / float(system_qty) * 100.0
    return 100.0 if diff else 0.0


def severity(system_qty: int, counted_qty: int) -> Severity:
    pct = discrepancy_percentage(system_qty, counted_qty)
    if pct < LOW_THRESHOLD_PCT:
        return Severity.LOW
    if pct < MEDIUM_THRESHOLD_PCT:
        return Severity.MEDIUM
    return Severity.HIGH


def event_progress(session: CountingSession, event_id: str) -> dict:
    ev = session.get_event(event_id)
    n_details = len(session.details_for_event(event_id))
    completion = safe_div(ev.total_items_counted, ev.total_items_planned) * 100.0
    accuracy = safe_div(n_details - ev.discrepancy_count, n_details) * 100.0 if n_details else 100.0
    return {"completion_rate": completion, "accuracy_rate": accuracy}


def counting_overview(session: CountingSession) -> dict:
    events = session.list_events()
    return {
        "total_events": len(events),
        "completed_events": sum(1 for e in events if e.status == EventStatus.COMPLETED),
        "in_progress_events": sum(1 for e in events if e.status == EventStatus.IN_PROGRESS),
        "total_discrepancies": sum(e.discrepancy_count for e in events),
        "total_adjustments": len(session.adjustments),
        "pending_approvals": len(session.pending_details()),
    }


def event_summary(session: CountingSession, event_id: str, *, top: int = 10) -> dict[str, Any]:
    ev = session.get_event(event_id)
    details = session.details_for_event(event_id)
    progress = event_progress(session, event_id)

    duration_hours = 0.0
    if ev.started_at and ev.completed_at:
        duration_hours = (ev.completed_at - ev.started_at).total_seconds() / 3600.0

    by_reason = {r.value: 0 for r in DiscrepancyReason}
    for d in details:
        if d.discrepancy_reason is not None:
            by_reason[d.discrepancy_reason.value] += 1

    discrepant = sorted((d for d in details if d.discrepancy != 0), key=lambda d: abs(d.discrepancy), reverse=True)

    return {
        "event_info": {
            "code": ev.event_code,
            "type": ev.event_type.value,
            "status": ev.status.value,
            "date": ev.scheduled_date,
            "duration_hours": round(duration_hours, 2),
        },
        "statistics": {
            "total_items_planned": ev.total_items_planned,
            "total_items_counted": ev.total_items_counted,
            "completion_rate": round(progress["completion_rate"], 2),
            "accuracy_rate": round(progress["accuracy_rate"], 2),
            "discrepancies": {
                "total_count": ev.discrepancy_count,
                "shortage_units": sum(-d.discrepancy for d in discrepant if d.discrepancy < 0),
                "overage_units": sum(d.discrepancy for d in discrepant if d.discrepancy > 0),
                "pending_review": sum(1 for d in discrepant if d.adjustment_status == AdjustmentStatus.PENDING),
                "by_reason": by_reason,
            },
        },
        "top_discrepancies": [
            {
                "product": d.product_key,
                "system_qty": d.system_quantity,
                "counted_qty": d.counted_quantity,
                "difference": d.discrepancy,
                "severity": severity(d.system_quantity, d.counted_quantity).value,
            }
            for d in discrepant[: max(0, int(top))]
        ],
    }


def details_frame(details: Iterable[CountingDetail]) -> pd.DataFrame:
    rows = []
    for d in details:
        rows.append(
            {
                "id": d.id,
                "product_key": d.product_key,
                "brand": d.brand,
                "product_code": d.product_code,
                "color_code": d.color_code,
                "size": d.size,
                "barcode": d.barcode,
                "location": d.location,
                "system_quantity": d.system_quantity,
                "counted_quantity": d.counted_quantity,
                "discrepancy": d.discrepancy,
                "severity": severity(d.system_quantity, d.counted_quantity).value,
                "adjustment_status": d.adjustment_status.value,
                "discrepancy_reason": d.discrepancy_reason.value if d.discrepancy_reason else None,
            }
        )
    return pd.DataFrame(rows, columns=DETAIL_COLUMNS)
