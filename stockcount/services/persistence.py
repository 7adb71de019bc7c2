from __future__ import annotations

import json
import logging
from typing import Any

from stockcount.db import insert_rows, q
from stockcount.services.counting import CountingSession

logger = logging.getLogger(__name__)

_TABLES = ("counting_adjustments", "counting_details", "counting_events")


def _event_row(rec: dict[str, Any]) -> dict[str, Any]:
    row = dict(rec)
    row["assigned_to"] = json.dumps(rec["assigned_to"])
    return row


def _adjustment_row(rec: dict[str, Any]) -> dict[str, Any]:
    row = dict(rec)
    row["applied_to_inventory"] = 1 if rec["applied_to_inventory"] else 0
    return row


def save_session(conn, session: CountingSession) -> None:
    """
    Writes the whole container in one transaction (replace, not merge).
    The session is the single writer, so there is nothing to reconcile.
    """
    payload = session.to_payload()
    with conn:
        for t in _TABLES:
            conn.execute(f"DELETE FROM {t};")
        insert_rows(conn, "counting_events", [_event_row(r) for r in payload["events"]])
        insert_rows(conn, "counting_details", payload["details"])
        insert_rows(conn, "counting_adjustments", [_adjustment_row(r) for r in payload["adjustments"]])

    logger.info(
        "Saved counting state: %s event(s), %s detail(s), %s adjustment(s)",
        len(payload["events"]),
        len(payload["details"]),
        len(payload["adjustments"]),
    )


def load_payload(conn) -> dict[str, Any]:
    events = []
    for r in q(conn, "SELECT * FROM counting_events ORDER BY rowid"):
        rec = dict(r)
        rec["assigned_to"] = json.loads(rec.get("assigned_to") or "[]")
        events.append(rec)

    details = [dict(r) for r in q(conn, "SELECT * FROM counting_details ORDER BY rowid")]

    adjustments = []
    for r in q(conn, "SELECT * FROM counting_adjustments ORDER BY rowid"):
        rec = dict(r)
        rec["applied_to_inventory"] = bool(rec["applied_to_inventory"])
        adjustments.append(rec)

    return {"events": events, "details": details, "adjustments": adjustments}


def load_session(conn, **kwargs) -> CountingSession:
    return CountingSession.from_payload(load_payload(conn), **kwargs)


def export_json(session: CountingSession) -> str:
    return json.dumps(session.to_payload(), ensure_ascii=False, indent=2)


def import_json(text: str, **kwargs) -> CountingSession:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Not a valid counting export: {e}") from e
    if not isinstance(payload, dict) or "events" not in payload:
        raise ValueError("Not a valid counting export: missing 'events'.")
    return CountingSession.from_payload(payload, **kwargs)
