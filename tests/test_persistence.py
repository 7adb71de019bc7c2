"""Tests for saving and loading counting state."""

from datetime import date

import pytest

from stockcount.db import q
from stockcount.models import AdjustmentStatus, EventStatus
from stockcount.services.counting import CountingSession
from stockcount.services.demo_data import load_demo_data, wipe_all
from stockcount.services.persistence import export_json, import_json, load_session, save_session


@pytest.fixture
def worked_session(session, catalog, started):
    """Session with counts, an approval, an applied adjustment and a rejection."""
    details = {d.brand: d for d in session.details_for_event(started.id)}
    session.record_manual_count(started.id, details["Nordline"].id, 12, counted_by="clerk-1")
    session.record_scan(started.id, details["Alpen"].barcode)
    session.record_manual_count(started.id, details["Urbano"].id, 3)
    session.approve_discrepancy(details["Nordline"].id, "FOUND", "Back room", "mgr-1")
    session.apply_adjustment(details["Nordline"].id)
    session.approve_discrepancy(details["Alpen"].id, "DATA_ERROR", "", "mgr-1")
    session.reject_discrepancy(details["Urbano"].id, "Recount", reviewer_id="mgr-2")
    session.complete_counting(started.id)

    session.create_event(
        "CYCLE", date(2026, 4, 1), abc_group="A", notes="A-group",
        location_id="Store Floor", created_by="planner", assigned_to=["u1", "u2"],
    )
    return session


class TestPayloadRoundTrip:
    """to_payload / from_payload."""

    def test_round_trip_is_lossless(self, worked_session):
        payload = worked_session.to_payload()
        restored = CountingSession.from_payload(payload)

        assert restored.to_payload() == payload
        assert restored.events == worked_session.events
        assert restored.details == worked_session.details
        assert restored.adjustments == worked_session.adjustments

    def test_payload_is_primitive(self, worked_session):
        payload = worked_session.to_payload()
        event = payload["events"][0]

        assert event["status"] == "COMPLETED"
        assert event["scheduled_date"] == "2026-03-02"
        assert isinstance(event["started_at"], str)
        assert payload["details"][0]["discrepancy"] == 2

    def test_json_export_and_import(self, worked_session):
        restored = import_json(export_json(worked_session))
        assert restored.to_payload() == worked_session.to_payload()

    def test_import_rejects_garbage(self):
        with pytest.raises(ValueError):
            import_json("not json")
        with pytest.raises(ValueError):
            import_json('{"details": []}')

    def test_stored_discrepancy_is_ignored_on_load(self, worked_session):
        payload = worked_session.to_payload()
        payload["details"][0]["discrepancy"] = 999

        restored = CountingSession.from_payload(payload)
        detail = restored.get_detail(payload["details"][0]["id"])
        assert detail.discrepancy == detail.counted_quantity - detail.system_quantity

    def test_stored_event_aggregates_are_rebuilt_on_load(self, worked_session):
        payload = worked_session.to_payload()
        for record in payload["events"]:
            record["total_items_planned"] = 42
            record["total_items_counted"] = 99
            record["discrepancy_count"] = 0

        restored = CountingSession.from_payload(payload)
        for event in restored.list_events():
            details = restored.details_for_event(event.id)
            assert event.total_items_planned == len(details)
            assert event.total_items_counted == sum(1 for d in details if d.counted_quantity > 0)
            assert event.discrepancy_count == sum(1 for d in details if d.discrepancy != 0)


class TestSqlitePersistence:
    """save_session / load_session against SQLite."""

    def test_save_and_load(self, conn, worked_session):
        save_session(conn, worked_session)
        loaded = load_session(conn)

        assert loaded.to_payload() == worked_session.to_payload()
        event = next(e for e in loaded.list_events() if e.event_type.value == "CYCLE")
        assert event.assigned_to == ["u1", "u2"]
        assert event.status == EventStatus.PLANNED
        applied = [a for a in loaded.adjustments if a.applied_to_inventory]
        assert len(applied) == 1

    def test_save_replaces_previous_state(self, conn, worked_session, started):
        save_session(conn, worked_session)
        worked_session.delete_event(started.id)
        save_session(conn, worked_session)

        assert q(conn, "SELECT COUNT(*) AS n FROM counting_details")[0]["n"] == 0
        assert q(conn, "SELECT COUNT(*) AS n FROM counting_events")[0]["n"] == 1
        # audit trail survives
        assert q(conn, "SELECT COUNT(*) AS n FROM counting_adjustments")[0]["n"] == 2

    def test_loaded_session_keeps_working(self, conn, worked_session):
        save_session(conn, worked_session)
        loaded = load_session(conn)

        planned = next(e for e in loaded.list_events() if e.status == EventStatus.PLANNED)
        created = loaded.start_counting(planned.id, [])
        assert created == []
        nxt = loaded.create_event("SPOT", date(2026, 5, 1))
        assert nxt.event_code not in {e.event_code for e in worked_session.list_events()}

    def test_empty_database_loads_empty_session(self, conn):
        loaded = load_session(conn)
        assert loaded.events == {} and loaded.details == {} and loaded.adjustments == []


class TestDemoData:
    """Demo loader exercises the whole workflow."""

    def test_load_demo_data(self, conn):
        session = load_demo_data(conn)
        loaded = load_session(conn)

        assert len(loaded.events) == 3
        statuses = sorted(e.status.value for e in loaded.list_events())
        assert statuses == ["COMPLETED", "IN_PROGRESS", "PLANNED"]
        assert loaded.to_payload() == session.to_payload()
        for ev in loaded.list_events():
            details = loaded.details_for_event(ev.id)
            assert ev.total_items_counted == sum(1 for d in details if d.counted_quantity > 0)
            assert ev.discrepancy_count == sum(1 for d in details if d.discrepancy != 0)
        approved_or_adjusted = [
            d for d in loaded.details.values()
            if d.adjustment_status in (AdjustmentStatus.APPROVED, AdjustmentStatus.ADJUSTED)
        ]
        assert len(loaded.adjustments) == len(approved_or_adjusted)

    def test_wipe_all(self, conn):
        load_demo_data(conn)
        wipe_all(conn)

        for table in ("stock_items", "counting_events", "counting_details", "counting_adjustments"):
            assert q(conn, f"SELECT COUNT(*) AS n FROM {table}")[0]["n"] == 0
