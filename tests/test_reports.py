"""Tests for severity classification and summary reports."""

from datetime import date

import pytest

from stockcount.models import Severity
from stockcount.services.reports import (
    DETAIL_COLUMNS,
    counting_overview,
    details_frame,
    discrepancy_percentage,
    event_progress,
    event_summary,
    severity,
)


class TestSeverity:
    """LOW below 5%, MEDIUM below 15%, HIGH otherwise."""

    @pytest.mark.parametrize(
        "system_qty,counted_qty,expected",
        [
            (100, 100, Severity.LOW),
            (100, 96, Severity.LOW),
            (100, 95, Severity.MEDIUM),
            (100, 114, Severity.MEDIUM),
            (100, 115, Severity.HIGH),
            (10, 8, Severity.HIGH),
            (10, 9, Severity.MEDIUM),
            (0, 0, Severity.LOW),
            (0, 1, Severity.HIGH),
        ],
    )
    def test_thresholds(self, system_qty, counted_qty, expected):
        assert severity(system_qty, counted_qty) == expected

    def test_percentage_with_nothing_on_the_books(self):
        assert discrepancy_percentage(0, 0) == 0.0
        assert discrepancy_percentage(0, 3) == 100.0

    def test_manual_count_of_eight_against_ten(self, session, started):
        detail = next(d for d in session.details_for_event(started.id) if d.system_quantity == 10)
        session.record_manual_count(started.id, detail.id, 8)

        assert detail.discrepancy == -2
        assert discrepancy_percentage(detail.system_quantity, detail.counted_quantity) == 20.0
        assert severity(detail.system_quantity, detail.counted_quantity) == Severity.HIGH


class TestEventReports:
    """Progress, overview and per-event summary."""

    def test_progress_before_and_after_counting(self, session, started):
        progress = event_progress(session, started.id)
        assert progress["completion_rate"] == 0.0
        # Alpen (0 on the books, 0 counted) already matches
        assert progress["accuracy_rate"] == pytest.approx(100.0 / 3)

        for d in session.details_for_event(started.id):
            session.record_manual_count(started.id, d.id, d.system_quantity)

        progress = event_progress(session, started.id)
        assert progress["completion_rate"] == pytest.approx(200.0 / 3)
        assert progress["accuracy_rate"] == 100.0

    def test_progress_for_planned_event(self, session):
        event = session.create_event("SPOT", date(2026, 3, 9))
        assert event_progress(session, event.id) == {"completion_rate": 0.0, "accuracy_rate": 100.0}

    def test_overview(self, session, started):
        session.create_event("SPOT", date(2026, 3, 9))
        detail = next(d for d in session.details_for_event(started.id) if d.brand == "Nordline")
        session.approve_discrepancy(detail.id, "LOST", "", "mgr-1")
        session.complete_counting(started.id)

        overview = counting_overview(session)

        assert overview == {
            "total_events": 2,
            "completed_events": 1,
            "in_progress_events": 0,
            "total_discrepancies": 2,
            "total_adjustments": 1,
            "pending_approvals": 1,
        }

    def test_event_summary(self, session, started):
        details = {d.brand: d for d in session.details_for_event(started.id)}
        session.record_manual_count(started.id, details["Nordline"].id, 4)
        session.record_manual_count(started.id, details["Alpen"].id, 2)
        session.record_manual_count(started.id, details["Urbano"].id, 5)
        session.approve_discrepancy(details["Nordline"].id, "THEFT", "", "mgr-1")
        session.complete_counting(started.id)

        report = event_summary(session, started.id, top=1)

        assert report["event_info"]["code"] == started.event_code
        assert report["event_info"]["status"] == "COMPLETED"
        assert report["event_info"]["duration_hours"] >= 0
        stats = report["statistics"]
        assert stats["total_items_counted"] == 3
        assert stats["completion_rate"] == 100.0
        assert stats["discrepancies"]["total_count"] == 2
        assert stats["discrepancies"]["shortage_units"] == 6
        assert stats["discrepancies"]["overage_units"] == 2
        assert stats["discrepancies"]["pending_review"] == 1
        assert stats["discrepancies"]["by_reason"]["THEFT"] == 1
        assert report["top_discrepancies"] == [
            {
                "product": "Nordline-NO1000-001-M",
                "system_qty": 10,
                "counted_qty": 4,
                "difference": -6,
                "severity": "HIGH",
            }
        ]

    def test_details_frame(self, session, started):
        df = details_frame(session.details_for_event(started.id))

        assert list(df.columns) == DETAIL_COLUMNS
        assert len(df) == 3
        assert set(df["severity"]) == {"LOW", "HIGH"}
        assert details_frame([]).empty
