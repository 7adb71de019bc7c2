"""Pytest configuration and fixtures."""

import itertools
from datetime import date, datetime, timedelta, timezone

import pytest

from stockcount.db import ensure_schema, open_conn
from stockcount.models import StockItem
from stockcount.services.counting import CountingSession

START = datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)


class TickingClock:
    """Deterministic clock: every call is one second after the previous one."""

    def __init__(self, start: datetime = START):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + timedelta(seconds=1)
        return current


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def session(clock) -> CountingSession:
    """Empty counting session with a fixed clock and sequential ids."""
    counter = itertools.count(1)
    return CountingSession(clock=clock, id_factory=lambda: f"id-{next(counter):04d}")


@pytest.fixture
def catalog() -> list:
    """Three SKUs with system quantities 10, 0 and 5."""
    return [
        StockItem(brand="Nordline", product_code="NO1000", product_group="Jacket", color_code="001",
                  size="M", barcode="8690000000011", quantity=10),
        StockItem(brand="Alpen", product_code="AL2000", product_group="Boots", color_code="240",
                  size="42", barcode="8690000000028", quantity=0),
        StockItem(brand="Urbano", product_code="UR3000", product_group="T-Shirt", color_code="560",
                  size="L", barcode="8690000000035", quantity=5, location="Store Floor"),
    ]


@pytest.fixture
def started(session, catalog):
    """A FULL event already in progress over the sample catalog."""
    event = session.create_event("FULL", date(2026, 3, 2), notes="Monthly full count")
    session.start_counting(event.id, catalog)
    return event


@pytest.fixture
def conn():
    """In-memory SQLite connection with the schema applied."""
    connection = open_conn(":memory:")
    ensure_schema(connection)
    yield connection
    connection.close()
