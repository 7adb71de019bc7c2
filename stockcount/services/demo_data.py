from __future__ import annotations

import logging
import random
from datetime import date, timedelta

from stockcount.db import ensure_schema
from stockcount.models import DEFAULT_LOCATION, DiscrepancyReason, EventType, StockItem
from stockcount.services.catalog import replace_catalog
from stockcount.services.counting import CountingSession
from stockcount.services.persistence import save_session

logger = logging.getLogger(__name__)

DEMO_BRANDS = ["Nordline", "Alpen", "Urbano"]
DEMO_GROUPS = ["Jacket", "Trousers", "T-Shirt", "Boots"]
DEMO_COLORS = ["001", "240", "560"]
DEMO_SIZES = ["S", "M", "L", "XL"]
DEMO_LOCATIONS = [DEFAULT_LOCATION, "Store Floor"]


def demo_catalog(*, seed: int = 7, products: int = 8) -> list[StockItem]:
    rnd = random.Random(seed)
    items: list[StockItem] = []
    barcode = 8690000000000
    for n in range(products):
        brand = DEMO_BRANDS[n % len(DEMO_BRANDS)]
        group = DEMO_GROUPS[n % len(DEMO_GROUPS)]
        code = f"{brand[:2].upper()}{1000 + n}"
        color = rnd.choice(DEMO_COLORS)
        location = DEMO_LOCATIONS[n % len(DEMO_LOCATIONS)]
        for size in DEMO_SIZES:
            barcode += 1
            items.append(
                StockItem(
                    brand=brand,
                    product_code=code,
                    product_group=group,
                    color_code=color,
                    size=size,
                    barcode=str(barcode),
                    quantity=rnd.randint(0, 25),
                    season="2026SS",
                    location=location,
                )
            )
    return items


def wipe_all(conn) -> None:
    # Keep schema, delete data (order matters for FKs).
    for t in ["counting_adjustments", "counting_details", "counting_events", "stock_items"]:
        conn.execute(f"DELETE FROM {t};")
    conn.commit()
    logger.info("All counting data wiped")


def load_demo_data(conn, *, seed: int = 7) -> CountingSession:
    rnd = random.Random(seed)
    ensure_schema(conn)

    catalog = demo_catalog(seed=seed)
    replace_catalog(conn, catalog)

    session = CountingSession()
    today = date.today()

    # Completed full count with reviewed discrepancies
    done = session.create_event(EventType.FULL, today - timedelta(days=14), notes="Quarterly full count")
    details = session.start_counting(done.id, catalog)
    for d in details:
        session.record_manual_count(done.id, d.id, max(0, d.system_quantity + rnd.choice([-2, 0, 0, 0, 1])))
    session.complete_counting(done.id)
    discrepant = [d for d in details if d.discrepancy != 0]
    for i, d in enumerate(discrepant):
        if i % 3 == 2:
            session.reject_discrepancy(d.id, "Recount requested", reviewer_id="demo-manager")
            continue
        reason = DiscrepancyReason.FOUND if d.discrepancy > 0 else rnd.choice(
            [DiscrepancyReason.LOST, DiscrepancyReason.DAMAGED, DiscrepancyReason.DATA_ERROR]
        )
        session.approve_discrepancy(d.id, reason, "Demo review", "demo-manager")
        if i % 2 == 0:
            session.apply_adjustment(d.id)

    # Cycle count in progress, partially scanned
    cycle = session.create_event(EventType.CYCLE, today, abc_group="A", notes="A-group weekly cycle")
    cycle_items = [i for i in catalog if i.product_group in ("Jacket", "Boots")]
    session.start_counting(cycle.id, cycle_items)
    for item in cycle_items[: len(cycle_items) // 2]:
        for _ in range(rnd.randint(1, 4)):
            session.record_scan(cycle.id, item.barcode, counted_by="demo-counter")

    # Planned spot check on the shop floor
    session.create_event(
        EventType.SPOT,
        today + timedelta(days=3),
        notes="Spot check after delivery",
        location_id="Store Floor",
    )

    save_session(conn, session)
    logger.info("Demo data loaded: %s catalog item(s), %s event(s)", len(catalog), len(session.events))
    return session
