from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional

import pandas as pd

from stockcount.db import insert_rows, q
from stockcount.models import DEFAULT_LOCATION, CountingEvent, StockItem
from stockcount.utils import parse_quantity

logger = logging.getLogger(__name__)

# Internal field -> accepted source column names (store exports use Turkish headers)
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "brand": ("brand", "Marka", "marka"),
    "product_group": ("product_group", "Ürün Grubu", "urun_grubu"),
    "product_code": ("product_code", "Ürün Kodu", "urun_kodu"),
    "color_code": ("color_code", "Renk Kodu", "renk_kodu"),
    "size": ("size", "Beden", "beden"),
    "quantity": ("quantity", "Envanter", "envanter"),
    "barcode": ("barcode", "Barkod", "barkod"),
    "season": ("season", "Sezon", "sezon"),
    "location": ("location", "Lokasyon", "lokasyon"),
}

REQUIRED_FIELDS = ("brand", "product_code")


def _pick(rec: Mapping[str, Any], field: str) -> Any:
    for name in FIELD_ALIASES[field]:
        if name in rec:
            return rec[name]
    return None


def _text(v: Any) -> str:
    if v is None:
        return ""
    if isinstance(v, float) and v != v:  # NaN from pandas
        return ""
    s = str(v).strip()
    # Barcodes read as numbers come back as "8690000000012.0"
    if s.endswith(".0") and s[:-2].isdigit():
        s = s[:-2]
    return s


def stock_item_from_record(rec: Mapping[str, Any], *, default_location: str = DEFAULT_LOCATION) -> StockItem:
    brand = _text(_pick(rec, "brand"))
    product_code = _text(_pick(rec, "product_code"))
    if not brand or not product_code:
        raise ValueError("Stock row needs at least a brand and a product code.")

    return StockItem(
        brand=brand,
        product_code=product_code,
        product_group=_text(_pick(rec, "product_group")),
        color_code=_text(_pick(rec, "color_code")),
        size=_text(_pick(rec, "size")),
        barcode=_text(_pick(rec, "barcode")),
        quantity=parse_quantity(_pick(rec, "quantity")),
        season=_text(_pick(rec, "season")),
        location=_text(_pick(rec, "location")) or default_location,
    )


def stock_items_from_records(
    records: Iterable[Mapping[str, Any]],
    *,
    default_location: str = DEFAULT_LOCATION,
) -> list[StockItem]:
    """Rows without brand/product code are skipped (blank spreadsheet lines)."""
    items: list[StockItem] = []
    skipped = 0
    for rec in records:
        try:
            items.append(stock_item_from_record(rec, default_location=default_location))
        except ValueError:
            skipped += 1
    if skipped:
        logger.info("Catalog import skipped %s row(s) without brand/product code", skipped)
    return items


def read_catalog_csv(file, *, default_location: str = DEFAULT_LOCATION) -> list[StockItem]:
    # Everything as text: barcodes must keep leading zeros
    df = pd.read_csv(file, dtype=str, keep_default_na=False)
    df.columns = [str(c).strip() for c in df.columns]

    known = {name for names in FIELD_ALIASES.values() for name in names}
    if not any(c in known for c in df.columns):
        raise ValueError("No recognised stock columns found (expected e.g. brand/product_code or Marka/Ürün Kodu).")

    items = stock_items_from_records(df.to_dict("records"), default_location=default_location)
    logger.info("Read %s catalog item(s) from CSV (%s rows)", len(items), len(df))
    return items


def select_for_event(items: Iterable[StockItem], event: CountingEvent) -> list[StockItem]:
    """Caller-side scoping before start_counting: the event's location filter, if any."""
    items = list(items)
    if not event.location_id:
        return items
    loc = event.location_id.strip().lower()
    return [i for i in items if i.location.strip().lower() == loc]


def replace_catalog(conn, items: list[StockItem]) -> int:
    with conn:
        conn.execute("DELETE FROM stock_items;")
        insert_rows(
            conn,
            "stock_items",
            [
                {
                    "brand": i.brand,
                    "product_group": i.product_group,
                    "product_code": i.product_code,
                    "color_code": i.color_code,
                    "size": i.size,
                    "barcode": i.barcode,
                    "quantity": int(i.quantity),
                    "season": i.season,
                    "location": i.location,
                }
                for i in items
            ],
        )
    logger.info("Stock catalog replaced: %s item(s)", len(items))
    return len(items)


def list_catalog(conn, *, location: Optional[str] = None) -> list[StockItem]:
    sql = "SELECT * FROM stock_items"
    params: tuple = ()
    if location:
        sql += " WHERE location = ?"
        params = (location,)
    rows = q(conn, sql + " ORDER BY brand, product_code, color_code, size, id", params)
    return [
        StockItem(
            brand=str(r["brand"]),
            product_code=str(r["product_code"]),
            product_group=r["product_group"] or "",
            color_code=r["color_code"] or "",
            size=r["size"] or "",
            barcode=r["barcode"] or "",
            quantity=int(r["quantity"] or 0),
            season=r["season"] or "",
            location=r["location"] or DEFAULT_LOCATION,
        )
        for r in rows
    ]


def catalog_locations(conn) -> list[str]:
    rows = q(conn, "SELECT DISTINCT location FROM stock_items WHERE location IS NOT NULL ORDER BY location")
    return [str(r["location"]) for r in rows]


def catalog_frame(items: Iterable[StockItem]) -> pd.DataFrame:
    rows = [
        {
            "product_key": i.product_key,
            "brand": i.brand,
            "product_group": i.product_group,
            "product_code": i.product_code,
            "color_code": i.color_code,
            "size": i.size,
            "barcode": i.barcode,
            "quantity": i.quantity,
            "season": i.season,
            "location": i.location,
        }
        for i in items
    ]
    return pd.DataFrame(rows, columns=[
        "product_key", "brand", "product_group", "product_code", "color_code",
        "size", "barcode", "quantity", "season", "location",
    ])
