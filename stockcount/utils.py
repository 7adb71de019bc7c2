from __future__ import annotations

import uuid
from datetime import datetime, date, timezone
from typing import Any, Optional


def now_utc() -> datetime:
    # UTC, second precision, so ISO strings round-trip exactly.
    return datetime.now(timezone.utc).replace(microsecond=0)


def new_id() -> str:
    return str(uuid.uuid4())


def safe_div(n: float, d: float) -> float:
    return float(n) / float(d) if d else 0.0


def parse_quantity(value: Any) -> int:
    """
    Catalog quantities arrive as text ("12", " 7 ", "3.0", "", "n/a").
    Anything that is not a number counts as 0.
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return 0 if value != value else int(value)  # NaN
    s = str(value).strip()
    if not s:
        return 0
    try:
        return int(s)
    except ValueError:
        pass
    try:
        return int(float(s))
    except (ValueError, OverflowError):
        return 0


def to_iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def parse_dt(value: Optional[str]) -> Optional[datetime]:
    if value is None or value == "":
        return None
    return datetime.fromisoformat(str(value))


def parse_date(value: Optional[str]) -> Optional[date]:
    if value is None or value == "":
        return None
    return date.fromisoformat(str(value)[:10])
