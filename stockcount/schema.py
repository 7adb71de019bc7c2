SCHEMA_SQL = r"""
-- Working stock catalog (nominal quantities), replaced wholesale on import
CREATE TABLE IF NOT EXISTS stock_items (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  brand TEXT NOT NULL,
  product_group TEXT,
  product_code TEXT NOT NULL,
  color_code TEXT,
  size TEXT,
  barcode TEXT,
  quantity INTEGER NOT NULL DEFAULT 0,
  season TEXT,
  location TEXT
);

-- Counting events (one counting exercise)
CREATE TABLE IF NOT EXISTS counting_events (
  id TEXT PRIMARY KEY,
  event_code TEXT NOT NULL UNIQUE,       -- SCE-2026-001
  event_type TEXT NOT NULL,              -- FULL / CYCLE / SPOT
  status TEXT NOT NULL DEFAULT 'PLANNED',-- PLANNED / IN_PROGRESS / COMPLETED / CANCELLED
  scheduled_date TEXT NOT NULL,          -- ISO date
  started_at TEXT,
  completed_at TEXT,
  created_by TEXT,
  assigned_to TEXT NOT NULL DEFAULT '[]',-- JSON list of user ids
  location_id TEXT,
  abc_group TEXT,                        -- CYCLE only

  total_items_planned INTEGER NOT NULL DEFAULT 0,
  total_items_counted INTEGER NOT NULL DEFAULT 0,
  discrepancy_count INTEGER NOT NULL DEFAULT 0,

  notes TEXT,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL,
  version INTEGER NOT NULL DEFAULT 1
);

-- Counting lines (one per SKU, created when counting starts)
CREATE TABLE IF NOT EXISTS counting_details (
  id TEXT PRIMARY KEY,
  counting_event_id TEXT NOT NULL,
  product_key TEXT NOT NULL,
  brand TEXT,
  product_code TEXT,
  product_group TEXT,
  color_code TEXT,
  size TEXT,
  barcode TEXT,
  location TEXT,

  system_quantity INTEGER NOT NULL DEFAULT 0,
  counted_quantity INTEGER NOT NULL DEFAULT 0,
  discrepancy INTEGER NOT NULL DEFAULT 0,  -- counted - system (reporting copy)
  counted_by TEXT,
  counted_at TEXT,

  adjustment_status TEXT NOT NULL DEFAULT 'PENDING',
  discrepancy_reason TEXT,
  discrepancy_notes TEXT,
  adjusted_quantity INTEGER,
  adjusted_by TEXT,
  adjusted_at TEXT,

  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL,
  version INTEGER NOT NULL DEFAULT 1,
  FOREIGN KEY (counting_event_id) REFERENCES counting_events(id) ON DELETE CASCADE
);

-- Approved adjustments (append-only audit trail, kept even if the event is deleted)
CREATE TABLE IF NOT EXISTS counting_adjustments (
  id TEXT PRIMARY KEY,
  counting_detail_id TEXT NOT NULL,
  adjustment_type TEXT NOT NULL,         -- INCREASE / DECREASE
  quantity_change INTEGER NOT NULL,
  reason TEXT NOT NULL,
  financial_impact REAL NOT NULL DEFAULT 0,
  approved_by TEXT,
  approved_at TEXT NOT NULL,
  applied_to_inventory INTEGER NOT NULL DEFAULT 0,
  applied_at TEXT,
  created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS ix_counting_details_event ON counting_details(counting_event_id);
CREATE INDEX IF NOT EXISTS ix_counting_details_barcode ON counting_details(barcode);
"""
