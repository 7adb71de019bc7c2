from __future__ import annotations

import streamlit as st

from stockcount.config import get_settings
from stockcount.db import get_conn, ensure_schema
from stockcount.logging_setup import setup_logging
from stockcount.services.persistence import load_session
from stockcount.services.reports import counting_overview

st.set_page_config(page_title="Stock Counting", page_icon="🧮", layout="wide")

st.title("🧮 Stock Counting")
st.caption("Plan counting events, count by barcode or by hand, and review discrepancies before they touch inventory.")

settings = get_settings()
setup_logging(settings)
conn = get_conn(settings.db_path)
ensure_schema(conn)

with st.sidebar:
    st.subheader("Environment")
    st.write(f"**Data directory:** `{settings.data_dir}`")
    st.write(f"**Database:** `{settings.db_path.name}`")

overview = counting_overview(load_session(conn))
c1, c2, c3, c4 = st.columns(4)
c1.metric("Counting events", overview["total_events"])
c2.metric("In progress", overview["in_progress_events"])
c3.metric("Discrepancies", overview["total_discrepancies"])
c4.metric("Pending approvals", overview["pending_approvals"])

st.info(
    "Use the left sidebar navigation. Start with **🧪 Data Management** to load demo data or **📦 Stock Catalog** to upload a stock list, "
    "then create an event in **📋 Counting Events** and count it in **🔎 Count Session**.",
    icon="ℹ️",
)
