from __future__ import annotations

import streamlit as st

st.set_page_config(page_title="Stock Counting", page_icon="🧮", layout="wide")

pages = [
    st.Page("home.py", title="Home", icon="🏠"),
    st.Page("pages/1_📋_Counting_Events.py", title="Counting Events", icon="📋"),
    st.Page("pages/2_🔎_Count_Session.py", title="Count Session", icon="🔎"),
    st.Page("pages/3_⚖️_Discrepancies.py", title="Discrepancies", icon="⚖️"),
    st.Page("pages/4_📊_Summary.py", title="Summary", icon="📊"),
    st.Page("pages/5_📦_Stock_Catalog.py", title="Stock Catalog", icon="📦"),
    st.Page("pages/6_🧪_Data_Management.py", title="Data Management", icon="🧪"),
]

st.navigation(pages).run()
