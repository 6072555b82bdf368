import logging
import os

import streamlit as st

from data_integrator import get_order_stats

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

st.set_page_config(
    page_title="Dashboard",
    page_icon="🥕"
)

st.sidebar.header("🥕 Dashboard")
st.title("Огляд замовлень")

ok, msg, stats = get_order_stats()
if not ok:
    st.error(f"Не вдалося завантажити статистику: {msg}")

col_total, col_day, col_week, col_month = st.columns(4)
col_total.metric("Всього", stats["total"])
col_day.metric("За добу", stats["day"])
col_week.metric("За тиждень", stats["week"])
col_month.metric("За 30 днів", stats["month"])

st.divider()
st.caption("Агрегація та експорт у Google Sheets: сторінка «Aggregation». "
           "Статуси замовлень: «Orders». Каталог: «Products».")
