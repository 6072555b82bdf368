import datetime

import pandas as pd
import streamlit as st

from data_integrator import get_paginated_orders, update_order_status
from domain.models import STATUS_COMPLETED, STATUS_PROCESSING
from element_component import confirm_delete_order_dialog, show_result_toast
from utils.data_migrator import items_summary

st.set_page_config(page_title="Orders", page_icon="🧾")
st.title("🧾 Orders")
st.caption("Manage your customer orders and status")

PAGE_SIZE = 20

if "orders_page" not in st.session_state:
    st.session_state["orders_page"] = 1
if "order_delete_state" not in st.session_state:
    st.session_state["order_delete_state"] = False

# -----------------------------------------------------------------------------
# Filters
# -----------------------------------------------------------------------------
use_range = st.checkbox("Filter by date", value=False)
start_date = end_date = None
if use_range:
    today = datetime.date.today()
    col_from, col_to = st.columns(2)
    with col_from:
        start_date = st.date_input("From Date", value=today - datetime.timedelta(days=7))
    with col_to:
        end_date = st.date_input("To Date", value=today)

ok, msg, page_data = get_paginated_orders(
    st.session_state["orders_page"], PAGE_SIZE, start_date, end_date
)
if not ok:
    st.error(f"Не вдалося завантажити замовлення: {msg}")
    st.stop()

orders = page_data["orders"]

if st.session_state["order_delete_state"]:
    st.success("Замовлення видалено")
    st.session_state["order_delete_state"] = False

if not orders:
    st.info("Замовлень немає.")
    st.stop()

# -----------------------------------------------------------------------------
# Table
# -----------------------------------------------------------------------------
df = pd.DataFrame(
    [
        {
            "Date": o.order_date.strftime("%d.%m.%Y %H:%M") if o.order_date else "-",
            "Customer": o.customer_name,
            "Email": o.customer_email,
            "Items": items_summary(o.items),
            "Total": f"{o.total_price:.2f} {o.currency}",
            "Status": o.status,
        }
        for o in orders
    ]
)
st.dataframe(df, width="stretch", hide_index=True)

# -----------------------------------------------------------------------------
# Actions
# -----------------------------------------------------------------------------
st.subheader("Actions")
labels = {f"{o.customer_name} · {o.id[:8]}": o for o in orders}
selected_label = st.selectbox("Order", options=list(labels.keys()))
selected = labels[selected_label]

col_status, col_delete = st.columns(2)
with col_status:
    next_status = STATUS_PROCESSING if selected.status == STATUS_COMPLETED else STATUS_COMPLETED
    if st.button(f"Mark as {next_status}"):
        ok, msg = update_order_status(selected.id, next_status)
        show_result_toast(ok, msg)
        if ok:
            st.rerun()
with col_delete:
    if st.button("Delete", type="secondary"):
        confirm_delete_order_dialog(selected, "order_delete_state")

# -----------------------------------------------------------------------------
# Pagination
# -----------------------------------------------------------------------------
st.divider()
col_prev, col_info, col_next = st.columns([1, 2, 1])
with col_prev:
    if st.button("◀", disabled=page_data["current_page"] <= 1):
        st.session_state["orders_page"] -= 1
        st.rerun()
with col_info:
    st.write(
        f"Page {page_data['current_page']} of {max(page_data['total_pages'], 1)} "
        f"({page_data['total_count']} orders)"
    )
with col_next:
    if st.button("▶", disabled=page_data["current_page"] >= page_data["total_pages"]):
        st.session_state["orders_page"] += 1
        st.rerun()
