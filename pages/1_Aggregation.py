import datetime

import pandas as pd
import streamlit as st

from data_integrator import get_orders
from domain.errors import CatalogError, ConfigurationError
from element_component import show_result_toast
from services.catalog_service import get_catalog_products
from services.export_service import export_aggregation_to_sheets
from services.pivot_service import build_pivot, summarize_revenue
from utils.formatting import format_kg, format_money

# -----------------------------------------------------------------------------
# Page config
# -----------------------------------------------------------------------------
st.set_page_config(page_title="Aggregation", page_icon="📊")
st.title("📊 Aggregation & Reporting")

# Columns shown first on screen, in this order. Everything else follows
# alphabetically.
PREFERRED_PRODUCT_ORDER = [
    "Pomidor malinowy BBB/Tomaten pink BBB",
    "Ogórek/Einlegegurken",
    "SOgórek/Salat gurke",
    "Jabłko/Apfel Gloster",
    "Jabłko/Apfel Idared",
    "Jabłko/Apfel Prince",
    "Jabłko/Apfel Champion",
    "Jabłko/Apfel Golden",
    "Jabłko/Apfel Red Chief",
    "Jabłko/Apfel Jonagored",
    "Jabłko/Apfel Eliza",
    "Jabłko/Apfel Lobo",
    "grusza / birne",
    "grzyby suszone Borowik / Getrocknete Pilze",
    "Zestaw do zup/Suppe gesetzt",
    "Cebula żółta/ Zwiebel gelbe",
    "cebula czerwona",
    "Kapusta pekińska",
    "Burak/Rotebete",
    "Pietruszka/Petersilie",
    "seler/sellerie",
    "marchew / karotte",
    "czarna rzepa/Schwarze Rübe",
    "Kapusta / weiBkohl",
    "Czosnek/Knoblauch",
]

# -----------------------------------------------------------------------------
# 1) Date range
# -----------------------------------------------------------------------------
today = datetime.date.today()
col_from, col_to = st.columns(2)
with col_from:
    start_date = st.date_input("From Date", value=today - datetime.timedelta(days=7))
with col_to:
    end_date = st.date_input("To Date", value=today)

if start_date > end_date:
    st.error("Початкова дата пізніше кінцевої.")
    st.stop()

# -----------------------------------------------------------------------------
# 2) Load data
# -----------------------------------------------------------------------------
try:
    products = get_catalog_products()
except (ConfigurationError, CatalogError) as e:
    st.error(f"Каталог недоступний: {e}")
    st.stop()

ok, msg, orders = get_orders(start_date, end_date)
if not ok:
    st.error(f"Не вдалося завантажити замовлення: {msg}")
    st.stop()

pivot = build_pivot(orders, products, PREFERRED_PRODUCT_ORDER)
revenue = summarize_revenue(orders)

# -----------------------------------------------------------------------------
# 3) Shops x products
# -----------------------------------------------------------------------------
st.subheader("Shops Aggregation")
st.caption("Consolidated orders by shop (packs per product)")

if not pivot.customers:
    st.info("No data for selected range.")
else:
    records = []
    for customer in pivot.customers:
        record = {"Магазини": customer.customer_name, "Email": customer.email}
        for key in pivot.sorted_keys:
            entry = customer.products.get(key)
            if entry is None or entry.packs <= 0:
                record[key] = "-"
            else:
                record[key] = f"{entry.packs:g} pks / {format_kg(entry.weight)} {entry.unit}"
        record["waga"] = round(customer.total_weight, 1)
        records.append(record)

    subtotal = {"Магазини": "SUBTOTAL", "Email": ""}
    for key in pivot.sorted_keys:
        total = pivot.totals[key]
        subtotal[key] = f"{total.packs:g} / {format_kg(total.weight)}"
    subtotal["waga"] = round(pivot.total_weight, 1)
    records.append(subtotal)

    st.dataframe(pd.DataFrame(records), width="stretch", hide_index=True)

# -----------------------------------------------------------------------------
# 4) Revenue summary
# -----------------------------------------------------------------------------
st.subheader("Revenue Summary")
col_sales, col_shops, col_products, col_packs = st.columns(4)
col_sales.metric("Total Sales", format_money(revenue.total_revenue, revenue.currency))
col_shops.metric("Shops", revenue.shops)
col_products.metric("Products", len(pivot.sorted_keys))
col_packs.metric("Packs", f"{revenue.total_packs:g}")

st.caption(
    f"This view aggregates all orders between {start_date:%d.%m.%Y} and {end_date:%d.%m.%Y}."
)

# -----------------------------------------------------------------------------
# 5) Export completed orders to Google Sheets
# -----------------------------------------------------------------------------
st.divider()
if st.button("Export to Google Sheets", type="primary"):
    with st.spinner("Exporting..."):
        result = export_aggregation_to_sheets(
            start_date,
            end_date,
            product_source=lambda: products,
        )
    show_result_toast(result.ok, result.message)
    if result.ok:
        st.success(f"[{result.sheet_name}]({result.sheet_url})")
    else:
        st.error(result.message)
