import pandas as pd
import streamlit as st

from data_integrator import update_product_metadata
from domain.errors import CatalogError, ConfigurationError
from domain.models import AGGREGATION_CARDBOARD, AGGREGATION_WEIGHT
from element_component import show_result_toast
from services.catalog_service import get_catalog_products, paginate_products
from services.pricing_service import describe_quote, pack_label
from utils.formatting import format_money

st.set_page_config(page_title="Products", page_icon="🥬")
st.title("🥬 Products")
st.caption("Товари редагуються у Fakturownia. Тут лише зображення, тип агрегації та позиція.")

PAGE_SIZE = 20

if "products_page" not in st.session_state:
    st.session_state["products_page"] = 1

try:
    products = get_catalog_products()
except (ConfigurationError, CatalogError) as e:
    st.error(f"Каталог недоступний: {e}")
    st.stop()

query = st.text_input("Пошук", placeholder="Назва або категорія")
page_data = paginate_products(products, st.session_state["products_page"], PAGE_SIZE, query)

col_total, col_active = st.columns(2)
col_total.metric("Товарів", page_data["total_count"])
col_active.metric("Активних", page_data["active_count"])

df = pd.DataFrame(
    [
        {
            "Name": p.name,
            "Pack": pack_label(p),
            "Price / pack": format_money(p.price_per_cardboard, p.currency),
            "Quote (1 pack)": describe_quote(p, 1),
            "Aggregation": p.aggregation_type,
            "Position": p.position,
            "Active": p.active,
        }
        for p in page_data["products"]
    ]
)
st.dataframe(df, width="stretch", hide_index=True)

# -----------------------------------------------------------------------------
# Metadata
# -----------------------------------------------------------------------------
if page_data["products"]:
    st.subheader("Metadata")
    by_label = {f"{p.name} ({p.id})": p for p in page_data["products"]}

    with st.form("product_metadata_form", enter_to_submit=False):
        label = st.selectbox("Товар", options=list(by_label.keys()))
        product = by_label[label]
        aggregation = st.selectbox(
            "Тип агрегації",
            options=[AGGREGATION_WEIGHT, AGGREGATION_CARDBOARD],
            index=1 if product.is_cardboard else 0,
        )
        position = st.number_input("Позиція", value=int(product.position), step=1)
        image = st.text_input("Зображення (URL)", value=product.image)

        if st.form_submit_button("Зберегти"):
            ok, msg = update_product_metadata(
                product.id,
                image=image.strip() or None,
                aggregation_type=aggregation,
                position=int(position),
            )
            show_result_toast(ok, msg)

st.divider()
col_prev, col_info, col_next = st.columns([1, 2, 1])
with col_prev:
    if st.button("◀", disabled=page_data["current_page"] <= 1):
        st.session_state["products_page"] -= 1
        st.rerun()
with col_info:
    st.write(f"Page {page_data['current_page']} of {max(page_data['total_pages'], 1)}")
with col_next:
    if st.button("▶", disabled=page_data["current_page"] >= page_data["total_pages"]):
        st.session_state["products_page"] += 1
        st.rerun()
