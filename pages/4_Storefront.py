import streamlit as st

from domain.errors import CatalogError, ConfigurationError
from domain.models import CartLine
from services.catalog_service import get_catalog_products
from services.order_service import place_order
from services.pricing_service import cart_total, describe_quote, pack_label
from utils.formatting import format_money

st.set_page_config(page_title="Storefront", page_icon="🛒")
st.title("🛒 Storefront")

try:
    products = [p for p in get_catalog_products() if p.active]
except (ConfigurationError, CatalogError) as e:
    st.error(f"Каталог недоступний: {e}")
    st.stop()

if not products:
    st.warning("Немає активних товарів.")
    st.stop()

with st.form("checkout_form", enter_to_submit=False):
    quantities = {}
    for product in products:
        col_name, col_qty = st.columns([3, 1])
        with col_name:
            st.markdown(f"**{product.name}** · {pack_label(product)}")
            st.caption(describe_quote(product, 1))
        with col_qty:
            quantities[product.id] = st.number_input(
                "Packs", min_value=0, step=1, value=0, key=f"qty_{product.id}"
            )

    st.divider()
    customer_name = st.text_input("Назва магазину")
    customer_email = st.text_input("Email")

    submitted = st.form_submit_button("Замовити")

if submitted:
    lines = [CartLine(product=p, quantity=int(quantities[p.id])) for p in products if quantities[p.id] > 0]
    ok, msg, order = place_order(customer_name, customer_email, lines)
    if ok:
        st.success(
            f"Замовлення {order.id[:8]} прийнято: "
            f"{format_money(cart_total(lines), order.currency)}"
        )
    else:
        st.error(msg)
