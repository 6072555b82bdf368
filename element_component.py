import streamlit as st
import pandas as pd

from data_integrator import delete_order


@st.dialog("Підтвердження")
def confirm_delete_order_dialog(order, state_name):
    df = pd.DataFrame(
        [
            ("ID", order.id),
            ("Клієнт", order.customer_name),
            ("Email", order.customer_email),
            ("Сума", f"{order.total_price:.2f} {order.currency}"),
        ],
        columns=["Key", "Value"],
    )
    st.dataframe(df, hide_index=True)

    col_yes, col_no = st.columns(2)

    with col_yes:
        if st.button("Так, видалити", type="primary", key="confirm_yes"):
            status, msg = delete_order(order.id)
            st.session_state[state_name] = status

            if not status:
                st.error(msg)
            else:
                st.rerun()
    with col_no:
        if st.button("Ні"):
            st.rerun()


def show_result_toast(ok: bool, message: str) -> None:
    st.toast(message, icon="✅" if ok else "⚠️")
