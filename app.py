"""
Ag Mortgage Bank portal: Streamlit UI entry point.
"""

import streamlit as st

# Load .env first so the API URL and log settings are picked up
from agbank.utils.config import load_config
load_config()

from agbank.services.client_session import ClientSession
from agbank.utils.logger import setup_from_config
from agbank.ui.views import (
    render_admin_dashboard,
    render_loan_application,
    render_loan_calculator,
    render_login,
    render_registration,
    render_savings_management,
    render_user_dashboard,
)

log = setup_from_config()

st.set_page_config(page_title="Ag Mortgage Bank", layout="wide")
st.title("Ag Mortgage Bank")

# Storage, client and stores belong to one browser session. The client id rides
# in the URL so a reload finds the same session file.
if "client" not in st.session_state:
    client = ClientSession.open(st.query_params.get("sid"))
    st.query_params["sid"] = client.client_id
    st.session_state.client = client

session = st.session_state.client.session
store = st.session_state.client.store
store.ensure_loaded()

with st.sidebar:
    if session.is_authenticated:
        user = session.user
        st.caption(f"Signed in as **{user.get('firstName', '')} {user.get('lastName', '')}**")
        st.caption("Administrator" if session.is_admin else user.get("email", ""))
        if store.loading:
            st.caption("Loading…")
        if st.button("Sign out", use_container_width=True):
            session.logout()
            st.rerun()
        if session.is_admin:
            with st.expander("Debug"):
                if st.button("Log store state", use_container_width=True):
                    store.debug_state()
    else:
        st.caption("Secure banking for loans and savings.")

if not session.is_authenticated:
    calc_tab, login_tab, register_tab = st.tabs(["Loan calculator", "Sign in", "Open an account"])
    with calc_tab:
        render_loan_calculator()
    with login_tab:
        render_login(session)
    with register_tab:
        render_registration(session)
elif session.is_admin:
    render_admin_dashboard(store, session.user)
else:
    dash_tab, loan_tab, savings_tab = st.tabs(["Dashboard", "Apply for a loan", "Savings"])
    with dash_tab:
        render_user_dashboard(store, session.user)
    with loan_tab:
        render_loan_application(store, session.user)
    with savings_tab:
        render_savings_management(store, session.user)
