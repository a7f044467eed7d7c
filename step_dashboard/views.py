"""Streamlit pages: login (sign in / sign up / reset) and the step dashboard."""

import logging

import plotly.express as px
import streamlit as st

from .auth import AuthError, AuthService, Identity
from .config import Settings
from .normalize import ChartSeries, format_instant
from .service import STATUS_EMPTY, STATUS_OFFLINE, DashboardData, load_step_data
from .store import StepStore

logger = logging.getLogger(__name__)

DATA_KEY = "step_data"


# ── Login page ─────────────────────────────────────────────────────────────
def render_login(auth: AuthService) -> None:
    st.title("👟 Step Dashboard")
    tab_login, tab_signup, tab_reset = st.tabs(["Login", "Sign up", "Reset password"])

    with tab_login:
        email = st.text_input("Email", key="login_email")
        password = st.text_input("Password", type="password", key="login_password")
        if st.button("Login", key="login_btn"):
            try:
                auth.sign_in(email, password)
            except AuthError as exc:
                st.error(str(exc))
            else:
                st.rerun()

    with tab_signup:
        email = st.text_input("Email", key="signup_email")
        password = st.text_input("Password", type="password", key="signup_password")
        confirm = st.text_input("Confirm Password", type="password", key="signup_confirm")
        if st.button("Sign Up", key="signup_btn"):
            if password != confirm:
                st.error("Passwords don't match.")
            else:
                _sign_up(auth, email, password)

    with tab_reset:
        email = st.text_input("Email", key="reset_email")
        if st.button("Send reset link", key="reset_btn"):
            try:
                auth.send_password_reset(email)
            except AuthError as exc:
                st.error(str(exc))
            else:
                st.success("Password reset email sent.")


def _sign_up(auth: AuthService, email: str, password: str) -> None:
    try:
        identity = auth.sign_up(email, password)
    except AuthError as exc:
        st.error(str(exc))
    else:
        if identity is None:
            st.info("Check your inbox to confirm your account, then log in.")
        else:
            st.rerun()


# ── Dashboard page ─────────────────────────────────────────────────────────
def step_chart(series: ChartSeries):
    # One x slot per record; HH:MM labels repeat across days.
    positions = list(range(len(series.values)))
    fig = px.line(
        x=positions,
        y=series.values,
        markers=True,
        labels={"x": "Time", "y": "Steps"},
        title="Your Step Count Over Time",
    )
    fig.update_traces(name="Steps Over Time", fill="tozeroy", line_shape="spline")
    fig.update_xaxes(tickmode="array", tickvals=positions, ticktext=series.labels)
    fig.update_yaxes(rangemode="tozero")
    return fig


def _fetch(identity: Identity, store: StepStore, settings: Settings) -> DashboardData:
    with st.spinner("Loading data..."):
        data = load_step_data(
            identity,
            store,
            tz=settings.tz,
            recent_limit=settings.recent_limit,
            table=settings.steps_table,
            user_field=settings.user_field,
        )
    st.session_state[DATA_KEY] = data
    return data


def render_dashboard(identity: Identity, auth: AuthService, store: StepStore, settings: Settings) -> None:
    head, logout_col = st.columns([4, 1])
    with head:
        st.title("Your Step Data")
        st.caption(f"User ID: {identity.uid}")
    with logout_col:
        if st.button("Logout", use_container_width=True):
            auth.sign_out()
            st.session_state.pop(DATA_KEY, None)
            st.rerun()

    data = st.session_state.get(DATA_KEY)
    if data is None:
        data = _fetch(identity, store, settings)

    if data.debug_info:
        st.info(data.debug_info)
    if data.error:
        st.error(data.error)

    if data.status in (STATUS_EMPTY, STATUS_OFFLINE) or not data.records:
        if data.status == STATUS_EMPTY:
            st.write("No step data available yet.")
        if st.button("Refresh Data"):
            _fetch(identity, store, settings)
            st.rerun()
        _debug_button(identity, data)
        return

    st.plotly_chart(step_chart(data.series), use_container_width=True)

    # ── Statistics ────────────────────────────────────────────────────────
    stats = data.statistics
    cols = st.columns(3)
    cols[0].metric("Total Records", stats.count)
    cols[1].metric("Total Steps", f"{stats.total:,}")
    cols[2].metric("Average", "—" if stats.rounded_average is None else stats.rounded_average)

    with st.expander("Show Raw Data (for debugging)"):
        st.dataframe(data.frame, use_container_width=True)

    st.subheader("Recent Activity")
    for record in data.recent:
        when, steps = st.columns([3, 1])
        when.write(format_instant(record.observed_at, settings.tz))
        steps.write(f"**{record.steps} steps**")

    if st.button("Refresh Data"):
        _fetch(identity, store, settings)
        st.rerun()
    _debug_button(identity, data)


def _debug_button(identity: Identity, data: DashboardData) -> None:
    if st.button("Log Debug Info"):
        logger.info("=== FULL DEBUG INFO ===")
        logger.info("User: %s", identity)
        logger.info("Raw Data: %s", data.raw_documents)
        logger.info("Processed Data: %s", data.records)
        st.toast("Debug info written to the server log.")
