"""Streamlit dashboard for a signed-in user's step records stored in the
Supabase `steps` table.

Run:
    streamlit run dashboard.py
"""

# ── Imports ────────────────────────────────────────────────────────────────
import streamlit as st
from supabase import ClientOptions, create_client

from step_dashboard.auth import AuthService
from step_dashboard.config import ConfigError, load_settings
from step_dashboard.logging_config import setup_logging
from step_dashboard.store import StepStore
from step_dashboard.views import render_dashboard, render_login

# ── Streamlit page config ─────────────────────────────────────────────────
st.set_page_config(page_title="Step Dashboard", layout="centered")

# ── Settings + logging ────────────────────────────────────────────────────
try:
    # .env first; st.secrets covers Streamlit Cloud deployments.
    secrets = st.secrets.to_dict() if st.secrets.load_if_toml_exists() else None
    settings = load_settings(fallback=secrets)
except ConfigError as exc:
    st.error(f"{exc}. Add them to .env or .streamlit/secrets.toml.")
    st.stop()

setup_logging(settings.log_level)

# ── Supabase client (one per browser session, it carries the auth tokens) ─
# PKCE: confirmation and reset links return with ?code= instead of a URL fragment.
if "supabase" not in st.session_state:
    st.session_state.supabase = create_client(
        settings.supabase_url,
        settings.supabase_anon_key,
        options=ClientOptions(flow_type="pkce"),
    )
supa = st.session_state.supabase

auth = AuthService(supa, st.session_state)
store = StepStore(supa, settings)

# ── Routing ───────────────────────────────────────────────────────────────
auth_code = st.query_params.get("code")
state = auth.state(auth_code)
if state.loading:
    with st.spinner("Loading..."):
        state = auth.restore(auth_code)
    st.query_params.clear()

if state.identity is None:
    render_login(auth)
else:
    render_dashboard(state.identity, auth, store, settings)
