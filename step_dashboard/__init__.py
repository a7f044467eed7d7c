"""Step dashboard: Supabase-backed step-count viewer built on Streamlit."""

__version__ = "0.1.0"
