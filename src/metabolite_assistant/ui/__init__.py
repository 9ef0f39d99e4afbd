"""Streamlit UI layer for the assistant overlay."""
