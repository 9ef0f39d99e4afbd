"""Conversational assistant overlay for the metabolite exploration dashboard."""

__version__ = "0.1.0"
