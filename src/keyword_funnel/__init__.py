"""Keyword import, funnel metrics and webhook export pipeline."""

__version__ = "0.1.0"
