"""Temporal workers for ERP expense extraction."""
