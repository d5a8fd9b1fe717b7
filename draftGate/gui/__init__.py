"""Tk windows: reconciliation dialog and settings."""
