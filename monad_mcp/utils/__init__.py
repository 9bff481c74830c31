"""Utility helpers: errors, validation and unit formatting."""
