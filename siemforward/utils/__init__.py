"""Validation and settings helpers."""
