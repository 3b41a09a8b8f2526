"""Validation and logging utilities."""
