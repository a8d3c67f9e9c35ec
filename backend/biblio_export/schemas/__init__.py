"""Canonical model and request types."""
