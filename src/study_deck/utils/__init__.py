"""Datetime and logging helpers shared across the service."""
