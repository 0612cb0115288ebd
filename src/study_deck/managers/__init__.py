"""Managers coordinating stores, scheduling and authentication."""
