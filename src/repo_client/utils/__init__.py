"""Shared helpers for repository backends."""
