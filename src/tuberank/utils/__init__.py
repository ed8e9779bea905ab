"""Shared utilities: configuration, errors and logging."""
