"""Shared models, configuration, errors and diagnostics."""
