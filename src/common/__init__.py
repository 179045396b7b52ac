"""Shared helpers used across the CLI, driver and versioning modules."""
