"""Shared utilities: logging, exceptions and track storage."""
