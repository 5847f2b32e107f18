"""Shared helpers: error types, logging and text utilities."""
