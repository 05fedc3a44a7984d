"""Shared utilities for QueryEngine."""
