"""Shared utilities: logging, error hierarchy, concurrency primitives."""
