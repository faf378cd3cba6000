"""Concrete adapters for the interfaces in ``feedback360.interfaces``."""
