"""feedback360 — cached competency analytics for 360-degree feedback."""

__version__ = "0.1.0"
