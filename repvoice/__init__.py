"""Voice-driven workout logging assistant."""

__version__ = "0.1.0"
