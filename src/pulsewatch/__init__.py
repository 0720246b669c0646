"""Pulsewatch - real-time heart rate dashboard client."""

__version__ = "2.0.0"
