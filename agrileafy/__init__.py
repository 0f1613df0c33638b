"""Push notification fan-out and retention for Agri-Leafy sensor alerts."""

__version__ = "0.1.0"
