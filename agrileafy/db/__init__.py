"""Persistence layer for devices, alerts and push tokens."""
