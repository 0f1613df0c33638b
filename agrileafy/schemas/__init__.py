"""Pydantic schemas package."""

from agrileafy.schemas.alert import AlertRecord

__all__ = ["AlertRecord"]
