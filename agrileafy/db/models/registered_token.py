"""Registered push token model."""
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from agrileafy.db.base import Base


class RegisteredToken(Base):
    """FCM registration token for one client installation of a device."""

    __tablename__ = "fcm_tokens"

    device_id = Column(
        String(128), ForeignKey("devices.id", ondelete="CASCADE"), primary_key=True, index=True
    )
    token_key = Column(String(64), primary_key=True)  # sha256 hex of token

    token = Column(Text, nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    registered_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    device = relationship("Device", back_populates="tokens")
