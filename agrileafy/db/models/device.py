"""Device database model."""
from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from agrileafy.db.base import Base


class Device(Base):
    """A registered IoT unit owning alerts and push tokens."""

    __tablename__ = "devices"

    id = Column(String(128), primary_key=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    alerts = relationship(
        "Alert", back_populates="device", cascade="all, delete-orphan", passive_deletes=True
    )
    tokens = relationship(
        "RegisteredToken",
        back_populates="device",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
