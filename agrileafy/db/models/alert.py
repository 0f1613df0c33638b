"""Alert database model."""
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from agrileafy.db.base import Base


class Alert(Base):
    """Sensor alert raised for a device, awaiting or recording push delivery."""

    __tablename__ = "alerts"

    device_id = Column(
        String(128), ForeignKey("devices.id", ondelete="CASCADE"), primary_key=True, index=True
    )
    id = Column(String(128), primary_key=True)

    title = Column(String(255))
    message = Column(Text)
    priority = Column(String(20), default="medium")
    # Stored verbatim as the device reported it; unparseable values are kept
    timestamp = Column(String(64))

    # Delivery bookkeeping
    sent = Column(Boolean, default=False)
    sent_at = Column(DateTime(timezone=True))
    recipient_count = Column(Integer)
    dispatch_claimed_at = Column(DateTime(timezone=True))

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    device = relationship("Device", back_populates="alerts")
