import uuid
from sqlalchemy import Column, String, Boolean, Integer, DECIMAL, DateTime, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from seatdesk.db.session import Base

class SubscriptionPlan(Base):
    __tablename__ = "subscription_plans"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), unique=True, nullable=False, index=True)
    price = Column(DECIMAL(10, 2), nullable=False)
    duration = Column(String(50), nullable=False) # free text: "1 month", "2 weeks"
    subscriber_count = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    slots = relationship("SeatSlot", back_populates="plan")
