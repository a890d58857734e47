import uuid
from sqlalchemy import Column, String, Boolean, Integer, ForeignKey, DateTime, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from seatdesk.db.session import Base

class Seat(Base):
    __tablename__ = "seats"
    __table_args__ = (UniqueConstraint("section", "position", name="uq_seats_section_position"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    seat_number = Column(String(16), unique=True, nullable=False, index=True) # base id, e.g. A1
    section = Column(String(1), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    slots = relationship(
        "SeatSlot",
        back_populates="seat",
        order_by="SeatSlot.slot_index",
        cascade="all, delete-orphan",
    )

class SeatSlot(Base):
    __tablename__ = "seat_slots"
    __table_args__ = (UniqueConstraint("seat_id", "slot_index", name="uq_seat_slots_seat_index"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    seat_id = Column(UUID(as_uuid=True), ForeignKey("seats.id"), nullable=False, index=True)
    slot_index = Column(Integer, nullable=False, default=1) # 1 = bare seat number, 2.. = _2, _3
    slot_number = Column(String(24), unique=True, nullable=False, index=True) # A1, A1_2

    # Subscriber; all empty on a placeholder slot
    subscriber_name = Column(String(120), nullable=True)
    national_id = Column(String(32), unique=True, nullable=True) # NULLs are exempt from uniqueness
    secondary_id = Column(String(32), nullable=True)
    guardian_name = Column(String(120), nullable=True)
    age = Column(Integer, nullable=True)
    address = Column(String(255), nullable=True)
    time_slot = Column(String(40), nullable=True) # "Full day", "Morning", ...

    plan_id = Column(UUID(as_uuid=True), ForeignKey("subscription_plans.id"), nullable=True, index=True)
    join_date = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, default=False, nullable=False, index=True)
    fee_paid = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    seat = relationship("Seat", back_populates="slots")
    plan = relationship("SubscriptionPlan", back_populates="slots")

    @property
    def is_occupied(self) -> bool:
        return bool(self.is_active and self.subscriber_name and self.subscriber_name.strip())

    @property
    def status(self) -> str:
        return "Occupied" if self.is_occupied else "Available"

    @property
    def seat_number(self) -> str:
        return self.slot_number.split("_", 1)[0]

    @property
    def plan_name(self):
        return self.plan.name if self.plan else None
