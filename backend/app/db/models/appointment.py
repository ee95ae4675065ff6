# app/db/models/appointment.py
import uuid

from sqlalchemy import (
    CheckConstraint,
    Column,
    Computed,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB, TSTZRANGE, UUID, ExcludeConstraint
from sqlalchemy.orm import relationship
from app.db.base import Base
from sqlalchemy.sql import func


class AppointmentModel(Base):
    __tablename__ = "appointments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(
        UUID(as_uuid=True),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    provider = Column(String, nullable=False, default="internal")  # internal | cal_com
    external_id = Column(String, nullable=True, index=True)  # provider booking uid
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False)
    duration_minutes = Column(Integer, nullable=True)
    # Half-open booked range, used by the exclusion constraint below
    during = Column(
        TSTZRANGE,
        Computed("tstzrange(start_time, end_time, '[)')", persisted=True),
    )
    attendee_name = Column(String, nullable=False)
    attendee_phone = Column(String, nullable=True, index=True)
    attendee_email = Column(String, nullable=True)
    status = Column(String, nullable=False, default="confirmed")
    notes = Column(Text, nullable=True)
    # "metadata" is reserved on declarative classes
    metadata_ = Column("metadata", JSONB, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="appointments_time_order_check"),
        CheckConstraint(
            "status IN ('confirmed', 'pending', 'cancelled', 'rescheduled', 'completed', 'no_show')",
            name="appointments_status_check",
        ),
        # No two non-cancelled appointments of one organization may overlap.
        ExcludeConstraint(
            ("organization_id", "="),
            ("during", "&&"),
            name="no_overlapping_appointments",
            using="gist",
            where=text("status <> 'cancelled'"),
        ),
    )

    organization = relationship("OrganizationModel", back_populates="appointments")
