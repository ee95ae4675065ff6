# app/db/models/organization.py
from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import relationship
from app.db.base import Base


class OrganizationModel(Base):
    __tablename__ = "organizations"

    id = Column(UUID(as_uuid=True), primary_key=True)
    name = Column(String, nullable=False)
    timezone = Column(String, nullable=False, server_default="America/New_York")
    # {"monday": {"open": "09:00", "close": "17:00"}, "sunday": null, ...}
    business_hours = Column(JSONB, nullable=True)
    default_appointment_duration = Column(Integer, nullable=False, server_default="30")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint(
            "default_appointment_duration >= 5 AND default_appointment_duration <= 480",
            name="organizations_default_appointment_duration_check",
        ),
    )

    appointments = relationship("AppointmentModel", back_populates="organization")
    calendar_integrations = relationship(
        "CalendarIntegrationModel", back_populates="organization"
    )
