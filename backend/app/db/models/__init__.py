from app.db.models.organization import OrganizationModel
from app.db.models.calendar_integration import CalendarIntegrationModel
from app.db.models.appointment import AppointmentModel

__all__ = ["OrganizationModel", "CalendarIntegrationModel", "AppointmentModel"]
