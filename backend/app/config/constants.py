from enum import Enum


class ToolName(str, Enum):
    BOOK_APPOINTMENT = "book_appointment"
    CHECK_AVAILABILITY = "check_availability"
    CANCEL_APPOINTMENT = "cancel_appointment"
    GET_CURRENT_DATETIME = "get_current_datetime"


class AppointmentStatus(str, Enum):
    CONFIRMED = "confirmed"
    PENDING = "pending"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"
    COMPLETED = "completed"
    NO_SHOW = "no_show"


# statuses that block a slot / can still be cancelled by the caller
ACTIVE_STATUSES = (AppointmentStatus.CONFIRMED.value, AppointmentStatus.PENDING.value)


class Provider(str, Enum):
    INTERNAL = "internal"
    CAL_COM = "cal_com"


WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

# first N free times read out to the caller
MAX_SPOKEN_SLOTS = 5

MAX_NAME_LENGTH = 100
MAX_NOTES_LENGTH = 500
MAX_REASON_LENGTH = 500
