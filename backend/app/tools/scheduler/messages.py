# Sentences spoken verbatim by the voice agent. Every tool result carries one.

# --- caller input ---
MISSING_DATETIME = "I need to know what date and time you'd like to book. What time works for you?"
MISSING_NAME = "I need your name to complete the booking. What name should I put this under?"
MISSING_PHONE = "I need a phone number to confirm the booking. What's the best number to reach you?"
INVALID_PHONE = "I didn't catch that phone number correctly. Could you please repeat it?"
INVALID_EMAIL = "That email address doesn't look quite right. Could you please repeat it?"
UNPARSEABLE_DATETIME = "I didn't understand that date and time. Could you say it again?"
MISSING_DATE = "What date would you like me to check availability for?"
UNPARSEABLE_DATE = "I didn't understand that date. Which day would you like me to check?"
CANCEL_MISSING_PHONE = (
    "I need your phone number to look up your appointment. "
    "What's the phone number you booked with?"
)

# --- business rules ---
CLOSED_ON_DAY = "I'm sorry, we're closed on that day. Would you like to pick a different date?"
OUTSIDE_HOURS = (
    "That time is outside our business hours. We're open from {open} to {close}. "
    "Would you like to pick a time within those hours?"
)
NO_AVAILABILITY = (
    "I'm sorry, there are no available appointments on that date. "
    "Would you like to check a different day?"
)
AVAILABLE_SLOTS = "On {date}, I have openings at {times}{more}. Which time works best for you?"
CANCEL_NOT_FOUND = (
    "I wasn't able to find an upcoming appointment with that phone number. "
    "Could you double-check the number you booked with?"
)

# --- conflicts ---
SLOT_TAKEN = (
    "I'm sorry, that time slot is no longer available. "
    "Would you like me to check for other available times?"
)

# --- success ---
BOOKED = "I've booked your appointment for {date} at {time}.{email_note} Is there anything else I can help you with?"
BOOKED_EMAIL_NOTE = " You should receive a confirmation email shortly."
CANCELLED = (
    "Your appointment on {date} at {time} has been cancelled. "
    "Would you like to reschedule or is there anything else I can help with?"
)
CURRENT_DATETIME = "Today is {date} and it's currently {time}."

# --- infrastructure ---
SCHEDULE_UNAVAILABLE = (
    "I'm having trouble accessing our schedule right now. "
    "Let me take your information and have someone call you back."
)
BOOKING_FAILED = (
    "I'm having trouble completing the booking right now. Let me take your information "
    "and have someone call you back to confirm the appointment."
)
AVAILABILITY_FAILED = (
    "I'm having trouble checking the calendar right now. "
    "Would you like me to take your information instead?"
)
CALENDAR_NOT_SET_UP = (
    "I'm sorry, the calendar system isn't fully set up yet. "
    "Can I take your information and have someone call you back?"
)
CANCEL_LOOKUP_FAILED = (
    "I'm having trouble looking up your appointment right now. "
    "Would you like me to have someone call you back?"
)
CANCEL_FAILED = (
    "I'm having trouble cancelling the appointment right now. "
    "Would you like me to have someone call you back to help with this?"
)
GENERIC_FAILURE = (
    "I'm having trouble with that right now. "
    "Would you like me to take your information instead?"
)
