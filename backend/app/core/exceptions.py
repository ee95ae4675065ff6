"""Typed failures raised below the tool handlers.

Caller-input and business-rule problems are never exceptions; they are
returned as spoken ``ToolResult`` values. Only storage conflicts and
provider failures are raised, so handlers can tell a taken slot apart from
an infrastructure outage.
"""


class SlotUnavailableError(Exception):
    """The requested range overlaps a non-cancelled appointment (SQLSTATE 23P01)."""

    def __init__(self, organization_id, start_time, end_time):
        self.organization_id = organization_id
        self.start_time = start_time
        self.end_time = end_time
        super().__init__(
            f"Slot {start_time} - {end_time} is already booked for organization {organization_id}"
        )
