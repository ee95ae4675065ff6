# app/schemas/tool_call.py
import json
from typing import Any, Dict, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from typing_extensions import Annotated


# ---------------------------------------------------------------------------
# Loose argument coercion
# ---------------------------------------------------------------------------
def _loose_str(value: Any) -> Optional[str]:
    """Voice platforms send whatever the LLM produced: numbers, blanks, nulls."""
    if value is None or isinstance(value, (dict, list)):
        return None
    if isinstance(value, bool):
        return str(value).lower()
    text = str(value).strip()
    return text or None


def _arguments_object(value: Any) -> Any:
    if value is None:
        return {}
    if isinstance(value, str):
        # some platforms forward the arguments as a JSON string
        try:
            value = json.loads(value) if value.strip() else {}
        except ValueError:
            return {}
    return value if isinstance(value, dict) else {}


LooseStr = Annotated[Optional[str], BeforeValidator(_loose_str)]


# ---------------------------------------------------------------------------
# Tool arguments
# ---------------------------------------------------------------------------
class _ToolArgs(BaseModel):
    model_config = ConfigDict(extra="ignore")


class BookAppointmentArgs(_ToolArgs):
    datetime: LooseStr = None
    name: LooseStr = None
    phone: LooseStr = None
    email: LooseStr = None
    notes: LooseStr = None


class CheckAvailabilityArgs(_ToolArgs):
    date: LooseStr = None


class CancelAppointmentArgs(_ToolArgs):
    phone: LooseStr = None
    reason: LooseStr = None


class GetCurrentDatetimeArgs(_ToolArgs):
    pass


# ---------------------------------------------------------------------------
# Envelope (tagged on functionName)
# ---------------------------------------------------------------------------
class _ToolCallBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    organization_id: UUID = Field(alias="organizationId")
    assistant_id: Optional[str] = Field(default=None, alias="assistantId")


class BookAppointmentCall(_ToolCallBase):
    function_name: Literal["book_appointment"] = Field(alias="functionName")
    arguments: Annotated[BookAppointmentArgs, BeforeValidator(_arguments_object)] = Field(
        default_factory=BookAppointmentArgs
    )


class CheckAvailabilityCall(_ToolCallBase):
    function_name: Literal["check_availability"] = Field(alias="functionName")
    arguments: Annotated[CheckAvailabilityArgs, BeforeValidator(_arguments_object)] = Field(
        default_factory=CheckAvailabilityArgs
    )


class CancelAppointmentCall(_ToolCallBase):
    function_name: Literal["cancel_appointment"] = Field(alias="functionName")
    arguments: Annotated[CancelAppointmentArgs, BeforeValidator(_arguments_object)] = Field(
        default_factory=CancelAppointmentArgs
    )


class GetCurrentDatetimeCall(_ToolCallBase):
    function_name: Literal["get_current_datetime"] = Field(alias="functionName")
    arguments: Annotated[GetCurrentDatetimeArgs, BeforeValidator(_arguments_object)] = Field(
        default_factory=GetCurrentDatetimeArgs
    )


ToolCallRequest = Annotated[
    Union[BookAppointmentCall, CheckAvailabilityCall, CancelAppointmentCall, GetCurrentDatetimeCall],
    Field(discriminator="function_name"),
]


# ---------------------------------------------------------------------------
# Result (spoken verbatim by the voice agent)
# ---------------------------------------------------------------------------
class ToolResult(BaseModel):
    success: bool
    message: str = Field(min_length=1)
    data: Optional[Dict[str, Any]] = None
