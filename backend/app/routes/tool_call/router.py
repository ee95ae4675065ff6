from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import TypeAdapter, ValidationError
from typing import Any, Dict
import logging

from app.config.constants import ToolName
from app.core.middleware import verify_internal_secret
from app.schemas.tool_call import ToolCallRequest, ToolResult
from app.tools.scheduler import messages
from app.tools.scheduler.tools import dispatch_tool_call

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/internal", tags=["internal"])

_tool_call_adapter = TypeAdapter(ToolCallRequest)
_KNOWN_FUNCTIONS = {tool.value for tool in ToolName}


@router.post(
    "/tool-call",
    response_model=ToolResult,
    dependencies=[Depends(verify_internal_secret)],
)
async def tool_call_route(payload: Dict[str, Any] = Body(...)):
    """Execute one calendar tool call on behalf of the voice server."""
    function_name = payload.get("functionName")
    if not function_name or not isinstance(function_name, str):
        raise HTTPException(status_code=400, detail="Missing or invalid functionName")
    if function_name not in _KNOWN_FUNCTIONS:
        raise HTTPException(status_code=400, detail=f"Unknown function: {function_name}")

    try:
        call = _tool_call_adapter.validate_python(payload)
    except ValidationError as e:
        logger.warning(f"Invalid tool-call envelope for {function_name}: {e.errors()}")
        raise HTTPException(status_code=400, detail="Missing or invalid organizationId")

    try:
        return await dispatch_tool_call(call)
    except Exception as e:
        logger.error(
            f"Unhandled error in tool call {function_name} for organization "
            f"{call.organization_id}: {type(e).__name__} - {e}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content=ToolResult(success=False, message=messages.GENERIC_FAILURE).model_dump(),
        )
