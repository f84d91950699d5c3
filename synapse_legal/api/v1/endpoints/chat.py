"""Legal assistant chat endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from synapse_legal.api.dependencies import get_assistant
from synapse_legal.core.auth import get_current_user
from synapse_legal.schemas.auth import CurrentUser
from synapse_legal.schemas.chat import ChatRequest
from synapse_legal.schemas.responses import ApiResponse
from synapse_legal.services.chat_service import LegalAssistant
from synapse_legal.utils.responses import create_api_response

router = APIRouter()


@router.post(
    "",
    response_model=ApiResponse,
    summary="Ask the legal assistant",
    operation_id="chat",
)
async def chat(
    request: Request,
    payload: ChatRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    assistant: Annotated[LegalAssistant, Depends(get_assistant)],
) -> ApiResponse:
    reply = assistant.reply(payload)
    return create_api_response(
        data=reply,
        message="Reply generated",
        request=request,
    )
