"""Account creation endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status

from synapse_legal.api.dependencies import get_profile_service
from synapse_legal.schemas.auth import SignupRequest
from synapse_legal.schemas.responses import ApiResponse
from synapse_legal.services.profile_service import ProfileService
from synapse_legal.utils.responses import create_api_response

router = APIRouter()


@router.post(
    "/signup",
    response_model=ApiResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
    operation_id="signup",
)
async def signup(
    request: Request,
    payload: SignupRequest,
    profile_service: Annotated[ProfileService, Depends(get_profile_service)],
) -> ApiResponse:
    """Create the identity and its profile. No token is required."""
    user = await profile_service.signup(payload)
    return create_api_response(
        data={"user": user},
        message="Account created successfully",
        request=request,
    )
