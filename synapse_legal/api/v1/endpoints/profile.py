"""Profile endpoints for the authenticated user."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from synapse_legal.api.dependencies import get_profile_service
from synapse_legal.core.auth import get_current_user
from synapse_legal.schemas.auth import CurrentUser
from synapse_legal.schemas.profile import ProfileUpdate
from synapse_legal.schemas.responses import ApiResponse
from synapse_legal.services.profile_service import ProfileService
from synapse_legal.utils.responses import create_api_response

router = APIRouter()


@router.get(
    "",
    response_model=ApiResponse,
    summary="Get current user's profile",
    operation_id="get_profile",
)
async def get_profile(
    request: Request,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    profile_service: Annotated[ProfileService, Depends(get_profile_service)],
) -> ApiResponse:
    profile = await profile_service.get_profile(current_user.id)
    return create_api_response(
        data={"profile": profile},
        message="Profile retrieved successfully",
        request=request,
    )


@router.put(
    "",
    response_model=ApiResponse,
    summary="Update current user's profile",
    operation_id="update_profile",
)
async def update_profile(
    request: Request,
    update: ProfileUpdate,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    profile_service: Annotated[ProfileService, Depends(get_profile_service)],
) -> ApiResponse:
    """Change name, email or subscription tier; omitted fields keep their value."""
    profile = await profile_service.update_profile(current_user.id, update)
    return create_api_response(
        data={"profile": profile},
        message="Profile updated successfully",
        request=request,
    )
