from fastapi import APIRouter

from synapse_legal.api.v1.endpoints import auth, chat, documents, profile

# Create API router
api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["Auth"])
api_router.include_router(documents.router, prefix="/documents", tags=["Documents"])
api_router.include_router(profile.router, prefix="/profile", tags=["Profile"])
api_router.include_router(chat.router, prefix="/chat", tags=["Chat"])

__all__ = ["api_router"]
