"""Pytest configuration and shared fixtures."""

import os
import random
import time
from typing import Callable, Dict
from unittest.mock import AsyncMock, patch

import jwt
import pytest

# Set required environment variables for testing BEFORE importing the app
os.environ.setdefault("KV_BACKEND", "memory")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-that-is-long-enough-for-hs256")
os.environ.setdefault("STORAGE_ENSURE_BUCKET", "false")
os.environ.setdefault("ANALYSIS_START_DELAY_SECONDS", "0")
os.environ.setdefault("ANALYSIS_STAGE_DELAY_SECONDS", "0")
os.environ.setdefault("ANALYSIS_RETRY_DELAY_SECONDS", "0")

from fastapi.testclient import TestClient

from synapse_legal.core.config import Settings, get_settings
from synapse_legal.core.context import AppContext, build_context
from synapse_legal.main import create_app
from synapse_legal.repositories.kv_store import InMemoryKeyValueStore
from synapse_legal.schemas.auth import JWTClaims
from synapse_legal.services.identity_service import IdentityService
from synapse_legal.services.storage_service import StorageService

SIGNED_URL = "https://test.supabase.co/storage/v1/object/sign/legal-documents/file.pdf?token=abc"


@pytest.fixture
def settings() -> Settings:
    return get_settings()


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def mock_storage() -> AsyncMock:
    """Storage client that accepts every upload."""
    storage = AsyncMock(spec=StorageService)
    storage.upload_file.return_value = {"Key": "legal-documents/file.pdf"}
    storage.get_signed_url.return_value = SIGNED_URL
    storage.ensure_bucket.return_value = False
    return storage


@pytest.fixture
def mock_identity() -> AsyncMock:
    return AsyncMock(spec=IdentityService)


@pytest.fixture
def app_context(settings, kv_store, mock_storage, mock_identity) -> AppContext:
    """Context on the in-memory store with mocked Supabase services."""
    context = build_context(settings, kv_store=kv_store, rng=random.Random(7))
    context.storage = mock_storage
    context.identity = mock_identity
    return context


@pytest.fixture
def test_client(app_context):
    """Create FastAPI test client.

    Background tasks run before each request returns, and analysis delays
    are zero, so an upload is fully analyzed once ``post`` returns.
    """
    with TestClient(create_app(app_context)) as client:
        yield client


@pytest.fixture
def mock_verify_token():
    """Accept any bearer token; the token text is used as the user id."""

    def _claims(token: str) -> JWTClaims:
        if token == "invalid-token":
            raise jwt.InvalidTokenError("Invalid token signature")
        now = int(time.time())
        return JWTClaims(
            sub=token,
            email=f"{token}@example.com",
            role="authenticated",
            exp=now + 3600,
            iat=now,
            iss="https://test.supabase.co/auth/v1",
        )

    with patch("synapse_legal.core.jwt.JWTVerifier.verify_token", new_callable=AsyncMock) as mock_verify:
        mock_verify.side_effect = _claims
        yield mock_verify


@pytest.fixture
def auth_headers(mock_verify_token) -> Callable[[str], Dict[str, str]]:
    def _headers(user_id: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {user_id}"}

    return _headers


@pytest.fixture
def sample_pdf_content() -> bytes:
    """Sample PDF content for testing.

    Returns:
        bytes: Sample PDF content
    """
    # Minimal valid PDF header
    return b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n1 0 obj\n<<\n/Type /Catalog\n/Pages 2 0 R\n>>\nendobj\n"
