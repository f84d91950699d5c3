"""Application context.

Every collaborator the request handlers and the analysis runner need is
built once here and attached to ``app.state.context``. Tests build their own
context with in-memory storage and mocked remote services.
"""

import random
from dataclasses import dataclass
from typing import Optional

from synapse_legal.core.config import Settings
from synapse_legal.core.database import DatabaseClient, create_engine_from_settings, create_session_maker
from synapse_legal.core.exceptions import ConfigurationError
from synapse_legal.core.jwks import JWKSService
from synapse_legal.core.jwt import JWTVerifier
from synapse_legal.repositories.analysis_repository import AnalysisRepository
from synapse_legal.repositories.document_repository import DocumentRepository
from synapse_legal.repositories.kv_store import InMemoryKeyValueStore, KeyValueStore, SqlKeyValueStore
from synapse_legal.repositories.profile_repository import ProfileRepository
from synapse_legal.services.analysis import AnalysisProducer, AnalysisStageRunner
from synapse_legal.services.chat_service import LegalAssistant
from synapse_legal.services.document_service import DocumentService
from synapse_legal.services.identity_service import IdentityService
from synapse_legal.services.profile_service import ProfileService
from synapse_legal.services.storage_service import StorageService
from synapse_legal.utils.logging import get_logger

LOGGER = get_logger(__name__)


@dataclass
class AppContext:
    """Process-wide collaborators shared by all requests."""

    settings: Settings
    kv_store: KeyValueStore
    documents: DocumentRepository
    analyses: AnalysisRepository
    profiles: ProfileRepository
    storage: StorageService
    identity: IdentityService
    jwt_verifier: JWTVerifier
    runner: AnalysisStageRunner
    assistant: LegalAssistant
    db_client: Optional[DatabaseClient] = None

    @property
    def document_service(self) -> DocumentService:
        return DocumentService(
            documents=self.documents,
            analyses=self.analyses,
            storage=self.storage,
            bucket=self.settings.storage.bucket,
            max_upload_bytes=self.settings.storage.max_upload_bytes,
            signed_url_expiry_seconds=self.settings.storage.signed_url_expiry_seconds,
        )

    @property
    def profile_service(self) -> ProfileService:
        return ProfileService(self.profiles, identity_service=self.identity)


def build_kv_store(settings: Settings) -> tuple[KeyValueStore, Optional[DatabaseClient]]:
    """Create the configured key-value backend.

    Returns:
        The store, plus the database client when the backend is SQL

    Raises:
        ConfigurationError: If ``KV_BACKEND`` names an unknown backend
    """
    backend = settings.db.kv_backend.lower()
    if backend == "memory":
        LOGGER.warning("Using the in-memory key-value store; data is lost on restart")
        return InMemoryKeyValueStore(), None
    if backend == "sql":
        engine = create_engine_from_settings(settings.db)
        return SqlKeyValueStore(create_session_maker(engine)), DatabaseClient(engine)
    raise ConfigurationError(f"Unknown KV_BACKEND: {settings.db.kv_backend}")


def build_context(
    settings: Settings,
    kv_store: Optional[KeyValueStore] = None,
    producer: Optional[AnalysisProducer] = None,
    rng: Optional[random.Random] = None,
) -> AppContext:
    """Wire every collaborator from settings.

    Args:
        settings: Application settings
        kv_store: Store to use instead of the configured backend
        producer: Analysis producer; defaults to the mock one
        rng: Random source for the chat assistant

    Returns:
        AppContext: Ready to attach to the application
    """
    db_client = None
    if kv_store is None:
        kv_store, db_client = build_kv_store(settings)

    documents = DocumentRepository(kv_store)
    analyses = AnalysisRepository(kv_store)
    profiles = ProfileRepository(kv_store)

    jwks_service = None
    if settings.supabase_url:
        jwks_service = JWKSService(settings.supabase_url, cache_ttl=settings.supabase.jwks_cache_ttl)

    runner = AnalysisStageRunner(
        documents=documents,
        analyses=analyses,
        profiles=profiles,
        producer=producer,
        start_delay=settings.analysis.start_delay_seconds,
        stage_delay=settings.analysis.stage_delay_seconds,
        max_concurrent=settings.analysis.max_concurrent,
        max_step_retries=settings.analysis.max_step_retries,
        retry_delay=settings.analysis.retry_delay_seconds,
    )

    return AppContext(
        settings=settings,
        kv_store=kv_store,
        documents=documents,
        analyses=analyses,
        profiles=profiles,
        storage=StorageService(
            settings.supabase_url, settings.supabase_service_role_key, timeout=settings.http_timeout
        ),
        identity=IdentityService(
            settings.supabase_url, settings.supabase_service_role_key, timeout=settings.http_timeout
        ),
        jwt_verifier=JWTVerifier(
            settings.supabase_url, jwt_secret=settings.supabase_jwt_secret, jwks_service=jwks_service
        ),
        runner=runner,
        assistant=LegalAssistant(rng),
        db_client=db_client,
    )
