"""FastAPI dependencies resolving collaborators from the application context."""

from fastapi import Request

from synapse_legal.core.context import AppContext
from synapse_legal.services.analysis import AnalysisStageRunner
from synapse_legal.services.chat_service import LegalAssistant
from synapse_legal.services.document_service import DocumentService
from synapse_legal.services.profile_service import ProfileService


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def get_document_service(request: Request) -> DocumentService:
    return get_context(request).document_service


def get_profile_service(request: Request) -> ProfileService:
    return get_context(request).profile_service


def get_analysis_runner(request: Request) -> AnalysisStageRunner:
    return get_context(request).runner


def get_assistant(request: Request) -> LegalAssistant:
    return get_context(request).assistant
