"""Document upload and retrieval endpoints."""

from typing import Annotated, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Request, UploadFile, status

from synapse_legal.api.dependencies import get_analysis_runner, get_document_service
from synapse_legal.core.auth import get_current_user
from synapse_legal.core.exceptions import ValidationError
from synapse_legal.schemas.auth import CurrentUser
from synapse_legal.schemas.responses import ApiResponse
from synapse_legal.services.analysis import AnalysisStageRunner
from synapse_legal.services.document_service import DocumentService
from synapse_legal.utils.logging import get_logger
from synapse_legal.utils.responses import create_api_response

LOGGER = get_logger(__name__)

router = APIRouter()


@router.post(
    "/upload",
    response_model=ApiResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a legal document",
    operation_id="upload_document",
)
async def upload_document(
    request: Request,
    background_tasks: BackgroundTasks,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    document_service: Annotated[DocumentService, Depends(get_document_service)],
    runner: Annotated[AnalysisStageRunner, Depends(get_analysis_runner)],
    file: Optional[UploadFile] = File(None, description="PDF or Word document"),
    file_name: Optional[str] = Form(None, description="Display name, defaults to the file name"),
) -> ApiResponse:
    """Store a document and start its analysis.

    The response returns as soon as the document is stored with status
    ``pending``; poll ``GET /documents/{id}`` to follow the analysis.
    """
    if file is None or not file.filename:
        raise ValidationError("No file provided")

    if file.size is not None:
        document_service.validate_upload(file.filename, file.content_type, file.size)
    # One byte past the limit is enough to reject an oversize body
    content = await file.read(document_service.max_upload_bytes + 1)
    document = await document_service.upload_document(
        owner_id=current_user.id,
        filename=file.filename,
        content_type=file.content_type,
        content=content,
        display_name=file_name,
    )
    background_tasks.add_task(runner.run, document.id, current_user.id)

    return create_api_response(
        data={"document": document},
        message="Document uploaded successfully",
        request=request,
    )


@router.get(
    "",
    response_model=ApiResponse,
    summary="List documents",
    operation_id="list_documents",
)
async def list_documents(
    request: Request,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    document_service: Annotated[DocumentService, Depends(get_document_service)],
) -> ApiResponse:
    """List the caller's documents, newest first."""
    documents = await document_service.list_documents(current_user.id)
    return create_api_response(
        data={"documents": documents},
        message="Documents retrieved successfully",
        request=request,
    )


@router.get(
    "/{document_id}",
    response_model=ApiResponse,
    summary="Get document details",
    operation_id="get_document",
)
async def get_document(
    request: Request,
    document_id: str,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    document_service: Annotated[DocumentService, Depends(get_document_service)],
) -> ApiResponse:
    """Retrieve document metadata, including analysis status and progress."""
    document = await document_service.get_owned_document(current_user.id, document_id)
    return create_api_response(
        data={"document": document},
        message="Document details retrieved successfully",
        request=request,
    )


@router.get(
    "/{document_id}/analysis",
    response_model=ApiResponse,
    summary="Get document analysis",
    operation_id="get_document_analysis",
)
async def get_document_analysis(
    request: Request,
    document_id: str,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    document_service: Annotated[DocumentService, Depends(get_document_service)],
) -> ApiResponse:
    """Retrieve the analysis; ``analysis`` is null until the document is complete."""
    analysis = await document_service.get_analysis(current_user.id, document_id)
    return create_api_response(
        data={"analysis": analysis},
        message="Analysis retrieved successfully" if analysis else "Analysis not available yet",
        request=request,
    )


@router.get(
    "/{document_id}/file",
    response_model=ApiResponse,
    summary="Get a signed download URL",
    operation_id="get_document_file_url",
)
async def get_document_file_url(
    request: Request,
    document_id: str,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    document_service: Annotated[DocumentService, Depends(get_document_service)],
) -> ApiResponse:
    url = await document_service.get_file_url(current_user.id, document_id)
    return create_api_response(
        data={"url": url},
        message="File URL generated successfully",
        request=request,
    )
