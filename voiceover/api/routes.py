"""FastAPI routes for the Voiceover Studio API."""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError

from voiceover.api.deps import (
    get_approval_tracker,
    get_caller_id,
    get_collaborator_registry,
    get_generation_orchestrator,
    get_voiceover_service,
)
from voiceover.models.collaborator import CollaboratorWithUser
from voiceover.models.content import Voiceover, VoiceoverUpdate
from voiceover.models.job import Job
from voiceover.services.approvals import ApprovalResult, ApprovalStatus, ApprovalTracker
from voiceover.services.collaborators import CollaboratorRegistry
from voiceover.services.generation import GenerationOrchestrator, StartGenerationResult
from voiceover.services.voiceovers import VoiceoverService
from voiceover.utils.errors import VoiceoverStudioError

logger = logging.getLogger(__name__)


# ==================== Error Response Model ====================


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
    error_type: str
    errors: Optional[List[Dict[str, Any]]] = None


router = APIRouter(
    prefix="/voiceovers",
    tags=["voiceovers"],
    responses={code: {"model": ErrorResponse} for code in (400, 403, 404, 409, 502, 503)},
)


# ==================== Exception Handlers ====================


async def validation_exception_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handle Pydantic validation errors raised below the request layer."""
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Validation error",
            "error_type": "ValidationError",
            "errors": exc.errors(include_url=False, include_context=False),
        },
    )


async def voiceover_studio_exception_handler(
    request: Request, exc: VoiceoverStudioError
) -> JSONResponse:
    """Map the error taxonomy onto HTTP using each error's status_code."""
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc}")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": str(exc),
            "error_type": type(exc).__name__,
        },
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP exceptions with consistent format."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.detail,
            "error_type": "HTTPException",
        },
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error_type": "InternalError",
        },
    )


# ==================== Request/Response Models ====================


class CreateVoiceoverRequest(BaseModel):
    """Request model for creating a voiceover."""

    title: Optional[str] = Field(default=None, max_length=255, description="Defaults to the placeholder title")


class AddCollaboratorRequest(BaseModel):
    """Request model for inviting a collaborator."""

    email: str = Field(min_length=3, max_length=320, description="Invitee email")


class ClaimInvitesResponse(BaseModel):
    claimed: int


# ==================== Voiceovers ====================


@router.get("", response_model=List[Voiceover])
async def list_voiceovers(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    caller_id: str = Depends(get_caller_id),
    service: VoiceoverService = Depends(get_voiceover_service),
) -> List[Voiceover]:
    """List the caller's voiceovers, newest first."""
    return await service.list(caller_id, limit=limit, offset=offset)


@router.post("", response_model=Voiceover, status_code=201)
async def create_voiceover(
    request: CreateVoiceoverRequest,
    caller_id: str = Depends(get_caller_id),
    service: VoiceoverService = Depends(get_voiceover_service),
) -> Voiceover:
    """Create an empty voiceover in 'drafting'."""
    return await service.create(caller_id, title=request.title)


@router.post("/claim-invites", response_model=ClaimInvitesResponse)
async def claim_invites(
    caller_id: str = Depends(get_caller_id),
    registry: CollaboratorRegistry = Depends(get_collaborator_registry),
) -> ClaimInvitesResponse:
    """
    Bind pending invites for the caller's registered email to the caller.

    The email comes from the user directory entry for the caller.
    """
    claimed = await registry.claim_invites_for(caller_id)
    return ClaimInvitesResponse(claimed=claimed)


@router.get("/jobs/{job_id}", response_model=Job)
async def get_job_status(
    job_id: str,
    caller_id: str = Depends(get_caller_id),
    orchestrator: GenerationOrchestrator = Depends(get_generation_orchestrator),
) -> Job:
    """Get the status of a generation job started by the caller."""
    return await orchestrator.get_job(job_id, caller_id)


@router.delete("/collaborators/{collaborator_id}", status_code=204)
async def remove_collaborator(
    collaborator_id: str,
    caller_id: str = Depends(get_caller_id),
    registry: CollaboratorRegistry = Depends(get_collaborator_registry),
) -> Response:
    """Remove a collaborator. Owner only."""
    await registry.remove(collaborator_id, caller_id)
    return Response(status_code=204)


@router.get("/{voiceover_id}", response_model=Voiceover)
async def get_voiceover(
    voiceover_id: str,
    caller_id: str = Depends(get_caller_id),
    service: VoiceoverService = Depends(get_voiceover_service),
) -> Voiceover:
    """Get a voiceover visible to the caller."""
    return await service.get(voiceover_id, caller_id)


@router.patch("/{voiceover_id}", response_model=Voiceover)
async def update_voiceover(
    voiceover_id: str,
    request: VoiceoverUpdate,
    caller_id: str = Depends(get_caller_id),
    service: VoiceoverService = Depends(get_voiceover_service),
) -> Voiceover:
    """Edit title, text or voice. Owner only."""
    return await service.update(voiceover_id, caller_id, request)


@router.delete("/{voiceover_id}", status_code=204)
async def delete_voiceover(
    voiceover_id: str,
    caller_id: str = Depends(get_caller_id),
    service: VoiceoverService = Depends(get_voiceover_service),
) -> Response:
    """Delete a voiceover and its collaborators. Owner only."""
    await service.delete(voiceover_id, caller_id)
    return Response(status_code=204)


# ==================== Generation ====================


@router.post("/{voiceover_id}/generate", response_model=StartGenerationResult, status_code=202)
async def start_generation(
    voiceover_id: str,
    caller_id: str = Depends(get_caller_id),
    orchestrator: GenerationOrchestrator = Depends(get_generation_orchestrator),
) -> StartGenerationResult:
    """
    Queue audio generation for a voiceover.

    Returns immediately with a job_id. Repeated calls while a job is open
    return the same job_id.
    """
    return await orchestrator.start_generation(voiceover_id, caller_id)


# ==================== Collaborators ====================


@router.get("/{voiceover_id}/collaborators", response_model=List[CollaboratorWithUser])
async def list_collaborators(
    voiceover_id: str,
    caller_id: str = Depends(get_caller_id),
    service: VoiceoverService = Depends(get_voiceover_service),
    registry: CollaboratorRegistry = Depends(get_collaborator_registry),
) -> List[CollaboratorWithUser]:
    """List collaborators. Visible to the owner and bound collaborators."""
    await service.get(voiceover_id, caller_id)
    return await registry.list(voiceover_id)


@router.post(
    "/{voiceover_id}/collaborators", response_model=CollaboratorWithUser, status_code=201
)
async def add_collaborator(
    voiceover_id: str,
    request: AddCollaboratorRequest,
    caller_id: str = Depends(get_caller_id),
    registry: CollaboratorRegistry = Depends(get_collaborator_registry),
) -> CollaboratorWithUser:
    """Invite a collaborator by email. Owner only."""
    return await registry.add(voiceover_id, request.email, caller_id)


# ==================== Approvals ====================


@router.get("/{voiceover_id}/approvals", response_model=ApprovalStatus)
async def get_approvals(
    voiceover_id: str,
    caller_id: str = Depends(get_caller_id),
    service: VoiceoverService = Depends(get_voiceover_service),
    approvals: ApprovalTracker = Depends(get_approval_tracker),
) -> ApprovalStatus:
    """Approval flags for the owner and every collaborator."""
    await service.get(voiceover_id, caller_id)
    return await approvals.get_status(voiceover_id)


@router.post("/{voiceover_id}/approve", response_model=ApprovalResult)
async def approve_voiceover(
    voiceover_id: str,
    caller_id: str = Depends(get_caller_id),
    approvals: ApprovalTracker = Depends(get_approval_tracker),
) -> ApprovalResult:
    """Record the caller's approval."""
    return await approvals.approve(voiceover_id, caller_id)


@router.post("/{voiceover_id}/revoke", response_model=ApprovalResult)
async def revoke_approval(
    voiceover_id: str,
    caller_id: str = Depends(get_caller_id),
    approvals: ApprovalTracker = Depends(get_approval_tracker),
) -> ApprovalResult:
    """Withdraw the caller's approval."""
    return await approvals.revoke(voiceover_id, caller_id)
