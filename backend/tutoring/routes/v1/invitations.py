# backend/tutoring/routes/v1/invitations.py
"""
Invitation routes - API v1

Endpoints:
    POST /student/invitations                  → Invite a tutor (caller is the student)
    POST /student/invitations/{id}/cancel      → Withdraw a pending invitation
    GET  /tutor/invitations                    → Caller's pending invitations
    POST /tutor/invitations/respond            → Accept or reject an invitation
    POST /admin/invitations/expire             → Expire overdue invitations
"""

import asyncio
import logging
from typing import List, NoReturn

from fastapi import APIRouter, Body, Depends, HTTPException, status
from fastapi.params import Path

from ...api.dependencies import get_current_user_id, get_invitation_service, require_admin
from ...core.exceptions import ConflictException, DomainException
from ...core.ulid_helper import ULID_PATH_PATTERN
from ...schemas.invitations import (
    ExpireInvitationsResponse,
    InvitationCreate,
    InvitationRespondRequest,
    InvitationRespondResponse,
    InvitationResponse,
)
from ...schemas.lessons import LessonResponse
from ...services.invitation_service import InvitationService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["invitations-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.post(
    "/student/invitations",
    response_model=InvitationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_invitation(
    payload: InvitationCreate = Body(...),
    student_id: str = Depends(get_current_user_id),
    service: InvitationService = Depends(get_invitation_service),
) -> InvitationResponse:
    try:
        invitation = await asyncio.to_thread(
            service.create_invitation,
            student_id,
            payload.tutor_id,
            payload.proposed_times,
            payload.amount,
        )
        return InvitationResponse.model_validate(invitation)
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/student/invitations/{invitation_id}/cancel",
    response_model=InvitationResponse,
    responses={422: {"description": "Invitation already answered"}},
)
async def cancel_invitation(
    invitation_id: str = Path(
        ...,
        description="Invitation ULID",
        pattern=ULID_PATH_PATTERN,
        examples=["01HF4G12ABCDEF3456789XYZAB"],
    ),
    student_id: str = Depends(get_current_user_id),
    service: InvitationService = Depends(get_invitation_service),
) -> InvitationResponse:
    try:
        invitation = await asyncio.to_thread(service.cancel_invitation, invitation_id, student_id)
        return InvitationResponse.model_validate(invitation)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/tutor/invitations", response_model=List[InvitationResponse])
async def list_pending_invitations(
    tutor_id: str = Depends(get_current_user_id),
    service: InvitationService = Depends(get_invitation_service),
) -> List[InvitationResponse]:
    try:
        invitations = await asyncio.to_thread(service.get_pending_for_tutor, tutor_id)
        return [InvitationResponse.model_validate(item) for item in invitations]
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/tutor/invitations/respond",
    response_model=InvitationRespondResponse,
    responses={
        409: {"description": "Proposed times conflict with availability; retry with force_accept"},
        410: {"description": "Invitation expired"},
    },
)
async def respond_to_invitation(
    payload: InvitationRespondRequest = Body(...),
    tutor_id: str = Depends(get_current_user_id),
    service: InvitationService = Depends(get_invitation_service),
) -> InvitationRespondResponse:
    """
    Accept or reject an invitation.

    Accepting picks the first proposed time that fits the tutor's grid. When
    none fits, the call fails with 409 and suggested times; sending
    ``force_accept=true`` accepts the first proposed time anyway.
    """
    try:
        invitation, result, lesson = await asyncio.to_thread(
            service.respond,
            payload.invitation_id,
            tutor_id,
            payload.accept,
            payload.force_accept,
            payload.response,
        )
        if result.conflict and not result.forced:
            raise ConflictException(
                result.details or "Proposed times conflict with your availability",
                code="INVITATION_CONFLICT",
                details=result.to_payload(),
            )
        return InvitationRespondResponse(
            **result.to_payload(),
            invitation=InvitationResponse.model_validate(invitation),
            lesson=LessonResponse.model_validate(lesson) if lesson else None,
        )
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/admin/invitations/expire", response_model=ExpireInvitationsResponse)
async def expire_overdue_invitations(
    _: str = Depends(require_admin),
    service: InvitationService = Depends(get_invitation_service),
) -> ExpireInvitationsResponse:
    try:
        expired = await asyncio.to_thread(service.expire_overdue)
        return ExpireInvitationsResponse(expired=expired)
    except DomainException as e:
        handle_domain_exception(e)
