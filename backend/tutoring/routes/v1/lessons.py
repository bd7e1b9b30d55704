# backend/tutoring/routes/v1/lessons.py
"""
Lesson routes - API v1

Lesson lifecycle endpoints under /api/v1/lessons.
All business logic delegated to LessonActionService.

Endpoints:
    GET  /{lesson_id}/cancellation-preview → Fee tier if the caller cancelled now
    POST /{lesson_id}/cancel               → Cancel a lesson
    GET  /{lesson_id}/reschedule-preview   → Fee tier if the caller rescheduled now
    POST /{lesson_id}/reschedule           → Move a lesson to a new time
    POST /{lesson_id}/complete             → Tutor marks a lesson completed
"""

import asyncio
import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, status
from fastapi.params import Path

from ...api.dependencies import get_current_user_id, get_lesson_action_service
from ...core.exceptions import DomainException
from ...core.ulid_helper import ULID_PATH_PATTERN
from ...schemas.lessons import (
    CancellationDecisionResponse,
    LessonActionResponse,
    LessonCancelRequest,
    LessonRescheduleRequest,
    LessonRescheduleResponse,
    LessonResponse,
    RescheduleDecisionResponse,
)
from ...services.lesson_action_service import LessonActionService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["lessons-v1"])

def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.get("/{lesson_id}/cancellation-preview", response_model=CancellationDecisionResponse)
async def preview_cancellation(
    lesson_id: str = Path(
        ...,
        description="Lesson ULID",
        pattern=ULID_PATH_PATTERN,
        examples=["01HF4G12ABCDEF3456789XYZAB"],
    ),
    user_id: str = Depends(get_current_user_id),
    service: LessonActionService = Depends(get_lesson_action_service),
) -> CancellationDecisionResponse:
    """Show the fee tier that would apply if the caller cancelled now."""
    try:
        decision = await asyncio.to_thread(service.preview_cancellation, lesson_id, user_id)
        return CancellationDecisionResponse.from_decision(decision)
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/{lesson_id}/cancel",
    response_model=LessonActionResponse,
    responses={
        403: {"description": "Not a participant"},
        404: {"description": "Lesson not found"},
        422: {"description": "Lesson already started or no longer scheduled"},
    },
)
async def cancel_lesson(
    lesson_id: str = Path(
        ...,
        description="Lesson ULID",
        pattern=ULID_PATH_PATTERN,
        examples=["01HF4G12ABCDEF3456789XYZAB"],
    ),
    payload: Optional[LessonCancelRequest] = Body(None),
    user_id: str = Depends(get_current_user_id),
    service: LessonActionService = Depends(get_lesson_action_service),
) -> LessonActionResponse:
    try:
        lesson, decision = await asyncio.to_thread(
            service.cancel_lesson, lesson_id, user_id, payload.reason if payload else None
        )
        return LessonActionResponse(
            lesson=LessonResponse.model_validate(lesson),
            decision=CancellationDecisionResponse.from_decision(decision),
        )
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{lesson_id}/reschedule-preview", response_model=RescheduleDecisionResponse)
async def preview_reschedule(
    lesson_id: str = Path(
        ...,
        description="Lesson ULID",
        pattern=ULID_PATH_PATTERN,
        examples=["01HF4G12ABCDEF3456789XYZAB"],
    ),
    user_id: str = Depends(get_current_user_id),
    service: LessonActionService = Depends(get_lesson_action_service),
) -> RescheduleDecisionResponse:
    try:
        decision = await asyncio.to_thread(service.preview_reschedule, lesson_id, user_id)
        return RescheduleDecisionResponse.from_decision(decision)
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/{lesson_id}/reschedule",
    response_model=LessonRescheduleResponse,
    responses={
        404: {"description": "Lesson not found"},
        422: {"description": "Reschedule cap reached, lesson started or notice too short"},
    },
)
async def reschedule_lesson(
    lesson_id: str = Path(
        ...,
        description="Lesson ULID",
        pattern=ULID_PATH_PATTERN,
        examples=["01HF4G12ABCDEF3456789XYZAB"],
    ),
    payload: LessonRescheduleRequest = Body(...),
    user_id: str = Depends(get_current_user_id),
    service: LessonActionService = Depends(get_lesson_action_service),
) -> LessonRescheduleResponse:
    """
    Reschedule a lesson:
    - At most two reschedules per lesson
    - The new time must be at least two hours ahead
    - A student moving a lesson within two hours of its start pays a fee
    """
    try:
        lesson, decision = await asyncio.to_thread(
            service.reschedule_lesson,
            lesson_id,
            user_id,
            payload.new_scheduled_at,
            payload.reason,
        )
        return LessonRescheduleResponse(
            lesson=LessonResponse.model_validate(lesson),
            decision=RescheduleDecisionResponse.from_decision(decision),
        )
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/{lesson_id}/complete", response_model=LessonResponse)
async def complete_lesson(
    lesson_id: str = Path(
        ...,
        description="Lesson ULID",
        pattern=ULID_PATH_PATTERN,
        examples=["01HF4G12ABCDEF3456789XYZAB"],
    ),
    user_id: str = Depends(get_current_user_id),
    service: LessonActionService = Depends(get_lesson_action_service),
) -> LessonResponse:
    try:
        lesson = await asyncio.to_thread(service.complete_lesson, lesson_id, user_id)
        return LessonResponse.model_validate(lesson)
    except DomainException as e:
        handle_domain_exception(e)
