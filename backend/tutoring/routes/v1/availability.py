# backend/tutoring/routes/v1/availability.py
"""
Tutor availability routes - API v1

Weekly grid management for the calling tutor plus the public conflict
check used before sending an invitation.
All business logic delegated to AvailabilityService.

Endpoints:
    GET  /tutor/availability              → Weekly grid and booked slots
    PUT  /tutor/availability              → Replace the weekly grid
    POST /tutor/availability/toggle-slot  → Flip one slot
    POST /tutor/availability/toggle-day   → Enable or disable a whole day
    POST /invitations/check-availability  → Does a proposed time fit the tutor's grid
"""

import asyncio
import logging
from typing import List, NoReturn

from fastapi import APIRouter, Body, Depends, HTTPException, status

from ...api.dependencies import get_availability_service, get_current_user_id
from ...core.exceptions import DomainException
from ...schemas.availability import (
    CheckAvailabilityRequest,
    ConflictResultResponse,
    ToggleDayRequest,
    ToggleSlotRequest,
    WeeklyAvailabilityResponse,
    WeeklyAvailabilityUpdate,
    WeeklySlot,
)
from ...services.availability_checker import WeeklyAvailabilitySlot
from ...services.availability_service import AvailabilityService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["availability-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _grid_response(
    service: AvailabilityService, tutor_id: str, slots: List[WeeklyAvailabilitySlot]
) -> WeeklyAvailabilityResponse:
    booked = sorted(service.get_booked_slots(tutor_id))
    return WeeklyAvailabilityResponse(
        tutor_id=tutor_id,
        slots=[WeeklySlot.model_validate(slot) for slot in slots],
        booked_slots=[WeeklySlot(day_of_week=day, hour=hour) for day, hour in booked],
    )


@router.get("/tutor/availability", response_model=WeeklyAvailabilityResponse)
async def get_weekly_availability(
    tutor_id: str = Depends(get_current_user_id),
    service: AvailabilityService = Depends(get_availability_service),
) -> WeeklyAvailabilityResponse:
    try:
        slots = await asyncio.to_thread(service.get_weekly_slots, tutor_id)
        return await asyncio.to_thread(_grid_response, service, tutor_id, slots)
    except DomainException as e:
        handle_domain_exception(e)


@router.put("/tutor/availability", response_model=WeeklyAvailabilityResponse)
async def replace_weekly_availability(
    payload: WeeklyAvailabilityUpdate = Body(...),
    tutor_id: str = Depends(get_current_user_id),
    service: AvailabilityService = Depends(get_availability_service),
) -> WeeklyAvailabilityResponse:
    """Save the whole grid; booked slots stay available regardless of the payload."""
    available = [(slot.day_of_week, slot.hour) for slot in payload.slots if slot.is_available]
    try:
        slots = await asyncio.to_thread(service.replace_weekly_slots, tutor_id, available)
        return await asyncio.to_thread(_grid_response, service, tutor_id, slots)
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/tutor/availability/toggle-slot",
    response_model=WeeklyAvailabilityResponse,
    responses={409: {"description": "Slot is booked by an upcoming lesson"}},
)
async def toggle_slot(
    payload: ToggleSlotRequest = Body(...),
    tutor_id: str = Depends(get_current_user_id),
    service: AvailabilityService = Depends(get_availability_service),
) -> WeeklyAvailabilityResponse:
    try:
        slots = await asyncio.to_thread(service.toggle_slot, tutor_id, payload.day_of_week, payload.hour)
        return await asyncio.to_thread(_grid_response, service, tutor_id, slots)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/tutor/availability/toggle-day", response_model=WeeklyAvailabilityResponse)
async def toggle_day(
    payload: ToggleDayRequest = Body(...),
    tutor_id: str = Depends(get_current_user_id),
    service: AvailabilityService = Depends(get_availability_service),
) -> WeeklyAvailabilityResponse:
    try:
        slots = await asyncio.to_thread(service.toggle_day, tutor_id, payload.day_of_week, payload.enabled)
        return await asyncio.to_thread(_grid_response, service, tutor_id, slots)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/invitations/check-availability", response_model=ConflictResultResponse)
async def check_availability(
    payload: CheckAvailabilityRequest = Body(...),
    _: str = Depends(get_current_user_id),
    service: AvailabilityService = Depends(get_availability_service),
) -> ConflictResultResponse:
    """
    Check a proposed time against the tutor's weekly grid.

    A conflict is not an error: the response carries ``ok=False``, a message
    and up to ten suggested slots.
    """
    try:
        result = await asyncio.to_thread(
            service.check_availability, payload.tutor_id, payload.proposed_time
        )
        return ConflictResultResponse(**result.to_payload())
    except DomainException as e:
        handle_domain_exception(e)
