"""
Invitation schemas: creation, tutor responses and invitation details.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from ..core.constants import MAX_TUTOR_RESPONSE_LENGTH
from .base import Money, StandardizedModel, StrictRequestModel
from .lessons import LessonResponse


class InvitationCreate(StrictRequestModel):
    tutor_id: str = Field(..., min_length=1)
    proposed_times: List[datetime] = Field(default_factory=list, max_length=20)
    amount: Optional[Money] = None

    @field_validator("amount")
    @classmethod
    def non_negative_amount(cls, v: Optional[Money]) -> Optional[Money]:
        if v is not None and v < 0:
            raise ValueError("amount cannot be negative")
        return v


class InvitationRespondRequest(StrictRequestModel):
    invitation_id: str = Field(..., min_length=1)
    accept: bool
    force_accept: bool = False
    response: Optional[str] = Field(None, max_length=MAX_TUTOR_RESPONSE_LENGTH)

    @field_validator("response")
    @classmethod
    def clean_response(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class InvitationResponse(StandardizedModel):
    id: str
    tutor_id: str
    student_id: str
    proposed_times: List[datetime]
    amount: Money
    status: str
    expires_at: datetime
    responded_at: Optional[datetime] = None
    tutor_response: Optional[str] = None
    lesson_id: Optional[str] = None


class InvitationRespondResponse(StandardizedModel):
    ok: bool
    status: str
    conflict: bool = False
    forced: bool = False
    chosen_time: Optional[datetime] = None
    details: Optional[str] = None
    suggested_times: List[str] = Field(default_factory=list)
    invitation: InvitationResponse
    lesson: Optional[LessonResponse] = None


class ExpireInvitationsResponse(StandardizedModel):
    expired: int
