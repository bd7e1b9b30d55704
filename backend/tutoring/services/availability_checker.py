# backend/tutoring/services/availability_checker.py
"""
Availability Conflict Checker

Matches proposed lesson times against a tutor's recurring weekly
availability grid:
- Checking whether an instant falls on an available, unbooked slot
- Suggesting alternative slots when it does not
- Toggling single slots or whole days without freeing booked slots
- Resolving a tutor's response to a lesson invitation, including forced accepts

Everything here works on snapshots passed in by the caller and performs no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
import logging
import re
from typing import Any, Iterable, List, Optional, Sequence, Tuple

import pytz

from ..core.config import Settings, settings as default_settings
from ..core.constants import DAY_NAMES, WEEK_DISPLAY_ORDER
from ..core.enums import InvitationStatus
from ..core.exceptions import ConflictError, ExpiredError, InvalidStateError, ValidationException
from ..core.timezone_utils import ensure_utc, localize_tutor_time, to_tutor_local

logger = logging.getLogger(__name__)

SlotKey = Tuple[int, str]

HOUR_LABEL_PATTERN = re.compile(r"^([01]\d|2[0-3]):00$")

MESSAGE_NO_AVAILABILITY = "Nie masz ustawionej dostępności w kalendarzu."
MESSAGE_NO_PROPOSED_TIMES = "Zaproszenie nie zawiera proponowanych terminów."
MESSAGE_PROPOSED_TIMES_PASSED = "Wszystkie proponowane terminy już minęły."


def format_slot(day_of_week: int, hour: str) -> str:
    """Human-readable slot label, e.g. ``"Poniedziałek 17:00"``."""
    return f"{DAY_NAMES[day_of_week]} {hour}"


def validate_slot_key(day_of_week: Any, hour: Any) -> SlotKey:
    if isinstance(day_of_week, bool) or not isinstance(day_of_week, int) or not 0 <= day_of_week <= 6:
        raise ValidationException(
            "day_of_week must be an integer between 0 (Sunday) and 6 (Saturday)",
            details={"day_of_week": day_of_week},
        )
    if not isinstance(hour, str) or not HOUR_LABEL_PATTERN.match(hour):
        raise ValidationException(
            'hour must be a full-hour label such as "17:00"',
            details={"hour": hour},
        )
    return day_of_week, hour


def _display_rank(key: SlotKey) -> Tuple[int, str]:
    return WEEK_DISPLAY_ORDER.index(key[0]), key[1]


def _key_of(item: Any) -> SlotKey:
    if isinstance(item, tuple):
        return int(item[0]), str(item[1])
    return int(item.day_of_week), str(item.hour)


@dataclass(frozen=True)
class WeeklyAvailabilitySlot:
    """One cell of a tutor's recurring weekly grid (day 0 = Sunday)."""

    day_of_week: int
    hour: str
    is_available: bool = True

    @property
    def key(self) -> SlotKey:
        return self.day_of_week, self.hour

    @property
    def label(self) -> str:
        return format_slot(self.day_of_week, self.hour)

    @classmethod
    def from_row(cls, row: Any) -> "WeeklyAvailabilitySlot":
        if isinstance(row, cls):
            return row
        return cls(day_of_week=int(row.day_of_week), hour=str(row.hour), is_available=bool(row.is_available))


@dataclass(frozen=True)
class ConflictResult:
    ok: bool
    day_of_week: int
    hour: str
    message: Optional[str] = None
    is_available: bool = False
    is_booked: bool = False
    suggested_times: List[str] = field(default_factory=list)

    def to_payload(self) -> dict[str, object]:
        return {
            "ok": self.ok,
            "day_of_week": self.day_of_week,
            "hour": self.hour,
            "message": self.message,
            "is_available": self.is_available,
            "is_booked": self.is_booked,
            "suggested_times": list(self.suggested_times),
        }


@dataclass(frozen=True)
class InvitationResult:
    ok: bool
    status: InvitationStatus
    conflict: bool = False
    forced: bool = False
    chosen_time: Optional[datetime] = None
    details: Optional[str] = None
    suggested_times: List[str] = field(default_factory=list)

    def to_payload(self) -> dict[str, object]:
        return {
            "ok": self.ok,
            "status": self.status.value,
            "conflict": self.conflict,
            "forced": self.forced,
            "chosen_time": self.chosen_time.isoformat() if self.chosen_time else None,
            "details": self.details,
            "suggested_times": list(self.suggested_times),
        }


class AvailabilityChecker:
    """
    Validates proposed lesson times against a weekly availability template.

    ``weekly_slots`` may hold WeeklyAvailabilitySlot values or ORM rows with
    ``day_of_week``/``hour``/``is_available``; ``booked_slots`` may hold
    ``(day_of_week, hour)`` tuples or objects with those attributes.
    """

    def __init__(self, config: Optional[Settings] = None):
        self.config = config or default_settings

    @property
    def tz(self) -> pytz.BaseTzInfo:
        return self.config.get_tutor_timezone()

    def slot_key_for(self, instant: datetime) -> SlotKey:
        """Map an instant onto the tutor-local (day_of_week, "HH:00") grid cell."""
        local = to_tutor_local(instant, self.tz)
        # Python weekday(): Monday = 0; the grid uses Sunday = 0
        return (local.weekday() + 1) % 7, f"{local.hour:02d}:00"

    def available_keys(self, weekly_slots: Iterable[Any], booked_slots: Iterable[Any]) -> List[SlotKey]:
        """Available, unbooked slots ordered Monday first, then by hour."""
        booked = {_key_of(item) for item in booked_slots}
        keys = {
            slot.key
            for slot in map(WeeklyAvailabilitySlot.from_row, weekly_slots)
            if slot.is_available and slot.key not in booked
        }
        return sorted(keys, key=_display_rank)

    def suggest_times(self, weekly_slots: Iterable[Any], booked_slots: Iterable[Any]) -> List[str]:
        keys = self.available_keys(weekly_slots, booked_slots)
        return [format_slot(day, hour) for day, hour in keys[: self.config.max_suggested_times]]

    def check_availability(
        self,
        weekly_slots: Sequence[Any],
        booked_slots: Sequence[Any],
        proposed_instant: datetime,
    ) -> ConflictResult:
        day_of_week, hour = self.slot_key_for(proposed_instant)
        slots = [WeeklyAvailabilitySlot.from_row(row) for row in weekly_slots]
        booked = {_key_of(item) for item in booked_slots}

        is_available = any(
            slot.is_available and slot.key == (day_of_week, hour) for slot in slots
        )
        is_booked = (day_of_week, hour) in booked

        if is_available and not is_booked:
            return ConflictResult(
                ok=True,
                day_of_week=day_of_week,
                hour=hour,
                is_available=True,
            )

        label = format_slot(day_of_week, hour)
        if not any(slot.is_available for slot in slots):
            message = MESSAGE_NO_AVAILABILITY
        elif is_booked:
            message = f"Termin {label} jest już zarezerwowany."
        else:
            message = f"Termin {label} jest poza Twoją dostępnością."

        return ConflictResult(
            ok=False,
            day_of_week=day_of_week,
            hour=hour,
            message=message,
            is_available=is_available,
            is_booked=is_booked,
            suggested_times=self.suggest_times(slots, booked),
        )

    def toggle_slot(
        self,
        weekly_slots: Sequence[Any],
        day_of_week: int,
        hour: str,
        booked_slots: Iterable[Any] = (),
    ) -> List[WeeklyAvailabilitySlot]:
        """
        Flip one slot. A slot missing from the template counts as unavailable.

        Raises:
            ConflictError: the slot is booked by an upcoming lesson
        """
        key = validate_slot_key(day_of_week, hour)
        if key in {_key_of(item) for item in booked_slots}:
            raise ConflictError(
                f"Slot {format_slot(*key)} is booked and cannot be changed",
                details={"day_of_week": day_of_week, "hour": hour},
            )

        slots = [WeeklyAvailabilitySlot.from_row(row) for row in weekly_slots]
        for index, slot in enumerate(slots):
            if slot.key == key:
                slots[index] = replace(slot, is_available=not slot.is_available)
                return slots

        slots.append(WeeklyAvailabilitySlot(day_of_week=day_of_week, hour=hour, is_available=True))
        return slots

    def toggle_day(
        self,
        weekly_slots: Sequence[Any],
        day_of_week: int,
        enabled: bool,
        booked_slots: Iterable[Any] = (),
    ) -> List[WeeklyAvailabilitySlot]:
        """Set every hour of one day to ``enabled``; booked slots are left untouched."""
        validate_slot_key(day_of_week, "00:00")
        booked = {_key_of(item) for item in booked_slots}

        slots = [WeeklyAvailabilitySlot.from_row(row) for row in weekly_slots]
        present = {slot.key for slot in slots}

        result: List[WeeklyAvailabilitySlot] = []
        for slot in slots:
            if slot.day_of_week == day_of_week and slot.key not in booked:
                slot = replace(slot, is_available=enabled)
            result.append(slot)

        for hour in self.config.availability_grid_hours:
            key = (day_of_week, hour)
            if key in present or key in booked:
                continue
            result.append(WeeklyAvailabilitySlot(day_of_week=day_of_week, hour=hour, is_available=enabled))
        return result

    def find_next_available_slot(
        self,
        weekly_slots: Sequence[Any],
        booked_slots: Sequence[Any],
        now: datetime,
        horizon_days: Optional[int] = None,
    ) -> Optional[datetime]:
        """
        Earliest instant, starting tomorrow, on an available and unbooked slot.

        Returns None when nothing matches within the horizon.
        """
        horizon = horizon_days or self.config.next_slot_horizon_days
        keys = self.available_keys(weekly_slots, booked_slots)
        if not keys:
            return None

        hours_by_day: dict[int, List[str]] = {}
        for day, hour in keys:
            hours_by_day.setdefault(day, []).append(hour)

        now_utc = ensure_utc(now)
        today_local = to_tutor_local(now_utc, self.tz).date()
        for offset in range(1, horizon + 1):
            check_date = today_local + timedelta(days=offset)
            day_of_week = (check_date.weekday() + 1) % 7
            for hour in sorted(hours_by_day.get(day_of_week, [])):
                naive = datetime(check_date.year, check_date.month, check_date.day, int(hour[:2]))
                candidate = localize_tutor_time(naive, self.tz)
                if candidate > now_utc:
                    return candidate
        return None

    def respond_to_invitation(
        self,
        invitation: Any,
        accept: bool,
        force_accept: bool,
        weekly_slots: Sequence[Any],
        booked_slots: Sequence[Any],
        now: datetime,
    ) -> InvitationResult:
        """
        Resolve a tutor's response and update ``invitation.status`` in place.

        A conflicting accept without ``force_accept`` leaves the invitation
        pending and reports the conflict so the caller can retry with force.

        Raises:
            InvalidStateError: invitation is no longer pending
            ExpiredError: ``now`` is at or past ``invitation.expires_at``
        """
        status = str(getattr(invitation.status, "value", invitation.status))
        if status != InvitationStatus.PENDING.value:
            raise InvalidStateError("Invitation", getattr(invitation, "id", None), status)

        now_utc = ensure_utc(now)
        if now_utc >= ensure_utc(invitation.expires_at):
            raise ExpiredError(getattr(invitation, "id", None), invitation.expires_at)

        if not accept:
            self._finish(invitation, InvitationStatus.REJECTED, now_utc)
            return InvitationResult(ok=True, status=InvitationStatus.REJECTED)

        proposed = [ensure_utc(item) for item in (invitation.proposed_times or [])]
        upcoming = [item for item in proposed if item > now_utc]
        first_conflict: Optional[ConflictResult] = None
        for proposed_time in upcoming:
            result = self.check_availability(weekly_slots, booked_slots, proposed_time)
            if result.ok:
                self._finish(invitation, InvitationStatus.ACCEPTED, now_utc)
                return InvitationResult(
                    ok=True, status=InvitationStatus.ACCEPTED, chosen_time=proposed_time
                )
            first_conflict = first_conflict or result

        next_slot = None
        if not upcoming:
            next_slot = self.find_next_available_slot(weekly_slots, booked_slots, now_utc)
            if next_slot is not None and not proposed:
                self._finish(invitation, InvitationStatus.ACCEPTED, now_utc)
                return InvitationResult(ok=True, status=InvitationStatus.ACCEPTED, chosen_time=next_slot)

        if first_conflict:
            details = first_conflict.message
        elif proposed:
            details = MESSAGE_PROPOSED_TIMES_PASSED
        else:
            details = MESSAGE_NO_PROPOSED_TIMES
        suggested = (
            first_conflict.suggested_times
            if first_conflict
            else self.suggest_times(weekly_slots, booked_slots)
        )

        if force_accept:
            logger.info(
                f"Force accept for invitation {getattr(invitation, 'id', None)} despite conflict: {details}"
            )
            self._finish(invitation, InvitationStatus.ACCEPTED, now_utc)
            return InvitationResult(
                ok=True,
                status=InvitationStatus.ACCEPTED,
                conflict=True,
                forced=True,
                chosen_time=upcoming[0] if upcoming else next_slot,
                details=details,
                suggested_times=suggested,
            )

        return InvitationResult(
            ok=False,
            status=InvitationStatus.PENDING,
            conflict=True,
            details=details,
            suggested_times=suggested,
        )

    @staticmethod
    def _finish(invitation: Any, status: InvitationStatus, now: datetime) -> None:
        invitation.status = status.value
        if hasattr(invitation, "responded_at"):
            invitation.responded_at = now
