"""Application-wide constants for the tutoring platform."""

from __future__ import annotations

BRAND_NAME = "Korepetycje"

# Day labels indexed by day_of_week (0 = Sunday), as shown to tutors and students
DAY_NAMES = (
    "Niedziela",
    "Poniedziałek",
    "Wtorek",
    "Środa",
    "Czwartek",
    "Piątek",
    "Sobota",
)

# Display order of the weekly grid: Monday first, Sunday last
WEEK_DISPLAY_ORDER = (1, 2, 3, 4, 5, 6, 0)

# Hard cap on how many times a single lesson may be moved
MAX_RESCHEDULES = 2

# Text constraints
MAX_REASON_LENGTH = 500
MAX_TUTOR_RESPONSE_LENGTH = 1000

# Ledger descriptions
CANCELLATION_FEE_DESCRIPTION = "Opłata za odwołanie lekcji"
RESCHEDULE_FEE_DESCRIPTION = "Opłata za przełożenie lekcji"
CANCELLATION_REFUND_DESCRIPTION = "Zwrot za anulowaną lekcję"
PAYOUT_REDUCTION_DESCRIPTION = "Redukcja wypłaty za późne odwołanie lekcji"
RESCHEDULE_PAYOUT_REDUCTION_DESCRIPTION = "Redukcja wypłaty za późne przełożenie lekcji"
INVITATION_REJECTED_REFUND_DESCRIPTION = "Zwrot za odrzucone zaproszenie"
INVITATION_EXPIRED_REFUND_DESCRIPTION = "Zwrot za nieodpowiedziane zaproszenie"
INVITATION_CANCELLED_REFUND_DESCRIPTION = "Zwrot za anulowane zaproszenie"

AUTO_REJECT_RESPONSE = "Student already matched with another tutor"
STUDENT_CANCELLED_RESPONSE = "Cancelled by student"
