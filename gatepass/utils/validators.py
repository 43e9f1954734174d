# =======================================================================================
# gatepass/utils/validators.py - Validation Helpers
# =======================================================================================

from datetime import datetime, timedelta, timezone
from typing import Optional
from .exceptions import InvalidWindowError, InvalidPurposeError
from ..models.enums import SubjectKind


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class WindowValidator:
    """Validates issuance parameters for credentials."""

    @staticmethod
    def validate_window(valid_from: datetime, valid_until: datetime,
                        now: datetime, min_span: timedelta) -> bool:
        """
        Reject windows that are inverted, already over, or shorter than min_span.
        A window of exactly min_span is accepted.
        """
        if valid_from >= valid_until:
            raise InvalidWindowError("validFrom must be before validUntil")

        if valid_until <= now:
            raise InvalidWindowError("validUntil must be in the future")

        if valid_until - valid_from < min_span:
            minutes = int(min_span.total_seconds() // 60)
            raise InvalidWindowError(f"validUntil must be at least {minutes} minutes after validFrom")

        return True

    @staticmethod
    def validate_purpose(subject_kind: SubjectKind, purpose: Optional[str]) -> Optional[str]:
        """Guest credentials need a purpose; returns it stripped."""
        cleaned = purpose.strip() if purpose else None
        if subject_kind == SubjectKind.GUEST and not cleaned:
            raise InvalidPurposeError("Guest credentials require a purpose")
        return cleaned or None
