"""Validation logic for follow-up configuration."""

from dataclasses import dataclass, field
from datetime import UTC, datetime

from reapply.schemas.followup import FollowUpScheduleRequest, FollowUpTiming

MIN_FOLLOW_UPS = 1
MAX_FOLLOW_UPS = 5


@dataclass
class ValidationResult:
    """Result of validation process."""

    is_valid: bool
    error: str | None = None
    warnings: list[str] = field(default_factory=list)


def clamp_follow_up_count(count: int | None) -> int:
    """Clamp a requested follow-up count to the supported range."""
    if count is None:
        return MIN_FOLLOW_UPS
    return max(MIN_FOLLOW_UPS, min(MAX_FOLLOW_UPS, count))


def parse_custom_date(value: str | None) -> datetime | None:
    """Parse a user-supplied ISO date or datetime.

    Returns an aware UTC datetime, or None when the value is missing or
    cannot be parsed. Naive values are taken as UTC.
    """
    if value is None or not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.strip())
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=UTC)
        return parsed.astimezone(UTC)
    except (ValueError, OverflowError):
        return None


def validate_follow_up_request(request: FollowUpScheduleRequest) -> ValidationResult:
    """Check a follow-up request; lenient fallbacks become warnings."""
    warnings = []

    count = clamp_follow_up_count(request.count)
    if count != request.count:
        warnings.append(
            f"Follow-up count {request.count} adjusted to {count} "
            f"(allowed {MIN_FOLLOW_UPS}-{MAX_FOLLOW_UPS})"
        )

    if len(request.items) > count:
        warnings.append(f"Ignoring {len(request.items) - count} extra follow-up items")

    for index, item in enumerate(request.items[:count]):
        if item.timing is not FollowUpTiming.CUSTOM:
            continue
        if parse_custom_date(item.custom_date) is None:
            warnings.append(
                f"Follow-up {index + 1}: custom date {item.custom_date!r} "
                "is missing or invalid, scheduling immediately"
            )

    return ValidationResult(is_valid=True, warnings=warnings)
