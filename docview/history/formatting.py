"""Display formatting for history timestamps and metadata change descriptions."""

from collections.abc import Mapping
from datetime import UTC, datetime, tzinfo
from zoneinfo import ZoneInfo

from docview.lifecycle.models import FieldChange
from docview.lifecycle.validator import METADATA_FIELDS

EMPTY_VALUE = "(empty)"


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_timestamp(raw: str) -> datetime:
    """Parse an ISO-8601 timestamp (``Z`` suffix allowed) into an aware UTC datetime."""
    return ensure_utc(datetime.fromisoformat(raw))


def format_history_timestamp(value: datetime, tz: tzinfo = UTC) -> str:
    """Format as ``MM/DD/YYYY hh:mm AM/PM`` in ``tz``.

    The AM/PM marker is always English, whatever the process locale.
    """
    local = ensure_utc(value).astimezone(tz)
    hour = local.hour % 12 or 12
    meridiem = "AM" if local.hour < 12 else "PM"
    return f"{local.month:02d}/{local.day:02d}/{local.year:04d} {hour:02d}:{local.minute:02d} {meridiem}"


def describe_changes(changes: Mapping[str, FieldChange]) -> str:
    """One sentence per changed field, in field declaration order.

    ``{"document_description": FieldChange("Policy Document", "Policy Renewal Notice")}``
    becomes ``Changed Document Description from "Policy Document" to "Policy Renewal Notice"``.
    """
    ordered = [name for name in METADATA_FIELDS if name in changes]
    ordered += sorted(name for name in changes if name not in METADATA_FIELDS)
    return "; ".join(
        f'Changed {METADATA_FIELDS.get(name, name)} from '
        f'"{_display(changes[name].old)}" to "{_display(changes[name].new)}"'
        for name in ordered
    )


def _display(value: object) -> str:
    if value is None or value == "":
        return EMPTY_VALUE
    return str(value)


def resolve_timezone(name: str) -> tzinfo:
    """``UTC`` needs no tz database; anything else is looked up by IANA name."""
    if name.upper() in ("UTC", "Z"):
        return UTC
    return ZoneInfo(name)
