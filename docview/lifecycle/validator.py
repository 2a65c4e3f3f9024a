"""Field-level rules for document metadata edits."""

import re
from collections.abc import Iterable, Mapping

from docview.lifecycle.exceptions import ValidationError

# Declaration order is the display order used in change descriptions.
METADATA_FIELDS: dict[str, str] = {
    "policy_number": "Policy Number",
    "loss_sequence": "Loss Sequence",
    "claimant": "Claimant",
    "document_description": "Document Description",
    "assigned_to": "Assigned To",
    "producer_number": "Producer Number",
}

REQUIRED_FIELDS = frozenset({"document_description"})

# dependent field -> field that must be filled first
DEPENDENT_FIELDS: dict[str, str] = {
    "loss_sequence": "policy_number",
    "claimant": "loss_sequence",
}

_PRODUCER_NUMBER_PATTERN = re.compile(r"^[A-Z]+-\d+$", re.IGNORECASE)


def normalize_value(value: str | None) -> str | None:
    """Strip surrounding whitespace; blank strings become None."""
    if value is None:
        return None
    stripped = str(value).strip()
    return stripped or None


def reject_unknown_fields(names: Iterable[str]) -> None:
    for name in names:
        if name not in METADATA_FIELDS:
            raise ValidationError(f"Unknown metadata field: {name}", field=name)


def validate_metadata(metadata: Mapping[str, str | None], changed: Iterable[str]) -> None:
    """Check the post-edit metadata.

    Required and format rules apply to the fields touched by the edit. The
    parent/dependant rule applies to the whole record, so a parent cannot be
    cleared while a dependant still holds a value.

    Raises:
        ValidationError: naming the first offending field.
    """
    for name in changed:
        value = metadata.get(name)
        label = METADATA_FIELDS[name]
        if value is None:
            if name in REQUIRED_FIELDS:
                raise ValidationError(f"{label} is required", field=name)
            continue
        parent = DEPENDENT_FIELDS.get(name)
        if parent is not None and metadata.get(parent) is None:
            raise ValidationError(
                f"Please select a {METADATA_FIELDS[parent]} first", field=name
            )
        if name == "producer_number" and not _PRODUCER_NUMBER_PATTERN.match(value):
            raise ValidationError(
                "Producer Number must look like AG-123456", field=name
            )
    for name, parent in DEPENDENT_FIELDS.items():
        if metadata.get(name) is not None and metadata.get(parent) is None:
            raise ValidationError(
                f"{METADATA_FIELDS[parent]} cannot be cleared while "
                f"{METADATA_FIELDS[name]} is set",
                field=parent,
            )
