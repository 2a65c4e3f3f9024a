from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime
from typing import Any

from docview.lifecycle.exceptions import ValidationError
from docview.lifecycle.validator import (
    METADATA_FIELDS,
    normalize_value,
    reject_unknown_fields,
    validate_metadata,
)


@dataclass(frozen=True)
class FieldChange:
    """Old/new pair for a single changed attribute."""

    old: Any
    new: Any


@dataclass(frozen=True)
class DocumentMetadata:
    """Insurance metadata attached to a document. Empty fields are None."""

    policy_number: str | None = None
    loss_sequence: str | None = None
    claimant: str | None = None
    document_description: str | None = None
    assigned_to: str | None = None
    producer_number: str | None = None

    def as_dict(self) -> dict[str, str | None]:
        return asdict(self)


@dataclass
class Document:
    """A stored document and its lifecycle flags.

    ``is_processed`` and ``is_trashed`` are independent: trashing keeps the
    processed flag as it was. Mutators validate first and only then change
    state, so a raised ValidationError leaves the document untouched.
    """

    id: int | None
    filename: str
    metadata: DocumentMetadata = field(default_factory=DocumentMetadata)
    is_processed: bool = False
    is_trashed: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None
    trashed_at: datetime | None = None
    archived_at: datetime | None = None

    def update_metadata(
        self, changes: Mapping[str, str | None], now: datetime
    ) -> dict[str, FieldChange]:
        """Apply metadata changes and return the fields that actually changed.

        Raises:
            ValidationError: if the document is processed or trashed, a field is
                unknown or invalid, or nothing would change.
        """
        if self.is_processed:
            raise ValidationError(
                "Processed documents cannot be edited. Mark the document as unprocessed first."
            )
        if self.is_trashed:
            raise ValidationError(
                "Trashed documents cannot be edited. Restore the document first."
            )
        reject_unknown_fields(changes)

        current = self.metadata.as_dict()
        applied: dict[str, FieldChange] = {}
        for name in METADATA_FIELDS:
            if name not in changes:
                continue
            new_value = normalize_value(changes[name])
            if new_value != current[name]:
                applied[name] = FieldChange(old=current[name], new=new_value)
        if not applied:
            raise ValidationError("No metadata changes to apply")

        updated = {**current, **{name: change.new for name, change in applied.items()}}
        validate_metadata(updated, changed=applied.keys())

        self.metadata = replace(self.metadata, **{n: c.new for n, c in applied.items()})
        self.updated_at = now
        return applied

    def set_processed(self, processed: bool, now: datetime) -> dict[str, FieldChange]:
        if self.is_processed == processed:
            state = "processed" if processed else "unprocessed"
            raise ValidationError(f"Document is already {state}")
        change = FieldChange(old=self.is_processed, new=processed)
        self.is_processed = processed
        self.updated_at = now
        return {"is_processed": change}

    def trash(self, now: datetime) -> dict[str, FieldChange]:
        if self.is_trashed:
            raise ValidationError("Document is already in the trash")
        self.is_trashed = True
        self.trashed_at = now
        self.updated_at = now
        return {"is_trashed": FieldChange(old=False, new=True)}

    def restore(self, now: datetime) -> dict[str, FieldChange]:
        if not self.is_trashed:
            raise ValidationError("Document is not in the trash")
        self.is_trashed = False
        self.trashed_at = None
        self.updated_at = now
        return {"is_trashed": FieldChange(old=True, new=False)}
