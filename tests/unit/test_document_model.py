from datetime import UTC, datetime

import pytest

from docview.lifecycle.exceptions import ValidationError
from docview.lifecycle.models import Document, DocumentMetadata, FieldChange

NOW = datetime(2023, 5, 12, 10, 45, tzinfo=UTC)


def _make_document(**overrides: object) -> Document:
    fields: dict[str, object] = {
        "id": 123,
        "filename": "claim.pdf",
        "metadata": DocumentMetadata(
            policy_number="PLCY-1",
            document_description="Policy Document",
        ),
    }
    fields.update(overrides)
    return Document(**fields)  # type: ignore[arg-type]


class TestUpdateMetadata:
    def test_returns_changed_fields(self) -> None:
        doc = _make_document()

        changes = doc.update_metadata({"assigned_to": "456"}, NOW)

        assert changes == {"assigned_to": FieldChange(old=None, new="456")}
        assert doc.metadata.assigned_to == "456"
        assert doc.updated_at == NOW

    def test_unchanged_values_are_not_reported(self) -> None:
        doc = _make_document()

        changes = doc.update_metadata(
            {"policy_number": "PLCY-1", "assigned_to": "456"}, NOW
        )

        assert list(changes) == ["assigned_to"]

    def test_blank_value_clears_field(self) -> None:
        doc = _make_document(metadata=DocumentMetadata(
            document_description="Policy Document", assigned_to="456"
        ))

        changes = doc.update_metadata({"assigned_to": "   "}, NOW)

        assert changes["assigned_to"] == FieldChange(old="456", new=None)
        assert doc.metadata.assigned_to is None

    def test_rejects_processed_document(self) -> None:
        doc = _make_document(is_processed=True)

        with pytest.raises(ValidationError, match="Processed documents cannot be edited"):
            doc.update_metadata({"assigned_to": "456"}, NOW)

        assert doc.metadata.assigned_to is None

    def test_rejects_trashed_document(self) -> None:
        doc = _make_document(is_trashed=True)

        with pytest.raises(ValidationError, match="Trashed documents cannot be edited"):
            doc.update_metadata({"assigned_to": "456"}, NOW)

    def test_rejects_unknown_field(self) -> None:
        doc = _make_document()

        with pytest.raises(ValidationError) as exc_info:
            doc.update_metadata({"colour": "blue"}, NOW)

        assert exc_info.value.field == "colour"

    def test_rejects_empty_change_set(self) -> None:
        doc = _make_document()

        with pytest.raises(ValidationError, match="No metadata changes"):
            doc.update_metadata({"policy_number": "PLCY-1"}, NOW)

    def test_rejects_clearing_required_description(self) -> None:
        doc = _make_document()

        with pytest.raises(ValidationError, match="Document Description is required") as exc_info:
            doc.update_metadata({"document_description": ""}, NOW)

        assert exc_info.value.field == "document_description"
        assert doc.metadata.document_description == "Policy Document"

    def test_rejects_dependent_field_without_parent(self) -> None:
        doc = _make_document()

        with pytest.raises(ValidationError, match="Please select a Loss Sequence first"):
            doc.update_metadata({"claimant": "Jane Doe"}, NOW)

    def test_accepts_dependent_field_with_parent_in_same_edit(self) -> None:
        doc = _make_document()

        changes = doc.update_metadata(
            {"loss_sequence": "1", "claimant": "Jane Doe"}, NOW
        )

        assert set(changes) == {"loss_sequence", "claimant"}

    @pytest.mark.parametrize("value", ["AG-123456", "ag-1"])
    def test_accepts_valid_producer_number(self, value: str) -> None:
        doc = _make_document()

        doc.update_metadata({"producer_number": value}, NOW)

        assert doc.metadata.producer_number == value

    def test_rejects_malformed_producer_number(self) -> None:
        doc = _make_document()

        with pytest.raises(ValidationError, match="Producer Number"):
            doc.update_metadata({"producer_number": "123456"}, NOW)

    def test_rejects_clearing_parent_while_dependant_is_set(self) -> None:
        doc = _make_document(
            metadata=DocumentMetadata(
                policy_number="PLCY-1",
                loss_sequence="1",
                document_description="Policy Document",
            )
        )

        with pytest.raises(ValidationError, match="Policy Number cannot be cleared") as exc_info:
            doc.update_metadata({"policy_number": ""}, NOW)

        assert exc_info.value.field == "policy_number"
        assert doc.metadata.policy_number == "PLCY-1"
        assert doc.updated_at is None

    def test_rejects_clearing_loss_sequence_while_claimant_is_set(self) -> None:
        doc = _make_document(
            metadata=DocumentMetadata(
                policy_number="PLCY-1",
                loss_sequence="1",
                claimant="Jane Doe",
                document_description="Policy Document",
            )
        )

        with pytest.raises(ValidationError, match="Loss Sequence cannot be cleared"):
            doc.update_metadata({"loss_sequence": None}, NOW)

        assert doc.metadata.loss_sequence == "1"

    def test_accepts_clearing_parent_with_its_dependants(self) -> None:
        doc = _make_document(
            metadata=DocumentMetadata(
                policy_number="PLCY-1",
                loss_sequence="1",
                claimant="Jane Doe",
                document_description="Policy Document",
            )
        )

        changes = doc.update_metadata(
            {"policy_number": None, "loss_sequence": None, "claimant": None}, NOW
        )

        assert set(changes) == {"policy_number", "loss_sequence", "claimant"}
        assert doc.metadata.policy_number is None


class TestSetProcessed:
    def test_marks_processed(self) -> None:
        doc = _make_document()

        changes = doc.set_processed(True, NOW)

        assert doc.is_processed is True
        assert changes == {"is_processed": FieldChange(old=False, new=True)}

    def test_marks_unprocessed(self) -> None:
        doc = _make_document(is_processed=True)

        doc.set_processed(False, NOW)

        assert doc.is_processed is False

    def test_rejects_same_state(self) -> None:
        doc = _make_document(is_processed=True)

        with pytest.raises(ValidationError, match="already processed"):
            doc.set_processed(True, NOW)

    def test_edit_allowed_again_after_unprocessing(self) -> None:
        doc = _make_document()
        doc.set_processed(True, NOW)
        with pytest.raises(ValidationError):
            doc.update_metadata({"assigned_to": "456"}, NOW)

        doc.set_processed(False, NOW)
        doc.update_metadata({"assigned_to": "456"}, NOW)

        assert doc.metadata.assigned_to == "456"


class TestTrashAndRestore:
    def test_trash_keeps_processed_flag(self) -> None:
        doc = _make_document(is_processed=True)

        doc.trash(NOW)

        assert doc.is_trashed is True
        assert doc.is_processed is True
        assert doc.trashed_at == NOW

    def test_trash_twice_raises(self) -> None:
        doc = _make_document(is_trashed=True, trashed_at=NOW)

        with pytest.raises(ValidationError, match="already in the trash"):
            doc.trash(NOW)

    def test_restore_clears_trashed_at(self) -> None:
        doc = _make_document(is_trashed=True, trashed_at=NOW)

        changes = doc.restore(NOW)

        assert doc.is_trashed is False
        assert doc.trashed_at is None
        assert changes == {"is_trashed": FieldChange(old=True, new=False)}

    def test_restore_active_document_raises(self) -> None:
        doc = _make_document()

        with pytest.raises(ValidationError, match="not in the trash"):
            doc.restore(NOW)
