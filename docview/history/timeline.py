from collections import Counter
from datetime import UTC, tzinfo

from docview.history.base import BaseAuditLog
from docview.history.formatting import ensure_utc, format_history_timestamp
from docview.history.models import (
    ActionType,
    ActionTypeCount,
    DocumentHistory,
    HistoryEntry,
    TimelineEntry,
)
from docview.lifecycle.exceptions import DataIntegrityError

ACTION_PRESENTATION: dict[str, tuple[str, str]] = {
    ActionType.VIEW: ("eye", "Document viewed"),
    ActionType.CREATE: ("plus-circle", "Document uploaded"),
    ActionType.UPDATE_METADATA: ("edit", "Changed"),
    ActionType.PROCESS: ("check-circle", "Marked as processed"),
    ActionType.UNPROCESS: ("undo", "Unmarked as processed"),
    ActionType.TRASH: ("trash", "Moved to trash"),
    ActionType.RESTORE: ("restore", "Restored from trash"),
    ActionType.ARCHIVE: ("archive", "Archived"),
}
UNKNOWN_ACTION: tuple[str, str] = ("info-circle", "Unknown action")


def present_action(action_type: str) -> tuple[str, str]:
    """Icon and default label for an action type."""
    return ACTION_PRESENTATION.get(action_type, UNKNOWN_ACTION)


class HistoryTimeline:
    """Read model that turns stored audit entries into a display timeline.

    Reads only; two calls with no mutation in between return equal results.
    """

    def __init__(
        self,
        audit_log: BaseAuditLog,
        order: str = "desc",
        display_tz: tzinfo | None = None,
        per_page: int = 10,
    ) -> None:
        if order not in ("asc", "desc"):
            raise ValueError(f"Unknown history order '{order}'. Choose from: ['asc', 'desc']")
        _check_positive("per_page", per_page)
        self._audit_log = audit_log
        self._order = order
        self._display_tz = display_tz or UTC
        self._per_page = per_page

    def build_timeline(
        self,
        document_id: int,
        action_type: str | None = None,
        page: int | None = None,
        per_page: int | None = None,
    ) -> list[TimelineEntry]:
        """Display entries for a document, newest first unless configured otherwise.

        ``action_type`` keeps only entries of that type. Without ``page`` or
        ``per_page`` every entry is returned; otherwise one page of
        ``per_page`` entries (default from the constructor) is returned.

        Raises:
            DataIntegrityError: if any returned entry has no acting user.
            ValueError: if ``page`` or ``per_page`` is below 1.
        """
        entries = self._ordered(document_id, action_type)
        page_entries, _page, _size = self._slice(entries, page, per_page)
        return [self._to_timeline_entry(entry) for entry in page_entries]

    def build_history(
        self,
        document_id: int,
        action_type: str | None = None,
        page: int | None = None,
        per_page: int | None = None,
    ) -> DocumentHistory:
        """Timeline plus the most recent non-view action and its user.

        The last edit is taken from the full history, whatever filter or
        page is requested.
        """
        entries = self._ordered(document_id, None)
        matching = entries if action_type is None else _of_type(entries, action_type)
        page_entries, current_page, size = self._slice(matching, page, per_page)
        edits = [e for e in entries if e.action_type != ActionType.VIEW]
        latest = None
        if edits:
            latest = self._to_timeline_entry(max(edits, key=lambda e: e.sequence))
        return DocumentHistory(
            document_id=document_id,
            entries=[self._to_timeline_entry(entry) for entry in page_entries],
            last_edited=latest.timestamp if latest else None,
            last_edited_by=latest.user if latest else None,
            total=len(matching),
            page=current_page,
            per_page=size,
            last_page=max(1, -(-len(matching) // size)) if size else 1,
        )

    def action_type_counts(self, document_id: int) -> list[ActionTypeCount]:
        """Entry count per action type, for building a history filter.

        Every known action type is listed, with zero when absent; stored
        types this code does not know follow in alphabetical order.
        """
        counts = Counter(entry.action_type for entry in self._audit_log.query(document_id))
        known = [str(action) for action in ActionType]
        unknown = sorted(name for name in counts if name not in known)
        result = []
        for name in known + unknown:
            icon, label = present_action(name)
            result.append(ActionTypeCount(name, icon, label, counts.get(name, 0)))
        return result

    def _ordered(self, document_id: int, action_type: str | None) -> list[HistoryEntry]:
        entries = sorted(self._audit_log.query(document_id), key=lambda e: e.sequence)
        if action_type is not None:
            entries = _of_type(entries, action_type)
        if self._order == "desc":
            entries.reverse()
        return entries

    def _slice(
        self, entries: list[HistoryEntry], page: int | None, per_page: int | None
    ) -> tuple[list[HistoryEntry], int, int | None]:
        if page is None and per_page is None:
            return entries, 1, None
        page = 1 if page is None else page
        size = self._per_page if per_page is None else per_page
        _check_positive("page", page)
        _check_positive("per_page", size)
        start = (page - 1) * size
        return entries[start : start + size], page, size

    def _to_timeline_entry(self, entry: HistoryEntry) -> TimelineEntry:
        if entry.user is None or entry.user.id is None:
            raise DataIntegrityError(
                f"History entry {entry.id} for document {entry.document_id} has no user"
            )
        icon, label = present_action(entry.action_type)
        return TimelineEntry(
            id=entry.id,
            action_type=entry.action_type,
            icon=icon,
            label=label,
            description=entry.description or None,
            timestamp=ensure_utc(entry.timestamp).isoformat().replace("+00:00", "Z"),
            formatted_timestamp=format_history_timestamp(entry.timestamp, self._display_tz),
            user=entry.user,
        )


def _of_type(entries: list[HistoryEntry], action_type: str) -> list[HistoryEntry]:
    return [entry for entry in entries if entry.action_type == action_type]


def _check_positive(name: str, value: int) -> None:
    if value < 1:
        raise ValueError(f"{name} must be at least 1, got {value}")
