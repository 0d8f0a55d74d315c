"""
Lead change history.

History is derived, never authored: every entry is computed from a
before/after pair of normalized leads. The lead_history table is:
- Append-only (entries never modified; removed only by cascade when the
  lead is deleted)
- User-attributed (who made the change; NULL once that user is removed)
- Detailed (old and new value per changed field)

Only the most recent entries are shown, but all are kept.
"""

from typing import Any
from uuid import UUID, uuid4

from psycopg2.extras import Json

from clients.postgres_client import PostgresClient
from core.models import HistoryEntry, LeadFields
from utils.timezone import now_utc
from utils.user_context import get_current_user_id

CREATED_MARKER = {"action": "created"}

# Every user-editable field. id, owner_id and the timestamps are not
# LeadFields members, so they never appear in a diff.
TRACKED_FIELDS = frozenset(LeadFields.model_fields)


def compute_changes(
    old: dict[str, Any],
    new: dict[str, Any],
    exclude_fields: set[str] | None = None
) -> dict[str, dict[str, Any]]:
    """
    Compute changes between two entity states.

    Args:
        old: Previous state
        new: New state
        exclude_fields: Keys to ignore

    Returns:
        {key: {"old": old_val, "new": new_val}} for changed keys, in the
        order keys first appear. Empty dict if nothing changed. A key
        missing on one side compares as None.
    """
    exclude = exclude_fields or set()
    changes = {}

    keys = list(old) + [key for key in new if key not in old]
    for key in keys:
        if key in exclude:
            continue

        old_val = old.get(key)
        new_val = new.get(key)

        if old_val != new_val:
            changes[key] = {"old": old_val, "new": new_val}

    return changes


def _snapshot(lead: LeadFields) -> dict[str, Any]:
    # JSON mode: enums compare by their canonical string, tags as ordered lists
    return lead.model_dump(mode="json", by_alias=True, include=TRACKED_FIELDS)


def diff_for_create(lead: LeadFields) -> dict[str, Any]:
    """
    History diff for a newly created lead: the creation marker only.

    The lead's values are not recorded; lead is accepted so create and
    update diffs are built from the same inputs.
    """
    return dict(CREATED_MARKER)


def diff_for_update(
    previous: LeadFields,
    updated: LeadFields
) -> dict[str, dict[str, Any]] | None:
    """
    History diff between two versions of a lead.

    Args:
        previous: Lead as stored before the write
        updated: Lead as it will be (or was) stored after the write

    Returns:
        {publicFieldName: {"old": ..., "new": ...}} for each changed field,
        or None when nothing changed (no history entry should be written).
    """
    changes = compute_changes(_snapshot(previous), _snapshot(updated))
    return changes or None


class HistoryLog:
    """
    Append-only store for lead history.

    Usage:
        history = HistoryLog(postgres)

        history.append(lead.id, diff_for_create(lead))

        diff = diff_for_update(before, after)
        if diff is not None:
            history.append(lead.id, diff)

        recent = history.list_recent(lead.id)
    """

    def __init__(self, postgres: PostgresClient, default_limit: int = 5):
        self.postgres = postgres
        self.default_limit = default_limit

    def append(
        self,
        lead_id: UUID,
        diff: dict[str, Any],
        changed_by: UUID | None = None
    ) -> HistoryEntry:
        """
        Record one history entry.

        Args:
            lead_id: Lead the change belongs to
            diff: Creation marker or field diff
            changed_by: User who made the change (defaults to current context)
        """
        if changed_by is None:
            changed_by = get_current_user_id()

        row = self.postgres.execute_returning(
            """
            INSERT INTO lead_history (id, lead_id, changed_by, changed_at, diff)
            VALUES (%s, %s, %s, %s, %s)
            RETURNING *
            """,
            (uuid4(), lead_id, changed_by, now_utc(), Json(diff))
        )[0]

        return HistoryEntry.model_validate(row)

    def list_recent(self, lead_id: UUID, limit: int | None = None) -> list[HistoryEntry]:
        """
        Most recent history for a lead.

        Returns:
            Up to limit entries (default_limit if omitted), newest first.
        """
        rows = self.postgres.execute(
            """
            SELECT id, lead_id, changed_by, changed_at, diff
            FROM lead_history
            WHERE lead_id = %s
            ORDER BY changed_at DESC, id
            LIMIT %s
            """,
            (lead_id, limit or self.default_limit)
        )

        return [HistoryEntry.model_validate(row) for row in rows]
