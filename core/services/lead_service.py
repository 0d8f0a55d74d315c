"""
Lead service for CRUD operations.

Handles the lead lifecycle: create, read, update, delete, list.
Input must already be validated (core.validation.validate); this layer
stamps ownership and timestamps, enforces owner-only writes and the
optimistic-concurrency check, and records history in the same statement
as each write.

Reads are visible to every authenticated user. Writes are owner-only,
enforced here and again by RLS.
"""

import logging
from datetime import datetime
from uuid import UUID, uuid4

import psycopg2
from psycopg2.extras import Json

from clients.postgres_client import PostgresClient
from core.config import LeadsConfig
from core.exceptions import (
    LeadAccessDeniedError,
    LeadConflictError,
    LeadNotFoundError,
    StaleLeadError,
    StorageFailureError,
)
from core.history import HistoryLog, diff_for_create, diff_for_update
from core.models import HistoryEntry, Lead, LeadFields, LeadFilter, LeadPage
from utils.user_context import get_current_user_id
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

# Column names match LeadFields attribute names
_FIELD_COLUMNS = tuple(LeadFields.model_fields)

_INSERT_COLUMNS = ("id", "owner_id") + _FIELD_COLUMNS + ("created_at", "updated_at")
_ROW_PLACEHOLDER = "(" + ", ".join(["%s"] * len(_INSERT_COLUMNS)) + ")"

# Columns equality-filterable from LeadFilter
_FILTER_COLUMNS = ("city", "property_type", "status", "timeline")


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class LeadService:
    """Service for lead operations."""

    def __init__(
        self,
        postgres: PostgresClient,
        history: HistoryLog,
        config: LeadsConfig | None = None
    ):
        self.postgres = postgres
        self.history = history
        self.config = config or LeadsConfig()

    def _field_values(self, fields: LeadFields) -> list:
        data = fields.model_dump(mode="json")
        return [data[column] for column in _FIELD_COLUMNS]

    def _require_owner(self, lead: Lead) -> None:
        user_id = get_current_user_id()
        if lead.owner_id != user_id:
            logger.warning(f"User {user_id} denied write to lead {lead.id}")
            raise LeadAccessDeniedError(lead.id)

    def create(self, fields: LeadFields) -> Lead:
        """
        Create a lead owned by the acting user.

        The lead and its creation history entry are written in one
        statement.

        Args:
            fields: Validated lead data

        Returns:
            Stored lead with id and timestamps

        Raises:
            LeadConflictError: Storage rejected the row on a constraint
            StorageFailureError: The write failed; nothing was saved
        """
        owner_id = get_current_user_id()
        now = now_utc()

        try:
            row = self.postgres.execute_returning(
                f"""
                WITH inserted AS (
                    INSERT INTO leads ({', '.join(_INSERT_COLUMNS)})
                    VALUES {_ROW_PLACEHOLDER}
                    RETURNING *
                ), logged AS (
                    INSERT INTO lead_history (id, lead_id, changed_by, changed_at, diff)
                    SELECT gen_random_uuid(), id, owner_id, created_at, %s
                    FROM inserted
                )
                SELECT * FROM inserted
                """,
                (
                    uuid4(), owner_id, *self._field_values(fields), now, now,
                    Json(diff_for_create(fields))
                )
            )[0]
        except psycopg2.IntegrityError as e:
            raise LeadConflictError(f"Lead could not be saved: {e}") from e
        except psycopg2.Error as e:
            raise StorageFailureError(f"Lead could not be saved: {e}") from e

        lead = Lead.model_validate(row)
        logger.info(f"Created lead {lead.id}")

        return lead

    def create_many(self, fields_list: list[LeadFields]) -> list[Lead]:
        """
        Create several leads, all or nothing.

        Leads and their creation history entries are written in a single
        statement, so a rejected row leaves nothing behind.

        Returns:
            Stored leads in the same order as fields_list

        Raises:
            StorageFailureError: The statement failed; none were saved
        """
        if not fields_list:
            return []

        owner_id = get_current_user_id()
        now = now_utc()
        lead_ids = [uuid4() for _ in fields_list]

        params = []
        for lead_id, fields in zip(lead_ids, fields_list):
            params.extend([lead_id, owner_id, *self._field_values(fields), now, now])

        placeholders = ", ".join([_ROW_PLACEHOLDER] * len(fields_list))

        try:
            rows = self.postgres.execute_returning(
                f"""
                WITH inserted AS (
                    INSERT INTO leads ({', '.join(_INSERT_COLUMNS)})
                    VALUES {placeholders}
                    RETURNING *
                ), logged AS (
                    INSERT INTO lead_history (id, lead_id, changed_by, changed_at, diff)
                    SELECT gen_random_uuid(), id, owner_id, created_at, %s
                    FROM inserted
                )
                SELECT * FROM inserted
                """,
                (*params, Json(diff_for_create(fields_list[0])))
            )
        except psycopg2.Error as e:
            raise StorageFailureError(f"Could not save {len(fields_list)} lead(s): {e}") from e

        by_id = {str(row["id"]): row for row in rows}
        return [Lead.model_validate(by_id[str(lead_id)]) for lead_id in lead_ids]

    def get_by_id(self, lead_id: UUID) -> Lead | None:
        """
        Get lead by ID.

        Returns:
            Lead if found, None otherwise.
        """
        row = self.postgres.execute_single(
            "SELECT * FROM leads WHERE id = %s",
            (lead_id,)
        )

        if row is None:
            return None

        return Lead.model_validate(row)

    def update(
        self,
        lead_id: UUID,
        fields: LeadFields,
        expected_updated_at: datetime
    ) -> Lead:
        """
        Replace a lead's editable fields (last write wins, if not stale).

        Args:
            lead_id: Lead UUID
            fields: Validated full set of editable fields
            expected_updated_at: updatedAt the editor loaded

        Returns:
            Updated lead. If no field changed, the stored lead is returned
            as-is: nothing is written and no history is recorded.

        Raises:
            LeadNotFoundError: No such lead
            LeadAccessDeniedError: Acting user is not the owner
            StaleLeadError: Lead changed since the editor loaded it
            LeadConflictError: Storage rejected the new values
            StorageFailureError: The write failed; nothing was saved
        """
        current = self.get_by_id(lead_id)
        if current is None:
            raise LeadNotFoundError(lead_id)

        self._require_owner(current)

        if current.updated_at != expected_updated_at:
            logger.warning(f"Stale update rejected for lead {lead_id}")
            raise StaleLeadError(lead_id)

        changes = diff_for_update(current, fields)
        if changes is None:
            return current

        set_parts = [f"{column} = %s" for column in _FIELD_COLUMNS]
        set_parts.append("updated_at = %s")

        # No row updated means no history row either
        try:
            rows = self.postgres.execute_returning(
                f"""
                WITH updated AS (
                    UPDATE leads
                    SET {', '.join(set_parts)}
                    WHERE id = %s AND updated_at = %s
                    RETURNING *
                ), logged AS (
                    INSERT INTO lead_history (id, lead_id, changed_by, changed_at, diff)
                    SELECT gen_random_uuid(), id, %s, updated_at, %s
                    FROM updated
                )
                SELECT * FROM updated
                """,
                (
                    *self._field_values(fields), now_utc(), lead_id, expected_updated_at,
                    current.owner_id, Json(changes)
                )
            )
        except psycopg2.IntegrityError as e:
            raise LeadConflictError(f"Lead could not be saved: {e}") from e
        except psycopg2.Error as e:
            raise StorageFailureError(f"Lead could not be saved: {e}") from e

        # Another write landed between our read and this UPDATE
        if not rows:
            logger.warning(f"Stale update rejected for lead {lead_id}")
            raise StaleLeadError(lead_id)

        updated = Lead.model_validate(rows[0])
        logger.info(f"Updated lead {lead_id}: {', '.join(changes)}")

        return updated

    def delete(self, lead_id: UUID) -> bool:
        """
        Delete a lead and, by cascade, its history.

        Returns:
            True if deleted, False if not found

        Raises:
            LeadAccessDeniedError: Acting user is not the owner
        """
        current = self.get_by_id(lead_id)
        if current is None:
            return False

        self._require_owner(current)

        self.postgres.execute_returning(
            "DELETE FROM leads WHERE id = %s RETURNING id",
            (lead_id,)
        )
        logger.info(f"Deleted lead {lead_id}")

        return True

    def _where(self, lead_filter: LeadFilter) -> tuple[str, list]:
        clauses = []
        params = []

        for column in _FILTER_COLUMNS:
            value = getattr(lead_filter, column)
            if value is not None:
                clauses.append(f"{column} = %s")
                params.append(value.value)

        if lead_filter.query:
            pattern = f"%{_escape_like(lead_filter.query)}%"
            clauses.append(
                "(full_name ILIKE %s OR phone ILIKE %s OR COALESCE(email, '') ILIKE %s)"
            )
            params.extend([pattern, pattern, pattern])

        return (" AND ".join(clauses) or "TRUE"), params

    def list_page(self, lead_filter: LeadFilter | None = None, page: int = 1) -> LeadPage:
        """
        One page of leads matching the filter, most recently updated first.

        Args:
            lead_filter: Filter (all leads if omitted)
            page: 1-indexed page number

        Returns:
            LeadPage with the items and total match count

        Raises:
            ValueError: page is less than 1
        """
        if page < 1:
            raise ValueError(f"Page must be 1 or greater, got {page}")

        where, params = self._where(lead_filter or LeadFilter())
        page_size = self.config.page_size

        total = self.postgres.execute_scalar(
            f"SELECT COUNT(*) FROM leads WHERE {where}",
            tuple(params)
        )

        rows = self.postgres.execute(
            f"""
            SELECT * FROM leads
            WHERE {where}
            ORDER BY updated_at DESC, id
            LIMIT %s OFFSET %s
            """,
            (*params, page_size, (page - 1) * page_size)
        )

        return LeadPage(
            items=[Lead.model_validate(row) for row in rows],
            total=total or 0,
            page=page,
            page_size=page_size,
        )

    def list_all(self, lead_filter: LeadFilter | None = None) -> list[Lead]:
        """Every lead matching the filter, most recently updated first."""
        where, params = self._where(lead_filter or LeadFilter())

        rows = self.postgres.execute(
            f"""
            SELECT * FROM leads
            WHERE {where}
            ORDER BY updated_at DESC, id
            """,
            tuple(params)
        )

        return [Lead.model_validate(row) for row in rows]

    def recent_history(self, lead_id: UUID) -> list[HistoryEntry]:
        """Newest history entries for a lead, up to the configured limit."""
        return self.history.list_recent(lead_id, self.config.history_limit)
