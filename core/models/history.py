"""Lead history (audit trail) models."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class HistoryEntry(BaseModel):
    """
    One append-only history row for a lead.

    diff is either the creation marker {"action": "created"} or a mapping
    of public field name to {"old": ..., "new": ...}.
    """

    id: UUID
    lead_id: UUID
    changed_by: UUID | None
    changed_at: datetime
    diff: dict[str, Any]

    model_config = {
        "from_attributes": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    @property
    def is_creation(self) -> bool:
        return self.diff.get("action") == "created"
