"""
Bulk CSV import of leads.

Every row is validated on its own (CSV mode); one bad row never blocks
the others. Valid rows are written in small batches. When a batch is
rejected by storage, its rows are retried one at a time so only the
offending rows are reported. Batches already written stay written:
a partial import is an accepted outcome, not a failure.
"""

import logging
from typing import Mapping, Sequence

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from core.config import LeadsConfig
from core.exceptions import BatchTooLargeError, StorageFailureError
from core.lead_csv import parse_csv
from core.models import Lead, LeadFields
from core.services.lead_service import LeadService
from core.validation import FieldError, ValidationMode, validate

logger = logging.getLogger(__name__)

STORAGE_FAILURE_MESSAGE = "Could not save this row. Please try again."


class RowOutcome(BaseModel):
    """Result for one input row: the stored lead, or why it was not stored."""

    row: int
    lead: Lead | None = None
    errors: list[FieldError] = Field(default_factory=list)

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    @property
    def ok(self) -> bool:
        return self.lead is not None


class ImportResult(BaseModel):
    """Per-row outcomes in input order, plus totals."""

    outcomes: list[RowOutcome]
    imported_count: int
    error_count: int

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    @property
    def errors(self) -> list[FieldError]:
        """Every row error, in row order."""
        return [error for outcome in self.outcomes for error in outcome.errors]


class LeadImporter:
    """Validates and stores batches of raw CSV rows for the acting user."""

    def __init__(self, leads: LeadService, config: LeadsConfig | None = None):
        self.leads = leads
        self.config = config or LeadsConfig()

    def import_csv(self, text: str) -> ImportResult:
        """
        Import leads from CSV text.

        Raises:
            CsvFormatError: Header missing or not in the required order
            BatchTooLargeError: More data rows than allowed
        """
        return self.import_rows(parse_csv(text))

    def import_rows(self, rows: Sequence[Mapping[str, str]]) -> ImportResult:
        """
        Import already-parsed CSV rows.

        Args:
            rows: Raw rows keyed by CSV column name

        Returns:
            ImportResult with one outcome per row (1-based row numbers)

        Raises:
            BatchTooLargeError: More rows than max_import_rows; nothing
                was validated or written
        """
        if len(rows) > self.config.max_import_rows:
            raise BatchTooLargeError(len(rows), self.config.max_import_rows)

        outcomes = [RowOutcome(row=index) for index in range(1, len(rows) + 1)]
        pending: list[tuple[RowOutcome, LeadFields]] = []

        for outcome, raw in zip(outcomes, rows):
            result = validate(raw, ValidationMode.CSV, row=outcome.row)
            if result.ok:
                pending.append((outcome, result.lead))
            else:
                outcome.errors = result.errors

        batch_size = self.config.import_batch_size
        for start in range(0, len(pending), batch_size):
            self._store_batch(pending[start:start + batch_size])

        imported = sum(1 for outcome in outcomes if outcome.ok)
        result = ImportResult(
            outcomes=outcomes,
            imported_count=imported,
            error_count=len(outcomes) - imported,
        )

        logger.info(
            f"Imported {result.imported_count} of {len(rows)} rows "
            f"({result.error_count} failed)"
        )
        return result

    def _store_batch(self, batch: list[tuple[RowOutcome, LeadFields]]) -> None:
        try:
            leads = self.leads.create_many([fields for _, fields in batch])
        except StorageFailureError as e:
            first, last = batch[0][0].row, batch[-1][0].row
            logger.warning(f"Batch for rows {first}-{last} rejected, retrying rows singly: {e}")
            for outcome, fields in batch:
                self._store_one(outcome, fields)
            return

        for (outcome, _), lead in zip(batch, leads):
            outcome.lead = lead

    def _store_one(self, outcome: RowOutcome, fields: LeadFields) -> None:
        try:
            outcome.lead = self.leads.create_many([fields])[0]
        except StorageFailureError as e:
            logger.warning(f"Row {outcome.row} rejected by storage: {e}")
            outcome.errors = [
                FieldError(row=outcome.row, field=None, message=STORAGE_FAILURE_MESSAGE)
            ]
