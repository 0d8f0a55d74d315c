"""Typed exceptions for lead operations."""

from uuid import UUID


class LeadError(Exception):
    """Base class for lead management errors."""


class LeadNotFoundError(LeadError):
    """No lead with the given ID is visible to the acting user."""

    def __init__(self, lead_id: UUID):
        self.lead_id = lead_id
        super().__init__(f"Lead {lead_id} not found")


class LeadAccessDeniedError(LeadError):
    """
    Acting user does not own the lead.

    Reads are open to every authenticated user; writes are owner-only.
    """

    def __init__(self, lead_id: UUID):
        self.lead_id = lead_id
        super().__init__(f"Only the owner can modify lead {lead_id}")


class StaleLeadError(LeadError):
    """
    The lead changed after the editor loaded it.

    Raised when the caller's expected updated_at no longer matches the
    stored value. The client should reload and re-apply its edits.
    """

    def __init__(self, lead_id: UUID):
        self.lead_id = lead_id
        super().__init__(
            f"Lead {lead_id} was changed by someone else. Please reload and try again."
        )


class LeadConflictError(LeadError):
    """Storage rejected the lead on a constraint the validator does not model."""


class StorageFailureError(LeadError):
    """Backend write failed. Safe to retry by re-submitting the same rows."""


class BatchTooLargeError(LeadError):
    """Import batch exceeds the row limit. Nothing was processed."""

    def __init__(self, row_count: int, limit: int):
        self.row_count = row_count
        self.limit = limit
        super().__init__(
            f"CSV file cannot contain more than {limit} rows (got {row_count})"
        )


class CsvFormatError(LeadError):
    """CSV text could not be read as a lead file (bad header, undecodable)."""


class LeadValidationError(LeadError):
    """
    Candidate lead failed validation.

    Carries the full ordered FieldError list so the API layer can report
    every problem at once.
    """

    def __init__(self, errors: list):
        self.errors = errors
        super().__init__(f"Lead failed validation with {len(errors)} error(s)")
