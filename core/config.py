"""Lead management configuration."""

from pydantic import BaseModel, Field


class LeadsConfig(BaseModel):
    """
    Limits for listing, history display and bulk import.

    Defaults match what the intake UI was built around; tests and
    deployments may tighten them.
    """

    # Bulk import
    max_import_rows: int = Field(
        default=200,
        description="Largest CSV import accepted, in data rows",
        ge=1,
        le=200,
    )
    import_batch_size: int = Field(
        default=10,
        description="Valid rows written per INSERT during import",
        ge=1,
        le=100,
    )

    # Listing
    page_size: int = Field(
        default=10,
        description="Leads per page in list views",
        ge=1,
        le=100,
    )

    # History
    history_limit: int = Field(
        default=5,
        description="History entries shown per lead, newest first",
        ge=1,
        le=50,
    )
