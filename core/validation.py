"""
Lead validation shared by every entry path.

Interactive create, interactive edit and CSV import all funnel through
validate(). Each path has a thin adapter that turns its input into one
draft shape (a dict keyed by public field name, absent fields omitted);
the rules themselves live here once, so every path accepts and rejects
the same records and stores them identically.

validate() never raises. It returns either the normalized LeadFields or
every field error it found, in field order, followed by cross-field
errors.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, ValidationError

from core.lead_csv import CSV_COLUMNS
from core.models import LeadFields, PropertyType

_DIGITS = re.compile(r"[0-9]+")

_BUDGET_FIELDS = ("budgetMin", "budgetMax")

_LABELS = {
    "fullName": "Name",
    "email": "Email",
    "phone": "Phone",
    "city": "City",
    "propertyType": "Property type",
    "bhk": "BHK",
    "purpose": "Purpose",
    "budgetMin": "Minimum budget",
    "budgetMax": "Maximum budget",
    "timeline": "Timeline",
    "source": "Source",
    "status": "Status",
    "notes": "Notes",
    "tags": "Tags",
}

# Field-specific wording; anything not listed falls back to _generic_message
_MESSAGES = {
    ("fullName", "string_too_short"): "Name must be at least 2 characters",
    ("fullName", "string_too_long"): "Name must be at most 80 characters",
    ("email", "value_error"): "Invalid email format",
    ("phone", "string_pattern_mismatch"): "Phone must be 10-15 digits",
    ("notes", "string_too_long"): "Notes must be at most 1000 characters",
    ("budgetMin", "greater_than_equal"): "Minimum budget cannot be negative",
    ("budgetMax", "greater_than_equal"): "Maximum budget cannot be negative",
}

BHK_REQUIRED_MESSAGE = "BHK is required for Apartments and Villas"
BUDGET_ORDER_MESSAGE = "Maximum budget must be greater than or equal to minimum budget"


class ValidationMode(str, Enum):
    """Which adapter shapes the candidate before validation."""

    FORM = "form"
    CSV = "csv"


class FieldError(BaseModel):
    """
    One user-correctable problem with a candidate lead.

    row is the 1-based CSV data row (None for form input); field is the
    public field name, or None for whole-record problems.
    """

    row: int | None = None
    field: str | None = None
    message: str


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validate(): a normalized lead or the full error list."""

    lead: LeadFields | None = None
    errors: list[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.lead is not None


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "")


def adapt_form(candidate: Mapping[str, Any]) -> dict[str, Any]:
    """
    Shape typed form input into a draft.

    Fields may be keyed by public name (fullName) or attribute name
    (full_name). Values pass through untouched; None and "" mean absent.
    """
    draft = {}
    for name, info in LeadFields.model_fields.items():
        value = candidate.get(info.alias, candidate.get(name))
        if _is_blank(value):
            continue
        draft[info.alias] = value
    return draft


def adapt_csv_row(row: Mapping[str, str | None]) -> dict[str, Any]:
    """
    Shape a raw CSV row (all cells text) into a draft.

    - Empty cells mean absent; a missing status then defaults to New.
    - tags is split on "," with each tag trimmed.
    - Budgets become integers only when the cell is all ASCII digits.
      Anything else is left as text so validation rejects it rather
      than guessing.
    """
    draft = {}
    for column in CSV_COLUMNS:
        raw = row.get(column)
        if _is_blank(raw):
            continue

        if not isinstance(raw, str):
            draft[column] = raw
        elif column == "tags":
            draft[column] = [tag.strip() for tag in raw.split(",")]
        elif column in _BUDGET_FIELDS:
            draft[column] = int(raw) if _DIGITS.fullmatch(raw) else raw
        else:
            draft[column] = raw
    return draft


def _generic_message(field_name: str, error: dict) -> str:
    label = _LABELS.get(field_name, field_name)
    error_type = error["type"]

    if error_type == "missing":
        return f"{label} is required"
    if error_type == "enum":
        return f"{label} must be one of {error['ctx']['expected']}"
    if error_type.startswith("int_"):
        return f"{label} must be a whole number"
    if error_type == "list_type":
        return f"{label} must be a list of text values"
    return f"{label}: {error['msg']}"


def _field_errors(draft: dict[str, Any], row: int | None) -> list[FieldError]:
    """Per-field checks via the LeadFields schema, one error per field."""
    try:
        LeadFields.model_validate(draft)
    except ValidationError as e:
        raw_errors = e.errors()
    else:
        return []

    errors = []
    seen = set()
    for error in raw_errors:
        field_name = str(error["loc"][0]) if error["loc"] else None
        if field_name in seen:
            continue
        seen.add(field_name)
        message = _MESSAGES.get((field_name, error["type"])) or _generic_message(field_name, error)
        errors.append(FieldError(row=row, field=field_name, message=message))

    # Schema order is field order; keep it regardless of how pydantic reports
    order = {info.alias: i for i, info in enumerate(LeadFields.model_fields.values())}
    errors.sort(key=lambda err: order.get(err.field, len(order)))
    return errors


def _valid_budget(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _cross_field_errors(draft: dict[str, Any], row: int | None) -> list[FieldError]:
    """
    Rules spanning several fields.

    Each rule only fires when the fields it reads are individually valid,
    so one bad value never produces a second, derived error.
    """
    errors = []

    property_type = draft.get("propertyType")
    if property_type in {p.value for p in PropertyType}:
        if PropertyType(property_type).requires_bhk and "bhk" not in draft:
            errors.append(FieldError(row=row, field="bhk", message=BHK_REQUIRED_MESSAGE))

    budget_min = draft.get("budgetMin")
    budget_max = draft.get("budgetMax")
    if _valid_budget(budget_min) and _valid_budget(budget_max) and budget_max < budget_min:
        errors.append(FieldError(row=row, field="budgetMax", message=BUDGET_ORDER_MESSAGE))

    return errors


def validate(
    candidate: Mapping[str, Any],
    mode: ValidationMode,
    row: int | None = None
) -> ValidationResult:
    """
    Validate and normalize a candidate lead.

    Args:
        candidate: Form payload (mode=FORM) or raw CSV row (mode=CSV)
        mode: Which adapter to apply first
        row: 1-based CSV data row, stamped on each error (CSV mode only)

    Returns:
        ValidationResult with lead set on success, errors set otherwise.
        Identical input always yields an identical result.
    """
    if mode == ValidationMode.CSV:
        draft = adapt_csv_row(candidate)
    else:
        draft = adapt_form(candidate)
        row = None

    errors = _field_errors(draft, row) + _cross_field_errors(draft, row)
    if errors:
        return ValidationResult(errors=errors)

    return ValidationResult(lead=LeadFields.model_validate(draft))
