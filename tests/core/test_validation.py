"""Tests for shared lead validation (form and CSV entry paths)."""

import pytest

from core.models import Bhk, City, LeadStatus, PropertyType
from core.validation import (
    BHK_REQUIRED_MESSAGE,
    BUDGET_ORDER_MESSAGE,
    FieldError,
    ValidationMode,
    adapt_csv_row,
    adapt_form,
    validate,
)
from tests.factories import csv_row, form_payload


def error_fields(result) -> list[str | None]:
    return [error.field for error in result.errors]


class TestAcceptExample:
    """A minimal valid form submission."""

    def test_accepts_minimal_plot_lead(self):
        """Plot lead without BHK is accepted."""
        result = validate(form_payload(), ValidationMode.FORM)

        assert result.ok
        assert result.errors == []
        assert result.lead.full_name == "Jane Doe"
        assert result.lead.city == City.MOHALI

    def test_bhk_absent_and_status_defaults_to_new(self):
        """Unset status becomes New; unset bhk stays None."""
        result = validate(form_payload(), ValidationMode.FORM)

        assert result.lead.bhk is None
        assert result.lead.status == LeadStatus.NEW

    def test_optional_fields_normalized_to_none(self):
        """Empty strings for optional fields become None, tags []."""
        result = validate(
            form_payload(email="", notes="", budgetMin=None, bhk=""),
            ValidationMode.FORM,
        )

        assert result.ok
        assert result.lead.email is None
        assert result.lead.notes is None
        assert result.lead.budget_min is None
        assert result.lead.tags == []


class TestRejectExample:
    """A submission with several problems."""

    def test_reports_phone_and_bhk(self):
        """Short phone and missing BHK for Apartment both reported."""
        candidate = {
            "fullName": "Jo",
            "phone": "12345",
            "city": "Mohali",
            "propertyType": "Apartment",
            "purpose": "Buy",
            "timeline": "0-3m",
            "source": "Call",
        }

        result = validate(candidate, ValidationMode.FORM)

        assert not result.ok
        assert result.lead is None
        assert error_fields(result) == ["phone", "bhk"]
        assert result.errors[0].message == "Phone must be 10-15 digits"
        assert result.errors[1].message == BHK_REQUIRED_MESSAGE

    def test_collects_every_failing_field(self):
        """No short-circuit: three bad fields, three errors."""
        result = validate(
            form_payload(fullName="J", phone="abc", city="Delhi"),
            ValidationMode.FORM,
        )

        assert error_fields(result) == ["fullName", "phone", "city"]

    def test_form_errors_have_no_row(self):
        """Form mode never stamps a row number, even if one is passed."""
        result = validate(form_payload(phone="1"), ValidationMode.FORM, row=7)

        assert result.errors[0].row is None


class TestFieldRules:
    """Per-field constraints."""

    @pytest.mark.parametrize("name", ["Al", "A" * 80])
    def test_name_length_bounds_accepted(self, name):
        """2 and 80 characters are both allowed."""
        assert validate(form_payload(fullName=name), ValidationMode.FORM).ok

    def test_name_too_long(self):
        """81 characters rejected with a length message."""
        result = validate(form_payload(fullName="A" * 81), ValidationMode.FORM)

        assert result.errors == [
            FieldError(field="fullName", message="Name must be at most 80 characters")
        ]

    def test_missing_name(self):
        """Missing required field reported as required."""
        payload = form_payload()
        del payload["fullName"]

        result = validate(payload, ValidationMode.FORM)

        assert result.errors[0].field == "fullName"
        assert result.errors[0].message == "Name is required"

    @pytest.mark.parametrize("phone", ["987654321", "9876543210123456", "98765-43210", "+919876543210"])
    def test_phone_rejects_non_digit_or_wrong_length(self, phone):
        """Phone must be 10-15 plain ASCII digits."""
        result = validate(form_payload(phone=phone), ValidationMode.FORM)

        assert error_fields(result) == ["phone"]

    def test_phone_accepts_fifteen_digits(self):
        assert validate(form_payload(phone="1" * 15), ValidationMode.FORM).ok

    def test_invalid_email(self):
        """Malformed email is a field error."""
        result = validate(form_payload(email="not-an-email"), ValidationMode.FORM)

        assert result.errors == [FieldError(field="email", message="Invalid email format")]

    @pytest.mark.parametrize("value", ["Jane Doe <jane@acme.in>", "<jane@acme.in>"])
    def test_display_name_email_rejected(self, value):
        """Only a plain address is accepted, never a name-and-address form."""
        result = validate(form_payload(email=value), ValidationMode.FORM)

        assert result.errors == [FieldError(field="email", message="Invalid email format")]

    def test_valid_email_kept(self):
        result = validate(form_payload(email="jane@acme.in"), ValidationMode.FORM)

        assert result.lead.email == "jane@acme.in"

    def test_notes_limit(self):
        """Notes up to 1000 characters; 1001 rejected."""
        assert validate(form_payload(notes="x" * 1000), ValidationMode.FORM).ok

        result = validate(form_payload(notes="x" * 1001), ValidationMode.FORM)
        assert error_fields(result) == ["notes"]

    def test_unknown_enum_value_is_field_error(self):
        """Values outside a closed set are reported, not raised."""
        result = validate(form_payload(source="Billboard"), ValidationMode.FORM)

        assert error_fields(result) == ["source"]
        assert "Website" in result.errors[0].message

    def test_enum_values_are_case_sensitive(self):
        result = validate(form_payload(city="mohali"), ValidationMode.FORM)

        assert error_fields(result) == ["city"]

    def test_negative_budget_rejected(self):
        result = validate(form_payload(budgetMin=-1), ValidationMode.FORM)

        assert result.errors == [
            FieldError(field="budgetMin", message="Minimum budget cannot be negative")
        ]

    @pytest.mark.parametrize("value", ["5000", 5000.5, True])
    def test_form_budget_must_be_integer(self, value):
        """Form numbers are not coerced from text, floats or booleans."""
        result = validate(form_payload(budgetMax=value), ValidationMode.FORM)

        assert result.errors == [
            FieldError(field="budgetMax", message="Maximum budget must be a whole number")
        ]

    def test_accepts_snake_case_keys(self):
        """Form adapter also reads attribute names."""
        payload = form_payload()
        payload["full_name"] = payload.pop("fullName")
        payload["property_type"] = payload.pop("propertyType")

        assert validate(payload, ValidationMode.FORM).ok


class TestBhkRule:
    """BHK is required iff property type is Apartment or Villa."""

    @pytest.mark.parametrize("property_type", ["Apartment", "Villa"])
    def test_required_for_residential(self, property_type):
        result = validate(form_payload(propertyType=property_type), ValidationMode.FORM)

        assert error_fields(result) == ["bhk"]

    @pytest.mark.parametrize("property_type", ["Apartment", "Villa"])
    def test_accepted_when_present(self, property_type):
        result = validate(
            form_payload(propertyType=property_type, bhk="3"), ValidationMode.FORM
        )

        assert result.ok
        assert result.lead.bhk == Bhk.THREE

    @pytest.mark.parametrize("property_type", ["Plot", "Office", "Retail"])
    @pytest.mark.parametrize("bhk", [None, "2", "Studio"])
    def test_never_required_for_other_types(self, property_type, bhk):
        """No BHK error for non-residential types, with or without BHK."""
        result = validate(
            form_payload(propertyType=property_type, bhk=bhk), ValidationMode.FORM
        )

        assert result.ok
        assert result.lead.property_type == PropertyType(property_type)

    def test_bhk_kept_for_non_residential(self):
        """BHK on a Plot is allowed and stored as given, not cleared."""
        result = validate(form_payload(bhk="Studio"), ValidationMode.FORM)

        assert result.lead.bhk == Bhk.STUDIO

    def test_invalid_property_type_adds_no_bhk_error(self):
        """Cross-field rule only fires on a valid property type."""
        result = validate(form_payload(propertyType="Castle"), ValidationMode.FORM)

        assert error_fields(result) == ["propertyType"]


class TestBudgetRule:
    """budgetMax must be >= budgetMin when both are present."""

    def test_max_below_min_rejected(self):
        result = validate(
            form_payload(budgetMin=500, budgetMax=400), ValidationMode.FORM
        )

        assert result.errors == [FieldError(field="budgetMax", message=BUDGET_ORDER_MESSAGE)]

    @pytest.mark.parametrize("budget_min,budget_max", [(400, 400), (400, 500), (0, 0)])
    def test_max_at_or_above_min_accepted(self, budget_min, budget_max):
        result = validate(
            form_payload(budgetMin=budget_min, budgetMax=budget_max), ValidationMode.FORM
        )

        assert result.ok
        assert result.lead.budget_min == budget_min
        assert result.lead.budget_max == budget_max

    def test_zero_min_still_compared(self):
        """A zero minimum is present, not absent."""
        result = validate(form_payload(budgetMin=1, budgetMax=0), ValidationMode.FORM)

        assert error_fields(result) == ["budgetMax"]

    def test_single_budget_needs_no_order(self):
        assert validate(form_payload(budgetMax=10), ValidationMode.FORM).ok
        assert validate(form_payload(budgetMin=10), ValidationMode.FORM).ok

    def test_invalid_budget_adds_no_order_error(self):
        """A bad budgetMax reports once, not again for ordering."""
        result = validate(
            form_payload(budgetMin=500, budgetMax=-1), ValidationMode.FORM
        )

        assert error_fields(result) == ["budgetMax"]


class TestErrorOrdering:
    """Errors come back in field order, then cross-field rules."""

    def test_field_errors_then_cross_field(self):
        candidate = form_payload(
            fullName="J",
            propertyType="Villa",
            budgetMin=10,
            budgetMax=5,
            notes="x" * 1001,
        )

        result = validate(candidate, ValidationMode.FORM)

        assert error_fields(result) == ["fullName", "notes", "bhk", "budgetMax"]

    def test_deterministic(self):
        """Same input, same output."""
        candidate = form_payload(fullName="J", phone="1", propertyType="Villa")

        first = validate(candidate, ValidationMode.FORM)
        second = validate(dict(candidate), ValidationMode.FORM)

        assert first == second


class TestCsvAdapter:
    """Raw CSV row shaping."""

    def test_tags_split_and_trimmed(self):
        """'urgent, family' becomes ['urgent', 'family']."""
        result = validate(csv_row(tags="urgent, family"), ValidationMode.CSV, row=1)

        assert result.lead.tags == ["urgent", "family"]

    def test_empty_tags_is_empty_list(self):
        result = validate(csv_row(tags=""), ValidationMode.CSV, row=1)

        assert result.lead.tags == []

    def test_budgets_parsed_as_integers(self):
        result = validate(csv_row(), ValidationMode.CSV, row=1)

        assert result.lead.budget_min == 5000000
        assert result.lead.budget_max == 7000000

    @pytest.mark.parametrize("value", ["5e6", "-100", "1,000", " 100", "100\n", "100 ", "12.5", "١٢٣"])
    def test_non_digit_budget_rejected(self, value):
        """Only plain ASCII digit strings become numbers."""
        result = validate(csv_row(budgetMin=value, budgetMax=""), ValidationMode.CSV, row=4)

        assert result.errors == [
            FieldError(row=4, field="budgetMin", message="Minimum budget must be a whole number")
        ]

    def test_empty_cells_are_absent(self):
        """Empty optional cells normalize to None."""
        row = csv_row(
            propertyType="Office", bhk="", email="", notes="", budgetMin="", budgetMax=""
        )

        result = validate(row, ValidationMode.CSV, row=1)

        assert result.ok
        assert result.lead.bhk is None
        assert result.lead.email is None
        assert result.lead.notes is None
        assert result.lead.budget_min is None
        assert result.lead.budget_max is None

    def test_missing_status_defaults_to_new(self):
        result = validate(csv_row(status=""), ValidationMode.CSV, row=1)

        assert result.lead.status == LeadStatus.NEW

    def test_status_preserved(self):
        result = validate(csv_row(status="Negotiation"), ValidationMode.CSV, row=1)

        assert result.lead.status == LeadStatus.NEGOTIATION

    def test_errors_carry_row_number(self):
        result = validate(csv_row(phone="12", bhk=""), ValidationMode.CSV, row=12)

        assert [(e.row, e.field) for e in result.errors] == [(12, "phone"), (12, "bhk")]

    def test_adapt_csv_row_keeps_bad_budget_text(self):
        draft = adapt_csv_row(csv_row(budgetMin="abc"))

        assert draft["budgetMin"] == "abc"
        assert draft["budgetMax"] == 7000000


class TestEntryPathsAgree:
    """Form and CSV paths store the same normalized record."""

    def test_same_lead_from_both_paths(self):
        row = csv_row(tags="urgent,family", status="Qualified")
        form = {
            **row,
            "budgetMin": 5000000,
            "budgetMax": 7000000,
            "tags": ["urgent", "family"],
        }

        from_csv = validate(row, ValidationMode.CSV, row=1)
        from_form = validate(form, ValidationMode.FORM)

        assert from_csv.lead == from_form.lead

    def test_same_rejection_from_both_paths(self):
        row = csv_row(propertyType="Villa", bhk="", budgetMin="9", budgetMax="3")
        form = {**row, "budgetMin": 9, "budgetMax": 3}

        from_csv = validate(row, ValidationMode.CSV, row=1)
        from_form = validate(form, ValidationMode.FORM)

        assert error_fields(from_csv) == error_fields(from_form) == ["bhk", "budgetMax"]
        assert [e.message for e in from_csv.errors] == [e.message for e in from_form.errors]

    def test_adapt_form_drops_blank_values(self):
        draft = adapt_form(form_payload(email="", notes=None))

        assert "email" not in draft
        assert "notes" not in draft
        assert draft["fullName"] == "Jane Doe"
