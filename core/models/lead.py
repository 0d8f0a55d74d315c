"""Buyer lead domain models."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel


class City(str, Enum):
    """Cities the business operates in."""

    CHANDIGARH = "Chandigarh"
    MOHALI = "Mohali"
    ZIRAKPUR = "Zirakpur"
    PANCHKULA = "Panchkula"
    OTHER = "Other"


class PropertyType(str, Enum):
    """Kind of property the buyer is after."""

    APARTMENT = "Apartment"
    VILLA = "Villa"
    PLOT = "Plot"
    OFFICE = "Office"
    RETAIL = "Retail"

    @property
    def requires_bhk(self) -> bool:
        """Residential units must state a BHK configuration."""
        return self in (PropertyType.APARTMENT, PropertyType.VILLA)


class Bhk(str, Enum):
    """Bedroom/hall/kitchen configuration."""

    ONE = "1"
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    STUDIO = "Studio"


class Purpose(str, Enum):
    BUY = "Buy"
    RENT = "Rent"


class Timeline(str, Enum):
    """How soon the buyer intends to close."""

    ZERO_TO_THREE_MONTHS = "0-3m"
    THREE_TO_SIX_MONTHS = "3-6m"
    MORE_THAN_SIX_MONTHS = ">6m"
    EXPLORING = "Exploring"


class LeadSource(str, Enum):
    """How the lead was acquired."""

    WEBSITE = "Website"
    REFERRAL = "Referral"
    WALK_IN = "Walk-in"
    CALL = "Call"
    OTHER = "Other"


class LeadStatus(str, Enum):
    """Lead lifecycle status."""

    NEW = "New"
    QUALIFIED = "Qualified"
    CONTACTED = "Contacted"
    VISITED = "Visited"
    NEGOTIATION = "Negotiation"
    CONVERTED = "Converted"
    DROPPED = "Dropped"


class LeadFields(BaseModel):
    """
    User-editable lead data in normalized form.

    Field order is the order in which validation reports errors.
    Attributes are snake_case; input and output use the camelCase public
    names (fullName, propertyType, ...) so form payloads, CSV headers and
    error reports all agree.
    """

    full_name: str = Field(..., min_length=2, max_length=80)
    email: EmailStr | None = None
    phone: str = Field(..., pattern=r"^[0-9]{10,15}$")
    city: City
    property_type: PropertyType
    bhk: Bhk | None = None
    purpose: Purpose
    budget_min: int | None = Field(None, ge=0, strict=True)
    budget_max: int | None = Field(None, ge=0, strict=True)
    timeline: Timeline
    source: LeadSource
    status: LeadStatus = LeadStatus.NEW
    notes: str | None = Field(None, max_length=1000)
    tags: list[str] = Field(default_factory=list)

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    @field_validator("email", mode="before")
    @classmethod
    def bare_address_only(cls, value):
        # EmailStr would accept "Name <addr>" and keep only addr
        if isinstance(value, str) and ("<" in value or ">" in value):
            raise ValueError("Email must be a plain address")
        return value


class Lead(LeadFields):
    """Full lead entity as stored."""

    id: UUID
    owner_id: UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class LeadFilter(BaseModel):
    """Listing filter. Unset fields do not constrain the result."""

    city: City | None = None
    property_type: PropertyType | None = None
    status: LeadStatus | None = None
    timeline: Timeline | None = None
    query: str | None = Field(None, max_length=200)

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


class LeadPage(BaseModel):
    """One page of leads, newest update first."""

    items: list[Lead]
    total: int
    page: int
    page_size: int

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    @property
    def total_pages(self) -> int:
        return max(1, -(-self.total // self.page_size))
