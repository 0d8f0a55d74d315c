"""Core domain models."""

from core.models.lead import (
    Lead,
    LeadFields,
    LeadFilter,
    LeadPage,
    City,
    PropertyType,
    Bhk,
    Purpose,
    Timeline,
    LeadSource,
    LeadStatus,
)
from core.models.history import HistoryEntry

__all__ = [
    # Lead
    "Lead", "LeadFields", "LeadFilter", "LeadPage",
    # Enums
    "City", "PropertyType", "Bhk", "Purpose", "Timeline", "LeadSource", "LeadStatus",
    # History
    "HistoryEntry",
]
