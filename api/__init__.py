"""HTTP interface for lead intake."""

from api.base import (
    APIError,
    APIResponse,
    success_response,
    error_response,
    ErrorCodes,
)
from api.app import build_services, create_app
