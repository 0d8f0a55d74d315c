"""API test fixtures: test client over the real app with mocked services."""

from unittest.mock import Mock
from uuid import UUID

import pytest
from starlette.testclient import TestClient

from api.app import create_app
from core.services.import_service import LeadImporter
from core.services.lead_service import LeadService


USER_HEADER = "X-Test-User"


def header_user(request) -> UUID | None:
    """Test stand-in for the host's authentication."""
    value = request.headers.get(USER_HEADER)
    return UUID(value) if value else None


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def lead_service():
    return Mock(spec=LeadService)


@pytest.fixture
def importer():
    return Mock(spec=LeadImporter)


@pytest.fixture
def services(lead_service, importer):
    return {
        "lead": lead_service,
        "importer": importer,
    }


# =============================================================================
# APP & CLIENT FIXTURES
# =============================================================================


@pytest.fixture
def app(services):
    """FastAPI app with user context, error handlers, and all lead routes."""
    return create_app(services, resolve_user=header_user)


@pytest.fixture
def client(app, test_user_id):
    """Client acting as the primary test user."""
    c = TestClient(app, raise_server_exceptions=False)
    c.headers[USER_HEADER] = str(test_user_id)
    return c


@pytest.fixture
def unauthed_client(app):
    """Client with no user."""
    return TestClient(app, raise_server_exceptions=False)
