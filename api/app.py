"""Application assembly."""

from typing import Callable
from uuid import UUID

from fastapi import FastAPI
from starlette.requests import Request

from api.actions import create_actions_router
from api.base import success_response
from api.data import create_data_router
from api.errors import register_error_handlers
from api.middleware import RequestIDMiddleware, UserContextMiddleware
from api.transfer import create_transfer_router
from clients.postgres_client import PostgresClient
from core.config import LeadsConfig
from core.history import HistoryLog
from core.services.import_service import LeadImporter
from core.services.lead_service import LeadService


def build_services(postgres: PostgresClient, config: LeadsConfig | None = None) -> dict:
    """Wire the lead services onto one database client."""
    config = config or LeadsConfig()
    history = HistoryLog(postgres, default_limit=config.history_limit)
    lead_service = LeadService(postgres, history, config)
    return {
        "lead": lead_service,
        "importer": LeadImporter(lead_service, config),
    }


def create_app(
    services: dict,
    resolve_user: Callable[[Request], UUID | None],
) -> FastAPI:
    """
    FastAPI app with user context, error handlers, and lead routes.

    Args:
        services: As returned by build_services()
        resolve_user: Maps a request to the authenticated user's ID, or None
    """
    app = FastAPI(title="Buyer Leads")
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(UserContextMiddleware, resolve_user=resolve_user)
    register_error_handlers(app)

    @app.get("/health")
    async def health():
        return success_response({"status": "ok"}).model_dump(mode="json")

    app.include_router(create_data_router(services), prefix="/api")
    app.include_router(create_actions_router(services), prefix="/api")
    app.include_router(create_transfer_router(services), prefix="/api")

    return app
