"""POST /api/actions: lead create, update and delete."""

from uuid import UUID

from fastapi import APIRouter, Request
from pydantic import BaseModel

from api.base import success_response
from api.data import dump_lead
from core.exceptions import LeadNotFoundError, LeadValidationError
from core.validation import ValidationMode, validate
from utils.timezone import parse_iso


class ActionRequest(BaseModel):
    domain: str
    action: str
    data: dict


def create_actions_router(services: dict) -> APIRouter:
    router = APIRouter()

    handlers = {
        "lead": LeadHandler(services["lead"]),
    }

    @router.post("/actions")
    async def perform_action(request: Request, body: ActionRequest):
        handler = handlers.get(body.domain)
        if handler is None:
            raise ValueError(
                f"Unknown domain '{body.domain}'. "
                f"Valid domains: {', '.join(sorted(handlers.keys()))}"
            )

        if body.action not in handler.ALLOWED_ACTIONS:
            raise ValueError(
                f"Action '{body.action}' not allowed on '{body.domain}'. "
                f"Allowed: {', '.join(sorted(handler.ALLOWED_ACTIONS))}"
            )

        method = getattr(handler, f"_handle_{body.action}")
        result = method(dict(body.data))
        return success_response(result).model_dump(mode="json")

    return router


# =============================================================================
# HANDLER CLASSES
# =============================================================================


class LeadHandler:
    ALLOWED_ACTIONS = {"create", "update", "delete"}

    def __init__(self, service):
        self.service = service

    @staticmethod
    def _validated(data: dict):
        result = validate(data, ValidationMode.FORM)
        if not result.ok:
            raise LeadValidationError(result.errors)
        return result.lead

    @staticmethod
    def _require(data: dict, key: str) -> str:
        value = data.pop(key, None)
        if not value:
            raise ValueError(f"'{key}' is required for this action")
        return value

    def _handle_create(self, data: dict):
        lead = self.service.create(self._validated(data))
        return dump_lead(lead)

    def _handle_update(self, data: dict):
        lead_id = UUID(self._require(data, "id"))
        expected_updated_at = parse_iso(self._require(data, "updatedAt"))
        lead = self.service.update(lead_id, self._validated(data), expected_updated_at)
        return dump_lead(lead)

    def _handle_delete(self, data: dict):
        lead_id = UUID(self._require(data, "id"))
        if not self.service.delete(lead_id):
            raise LeadNotFoundError(lead_id)
        return {"deleted": True}
