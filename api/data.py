"""GET /api/data: read leads and their history."""

from uuid import UUID

from fastapi import APIRouter, Query, Request

from api.base import success_response
from core.exceptions import LeadNotFoundError
from core.models import LeadFilter


VALID_TYPES = {"leads", "history"}


def dump_lead(lead) -> dict:
    return lead.model_dump(mode="json", by_alias=True)


def create_data_router(services: dict) -> APIRouter:
    router = APIRouter()

    lead_svc = services["lead"]

    @router.get("/data")
    async def get_data(
        request: Request,
        type: str | None = Query(None),
        id: str | None = Query(None),
        include: str | None = Query(None),
        search: str | None = Query(None),
        city: str | None = Query(None),
        property_type: str | None = Query(None, alias="propertyType"),
        status: str | None = Query(None),
        timeline: str | None = Query(None),
        page: int = Query(1, ge=1),
    ):
        if type is None:
            raise ValueError("'type' query parameter is required")

        if type not in VALID_TYPES:
            raise ValueError(f"Unknown type '{type}'. Valid types: {', '.join(sorted(VALID_TYPES))}")

        if type == "history":
            if not id:
                raise ValueError("'history' type requires 'id' parameter")
            return _handle_history(lead_svc, UUID(id))

        if id:
            includes = set(include.split(",")) if include else set()
            return _handle_lead(lead_svc, UUID(id), includes)

        lead_filter = LeadFilter(
            city=city or None,
            property_type=property_type or None,
            status=status or None,
            timeline=timeline or None,
            query=search or None,
        )
        return _handle_leads(lead_svc, lead_filter, page)

    return router


def _handle_lead(lead_svc, lead_id: UUID, includes: set[str]):
    lead = lead_svc.get_by_id(lead_id)
    if lead is None:
        raise LeadNotFoundError(lead_id)

    data = dump_lead(lead)
    if "history" in includes:
        data["history"] = [
            entry.model_dump(mode="json", by_alias=True)
            for entry in lead_svc.recent_history(lead_id)
        ]

    return success_response(data).model_dump(mode="json")


def _handle_history(lead_svc, lead_id: UUID):
    entries = lead_svc.recent_history(lead_id)
    return success_response(
        [entry.model_dump(mode="json", by_alias=True) for entry in entries]
    ).model_dump(mode="json")


def _handle_leads(lead_svc, lead_filter: LeadFilter, page: int):
    result = lead_svc.list_page(lead_filter, page)
    return success_response({
        "items": [dump_lead(lead) for lead in result.items],
        "total": result.total,
        "page": result.page,
        "pageSize": result.page_size,
        "totalPages": result.total_pages,
    }).model_dump(mode="json")
