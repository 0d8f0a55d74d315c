"""CSV import and export of leads."""

from fastapi import APIRouter, Query, Request
from starlette.responses import Response

from api.base import success_response
from core.exceptions import CsvFormatError
from core.lead_csv import SAMPLE_CSV, export_csv
from core.models import LeadFilter
from utils.timezone import now_utc


def create_transfer_router(services: dict) -> APIRouter:
    router = APIRouter()

    lead_svc = services["lead"]
    importer = services["importer"]

    @router.post("/leads/import")
    async def import_leads(request: Request):
        """Body is the raw CSV file (text/csv, UTF-8)."""
        body = await request.body()
        try:
            text = body.decode("utf-8-sig")
        except UnicodeDecodeError:
            raise CsvFormatError("CSV file must be UTF-8 encoded")

        result = importer.import_csv(text)

        data = result.model_dump(mode="json", by_alias=True)
        data["errors"] = [
            error.model_dump(mode="json", exclude_none=True) for error in result.errors
        ]
        return success_response(data).model_dump(mode="json")

    @router.get("/leads/import/sample")
    async def import_sample():
        """Header plus two example rows, ready to edit and import."""
        return Response(
            content=SAMPLE_CSV,
            media_type="text/csv",
            headers={"Content-Disposition": 'attachment; filename="buyer_leads_sample.csv"'},
        )

    @router.get("/leads/export")
    async def export_leads(
        search: str | None = Query(None),
        city: str | None = Query(None),
        property_type: str | None = Query(None, alias="propertyType"),
        status: str | None = Query(None),
        timeline: str | None = Query(None),
    ):
        lead_filter = LeadFilter(
            city=city or None,
            property_type=property_type or None,
            status=status or None,
            timeline=timeline or None,
            query=search or None,
        )
        leads = lead_svc.list_all(lead_filter)

        filename = f"buyer_leads_{now_utc().date().isoformat()}.csv"
        return Response(
            content=export_csv(leads),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    return router
