"""Export/import routes for the full cellar snapshot."""

from typing import Any

from fastapi import APIRouter, Body
from fastapi.responses import JSONResponse, Response

from weinkeller.services.export_service import EXPORT_FILENAME, ExportService
from weinkeller.web.dependencies import SessionDep

router = APIRouter(prefix="/api", tags=["export"])


@router.get("/export/all/json")
async def export_all_json(session: SessionDep) -> Response:
    """
    Download wines, current stock, producers and all tags as one JSON file.

    Returns:
        JSON file download.
    """
    content = ExportService(session).export_json(indent=2)
    return Response(
        content=content,
        media_type="application/json",
        headers={
            "Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"',
        },
    )


@router.post("/import/json")
async def import_json(session: SessionDep, data: Any = Body(...)) -> JSONResponse:
    """
    Import a previously exported document.

    Records that fail are listed in ``errors``; the rest are imported.
    Responds 400 only when the document is not a JSON object.
    """
    result = ExportService(session).import_all(data)
    return JSONResponse(
        status_code=200 if result.success else 400,
        content=result.model_dump(),
    )
