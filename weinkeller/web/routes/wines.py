"""Wine catalog routes."""

from fastapi import APIRouter

from weinkeller.core.enums import WINE_TAG_KINDS, TagKind
from weinkeller.core.errors import ValidationError
from weinkeller.core.schema import Tag, TagAssignment, Wine, WineInput
from weinkeller.services.catalog_service import CatalogService
from weinkeller.web.dependencies import SessionDep

router = APIRouter(prefix="/api", tags=["wines"])


def _wine_tag_kind(kind: TagKind) -> TagKind:
    if kind not in WINE_TAG_KINDS:
        raise ValidationError(f"'{kind.value}' tags cannot be attached to wines")
    return kind


@router.post("/add_or_update_wine_data", response_model=Wine, status_code=201)
async def add_or_update_wine(data: WineInput, session: SessionDep) -> Wine:
    """
    Insert or update a wine.

    Each ``*_tag_ids`` list replaces that taxonomy's tags; omit it to leave
    the tags unchanged, send ``[]`` to clear them.
    """
    return CatalogService(session).create_or_update_wine(data)


@router.get("/get_wine_data", response_model=list[Wine])
async def list_wines(session: SessionDep) -> list[Wine]:
    return CatalogService(session).list_wines()


@router.get("/get_wine_data/{wine_id}", response_model=Wine)
async def get_wine(wine_id: int, session: SessionDep) -> Wine:
    return CatalogService(session).get_wine(wine_id)


@router.put("/wines/{wine_id}/tags/{kind}", response_model=list[Tag])
async def set_wine_tags(
    wine_id: int, kind: TagKind, body: TagAssignment, session: SessionDep
) -> list[Tag]:
    """Replace the wine's tags of one taxonomy."""
    return CatalogService(session).set_tags(wine_id, _wine_tag_kind(kind), body.tag_ids)


@router.delete("/wines/{wine_id}/tags/{kind}", status_code=204)
async def clear_wine_tags(wine_id: int, kind: TagKind, session: SessionDep) -> None:
    CatalogService(session).clear_tags(wine_id, _wine_tag_kind(kind))
