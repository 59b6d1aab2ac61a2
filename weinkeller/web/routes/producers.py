"""Producer catalog routes."""

from fastapi import APIRouter

from weinkeller.core.enums import PRODUCER_TAG_KINDS, TagKind
from weinkeller.core.errors import ValidationError
from weinkeller.core.schema import Producer, ProducerInput, Tag, TagAssignment
from weinkeller.services.catalog_service import CatalogService
from weinkeller.web.dependencies import SessionDep

router = APIRouter(prefix="/api", tags=["producers"])


def _producer_tag_kind(kind: TagKind) -> TagKind:
    if kind not in PRODUCER_TAG_KINDS:
        raise ValidationError(f"'{kind.value}' tags cannot be attached to producers")
    return kind


@router.post("/add_or_update_producer_data", response_model=Producer, status_code=201)
async def add_or_update_producer(data: ProducerInput, session: SessionDep) -> Producer:
    """Insert or update a producer and, when given, its country/region tag."""
    return CatalogService(session).create_or_update_producer(data)


@router.get("/get_producer_data", response_model=list[Producer])
async def list_producers(session: SessionDep) -> list[Producer]:
    return CatalogService(session).list_producers()


@router.get("/get_producer_data/{producer_id}", response_model=Producer)
async def get_producer(producer_id: int, session: SessionDep) -> Producer:
    """A producer with its tags and its wines."""
    return CatalogService(session).get_producer(producer_id)


@router.put("/producers/{producer_id}/tags/{kind}", response_model=list[Tag])
async def set_producer_tags(
    producer_id: int, kind: TagKind, body: TagAssignment, session: SessionDep
) -> list[Tag]:
    if len(body.tag_ids) > 1:
        raise ValidationError(f"A producer has at most one {kind.value} tag")
    return CatalogService(session).set_tags(producer_id, _producer_tag_kind(kind), body.tag_ids)


@router.delete("/producers/{producer_id}/tags/{kind}", status_code=204)
async def clear_producer_tags(producer_id: int, kind: TagKind, session: SessionDep) -> None:
    CatalogService(session).clear_tags(producer_id, _producer_tag_kind(kind))
