"""Tag taxonomy routes: ``/api/{kind}_tags`` for each of the six taxonomies."""

from fastapi import APIRouter

from weinkeller.core.enums import TagKind
from weinkeller.core.schema import Producer, Tag, TagCreate, Wine
from weinkeller.services.catalog_service import CatalogService
from weinkeller.web.dependencies import SessionDep

router = APIRouter(prefix="/api", tags=["tags"])


def _register(kind: TagKind) -> None:
    """Add list/create routes and the by-tag listing for one taxonomy."""

    async def list_tags(session: SessionDep) -> list[Tag]:
        return CatalogService(session).list_tags(kind)

    async def create_tag(body: TagCreate, session: SessionDep) -> Tag:
        return CatalogService(session).create_tag(kind, body.name)

    router.add_api_route(
        f"/{kind.export_key}",
        list_tags,
        methods=["GET"],
        response_model=list[Tag],
        name=f"list_{kind.export_key}",
        summary=f"List {kind.value.replace('_', ' ')} tags",
    )
    router.add_api_route(
        f"/{kind.export_key}",
        create_tag,
        methods=["POST"],
        response_model=Tag,
        status_code=201,
        name=f"create_{kind.export_key}",
        summary=f"Create a {kind.value.replace('_', ' ')} tag",
    )

    if kind.owner == "wine":

        async def tagged_wines(tag_id: int, session: SessionDep) -> list[Wine]:
            return CatalogService(session).list_wines_by_tag(kind, tag_id)

        router.add_api_route(
            f"/{kind.export_key}/{{tag_id}}/wines",
            tagged_wines,
            methods=["GET"],
            response_model=list[Wine],
            name=f"wines_by_{kind.value}_tag",
        )
    else:

        async def tagged_producers(tag_id: int, session: SessionDep) -> list[Producer]:
            return CatalogService(session).list_producers_by_tag(kind, tag_id)

        router.add_api_route(
            f"/{kind.export_key}/{{tag_id}}/producers",
            tagged_producers,
            methods=["GET"],
            response_model=list[Producer],
            name=f"producers_by_{kind.value}_tag",
        )


for _kind in TagKind:
    _register(_kind)
