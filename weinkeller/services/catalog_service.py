"""Catalog service for wines, producers and tag taxonomies.

This service provides business logic for:
- Upserting wines and producers together with their tag associations
- Reading wines and producers with producer names and tags
- Listing and creating tags in the six taxonomies
"""

import logging
from collections.abc import Iterable

from sqlalchemy.orm import Session

from weinkeller.core.enums import PRODUCER_TAG_KINDS, WINE_TAG_KINDS, TagKind
from weinkeller.core.errors import NotFoundError, ValidationError
from weinkeller.core.schema import Producer, ProducerInput, Tag, Wine, WineInput
from weinkeller.db.repositories import ProducerRepository, TagRepository, WineRepository

logger = logging.getLogger(__name__)


def _tag_label(kind: TagKind) -> str:
    return f"{kind.value.replace('_', ' ').capitalize()} tag"


class CatalogService:
    """Service for managing the wine catalog."""

    def __init__(self, session: Session):
        """
        Initialize the catalog service.

        Args:
            session: SQLAlchemy session; the service commits once per write.
        """
        self.session = session
        self.wines = WineRepository(session)
        self.producers = ProducerRepository(session)
        self.tags = TagRepository(session)

    # =========================================================================
    # Wine Operations
    # =========================================================================

    def create_or_update_wine(self, data: WineInput) -> Wine:
        """
        Insert or update a wine, then replace each supplied tag set.

        Tag id lists left as None are not touched; an empty list clears
        that taxonomy. Everything is committed together.

        Args:
            data: Wine payload; ``id`` None creates a new wine.

        Returns:
            The stored Wine with producer name and tags.

        Raises:
            NotFoundError: If the producer or a tag id does not exist.
        """
        logger.debug(f"Upserting wine: id={data.id} name={data.name!r}")
        if data.producer_id is not None and not self.producers.exists(data.producer_id):
            raise NotFoundError("Producer", data.producer_id)

        tag_sets = {
            kind: getattr(data, f"{kind.value}_tag_ids")
            for kind in WINE_TAG_KINDS
            if getattr(data, f"{kind.value}_tag_ids") is not None
        }
        for kind, tag_ids in tag_sets.items():
            self._require_tags(kind, tag_ids)

        try:
            wine_id = self.wines.upsert(data)
            for kind, tag_ids in tag_sets.items():
                self.tags.set_for_owner(kind, wine_id, tag_ids)
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            logger.error(f"Failed to save wine {data.name!r}: {e}")
            raise

        action = "Updated" if data.id is not None else "Created"
        logger.info(f"{action} wine: {data.name} ({wine_id})")
        return self.wines.get_by_id(wine_id)

    def get_wine(self, wine_id: int) -> Wine:
        """Get a wine by ID, raising NotFoundError if absent."""
        wine = self.wines.get_by_id(wine_id)
        if wine is None:
            raise NotFoundError("Wine", wine_id)
        return wine

    def list_wines(self) -> list[Wine]:
        """List all wines with producer names and tags."""
        return self.wines.list_all()

    def list_wines_by_tag(self, kind: TagKind, tag_id: int) -> list[Wine]:
        """List wines carrying a grape, wine-type, occasion or food-pairing tag."""
        if kind not in WINE_TAG_KINDS:
            raise ValidationError(f"{_tag_label(kind)}s are not attached to wines")
        self._require_tags(kind, [tag_id])
        return self.wines.list_by_tag(kind, tag_id)

    # =========================================================================
    # Producer Operations
    # =========================================================================

    def create_or_update_producer(self, data: ProducerInput) -> Producer:
        """
        Insert or update a producer, then replace its country/region tag.

        A tag id left as None keeps the current association.

        Returns:
            The stored Producer with its tags.
        """
        logger.debug(f"Upserting producer: id={data.id} name={data.name!r}")
        tag_sets = {}
        if data.country_tag_id is not None:
            tag_sets[TagKind.COUNTRY] = [data.country_tag_id]
        if data.region_tag_id is not None:
            tag_sets[TagKind.REGION] = [data.region_tag_id]
        for kind, tag_ids in tag_sets.items():
            self._require_tags(kind, tag_ids)

        try:
            producer_id = self.producers.upsert(data)
            for kind, tag_ids in tag_sets.items():
                self.tags.set_for_owner(kind, producer_id, tag_ids)
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            logger.error(f"Failed to save producer {data.name!r}: {e}")
            raise

        action = "Updated" if data.id is not None else "Created"
        logger.info(f"{action} producer: {data.name} ({producer_id})")
        return self.producers.get_by_id(producer_id)

    def get_producer(self, producer_id: int) -> Producer:
        """Get a producer with its tags and wines."""
        producer = self.producers.get_by_id(producer_id)
        if producer is None:
            raise NotFoundError("Producer", producer_id)
        producer.wines = self.wines.list_by_producer(producer_id)
        return producer

    def list_producers(self) -> list[Producer]:
        return self.producers.list_all()

    def list_producers_by_tag(self, kind: TagKind, tag_id: int) -> list[Producer]:
        """List producers carrying a country or region tag."""
        if kind not in PRODUCER_TAG_KINDS:
            raise ValidationError(f"{_tag_label(kind)}s are not attached to producers")
        self._require_tags(kind, [tag_id])
        return self.producers.list_by_tag(kind, tag_id)

    # =========================================================================
    # Tag Operations
    # =========================================================================

    def list_tags(self, kind: TagKind) -> list[Tag]:
        """List the tags of one taxonomy ordered by name."""
        return self.tags.list_all(kind)

    def create_tag(self, kind: TagKind, name: str | None) -> Tag:
        """
        Create a tag.

        Raises:
            ValidationError: If the name is blank.
            DuplicateTagError: If the name already exists in this taxonomy.
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Tag name is required")
        try:
            tag = self.tags.create(kind, name)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        logger.info(f"Created {kind.value} tag: {tag.name} ({tag.id})")
        return tag

    def set_tags(self, owner_id: int, kind: TagKind, tag_ids: Iterable[int]) -> list[Tag]:
        """
        Replace the full tag set of one wine or producer for a taxonomy.

        Replacing with the same ids again leaves the associations unchanged.
        An empty list clears them.

        Returns:
            The tags now attached.
        """
        tag_ids = list(tag_ids)
        self._require_owner(kind, owner_id)
        self._require_tags(kind, tag_ids)
        try:
            self.tags.set_for_owner(kind, owner_id, tag_ids)
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            logger.error(f"Failed to set {kind.value} tags of {kind.owner} {owner_id}: {e}")
            raise
        return self.tags.get_for_owner(kind, owner_id)

    def clear_tags(self, owner_id: int, kind: TagKind) -> None:
        """Remove all tags of one taxonomy from a wine or producer."""
        self.set_tags(owner_id, kind, [])

    def _require_owner(self, kind: TagKind, owner_id: int) -> None:
        if kind.owner == "producer":
            if not self.producers.exists(owner_id):
                raise NotFoundError("Producer", owner_id)
        elif not self.wines.exists(owner_id):
            raise NotFoundError("Wine", owner_id)

    def _require_tags(self, kind: TagKind, tag_ids: Iterable[int]) -> None:
        missing = self.tags.find_missing(kind, tag_ids)
        if missing:
            raise NotFoundError(_tag_label(kind), missing[0])
