"""Repository classes for database operations."""

from collections import defaultdict
from collections.abc import Iterable
from datetime import UTC, datetime

from sqlalchemy import DateTime, Integer, String, case, delete, func, insert, literal, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from weinkeller.core.enums import (
    DEFAULT_TAGS,
    PRODUCER_TAG_KINDS,
    WINE_TAG_KINDS,
    EventType,
    TagKind,
)
from weinkeller.core.errors import DuplicateTagError
from weinkeller.core.schema import (
    Assessment,
    AssessmentInput,
    HistoryEntry,
    InventoryEvent,
    Producer,
    ProducerInput,
    StockItem,
    Tag,
    Wine,
    WineInput,
)
from weinkeller.db.models import (
    TAG_TABLES,
    AssessmentDB,
    InventoryEventDB,
    ProducerDB,
    WineDB,
)

WINE_COLUMNS = (
    "id",
    "name",
    "producer_id",
    "terroir",
    "year",
    "type",
    "description",
    "grape",
    "grape_description",
    "bottle_top",
    "bottle_format",
    "maturity",
    "wishlist",
    "favorite",
)

PRODUCER_COLUMNS = (
    "id",
    "name",
    "description",
    "country",
    "region",
    "website",
    "geocoordinates",
    "contact",
)

ASSESSMENT_COLUMNS = tuple(
    c.name for c in AssessmentDB.__table__.columns if c.name != "id"
)


def _utc_now() -> datetime:
    """Return current UTC datetime (naive, as stored by SQLite)."""
    return datetime.now(UTC).replace(tzinfo=None)


def _to_storage_datetime(value: datetime | None) -> datetime:
    """Normalize a datetime to naive UTC; None means now."""
    if value is None:
        return _utc_now()
    if value.tzinfo is not None:
        return value.astimezone(UTC).replace(tzinfo=None)
    return value


def _signed_quantity():
    """SQL expression: quantity, negated for consumption events."""
    return case(
        (InventoryEventDB.event_type == EventType.DRINK.value, -InventoryEventDB.quantity),
        else_=InventoryEventDB.quantity,
    )


class TagRepository:
    """Repository for the six tag taxonomies and their join tables."""

    def __init__(self, session: Session):
        self.session = session

    def list_all(self, kind: TagKind) -> list[Tag]:
        """List all tags of a taxonomy, ordered by name."""
        model = TAG_TABLES[kind].model
        result = self.session.execute(select(model).order_by(model.name)).scalars().all()
        return [Tag(id=t.id, name=t.name) for t in result]

    def get_by_id(self, kind: TagKind, tag_id: int) -> Tag | None:
        model = TAG_TABLES[kind].model
        db_tag = self.session.get(model, tag_id)
        return Tag(id=db_tag.id, name=db_tag.name) if db_tag else None

    def get_by_name(self, kind: TagKind, name: str) -> Tag | None:
        model = TAG_TABLES[kind].model
        stmt = select(model).where(model.name == name)
        db_tag = self.session.execute(stmt).scalar_one_or_none()
        return Tag(id=db_tag.id, name=db_tag.name) if db_tag else None

    def create(self, kind: TagKind, name: str) -> Tag:
        """
        Create a tag.

        Raises:
            DuplicateTagError: If the name already exists in this taxonomy.
        """
        if self.get_by_name(kind, name) is not None:
            raise DuplicateTagError(kind.value, name)
        db_tag = TAG_TABLES[kind].model(name=name)
        self.session.add(db_tag)
        self.session.flush()
        return Tag(id=db_tag.id, name=db_tag.name)

    def seed_defaults(self) -> int:
        """
        Insert the default occasion and food-pairing tags if missing.

        Returns:
            Number of tags inserted.
        """
        inserted = 0
        for kind, names in DEFAULT_TAGS.items():
            table = TAG_TABLES[kind].model.__table__
            for name in names:
                stmt = sqlite_insert(table).values(name=name).on_conflict_do_nothing()
                inserted += self.session.execute(stmt).rowcount
        return inserted

    def find_missing(self, kind: TagKind, tag_ids: Iterable[int]) -> list[int]:
        """Return the ids from ``tag_ids`` that do not exist."""
        wanted = set(tag_ids)
        if not wanted:
            return []
        model = TAG_TABLES[kind].model
        found = set(self.session.execute(select(model.id).where(model.id.in_(wanted))).scalars())
        return sorted(wanted - found)

    def get_for_owner(self, kind: TagKind, owner_id: int) -> list[Tag]:
        """Tags of one taxonomy attached to a wine or producer."""
        return self.get_for_owners(kind, [owner_id]).get(owner_id, [])

    def get_for_owners(self, kind: TagKind, owner_ids: Iterable[int]) -> dict[int, list[Tag]]:
        """
        Tags of one taxonomy for many owners in a single query.

        Returns:
            Mapping of owner id to its tags ordered by name; owners without
            tags are absent.
        """
        ids = set(owner_ids)
        if not ids:
            return {}
        tables = TAG_TABLES[kind]
        stmt = (
            select(tables.owner_col, tables.model.id, tables.model.name)
            .join(tables.model, tables.model.id == tables.tag_col)
            .where(tables.owner_col.in_(ids))
            .order_by(tables.model.name)
        )
        grouped: dict[int, list[Tag]] = defaultdict(list)
        for owner_id, tag_id, name in self.session.execute(stmt):
            grouped[owner_id].append(Tag(id=tag_id, name=name))
        return dict(grouped)

    def set_for_owner(self, kind: TagKind, owner_id: int, tag_ids: Iterable[int]) -> None:
        """
        Replace the full association set of an owner for one taxonomy.

        An empty ``tag_ids`` clears the associations. Duplicate ids are
        collapsed, so replacing twice with the same ids is idempotent.
        """
        tables = TAG_TABLES[kind]
        unique_ids = list(dict.fromkeys(tag_ids))
        self.session.execute(delete(tables.link).where(tables.owner_col == owner_id))
        if unique_ids:
            self.session.execute(
                insert(tables.link),
                [{tables.owner_column: owner_id, tables.tag_column: t} for t in unique_ids],
            )

    def clear_for_owner(self, kind: TagKind, owner_id: int) -> None:
        """Remove all associations of an owner for one taxonomy."""
        self.set_for_owner(kind, owner_id, [])

    def owners_with_tag(self, kind: TagKind, tag_id: int) -> list[int]:
        """Ids of the wines or producers carrying a tag."""
        tables = TAG_TABLES[kind]
        stmt = select(tables.owner_col).where(tables.tag_col == tag_id).distinct()
        return list(self.session.execute(stmt).scalars())


class WineRepository:
    """Repository for wine upserts and reads."""

    def __init__(self, session: Session):
        self.session = session
        self.tags = TagRepository(session)

    def upsert(self, wine: WineInput) -> int:
        """
        Insert a wine, or update it in place when its id already exists.

        Args:
            wine: The wine payload; ``id`` None creates a new row.

        Returns:
            The id of the inserted or updated wine.
        """
        values = wine.model_dump(include=set(WINE_COLUMNS), mode="json")
        stmt = sqlite_insert(WineDB.__table__).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["id"],
            set_={c: stmt.excluded[c] for c in WINE_COLUMNS if c != "id"},
        )
        result = self.session.execute(stmt)
        self.session.expire_all()
        return wine.id if wine.id is not None else result.lastrowid

    def exists(self, wine_id: int) -> bool:
        stmt = select(WineDB.id).where(WineDB.id == wine_id)
        return self.session.execute(stmt).scalar_one_or_none() is not None

    def get_by_id(self, wine_id: int) -> Wine | None:
        """
        Get a wine by ID, with producer name and tags.

        Returns:
            The Wine if found, None otherwise.
        """
        db_wine = self.session.get(WineDB, wine_id)
        if db_wine is None:
            return None
        return self._to_domain([db_wine])[0]

    def list_all(self) -> list[Wine]:
        """List all wines ordered by id."""
        result = self.session.execute(select(WineDB).order_by(WineDB.id)).scalars().all()
        return self._to_domain(result)

    def list_by_producer(self, producer_id: int) -> list[Wine]:
        stmt = select(WineDB).where(WineDB.producer_id == producer_id).order_by(WineDB.id)
        return self._to_domain(self.session.execute(stmt).scalars().all())

    def list_by_tag(self, kind: TagKind, tag_id: int) -> list[Wine]:
        """List wines carrying a grape, wine-type, occasion or food-pairing tag."""
        wine_ids = self.tags.owners_with_tag(kind, tag_id)
        if not wine_ids:
            return []
        stmt = select(WineDB).where(WineDB.id.in_(wine_ids)).order_by(WineDB.id)
        return self._to_domain(self.session.execute(stmt).scalars().all())

    def _to_domain(self, db_wines: Iterable[WineDB]) -> list[Wine]:
        """Convert DB models to domain models, attaching tags per taxonomy."""
        db_wines = list(db_wines)
        ids = [w.id for w in db_wines]
        tags = {kind: self.tags.get_for_owners(kind, ids) for kind in WINE_TAG_KINDS}
        wines = []
        for db_wine in db_wines:
            data = {c: getattr(db_wine, c) for c in WINE_COLUMNS}
            data["producer_name"] = db_wine.producer.name if db_wine.producer else None
            for kind in WINE_TAG_KINDS:
                data[kind.export_key] = tags[kind].get(db_wine.id, [])
            wines.append(Wine.model_validate(data))
        return wines


class ProducerRepository:
    """Repository for producer upserts and reads."""

    def __init__(self, session: Session):
        self.session = session
        self.tags = TagRepository(session)

    def upsert(self, producer: ProducerInput) -> int:
        """
        Insert a producer, or update it in place when its id already exists.

        Returns:
            The id of the inserted or updated producer.
        """
        values = producer.model_dump(include=set(PRODUCER_COLUMNS))
        stmt = sqlite_insert(ProducerDB.__table__).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["id"],
            set_={c: stmt.excluded[c] for c in PRODUCER_COLUMNS if c != "id"},
        )
        result = self.session.execute(stmt)
        self.session.expire_all()
        return producer.id if producer.id is not None else result.lastrowid

    def exists(self, producer_id: int) -> bool:
        stmt = select(ProducerDB.id).where(ProducerDB.id == producer_id)
        return self.session.execute(stmt).scalar_one_or_none() is not None

    def get_by_id(self, producer_id: int) -> Producer | None:
        db_producer = self.session.get(ProducerDB, producer_id)
        if db_producer is None:
            return None
        return self._to_domain([db_producer])[0]

    def list_all(self) -> list[Producer]:
        """List all producers ordered by id, with their country/region tags."""
        stmt = select(ProducerDB).order_by(ProducerDB.id)
        return self._to_domain(self.session.execute(stmt).scalars().all())

    def list_by_tag(self, kind: TagKind, tag_id: int) -> list[Producer]:
        """List producers carrying a country or region tag."""
        producer_ids = self.tags.owners_with_tag(kind, tag_id)
        if not producer_ids:
            return []
        stmt = select(ProducerDB).where(ProducerDB.id.in_(producer_ids)).order_by(ProducerDB.id)
        return self._to_domain(self.session.execute(stmt).scalars().all())

    def _to_domain(self, db_producers: Iterable[ProducerDB]) -> list[Producer]:
        db_producers = list(db_producers)
        ids = [p.id for p in db_producers]
        tags = {kind: self.tags.get_for_owners(kind, ids) for kind in PRODUCER_TAG_KINDS}
        producers = []
        for db_producer in db_producers:
            data = {c: getattr(db_producer, c) for c in PRODUCER_COLUMNS}
            # At most one country and one region tag per producer
            country = tags[TagKind.COUNTRY].get(db_producer.id)
            region = tags[TagKind.REGION].get(db_producer.id)
            data["country_tag"] = country[0] if country else None
            data["region_tag"] = region[0] if region else None
            producers.append(Producer.model_validate(data))
        return producers


class InventoryRepository:
    """
    Repository for the inventory ledger and the stock projection.

    Stock is never stored: every read aggregates the full event history.
    """

    def __init__(self, session: Session):
        self.session = session
        self.tags = TagRepository(session)

    def add_acquisition(
        self,
        wine_id: int,
        quantity: int,
        event_type: EventType = EventType.BUY,
        acquisition_type: str | None = None,
        price: float | None = None,
        bought_at: str | None = None,
        event_date: datetime | None = None,
    ) -> InventoryEvent:
        """Append an acquisition (``buy``/``add``) row."""
        db_event = InventoryEventDB(
            wine_id=wine_id,
            event_type=event_type.value,
            acquisition_type=acquisition_type,
            quantity=quantity,
            price=price,
            bought_at=bought_at,
            event_date=_to_storage_datetime(event_date),
            error_quantity=0,
        )
        self.session.add(db_event)
        self.session.flush()
        return self._to_domain(db_event)

    def add_consumption_if_available(
        self,
        wine_id: int,
        quantity: int,
        error_quantity: int = 0,
        event_date: datetime | None = None,
    ) -> InventoryEvent | None:
        """
        Append a ``drink`` row only if current stock covers ``quantity``.

        The stock check and the insert are a single ``INSERT ... SELECT ...
        WHERE stock >= quantity`` statement, so SQLite evaluates both under
        the same write lock.

        Returns:
            The created event, or None if stock was insufficient.
        """
        stock = (
            select(func.coalesce(func.sum(_signed_quantity()), 0))
            .where(InventoryEventDB.wine_id == wine_id)
            .correlate(None)
            .scalar_subquery()
        )
        source = select(
            literal(wine_id, Integer),
            literal(EventType.DRINK.value, String),
            literal(quantity, Integer),
            literal(error_quantity, Integer),
            literal(_to_storage_datetime(event_date), DateTime),
        ).where(stock >= quantity)
        stmt = insert(InventoryEventDB.__table__).from_select(
            ["wine_id", "event_type", "quantity", "error_quantity", "event_date"],
            source,
        )
        result = self.session.execute(stmt)
        if result.rowcount == 0:
            return None
        db_event = self.session.get(InventoryEventDB, result.lastrowid)
        return self._to_domain(db_event)

    def get_stock_for_wine(self, wine_id: int) -> int:
        """Current stock of one wine; 0 if it has no events."""
        stmt = select(func.coalesce(func.sum(_signed_quantity()), 0)).where(
            InventoryEventDB.wine_id == wine_id
        )
        return int(self.session.execute(stmt).scalar_one())

    def get_current_stock(self) -> list[StockItem]:
        """
        Project current stock per wine from the ledger.

        Wines whose stock is zero or negative are omitted. Wines without a
        producer are kept with empty producer fields.

        Returns:
            Stock items ordered by wine id, with tags attached.
        """
        inventory = func.sum(_signed_quantity())
        stmt = (
            select(
                WineDB.id.label("wine_id"),
                WineDB.name.label("wine_name"),
                WineDB.year,
                WineDB.type,
                WineDB.maturity,
                WineDB.wishlist,
                WineDB.favorite,
                ProducerDB.id.label("producer_id"),
                ProducerDB.name.label("producer_name"),
                ProducerDB.country,
                ProducerDB.region,
                inventory.label("inventory"),
            )
            .select_from(InventoryEventDB)
            .join(WineDB, InventoryEventDB.wine_id == WineDB.id)
            .outerjoin(ProducerDB, WineDB.producer_id == ProducerDB.id)
            .group_by(WineDB.id)
            .having(inventory > 0)
            .order_by(WineDB.id)
        )
        rows = [dict(row) for row in self.session.execute(stmt).mappings()]

        wine_ids = [r["wine_id"] for r in rows]
        producer_ids = [r["producer_id"] for r in rows if r["producer_id"] is not None]
        wine_tags = {kind: self.tags.get_for_owners(kind, wine_ids) for kind in WINE_TAG_KINDS}
        producer_tags = {
            kind: self.tags.get_for_owners(kind, producer_ids) for kind in PRODUCER_TAG_KINDS
        }

        items = []
        for row in rows:
            for kind in WINE_TAG_KINDS:
                row[kind.export_key] = wine_tags[kind].get(row["wine_id"], [])
            for kind in PRODUCER_TAG_KINDS:
                found = producer_tags[kind].get(row["producer_id"])
                row[f"{kind.value}_tag"] = found[0] if found else None
            items.append(StockItem.model_validate(row))
        return items

    def get_history(self) -> list[HistoryEntry]:
        """All ledger rows with wine names, newest first."""
        stmt = (
            select(InventoryEventDB, WineDB.name)
            .join(WineDB, InventoryEventDB.wine_id == WineDB.id)
            .order_by(InventoryEventDB.event_date.desc(), InventoryEventDB.id.desc())
        )
        return [
            HistoryEntry(**self._to_domain(db_event).model_dump(), wine_name=wine_name)
            for db_event, wine_name in self.session.execute(stmt)
        ]

    def get_wine_events(self, wine_id: int) -> list[InventoryEvent]:
        """Ledger rows of one wine, newest first."""
        stmt = (
            select(InventoryEventDB)
            .where(InventoryEventDB.wine_id == wine_id)
            .order_by(InventoryEventDB.event_date.desc(), InventoryEventDB.id.desc())
        )
        return [self._to_domain(e) for e in self.session.execute(stmt).scalars().all()]

    def _to_domain(self, db_event: InventoryEventDB) -> InventoryEvent:
        """Convert DB model to domain model."""
        return InventoryEvent(
            id=db_event.id,
            wine_id=db_event.wine_id,
            event_type=EventType(db_event.event_type),
            acquisition_type=db_event.acquisition_type,
            quantity=db_event.quantity,
            price=db_event.price,
            bought_at=db_event.bought_at,
            event_date=db_event.event_date,
            error_quantity=db_event.error_quantity or 0,
        )


class AssessmentRepository:
    """Repository for tasting assessment CRUD operations."""

    def __init__(self, session: Session):
        self.session = session

    def create(self, assessment: AssessmentInput) -> Assessment:
        values = assessment.model_dump(include=set(ASSESSMENT_COLUMNS))
        values["assessment_date"] = _to_storage_datetime(values["assessment_date"])
        db_assessment = AssessmentDB(**values)
        if assessment.id is not None:
            db_assessment.id = assessment.id
        self.session.add(db_assessment)
        self.session.flush()
        return self._to_domain(db_assessment)

    def get_by_id(self, assessment_id: int) -> Assessment | None:
        db_assessment = self.session.get(AssessmentDB, assessment_id)
        return self._to_domain(db_assessment) if db_assessment else None

    def list_all(self) -> list[Assessment]:
        """List all assessments, newest first."""
        stmt = select(AssessmentDB).order_by(
            AssessmentDB.assessment_date.desc(), AssessmentDB.id.desc()
        )
        return [self._to_domain(a) for a in self.session.execute(stmt).scalars().all()]

    def list_by_wine(self, wine_id: int) -> list[Assessment]:
        stmt = (
            select(AssessmentDB)
            .where(AssessmentDB.wine_id == wine_id)
            .order_by(AssessmentDB.assessment_date.desc(), AssessmentDB.id.desc())
        )
        return [self._to_domain(a) for a in self.session.execute(stmt).scalars().all()]

    def update(self, assessment_id: int, assessment: AssessmentInput) -> Assessment | None:
        """
        Overwrite all fields of an existing assessment.

        Returns:
            The updated Assessment, or None if not found.
        """
        db_assessment = self.session.get(AssessmentDB, assessment_id)
        if db_assessment is None:
            return None
        values = assessment.model_dump(include=set(ASSESSMENT_COLUMNS))
        values["assessment_date"] = _to_storage_datetime(values["assessment_date"])
        for column, value in values.items():
            setattr(db_assessment, column, value)
        self.session.flush()
        return self._to_domain(db_assessment)

    def delete(self, assessment_id: int) -> bool:
        """
        Delete an assessment by ID.

        Returns:
            True if deleted, False if not found.
        """
        db_assessment = self.session.get(AssessmentDB, assessment_id)
        if db_assessment is None:
            return False
        self.session.delete(db_assessment)
        self.session.flush()
        return True

    def _to_domain(self, db_assessment: AssessmentDB) -> Assessment:
        data = {c: getattr(db_assessment, c) for c in ASSESSMENT_COLUMNS}
        data["id"] = db_assessment.id
        wine = db_assessment.wine
        if wine is not None:
            data["wine_name"] = wine.name
            data["wine_year"] = wine.year
            data["producer_name"] = wine.producer.name if wine.producer else None
        return Assessment.model_validate(data)
