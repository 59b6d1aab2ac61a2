"""SQLAlchemy ORM models for the Weinkeller database."""

from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from weinkeller.core.enums import TagKind


def _utc_now() -> datetime:
    """Return current UTC datetime (naive, as stored by SQLite)."""
    return datetime.now(UTC).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# ============================================================================
# Catalog
# ============================================================================


class ProducerDB(Base):
    """Database model for wine producers."""

    __tablename__ = "producers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    country: Mapped[str | None] = mapped_column(Text, nullable=True)
    region: Mapped[str | None] = mapped_column(Text, nullable=True)
    website: Mapped[str | None] = mapped_column(Text, nullable=True)
    geocoordinates: Mapped[str | None] = mapped_column(Text, nullable=True)
    contact: Mapped[str | None] = mapped_column(Text, nullable=True)

    wines: Mapped[list["WineDB"]] = relationship("WineDB", back_populates="producer")

    def __repr__(self) -> str:
        return f"<ProducerDB(id={self.id}, name='{self.name}')>"


class WineDB(Base):
    """
    Database model for wines.

    ``type`` and ``grape`` are legacy free-text fields; the structured
    classification lives in the tag join tables.
    """

    __tablename__ = "wines"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    producer_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("producers.id"), nullable=True, index=True
    )
    terroir: Mapped[str | None] = mapped_column(Text, nullable=True)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    type: Mapped[str | None] = mapped_column(Text, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    grape: Mapped[str | None] = mapped_column(Text, nullable=True)
    grape_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    bottle_top: Mapped[str | None] = mapped_column(Text, nullable=True)
    bottle_format: Mapped[str | None] = mapped_column(String(20), nullable=True)
    maturity: Mapped[str | None] = mapped_column(Text, nullable=True)
    wishlist: Mapped[bool] = mapped_column(Boolean, default=False)
    favorite: Mapped[bool] = mapped_column(Boolean, default=False)

    producer: Mapped["ProducerDB | None"] = relationship("ProducerDB", back_populates="wines")

    def __repr__(self) -> str:
        return f"<WineDB(id={self.id}, name='{self.name}', year={self.year})>"


# ============================================================================
# Inventory ledger
# ============================================================================


class InventoryEventDB(Base):
    """
    Database model for the inventory ledger.

    Rows are only ever appended. Quantity is stored unsigned; the event type
    decides whether it adds to or subtracts from stock.
    """

    __tablename__ = "wine_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    wine_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("wines.id"), nullable=False, index=True
    )
    event_type: Mapped[str] = mapped_column(String(10), nullable=False)
    acquisition_type: Mapped[str | None] = mapped_column(Text, nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[float | None] = mapped_column(Float, nullable=True)
    bought_at: Mapped[str | None] = mapped_column(Text, nullable=True)
    event_date: Mapped[datetime] = mapped_column(DateTime, default=_utc_now, index=True)
    error_quantity: Mapped[int] = mapped_column(Integer, default=0)

    def __repr__(self) -> str:
        return (
            f"<InventoryEventDB(id={self.id}, wine_id={self.wine_id}, "
            f"type='{self.event_type}', qty={self.quantity})>"
        )


# ============================================================================
# Assessments
# ============================================================================


class AssessmentDB(Base):
    """Database model for structured tasting assessments."""

    __tablename__ = "assessments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    wine_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("wines.id"), nullable=False, index=True
    )
    assessment_date: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)

    appearance_clarity: Mapped[str | None] = mapped_column(Text, nullable=True)
    appearance_intensity: Mapped[str | None] = mapped_column(Text, nullable=True)
    appearance_color: Mapped[str | None] = mapped_column(Text, nullable=True)
    appearance_observations: Mapped[str | None] = mapped_column(Text, nullable=True)

    nose_condition: Mapped[str | None] = mapped_column(Text, nullable=True)
    nose_intensity: Mapped[str | None] = mapped_column(Text, nullable=True)
    nose_development: Mapped[str | None] = mapped_column(Text, nullable=True)
    nose_aromas_primary: Mapped[str | None] = mapped_column(Text, nullable=True)
    nose_aromas_secondary: Mapped[str | None] = mapped_column(Text, nullable=True)
    nose_aromas_tertiary: Mapped[str | None] = mapped_column(Text, nullable=True)

    palate_sweetness: Mapped[str | None] = mapped_column(Text, nullable=True)
    palate_acidity: Mapped[str | None] = mapped_column(Text, nullable=True)
    palate_tannin: Mapped[str | None] = mapped_column(Text, nullable=True)
    palate_mousse: Mapped[str | None] = mapped_column(Text, nullable=True)
    palate_alcohol: Mapped[str | None] = mapped_column(Text, nullable=True)
    palate_body: Mapped[str | None] = mapped_column(Text, nullable=True)
    palate_flavor_intensity: Mapped[str | None] = mapped_column(Text, nullable=True)
    palate_flavor_characteristics: Mapped[str | None] = mapped_column(Text, nullable=True)
    palate_aromas_primary: Mapped[str | None] = mapped_column(Text, nullable=True)
    palate_aromas_secondary: Mapped[str | None] = mapped_column(Text, nullable=True)
    palate_aromas_tertiary: Mapped[str | None] = mapped_column(Text, nullable=True)
    palate_finish: Mapped[str | None] = mapped_column(Text, nullable=True)

    conclusions_quality: Mapped[str | None] = mapped_column(Text, nullable=True)
    conclusions_readiness: Mapped[str | None] = mapped_column(Text, nullable=True)
    conclusions_aging_potential: Mapped[str | None] = mapped_column(Text, nullable=True)
    conclusions_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    wine: Mapped["WineDB"] = relationship("WineDB")

    def __repr__(self) -> str:
        return f"<AssessmentDB(id={self.id}, wine_id={self.wine_id})>"


# ============================================================================
# Tag taxonomies
# ============================================================================


class GrapeTagDB(Base):
    __tablename__ = "grape_tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, unique=True, nullable=False)


class WineTypeTagDB(Base):
    __tablename__ = "wine_type_tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, unique=True, nullable=False)


class CountryTagDB(Base):
    __tablename__ = "country_tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, unique=True, nullable=False)


class RegionTagDB(Base):
    __tablename__ = "region_tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, unique=True, nullable=False)


class OccasionTagDB(Base):
    __tablename__ = "occasion_tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, unique=True, nullable=False)


class FoodPairingTagDB(Base):
    __tablename__ = "food_pairing_tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, unique=True, nullable=False)


def _link_table(name: str, owner: str, tag_table: str, tag_column: str) -> Table:
    """Build a join table between an owner (wine/producer) and a tag table."""
    return Table(
        name,
        Base.metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column(f"{owner}_id", Integer, ForeignKey(f"{owner}s.id"), nullable=False, index=True),
        Column(tag_column, Integer, ForeignKey(f"{tag_table}.id"), nullable=False),
    )


wine_grape_tags = _link_table("wine_grape_tags", "wine", "grape_tags", "grape_tag_id")
wine_wine_type_tags = _link_table(
    "wine_wine_type_tags", "wine", "wine_type_tags", "wine_type_tag_id"
)
wine_occasion_tags = _link_table("wine_occasion_tags", "wine", "occasion_tags", "occasion_tag_id")
wine_food_pairing_tags = _link_table(
    "wine_food_pairing_tags", "wine", "food_pairing_tags", "food_pairing_tag_id"
)
producer_country_tags = _link_table(
    "producer_country_tags", "producer", "country_tags", "country_tag_id"
)
producer_region_tags = _link_table(
    "producer_region_tags", "producer", "region_tags", "region_tag_id"
)


@dataclass(frozen=True)
class TagTables:
    """ORM model and join table backing one tag taxonomy."""

    model: type[Base]
    link: Table
    owner_column: str
    tag_column: str

    @property
    def owner_col(self):
        return self.link.c[self.owner_column]

    @property
    def tag_col(self):
        return self.link.c[self.tag_column]


TAG_TABLES: dict[TagKind, TagTables] = {
    TagKind.GRAPE: TagTables(GrapeTagDB, wine_grape_tags, "wine_id", "grape_tag_id"),
    TagKind.WINE_TYPE: TagTables(
        WineTypeTagDB, wine_wine_type_tags, "wine_id", "wine_type_tag_id"
    ),
    TagKind.OCCASION: TagTables(OccasionTagDB, wine_occasion_tags, "wine_id", "occasion_tag_id"),
    TagKind.FOOD_PAIRING: TagTables(
        FoodPairingTagDB, wine_food_pairing_tags, "wine_id", "food_pairing_tag_id"
    ),
    TagKind.COUNTRY: TagTables(
        CountryTagDB, producer_country_tags, "producer_id", "country_tag_id"
    ),
    TagKind.REGION: TagTables(RegionTagDB, producer_region_tags, "producer_id", "region_tag_id"),
}
