"""Pydantic v2 models for the Weinkeller catalog, ledger and assessments."""

from datetime import UTC, datetime

from pydantic import AliasChoices, BaseModel, Field, field_validator

from weinkeller.core.enums import BottleFormat, EventType


def _utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(UTC)


MIN_VINTAGE_YEAR = 1800


class Tag(BaseModel):
    """A single entry of one tag taxonomy."""

    id: int
    name: str


class TagCreate(BaseModel):
    """Body of a tag creation request; a blank name is rejected by the service."""

    name: str | None = None


class TagAssignment(BaseModel):
    """Full replacement set of tag ids for one wine or producer."""

    tag_ids: list[int] = Field(default_factory=list)


# ============================================================================
# Wines
# ============================================================================


class WineData(BaseModel):
    """Wine fields shared by input and output models."""

    name: str
    producer_id: int | None = None
    terroir: str | None = None
    year: int | None = None
    type: str | None = None
    description: str | None = Field(
        default=None,
        validation_alias=AliasChoices("description", "wine_description"),
    )
    grape: str | None = None
    grape_description: str | None = None
    bottle_top: str | None = None
    bottle_format: BottleFormat | None = None
    maturity: str | None = None
    wishlist: bool = False
    favorite: bool = False

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("name cannot be empty")
        return v.strip()

    @field_validator("year")
    @classmethod
    def year_in_range(cls, v: int | None) -> int | None:
        if v is None:
            return v
        current_year = datetime.now().year
        if v < MIN_VINTAGE_YEAR or v > current_year:
            raise ValueError(f"Year must be between {MIN_VINTAGE_YEAR} and {current_year}")
        return v

    @field_validator("bottle_format", mode="before")
    @classmethod
    def blank_format_is_none(cls, v):
        return None if v == "" else v


class WineInput(WineData):
    """
    Wine upsert payload.

    A tag id list left as None means "leave associations untouched";
    an empty list clears them.
    """

    id: int | None = None
    grape_tag_ids: list[int] | None = None
    wine_type_tag_ids: list[int] | None = None
    occasion_tag_ids: list[int] | None = None
    food_pairing_tag_ids: list[int] | None = None


class Wine(WineData):
    """Wine with its producer name and tag associations."""

    id: int
    producer_name: str | None = None
    grape_tags: list[Tag] = Field(default_factory=list)
    wine_type_tags: list[Tag] = Field(default_factory=list)
    occasion_tags: list[Tag] = Field(default_factory=list)
    food_pairing_tags: list[Tag] = Field(default_factory=list)


# ============================================================================
# Producers
# ============================================================================


class ProducerData(BaseModel):
    """Producer fields shared by input and output models."""

    name: str
    description: str | None = None
    country: str | None = None
    region: str | None = None
    website: str | None = None
    geocoordinates: str | None = None
    contact: str | None = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("name cannot be empty")
        return v.strip()


class ProducerInput(ProducerData):
    """Producer upsert payload with optional country/region tag ids."""

    id: int | None = None
    country_tag_id: int | None = None
    region_tag_id: int | None = None


class Producer(ProducerData):
    """Producer with its country/region tags and, on detail reads, its wines."""

    id: int
    country_tag: Tag | None = None
    region_tag: Tag | None = None
    wines: list[Wine] | None = None


# ============================================================================
# Inventory ledger
# ============================================================================


class InventoryEvent(BaseModel):
    """A single ledger row. Quantity is always positive."""

    id: int
    wine_id: int
    event_type: EventType
    acquisition_type: str | None = None
    quantity: int
    price: float | None = None
    bought_at: str | None = None
    event_date: datetime
    error_quantity: int = 0


class HistoryEntry(InventoryEvent):
    """Ledger row joined with the wine name."""

    wine_name: str


class AcquisitionRequest(BaseModel):
    """Body of ``POST /api/add_to_inventory``.

    ``event_type`` is either a ledger type (``buy``/``add``) or an acquisition
    subtype such as ``online``, which is recorded as a ``buy``.
    """

    wine_id: int
    quantity: int
    event_type: str | None = None
    acquisition_type: str | None = None
    price: float | None = None
    bought_at: str | None = None
    event_date: datetime | None = None


class ConsumptionRequest(BaseModel):
    """Body of ``POST /api/consume_wine``."""

    wine_id: int
    quantity: int
    error_quantity: int | None = None
    event_date: datetime | None = None


class StockItem(BaseModel):
    """One row of the stock projection: a wine with positive inventory."""

    wine_id: int
    wine_name: str
    year: int | None = None
    type: str | None = None
    maturity: str | None = None
    wishlist: bool = False
    favorite: bool = False
    producer_id: int | None = None
    producer_name: str | None = None
    country: str | None = None
    region: str | None = None
    inventory: int
    grape_tags: list[Tag] = Field(default_factory=list)
    wine_type_tags: list[Tag] = Field(default_factory=list)
    occasion_tags: list[Tag] = Field(default_factory=list)
    food_pairing_tags: list[Tag] = Field(default_factory=list)
    country_tag: Tag | None = None
    region_tag: Tag | None = None


# ============================================================================
# Assessments
# ============================================================================


class AssessmentData(BaseModel):
    """Structured tasting assessment (appearance, nose, palate, conclusions)."""

    wine_id: int
    assessment_date: datetime = Field(
        default_factory=_utc_now,
        validation_alias=AliasChoices("assessment_date", "SAT_date"),
    )

    appearance_clarity: str | None = None
    appearance_intensity: str | None = None
    appearance_color: str | None = None
    appearance_observations: str | None = None

    nose_condition: str | None = None
    nose_intensity: str | None = None
    nose_development: str | None = None
    nose_aromas_primary: str | None = None
    nose_aromas_secondary: str | None = None
    nose_aromas_tertiary: str | None = None

    palate_sweetness: str | None = None
    palate_acidity: str | None = None
    palate_tannin: str | None = None
    palate_mousse: str | None = None
    palate_alcohol: str | None = None
    palate_body: str | None = None
    palate_flavor_intensity: str | None = None
    palate_flavor_characteristics: str | None = None
    palate_aromas_primary: str | None = None
    palate_aromas_secondary: str | None = None
    palate_aromas_tertiary: str | None = None
    palate_finish: str | None = None

    conclusions_quality: str | None = None
    conclusions_readiness: str | None = None
    conclusions_aging_potential: str | None = None
    conclusions_notes: str | None = None


class AssessmentInput(AssessmentData):
    """Assessment create/update payload."""

    id: int | None = None


class Assessment(AssessmentData):
    """Stored assessment with wine and producer names."""

    id: int
    wine_name: str | None = None
    wine_year: int | None = None
    producer_name: str | None = None


# ============================================================================
# Import results
# ============================================================================


class ImportCounts(BaseModel):
    """Per-entity counters of an import run."""

    wines: int = 0
    producers: int = 0
    tags: int = 0
    inventory: int = 0


class ImportResult(BaseModel):
    """Outcome of a best-effort JSON import."""

    success: bool = True
    created: ImportCounts = Field(default_factory=ImportCounts)
    updated: ImportCounts = Field(default_factory=ImportCounts)
    errors: list[str] = Field(default_factory=list)
