"""Enums for inventory events, bottles and tag taxonomies."""

from enum import Enum


class EventType(str, Enum):
    """Ledger event type.

    Only DRINK decrements stock; BUY and ADD are acquisitions.
    """

    BUY = "buy"
    ADD = "add"
    DRINK = "drink"

    @property
    def is_acquisition(self) -> bool:
        return self is not EventType.DRINK


class AcquisitionType(str, Enum):
    """Known acquisition channels (stored as free text)."""

    GIFTED = "gifted"
    PRODUCER = "producer"
    FAIR = "fair"
    EVENT = "event"
    ONLINE = "online"
    IMPORT = "import"


class BottleFormat(str, Enum):
    """Bottle size."""

    PICCOLO = "piccolo"
    HALF = "half"
    STANDARD = "standard"
    MAGNUM = "magnum"
    DOUBLE_MAGNUM = "double_magnum"
    JEROBOAM = "jeroboam"
    IMPERIAL = "imperial"


class TagKind(str, Enum):
    """The six tag taxonomies."""

    GRAPE = "grape"
    WINE_TYPE = "wine_type"
    COUNTRY = "country"
    REGION = "region"
    OCCASION = "occasion"
    FOOD_PAIRING = "food_pairing"

    @property
    def export_key(self) -> str:
        """Key used for this taxonomy in JSON payloads (e.g. ``grape_tags``)."""
        return f"{self.value}_tags"

    @property
    def owner(self) -> str:
        """Entity the taxonomy is attached to: ``wine`` or ``producer``."""
        if self in (TagKind.COUNTRY, TagKind.REGION):
            return "producer"
        return "wine"


WINE_TAG_KINDS: tuple[TagKind, ...] = (
    TagKind.GRAPE,
    TagKind.WINE_TYPE,
    TagKind.OCCASION,
    TagKind.FOOD_PAIRING,
)

PRODUCER_TAG_KINDS: tuple[TagKind, ...] = (TagKind.COUNTRY, TagKind.REGION)

# Seeded on first start
DEFAULT_TAGS: dict[TagKind, tuple[str, ...]] = {
    TagKind.OCCASION: ("Connoisseur", "Special", "Summer", "Winter"),
    TagKind.FOOD_PAIRING: (
        "Red Meat",
        "Poultry",
        "Seafood",
        "Pasta",
        "Cheese",
        "Dessert",
        "Spicy Food",
        "Vegetarian",
    ),
}
