"""Database initialization and persistence layer."""

from weinkeller.db.engine import (
    DEFAULT_DB_PATH,
    Database,
    get_database_path,
    get_database_url,
)
from weinkeller.db.models import (
    TAG_TABLES,
    AssessmentDB,
    Base,
    InventoryEventDB,
    ProducerDB,
    WineDB,
)
from weinkeller.db.repositories import (
    AssessmentRepository,
    InventoryRepository,
    ProducerRepository,
    TagRepository,
    WineRepository,
)

__all__ = [
    # Engine
    "DEFAULT_DB_PATH",
    "Database",
    "get_database_path",
    "get_database_url",
    # Models
    "Base",
    "WineDB",
    "ProducerDB",
    "InventoryEventDB",
    "AssessmentDB",
    "TAG_TABLES",
    # Repositories
    "WineRepository",
    "ProducerRepository",
    "TagRepository",
    "InventoryRepository",
    "AssessmentRepository",
]
