"""Export and import of the whole cellar as a JSON document."""

import json
import logging
from datetime import date, datetime
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from weinkeller.core.enums import (
    PRODUCER_TAG_KINDS,
    WINE_TAG_KINDS,
    AcquisitionType,
    EventType,
    TagKind,
)
from weinkeller.core.errors import DuplicateTagError, WeinkellerError
from weinkeller.core.schema import ImportResult, ProducerInput, WineInput
from weinkeller.db.repositories import TagRepository
from weinkeller.services.catalog_service import CatalogService
from weinkeller.services.inventory_service import InventoryService

logger = logging.getLogger(__name__)

EXPORT_FILENAME = "wine_inventory_export.json"

# Import order: tags first so wines and producers can resolve them by name
TAG_EXPORT_ORDER: tuple[TagKind, ...] = WINE_TAG_KINDS + PRODUCER_TAG_KINDS


def _serialize_value(value: Any) -> Any:
    """Serialize a value for JSON output."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if hasattr(value, "value"):  # Enum
        return value.value
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _describe_error(error: Exception) -> str:
    """Short, single-line description of a per-record failure."""
    if isinstance(error, WeinkellerError):
        return error.message
    if isinstance(error, PydanticValidationError):
        return "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'record'}: {err['msg']}"
            for err in error.errors()
        )
    return str(error)


def _record_label(record: Any) -> str:
    if isinstance(record, dict):
        return repr(record.get("name") or record.get("id") or "<unnamed>")
    return repr(record)


def _section(data: dict[str, Any], key: str, expected: type, result: ImportResult) -> Any:
    """Return one top-level section, or an empty one if it has the wrong shape."""
    value = data.get(key)
    if not value:
        return expected()
    if not isinstance(value, expected):
        shape = "an object" if expected is dict else "a list"
        result.errors.append(f"Section {key!r} must be {shape}")
        return expected()
    return value


def _as_count(value: Any) -> int:
    """Coerce an exported bottle count to int, accepting "5" and 5.0."""
    if isinstance(value, bool):
        raise TypeError("count must be a number")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError("count must be a whole number")
    return int(value)


class ExportService:
    """Service for exporting and re-importing the catalog and stock."""

    def __init__(self, session: Session):
        self.session = session
        self.catalog = CatalogService(session)
        self.inventory = InventoryService(session)
        self.tags = TagRepository(session)

    # =========================================================================
    # Export
    # =========================================================================

    def export_all(self) -> dict[str, Any]:
        """
        Build a snapshot of wines, current stock, producers and all tags.

        ``inventory`` is the stock projection, not the raw ledger.

        Returns:
            A JSON-ready dict.
        """
        logger.debug("Exporting full cellar snapshot")
        return {
            "wines": [w.model_dump(mode="json") for w in self.catalog.list_wines()],
            "inventory": [i.model_dump(mode="json") for i in self.inventory.get_current_stock()],
            "producers": [
                p.model_dump(mode="json", exclude={"wines"}) for p in self.catalog.list_producers()
            ],
            "tags": {
                kind.export_key: [t.model_dump() for t in self.catalog.list_tags(kind)]
                for kind in TAG_EXPORT_ORDER
            },
        }

    def export_json(self, indent: int = 2) -> str:
        """Export as a JSON string."""
        return json.dumps(self.export_all(), indent=indent, default=_serialize_value)

    # =========================================================================
    # Import
    # =========================================================================

    def import_all(self, data: Any) -> ImportResult:
        """
        Replay an export document into the database, best effort.

        Sections are processed in the order tags, producers, wines,
        inventory. Each record is committed on its own; a failing record is
        rolled back and reported in ``errors`` while the rest continue.

        Args:
            data: Parsed export document.

        Returns:
            Counts of created and updated records plus per-record errors.
        """
        result = ImportResult()
        if not isinstance(data, dict):
            result.success = False
            result.errors.append("Import data must be a JSON object")
            return result

        logger.info("Starting JSON import")
        self._import_tags(_section(data, "tags", dict, result), result)
        self._import_producers(_section(data, "producers", list, result), result)
        self._import_wines(_section(data, "wines", list, result), result)
        self._import_inventory(_section(data, "inventory", list, result), result)

        logger.info(
            f"Import finished: created={result.created.model_dump()} "
            f"updated={result.updated.model_dump()} errors={len(result.errors)}"
        )
        for message in result.errors:
            logger.warning(f"Import error: {message}")
        return result

    def _import_tags(self, tags: dict[str, Any], result: ImportResult) -> None:
        for kind in TAG_EXPORT_ORDER:
            entries = tags.get(kind.export_key) or []
            if not isinstance(entries, list):
                result.errors.append(f"Section {kind.export_key!r} must be a list")
                continue
            for entry in entries:
                name = entry.get("name") if isinstance(entry, dict) else entry
                try:
                    if name is not None and not isinstance(name, str):
                        raise TypeError("tag name must be a string")
                    self.catalog.create_tag(kind, name)
                    result.created.tags += 1
                except DuplicateTagError:
                    # Already present, keep the existing tag
                    continue
                except (WeinkellerError, SQLAlchemyError, TypeError) as e:
                    self.session.rollback()
                    result.errors.append(f"{kind.value} tag {name!r}: {_describe_error(e)}")

    def _import_producers(self, producers: list[Any], result: ImportResult) -> None:
        for record in producers:
            try:
                if not isinstance(record, dict):
                    raise TypeError("record must be an object")
                payload = dict(record)
                for kind in PRODUCER_TAG_KINDS:
                    embedded = record.get(f"{kind.value}_tag")
                    if embedded is not None:
                        payload[f"{kind.value}_tag_id"] = self._resolve_tag(kind, embedded)
                producer_input = ProducerInput.model_validate(payload)
                self.catalog.create_or_update_producer(producer_input)
            except (WeinkellerError, PydanticValidationError, SQLAlchemyError, TypeError) as e:
                self.session.rollback()
                result.errors.append(f"Producer {_record_label(record)}: {_describe_error(e)}")
                continue
            if producer_input.id is not None:
                result.updated.producers += 1
            else:
                result.created.producers += 1

    def _import_wines(self, wines: list[Any], result: ImportResult) -> None:
        for record in wines:
            try:
                if not isinstance(record, dict):
                    raise TypeError("record must be an object")
                payload = dict(record)
                for kind in WINE_TAG_KINDS:
                    if kind.export_key not in record:
                        continue
                    embedded = record[kind.export_key] or []
                    if not isinstance(embedded, list):
                        raise TypeError(f"{kind.export_key} must be a list")
                    payload[f"{kind.value}_tag_ids"] = [
                        tag_id
                        for tag_id in (self._resolve_tag(kind, t) for t in embedded)
                        if tag_id is not None
                    ]
                wine_input = WineInput.model_validate(payload)
                self.catalog.create_or_update_wine(wine_input)
            except (WeinkellerError, PydanticValidationError, SQLAlchemyError, TypeError) as e:
                self.session.rollback()
                result.errors.append(f"Wine {_record_label(record)}: {_describe_error(e)}")
                continue
            if wine_input.id is not None:
                result.updated.wines += 1
            else:
                result.created.wines += 1

    def _import_inventory(self, items: list[Any], result: ImportResult) -> None:
        for item in items:
            if not isinstance(item, dict):
                result.errors.append(f"Inventory {item!r}: record must be an object")
                continue
            wine_id = item.get("wine_id")
            raw = item.get("inventory") or 0
            try:
                quantity = _as_count(raw)
            except (TypeError, ValueError):
                result.errors.append(f"Inventory for wine {wine_id}: invalid count {raw!r}")
                continue
            if quantity <= 0:
                continue
            try:
                self.inventory.record_acquisition(
                    wine_id=wine_id,
                    quantity=quantity,
                    acquisition_type=AcquisitionType.IMPORT.value,
                    event_type=EventType.ADD,
                )
            except (WeinkellerError, SQLAlchemyError) as e:
                self.session.rollback()
                result.errors.append(f"Inventory for wine {wine_id}: {_describe_error(e)}")
                continue
            result.created.inventory += 1

    def _resolve_tag(self, kind: TagKind, embedded: Any) -> int | None:
        """
        Map an embedded tag to a local id.

        Tags are matched by name because ids differ between databases; the
        embedded id is used only when no name is given or none matches.

        Raises:
            TypeError: If the reference is not an id, a name or an object.
        """
        if embedded is None:
            return None
        if isinstance(embedded, int) and not isinstance(embedded, bool):
            return embedded
        if isinstance(embedded, str):
            embedded = {"name": embedded}
        if not isinstance(embedded, dict):
            raise TypeError(f"unsupported {kind.value} tag reference {embedded!r}")
        name = embedded.get("name")
        if name is not None and not isinstance(name, str):
            raise TypeError("tag name must be a string")
        if name:
            tag = self.tags.get_by_name(kind, name)
            if tag is not None:
                return tag.id
        return embedded.get("id")
