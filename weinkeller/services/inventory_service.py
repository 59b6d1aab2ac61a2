"""Inventory service: records acquisitions and consumptions on the ledger.

Stock is derived from the ledger on every read; this service only validates
and appends events.
"""

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from weinkeller.core.enums import EventType
from weinkeller.core.errors import NotFoundError, ValidationError
from weinkeller.core.schema import (
    AcquisitionRequest,
    ConsumptionRequest,
    HistoryEntry,
    InventoryEvent,
    StockItem,
)
from weinkeller.db.repositories import InventoryRepository, WineRepository

logger = logging.getLogger(__name__)


class InventoryService:
    """Service for the inventory ledger and current stock."""

    def __init__(self, session: Session):
        self.session = session
        self.events = InventoryRepository(session)
        self.wines = WineRepository(session)

    def _require_wine(self, wine_id: int) -> None:
        if not self.wines.exists(wine_id):
            raise NotFoundError("Wine", wine_id)

    @staticmethod
    def _require_positive(quantity: int) -> None:
        if quantity is None or quantity <= 0:
            raise ValidationError("Quantity must be a positive integer")

    # =========================================================================
    # Recording
    # =========================================================================

    def record_acquisition(
        self,
        wine_id: int,
        quantity: int,
        acquisition_type: str | None = None,
        price: float | None = None,
        bought_at: str | None = None,
        event_date: datetime | None = None,
        event_type: EventType | str = EventType.BUY,
    ) -> InventoryEvent:
        """
        Append a ``buy`` or ``add`` event.

        Args:
            wine_id: Wine receiving the bottles.
            quantity: Number of bottles, must be > 0.
            acquisition_type: Free-text channel (gifted, producer, online, ...).
            price: Optional price per bottle.
            bought_at: Optional free-text place of purchase.
            event_date: Defaults to now.
            event_type: ``buy`` or ``add``.

        Returns:
            The created event.

        Raises:
            NotFoundError: If the wine does not exist.
            ValidationError: If quantity or event_type is invalid.
        """
        logger.debug(f"Recording acquisition: wine={wine_id} qty={quantity} type={event_type}")
        try:
            event_type = EventType(event_type)
        except ValueError:
            raise ValidationError(f"Invalid event type: {event_type}") from None
        if not event_type.is_acquisition:
            raise ValidationError("Acquisitions must use event type 'buy' or 'add'")
        self._require_positive(quantity)
        self._require_wine(wine_id)

        try:
            event = self.events.add_acquisition(
                wine_id=wine_id,
                quantity=quantity,
                event_type=event_type,
                acquisition_type=acquisition_type,
                price=price,
                bought_at=bought_at,
                event_date=event_date,
            )
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            logger.error(f"Failed to record acquisition for wine {wine_id}: {e}")
            raise

        logger.info(f"Added {quantity} bottle(s) of wine {wine_id} ({event_type.value})")
        return event

    def record_consumption(
        self,
        wine_id: int,
        quantity: int,
        error_quantity: int | None = 0,
        event_date: datetime | None = None,
    ) -> InventoryEvent:
        """
        Append a ``drink`` event if the wine has enough stock.

        ``error_quantity`` counts bottles found faulty; it is informational and
        is not checked against stock.

        Raises:
            NotFoundError: If the wine does not exist.
            ValidationError: If quantity is invalid or exceeds current stock.
        """
        logger.debug(f"Recording consumption: wine={wine_id} qty={quantity}")
        self._require_positive(quantity)
        error_quantity = error_quantity or 0
        if error_quantity < 0:
            raise ValidationError("Error quantity cannot be negative")
        self._require_wine(wine_id)

        try:
            event = self.events.add_consumption_if_available(
                wine_id=wine_id,
                quantity=quantity,
                error_quantity=error_quantity,
                event_date=event_date,
            )
            if event is None:
                self.session.rollback()
                available = self.events.get_stock_for_wine(wine_id)
                raise ValidationError(
                    f"Insufficient inventory: requested {quantity}, available {available}"
                )
            self.session.commit()
        except ValidationError:
            raise
        except Exception as e:
            self.session.rollback()
            logger.error(f"Failed to record consumption for wine {wine_id}: {e}")
            raise

        logger.info(f"Consumed {quantity} bottle(s) of wine {wine_id}")
        return event

    def add_to_inventory(self, request: AcquisitionRequest) -> InventoryEvent:
        """
        Record an acquisition from an API request.

        ``event_type`` may name a ledger type (``buy``/``add``) or an
        acquisition channel; a channel is stored as a ``buy`` with that
        ``acquisition_type``.
        """
        requested = (request.event_type or EventType.BUY.value).strip().lower()
        acquisition_type = request.acquisition_type
        if requested == EventType.DRINK.value:
            raise ValidationError("Use consume_wine to record consumption")
        if requested in (EventType.BUY.value, EventType.ADD.value):
            event_type = EventType(requested)
        else:
            event_type = EventType.BUY
            acquisition_type = acquisition_type or requested

        return self.record_acquisition(
            wine_id=request.wine_id,
            quantity=request.quantity,
            acquisition_type=acquisition_type,
            price=request.price,
            bought_at=request.bought_at,
            event_date=request.event_date,
            event_type=event_type,
        )

    def consume(self, request: ConsumptionRequest) -> InventoryEvent:
        """Record a consumption from an API request."""
        return self.record_consumption(
            wine_id=request.wine_id,
            quantity=request.quantity,
            error_quantity=request.error_quantity,
            event_date=request.event_date,
        )

    # =========================================================================
    # Reads
    # =========================================================================

    def get_current_stock(self) -> list[StockItem]:
        """Current stock of every wine with a positive inventory."""
        return self.events.get_current_stock()

    def get_stock_for_wine(self, wine_id: int) -> int:
        self._require_wine(wine_id)
        return self.events.get_stock_for_wine(wine_id)

    def get_history(self) -> list[HistoryEntry]:
        return self.events.get_history()

    def get_wine_events(self, wine_id: int) -> list[InventoryEvent]:
        """Ledger of one wine, newest first."""
        self._require_wine(wine_id)
        return self.events.get_wine_events(wine_id)
