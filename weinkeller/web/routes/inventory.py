"""Inventory routes: current stock, ledger history and stock movements."""

from fastapi import APIRouter

from weinkeller.core.schema import (
    AcquisitionRequest,
    ConsumptionRequest,
    HistoryEntry,
    InventoryEvent,
    StockItem,
)
from weinkeller.services.inventory_service import InventoryService
from weinkeller.web.dependencies import SessionDep

router = APIRouter(prefix="/api", tags=["inventory"])


@router.get("/get_inventory", response_model=list[StockItem])
async def get_inventory(session: SessionDep) -> list[StockItem]:
    """Current stock of every wine with at least one bottle, ordered by wine id."""
    return InventoryService(session).get_current_stock()


@router.get("/inventory_history", response_model=list[HistoryEntry])
async def inventory_history(session: SessionDep) -> list[HistoryEntry]:
    """All ledger events with wine names, newest first."""
    return InventoryService(session).get_history()


@router.get("/wines/{wine_id}/events", response_model=list[InventoryEvent])
async def wine_events(wine_id: int, session: SessionDep) -> list[InventoryEvent]:
    return InventoryService(session).get_wine_events(wine_id)


@router.post("/add_to_inventory", response_model=InventoryEvent, status_code=201)
async def add_to_inventory(request: AcquisitionRequest, session: SessionDep) -> InventoryEvent:
    """
    Record bottles entering the cellar.

    ``event_type`` may be ``buy``, ``add`` or an acquisition channel such as
    ``online`` (recorded as a ``buy``). ``drink`` is rejected.
    """
    return InventoryService(session).add_to_inventory(request)


@router.post("/consume_wine", response_model=InventoryEvent, status_code=201)
async def consume_wine(request: ConsumptionRequest, session: SessionDep) -> InventoryEvent:
    """Record bottles leaving the cellar; fails with 400 when stock is insufficient."""
    return InventoryService(session).consume(request)
