"""Application services for Weinkeller."""

from weinkeller.services.assessment_service import AssessmentService
from weinkeller.services.catalog_service import CatalogService
from weinkeller.services.export_service import ExportService
from weinkeller.services.inventory_service import InventoryService

__all__ = [
    "AssessmentService",
    "CatalogService",
    "ExportService",
    "InventoryService",
]
