"""Tasting assessment service."""

import logging

from sqlalchemy.orm import Session

from weinkeller.core.errors import NotFoundError
from weinkeller.core.schema import Assessment, AssessmentInput
from weinkeller.db.repositories import AssessmentRepository, WineRepository

logger = logging.getLogger(__name__)


class AssessmentService:
    """Service for structured tasting assessments of wines."""

    def __init__(self, session: Session):
        self.session = session
        self.assessments = AssessmentRepository(session)
        self.wines = WineRepository(session)

    def list_assessments(self) -> list[Assessment]:
        """All assessments, newest first, with wine and producer names."""
        return self.assessments.list_all()

    def get_assessment(self, assessment_id: int) -> Assessment:
        assessment = self.assessments.get_by_id(assessment_id)
        if assessment is None:
            raise NotFoundError("Assessment", assessment_id)
        return assessment

    def list_for_wine(self, wine_id: int) -> list[Assessment]:
        if not self.wines.exists(wine_id):
            raise NotFoundError("Wine", wine_id)
        return self.assessments.list_by_wine(wine_id)

    def create_assessment(self, data: AssessmentInput) -> Assessment:
        """
        Store a new assessment.

        Raises:
            NotFoundError: If the wine does not exist.
        """
        logger.debug(f"Creating assessment for wine {data.wine_id}")
        if not self.wines.exists(data.wine_id):
            raise NotFoundError("Wine", data.wine_id)
        try:
            created = self.assessments.create(data)
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            logger.error(f"Failed to create assessment for wine {data.wine_id}: {e}")
            raise
        logger.info(f"Created assessment {created.id} for wine {created.wine_id}")
        return created

    def update_assessment(self, assessment_id: int, data: AssessmentInput) -> Assessment:
        """
        Overwrite an existing assessment.

        Raises:
            NotFoundError: If the assessment or the wine does not exist.
        """
        logger.debug(f"Updating assessment {assessment_id}")
        if not self.wines.exists(data.wine_id):
            raise NotFoundError("Wine", data.wine_id)
        try:
            updated = self.assessments.update(assessment_id, data)
            if updated is None:
                raise NotFoundError("Assessment", assessment_id)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return updated

    def delete_assessment(self, assessment_id: int) -> None:
        if not self.assessments.delete(assessment_id):
            raise NotFoundError("Assessment", assessment_id)
        self.session.commit()
        logger.info(f"Deleted assessment {assessment_id}")
