"""Tasting assessment routes."""

from fastapi import APIRouter

from weinkeller.core.schema import Assessment, AssessmentInput
from weinkeller.services.assessment_service import AssessmentService
from weinkeller.web.dependencies import SessionDep

router = APIRouter(prefix="/api", tags=["assessments"])


@router.get("/assessments", response_model=list[Assessment])
async def list_assessments(session: SessionDep) -> list[Assessment]:
    """All assessments, newest first."""
    return AssessmentService(session).list_assessments()


@router.post("/assessments", response_model=Assessment, status_code=201)
async def create_assessment(data: AssessmentInput, session: SessionDep) -> Assessment:
    return AssessmentService(session).create_assessment(data)


@router.get("/assessments/{assessment_id}", response_model=Assessment)
async def get_assessment(assessment_id: int, session: SessionDep) -> Assessment:
    return AssessmentService(session).get_assessment(assessment_id)


@router.put("/assessments/{assessment_id}", response_model=Assessment)
async def update_assessment(
    assessment_id: int, data: AssessmentInput, session: SessionDep
) -> Assessment:
    """Overwrite every field of an assessment."""
    return AssessmentService(session).update_assessment(assessment_id, data)


@router.delete("/assessments/{assessment_id}")
async def delete_assessment(assessment_id: int, session: SessionDep) -> dict:
    AssessmentService(session).delete_assessment(assessment_id)
    return {"message": "Assessment deleted successfully"}


@router.get("/wines/{wine_id}/assessments", response_model=list[Assessment])
async def wine_assessments(wine_id: int, session: SessionDep) -> list[Assessment]:
    return AssessmentService(session).list_for_wine(wine_id)
