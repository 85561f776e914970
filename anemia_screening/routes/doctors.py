from fastapi import APIRouter, HTTPException, Query, status
from typing import Optional, List
import logging

from anemia_screening.db import crud
from anemia_screening.db.database import get_database
from anemia_screening.db.models import (
    AssessmentResponse,
    DoctorCreate,
    DoctorResponse,
    ReviewUpdate
)
from anemia_screening.routes.assessments import validate_object_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/doctors", tags=["Médicos"])


async def get_doctor_or_404(db, doctor_id: str) -> dict:
    validate_object_id(doctor_id, "doctor")
    doctor = await crud.get_doctor(db, doctor_id)
    if not doctor:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Doctor not found"
        )
    return doctor


@router.get("", response_model=List[DoctorResponse])
async def list_doctors():
    """Lista de médicos disponibles para enviar evaluaciones"""
    db = get_database()
    return await crud.list_doctors(db)


@router.post("", response_model=DoctorResponse, status_code=status.HTTP_201_CREATED)
async def create_doctor(doctor: DoctorCreate):
    """Registrar un médico"""
    db = get_database()

    if await crud.email_registered(db, doctor.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    return await crud.insert_doctor(db, doctor.model_dump())


@router.get("/{doctor_id}", response_model=DoctorResponse)
async def get_doctor(doctor_id: str):
    db = get_database()
    return await get_doctor_or_404(db, doctor_id)


@router.get("/{doctor_id}/assessments", response_model=List[AssessmentResponse])
async def list_doctor_assessments(
    doctor_id: str,
    status_filter: Optional[str] = Query(None, alias="status")
):
    """Evaluaciones enviadas al médico"""
    db = get_database()
    await get_doctor_or_404(db, doctor_id)

    if status_filter and status_filter not in ["pending", "reviewed", "needs_followup"]:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="status must be 'pending', 'reviewed' or 'needs_followup'"
        )

    return await crud.list_doctor_assessments(db, doctor_id, status_filter)


@router.put("/{doctor_id}/assessments/{assessment_id}", response_model=AssessmentResponse)
async def review_assessment(doctor_id: str, assessment_id: str, review: ReviewUpdate):
    """Registrar la revisión del médico"""
    db = get_database()
    await get_doctor_or_404(db, doctor_id)
    validate_object_id(assessment_id)

    updated = await crud.update_review(
        db,
        doctor_id,
        assessment_id,
        review.status,
        review.doctor_notes
    )
    if not updated:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Assessment not found for this doctor"
        )

    logger.info(f"✅ Evaluación {assessment_id} revisada: {review.status}")
    return updated
