from fastapi import APIRouter, HTTPException, status, Depends, UploadFile, File, Form
from fastapi.responses import StreamingResponse
from datetime import datetime
from typing import Optional, List
from bson import ObjectId
import csv
import io
import logging

from anemia_screening.ai import ModelManager
from anemia_screening.config import settings
from anemia_screening.core import (
    get_model_manager,
    read_upload,
    save_upload,
    generate_assessment_code,
    delete_file
)
from anemia_screening.db import crud
from anemia_screening.db.database import get_database
from anemia_screening.db.models import AssessmentResponse, PatientStats, SendToDoctorRequest
from anemia_screening.routes.prediction import run_prediction

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/assessments", tags=["Evaluaciones"])

EXPORT_COLUMNS = [
    "code",
    "patientId",
    "prediction",
    "confidence",
    "usingDefaultPrediction",
    "status",
    "doctorId",
    "createdAt",
    "sentAt",
    "reviewedAt",
]


def validate_object_id(value: str, label: str = "assessment") -> None:
    if not ObjectId.is_valid(value):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {label} id"
        )


async def unique_assessment_code(db, max_retries: int = 10) -> str:
    """Generar un código que no exista todavía"""
    code = generate_assessment_code()
    retry_count = 0
    while await crud.code_exists(db, code):
        code = generate_assessment_code()
        retry_count += 1
        if retry_count >= max_retries:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Could not generate a unique assessment code"
            )
    return code


# ============================================
# ENDPOINTS
# ============================================

@router.post("", response_model=AssessmentResponse, status_code=status.HTTP_201_CREATED)
async def create_assessment(
    patient_id: str = Form(..., min_length=1, max_length=100),
    eyelid: UploadFile = File(...),
    manager: ModelManager = Depends(get_model_manager)
):
    """
    🤖 Analizar imagen y guardar la evaluación en el historial del paciente

    Args:
        patient_id: Identificador del paciente
        eyelid: Imagen del párpado (JPEG/PNG/GIF/WEBP, 1KB - 10MB)

    Returns:
        AssessmentResponse con la evaluación creada
    """
    db = get_database()

    logger.info(f"📝 Creando evaluación para paciente: {patient_id}")

    # 1. Validar y analizar
    image_bytes = await read_upload(eyelid)
    result = await run_prediction(manager, image_bytes)

    # 2. Código de evaluación
    code = await unique_assessment_code(db)
    logger.info(f"📋 Código de evaluación: {code}")

    # 3. Guardar imagen
    image_path = None
    if settings.save_uploads:
        try:
            image_path = save_upload(image_bytes, eyelid.filename, code)
        except OSError as e:
            logger.error(f"❌ Error guardando imagen: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error saving image: {str(e)}"
            )

    # 4. Documento para MongoDB
    now = datetime.utcnow()
    assessment_doc = {
        "code": code,
        "patientId": patient_id,
        "prediction": result.prediction,
        "confidence": result.confidence,
        "usingDefaultPrediction": result.using_default_prediction,
        "error": result.error,
        "imagePath": image_path,
        "status": "new",
        "doctorId": None,
        "createdAt": now,
        "updatedAt": now
    }

    try:
        created = await crud.insert_assessment(db, assessment_doc)
    except Exception as e:
        logger.error(f"❌ Error guardando en MongoDB: {e}")
        # Limpiar archivo guardado si falla la BD
        if image_path:
            delete_file(image_path)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error saving assessment: {str(e)}"
        )

    logger.info(f"🎉 Evaluación completada: {code} ({result.prediction})")
    return created


@router.get("", response_model=List[AssessmentResponse])
async def list_assessments(
    patient_id: Optional[str] = None,
    prediction: Optional[str] = None,
    skip: int = 0,
    limit: int = 20
):
    """Historial de evaluaciones, más recientes primero"""
    db = get_database()

    if prediction and prediction not in ["Anemic", "Non-anemic"]:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="prediction must be 'Anemic' or 'Non-anemic'"
        )

    return await crud.list_assessments(
        db,
        patient_id=patient_id,
        prediction=prediction,
        skip=max(skip, 0),
        limit=min(max(limit, 1), 100)
    )


@router.get("/stats", response_model=PatientStats)
async def assessment_stats(patient_id: Optional[str] = None):
    """Estadísticas del historial (de un paciente o globales)"""
    db = get_database()
    return await crud.assessment_stats(db, patient_id)


@router.get("/export")
async def export_assessments(patient_id: Optional[str] = None):
    """📄 Exportar evaluaciones en CSV"""
    db = get_database()
    assessments = await crud.export_assessments(db, patient_id)

    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=EXPORT_COLUMNS, extrasaction="ignore")
    writer.writeheader()
    for assessment in assessments:
        row = {column: assessment.get(column) for column in EXPORT_COLUMNS}
        for column in ("createdAt", "sentAt", "reviewedAt"):
            if isinstance(row[column], datetime):
                row[column] = row[column].isoformat()
        writer.writerow(row)

    filename = f"assessments-{patient_id or 'all'}-{datetime.utcnow():%Y%m%d}.csv"
    logger.info(f"📄 Exportando {len(assessments)} evaluaciones")

    return StreamingResponse(
        iter([buffer.getvalue()]),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


@router.get("/{assessment_id}", response_model=AssessmentResponse)
async def get_assessment(assessment_id: str):
    """Obtener detalles de una evaluación"""
    db = get_database()
    validate_object_id(assessment_id)

    assessment = await crud.get_assessment(db, assessment_id)
    if not assessment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Assessment not found"
        )

    return assessment


@router.delete("/{assessment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_assessment(assessment_id: str):
    """Eliminar una evaluación y su imagen"""
    db = get_database()
    validate_object_id(assessment_id)

    deleted = await crud.delete_assessment(db, assessment_id)
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Assessment not found"
        )

    if deleted.get("imagePath"):
        delete_file(deleted["imagePath"])

    logger.info(f"🗑️ Evaluación eliminada: {assessment_id}")
    return None


@router.post("/{assessment_id}/send", response_model=AssessmentResponse)
async def send_to_doctor(assessment_id: str, request: SendToDoctorRequest):
    """📨 Enviar una evaluación a un médico para su revisión"""
    db = get_database()
    validate_object_id(assessment_id)
    validate_object_id(request.doctor_id, "doctor")

    doctor = await crud.get_doctor(db, request.doctor_id)
    if not doctor:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Invalid doctor selected."
        )

    symptoms = request.symptoms.model_dump(by_alias=True) if request.symptoms else None
    updated = await crud.send_to_doctor(
        db,
        assessment_id,
        request.doctor_id,
        symptoms=symptoms,
        message=request.message
    )
    if not updated:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Assessment not found"
        )

    logger.info(f"📨 Evaluación {assessment_id} enviada a {doctor['name']}")
    return updated
