from pydantic import BaseModel, EmailStr, Field
from typing import Optional, Literal, List
from datetime import datetime


PredictionLabel = Literal["Anemic", "Non-anemic"]
AssessmentStatus = Literal["new", "pending", "reviewed", "needs_followup"]


# ============================================
# MODELOS DE PREDICCIÓN
# ============================================

class PredictionResponse(BaseModel):
    prediction: PredictionLabel
    confidence: float
    using_default_prediction: bool = Field(alias="usingDefaultPrediction")
    error: Optional[str] = None

    class Config:
        populate_by_name = True


# ============================================
# MODELOS DE EVALUACIONES
# ============================================

class SymptomsData(BaseModel):
    """Síntomas reportados por el paciente al enviar la evaluación"""
    fatigue: bool = False
    pale_skin: bool = Field(False, alias="paleSkin")
    shortness_of_breath: bool = Field(False, alias="shortnessOfBreath")
    dizziness: bool = False
    cold_hands: bool = Field(False, alias="coldHands")
    headaches: bool = False
    notes: Optional[str] = Field(None, max_length=1000)

    class Config:
        populate_by_name = True

class AssessmentResponse(BaseModel):
    """
    Modelo de respuesta para evaluaciones
    Usa alias para mapear entre snake_case (Python) y camelCase (MongoDB)
    """
    id: str = Field(alias="_id")
    code: str
    patient_id: str = Field(alias="patientId")
    prediction: PredictionLabel
    confidence: float
    using_default_prediction: bool = Field(alias="usingDefaultPrediction")
    error: Optional[str] = None
    image_path: Optional[str] = Field(None, alias="imagePath")
    status: AssessmentStatus
    doctor_id: Optional[str] = Field(None, alias="doctorId")
    symptoms: Optional[SymptomsData] = None
    message: Optional[str] = None
    doctor_notes: Optional[str] = Field(None, alias="doctorNotes")
    created_at: datetime = Field(alias="createdAt")
    sent_at: Optional[datetime] = Field(None, alias="sentAt")
    reviewed_at: Optional[datetime] = Field(None, alias="reviewedAt")

    class Config:
        populate_by_name = True

class SendToDoctorRequest(BaseModel):
    doctor_id: str = Field(..., alias="doctorId", min_length=1)
    symptoms: Optional[SymptomsData] = None
    message: Optional[str] = Field(None, max_length=2000)

    class Config:
        populate_by_name = True

class ReviewUpdate(BaseModel):
    status: Literal["reviewed", "needs_followup"]
    doctor_notes: Optional[str] = Field(None, alias="doctorNotes", max_length=2000)

    class Config:
        populate_by_name = True


# ============================================
# MODELOS DE MÉDICOS
# ============================================

class DoctorCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=200)
    specialty: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    location: Optional[str] = None
    photo: Optional[str] = None

class DoctorResponse(BaseModel):
    id: str = Field(alias="_id")
    name: str
    specialty: str
    email: EmailStr
    location: Optional[str] = None
    photo: Optional[str] = None
    active: bool = True

    class Config:
        populate_by_name = True


# ============================================
# MODELOS DE ESTADÍSTICAS
# ============================================

class PatientStats(BaseModel):
    total: int
    anemic: int
    non_anemic: int
    defaulted: int
    anemic_rate: float
    average_confidence: Optional[float] = None
    last_screening: Optional[datetime] = None
    sent_to_doctor: int

class ModelStatus(BaseModel):
    is_loaded: bool
    load_attempts: int
    max_attempts: int
    is_loading: bool
    model_path: str
    model_exists: bool
    last_error: Optional[str] = None

    class Config:
        protected_namespaces = ()


__all__ = [
    "PredictionLabel",
    "AssessmentStatus",
    "PredictionResponse",
    "SymptomsData",
    "AssessmentResponse",
    "SendToDoctorRequest",
    "ReviewUpdate",
    "DoctorCreate",
    "DoctorResponse",
    "PatientStats",
    "ModelStatus",
]
