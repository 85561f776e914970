"""
Acceso a datos
Envoltorios delgados sobre las colecciones 'assessments' y 'doctors'
"""

from datetime import datetime
from typing import Iterable, List, Optional
from bson import ObjectId
from pymongo import ReturnDocument
import logging

logger = logging.getLogger(__name__)


def _serialize(document: Optional[dict]) -> Optional[dict]:
    """Convertir ObjectId a string para JSON"""
    if document is None:
        return None
    document["_id"] = str(document["_id"])
    return document


# ============================================
# EVALUACIONES
# ============================================

async def insert_assessment(db, assessment: dict) -> dict:
    """Insertar una evaluación y devolverla con su id"""
    result = await db.assessments.insert_one(assessment)
    logger.info(f"💾 Evaluación guardada: {result.inserted_id}")
    created = await db.assessments.find_one({"_id": result.inserted_id})
    return _serialize(created)


async def code_exists(db, code: str) -> bool:
    return await db.assessments.find_one({"code": code}) is not None


async def get_assessment(db, assessment_id: str) -> Optional[dict]:
    document = await db.assessments.find_one({"_id": ObjectId(assessment_id)})
    return _serialize(document)


async def list_assessments(
    db,
    patient_id: Optional[str] = None,
    prediction: Optional[str] = None,
    skip: int = 0,
    limit: int = 20
) -> List[dict]:
    """Historial de evaluaciones, más recientes primero"""
    query = {}
    if patient_id:
        query["patientId"] = patient_id
    if prediction:
        query["prediction"] = prediction

    documents = await db.assessments.find(query)\
        .sort("createdAt", -1)\
        .skip(skip)\
        .limit(limit)\
        .to_list(length=limit)

    return [_serialize(document) for document in documents]


async def delete_assessment(db, assessment_id: str) -> Optional[dict]:
    """Eliminar una evaluación; devuelve el documento eliminado o None"""
    document = await db.assessments.find_one_and_delete({"_id": ObjectId(assessment_id)})
    return _serialize(document)


async def export_assessments(db, patient_id: Optional[str] = None) -> List[dict]:
    query = {"patientId": patient_id} if patient_id else {}
    documents = await db.assessments.find(query).sort("createdAt", -1).to_list(length=None)
    return [_serialize(document) for document in documents]


# ============================================
# ESTADÍSTICAS
# ============================================

async def assessment_stats(db, patient_id: Optional[str] = None) -> dict:
    """Estadísticas agregadas por predicción"""
    match = {"patientId": patient_id} if patient_id else {}

    pipeline = [
        {"$match": match},
        {
            "$group": {
                "_id": "$prediction",
                "total": {"$sum": 1},
                "defaulted": {
                    "$sum": {"$cond": ["$usingDefaultPrediction", 1, 0]}
                },
                "confidenceSum": {
                    "$sum": {"$cond": ["$usingDefaultPrediction", 0, "$confidence"]}
                },
                "realCount": {
                    "$sum": {"$cond": ["$usingDefaultPrediction", 0, 1]}
                },
                "sent": {
                    "$sum": {"$cond": [{"$ifNull": ["$doctorId", False]}, 1, 0]}
                },
                "last": {"$max": "$createdAt"}
            }
        }
    ]

    rows = await db.assessments.aggregate(pipeline).to_list(length=10)
    return summarize_stats(rows)


def summarize_stats(rows: Iterable[dict]) -> dict:
    """
    Combinar las filas agregadas en el resumen del paciente

    La confianza promedio solo considera predicciones reales.
    """
    total = anemic = non_anemic = defaulted = real_count = sent = 0
    confidence_sum = 0.0
    last_screening: Optional[datetime] = None

    for row in rows:
        total += row["total"]
        defaulted += row.get("defaulted", 0)
        real_count += row.get("realCount", 0)
        confidence_sum += row.get("confidenceSum", 0.0)
        sent += row.get("sent", 0)

        if row["_id"] == "Anemic":
            anemic += row["total"]
        elif row["_id"] == "Non-anemic":
            non_anemic += row["total"]

        last = row.get("last")
        if last and (last_screening is None or last > last_screening):
            last_screening = last

    return {
        "total": total,
        "anemic": anemic,
        "non_anemic": non_anemic,
        "defaulted": defaulted,
        "anemic_rate": round((anemic / total * 100) if total > 0 else 0, 1),
        "average_confidence": round(confidence_sum / real_count, 4) if real_count else None,
        "last_screening": last_screening,
        "sent_to_doctor": sent
    }


# ============================================
# ENVÍO A MÉDICOS
# ============================================

async def send_to_doctor(
    db,
    assessment_id: str,
    doctor_id: str,
    symptoms: Optional[dict] = None,
    message: Optional[str] = None
) -> Optional[dict]:
    """Asignar la evaluación a un médico y dejarla pendiente de revisión"""
    now = datetime.utcnow()
    document = await db.assessments.find_one_and_update(
        {"_id": ObjectId(assessment_id)},
        {
            "$set": {
                "doctorId": doctor_id,
                "symptoms": symptoms,
                "message": message,
                "status": "pending",
                "sentAt": now,
                "updatedAt": now
            }
        },
        return_document=ReturnDocument.AFTER
    )
    return _serialize(document)


async def list_doctor_assessments(
    db,
    doctor_id: str,
    status: Optional[str] = None,
    limit: int = 100
) -> List[dict]:
    query = {"doctorId": doctor_id}
    if status:
        query["status"] = status

    documents = await db.assessments.find(query)\
        .sort("sentAt", -1)\
        .limit(limit)\
        .to_list(length=limit)

    return [_serialize(document) for document in documents]


async def update_review(
    db,
    doctor_id: str,
    assessment_id: str,
    status: str,
    doctor_notes: Optional[str] = None
) -> Optional[dict]:
    """Registrar la revisión del médico sobre una evaluación asignada"""
    now = datetime.utcnow()
    document = await db.assessments.find_one_and_update(
        {"_id": ObjectId(assessment_id), "doctorId": doctor_id},
        {
            "$set": {
                "status": status,
                "doctorNotes": doctor_notes,
                "reviewedAt": now,
                "updatedAt": now
            }
        },
        return_document=ReturnDocument.AFTER
    )
    return _serialize(document)


# ============================================
# MÉDICOS
# ============================================

async def list_doctors(db) -> List[dict]:
    documents = await db.doctors.find({"active": True}).sort("name", 1).to_list(length=None)
    return [_serialize(document) for document in documents]


async def get_doctor(db, doctor_id: str) -> Optional[dict]:
    document = await db.doctors.find_one({"_id": ObjectId(doctor_id), "active": True})
    return _serialize(document)


async def email_registered(db, email: str) -> bool:
    return await db.doctors.find_one({"email": email}) is not None


async def insert_doctor(db, doctor: dict) -> dict:
    doctor = {**doctor, "active": True, "createdAt": datetime.utcnow()}
    result = await db.doctors.insert_one(doctor)
    logger.info(f"💾 Médico registrado: {result.inserted_id}")
    created = await db.doctors.find_one({"_id": result.inserted_id})
    return _serialize(created)
