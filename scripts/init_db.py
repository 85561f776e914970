"""
Script para inicializar la base de datos MongoDB con índices y médicos iniciales
Ejecutar una vez después de crear la base de datos
"""

import asyncio
import sys
from datetime import datetime
from pathlib import Path
from motor.motor_asyncio import AsyncIOMotorClient
import logging

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from anemia_screening.config import settings

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


INITIAL_DOCTORS = [
    {
        "name": "Dr. Alice Mwangi",
        "specialty": "Infectious Diseases",
        "location": "Nairobi",
        "email": "alice.mwangi@eyecare-clinic.org",
        "photo": "https://randomuser.me/api/portraits/women/44.jpg",
    },
    {
        "name": "Dr. Grace Njeri",
        "specialty": "Tropical Medicine",
        "location": "Mombasa",
        "email": "grace.njeri@eyecare-clinic.org",
        "photo": "https://randomuser.me/api/portraits/women/46.jpg",
    },
]


async def create_indexes(db):
    """Crear todos los índices necesarios"""
    logger.info("🔧 Creando índices en MongoDB...")

    # ============================================
    # ÍNDICES PARA EVALUACIONES
    # ============================================
    logger.info("📝 Creando índices para 'assessments'...")

    await db.assessments.create_index("code", unique=True)
    await db.assessments.create_index("prediction")
    await db.assessments.create_index([("patientId", 1), ("createdAt", -1)])
    await db.assessments.create_index([("doctorId", 1), ("status", 1), ("sentAt", -1)])

    logger.info("✅ Índices de evaluaciones creados")

    # ============================================
    # ÍNDICES PARA MÉDICOS
    # ============================================
    logger.info("📝 Creando índices para 'doctors'...")

    await db.doctors.create_index("email", unique=True)
    await db.doctors.create_index("active")

    logger.info("✅ Índices de médicos creados")


async def seed_doctors(db):
    """Registrar los médicos iniciales si la colección está vacía"""
    count = await db.doctors.count_documents({})
    if count > 0:
        logger.info("⚠️  Ya existen médicos. Saltando creación de datos iniciales.")
        return

    now = datetime.utcnow()
    documents = [{**doctor, "active": True, "createdAt": now} for doctor in INITIAL_DOCTORS]
    result = await db.doctors.insert_many(documents)
    logger.info(f"✅ {len(result.inserted_ids)} médicos creados")


async def main():
    """Función principal"""
    logger.info("=" * 60)
    logger.info("Anemia Screening - Inicialización de Base de Datos")
    logger.info("=" * 60)

    client = AsyncIOMotorClient(settings.mongodb_uri)
    db = client[settings.mongodb_db_name]

    try:
        await create_indexes(db)
        await seed_doctors(db)
    except Exception as e:
        logger.error(f"❌ Error inicializando base de datos: {e}")
        raise
    finally:
        client.close()

    logger.info("🎉 Inicialización completada")


if __name__ == "__main__":
    asyncio.run(main())
