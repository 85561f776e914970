from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from typing import Optional
from anemia_screening.config import settings
import logging

logger = logging.getLogger(__name__)


class DatabaseUnavailableError(Exception):
    """La base de datos no está conectada o no responde"""


class MongoDB:
    client: Optional[AsyncIOMotorClient] = None
    db: Optional[AsyncIOMotorDatabase] = None

mongodb = MongoDB()


async def connect_to_mongo():
    """Conectar a MongoDB"""
    mongodb.client = AsyncIOMotorClient(
        settings.mongodb_uri,
        serverSelectionTimeoutMS=settings.mongodb_timeout_ms
    )
    mongodb.db = mongodb.client[settings.mongodb_db_name]

    try:
        await ping_database()
        logger.info(f"✅ Conectado a MongoDB (base de datos: {settings.mongodb_db_name})")
    except DatabaseUnavailableError as e:
        logger.error(f"❌ Error conectando a MongoDB: {e}")
        raise


async def ping_database() -> None:
    """
    Verificar que la base de datos responde

    Raises:
        DatabaseUnavailableError: Si no hay conexión o el ping falla
    """
    if mongodb.db is None:
        raise DatabaseUnavailableError("Database not connected")
    try:
        await mongodb.db.command("ping")
    except Exception as e:
        raise DatabaseUnavailableError(str(e)) from e


async def close_mongo_connection():
    """Cerrar conexión a MongoDB"""
    if mongodb.client:
        mongodb.client.close()
        mongodb.client = None
        mongodb.db = None
        logger.info("🔌 Conexión a MongoDB cerrada")


def get_database() -> Optional[AsyncIOMotorDatabase]:
    """Obtener instancia de la base de datos (None si no hay conexión)"""
    return mongodb.db
