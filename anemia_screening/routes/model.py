from fastapi import APIRouter, Depends
import logging

from anemia_screening.ai import ModelManager
from anemia_screening.core import get_model_manager
from anemia_screening.db.models import ModelStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/model", tags=["Modelo"])


@router.get("/status", response_model=ModelStatus)
async def model_status(manager: ModelManager = Depends(get_model_manager)):
    """Estado de carga del modelo"""
    return manager.status()


@router.post("/retry", response_model=ModelStatus)
async def retry_model_load(manager: ModelManager = Depends(get_model_manager)):
    """🔄 Reintentar la carga del modelo si quedan intentos"""
    logger.info("🔄 Reintento manual de carga del modelo")
    return await manager.retry_load()
