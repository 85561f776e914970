from fastapi import APIRouter, HTTPException, status, Depends, UploadFile, File
from starlette.concurrency import run_in_threadpool
import logging

from anemia_screening.ai import (
    InvalidTensorError,
    ModelManager,
    PredictionResult,
    PreprocessingError
)
from anemia_screening.core import get_model_manager, read_upload
from anemia_screening.db.models import PredictionResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Predicción"])


async def run_prediction(manager: ModelManager, image_bytes: bytes) -> PredictionResult:
    """
    Ejecutar el pipeline fuera del event loop

    Los errores de preprocesamiento y de tensor son fatales para la
    solicitud (422); las fallas del modelo ya vienen absorbidas en un
    resultado por defecto.
    """
    try:
        result = await run_in_threadpool(manager.predict, image_bytes)
    except (PreprocessingError, InvalidTensorError) as e:
        logger.warning(f"⚠️ Imagen no procesable: {e}")
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e)
        )

    if result.using_default_prediction:
        logger.warning(f"⚠️ Predicción por defecto: {result.error}")

    return result


@router.post("/predict", response_model=PredictionResponse, response_model_exclude_none=True)
async def predict(
    eyelid: UploadFile = File(...),
    manager: ModelManager = Depends(get_model_manager)
):
    """
    🤖 Analizar imagen de párpado (sin guardar evaluación)

    Returns:
        prediction, confidence, usingDefaultPrediction y error si hubo fallback
    """
    logger.info(f"🔬 Analizando imagen: {eyelid.filename}")

    image_bytes = await read_upload(eyelid)
    result = await run_prediction(manager, image_bytes)

    return result.to_response()
