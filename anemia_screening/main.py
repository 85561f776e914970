from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
from datetime import datetime

from anemia_screening.ai import ModelManager
from anemia_screening.config import settings
from anemia_screening.core import init_folders
from anemia_screening.db.database import (
    DatabaseUnavailableError,
    close_mongo_connection,
    connect_to_mongo,
    ping_database
)
from anemia_screening.routes import (
    prediction_router,
    assessments_router,
    doctors_router,
    model_router
)

# Configurar logging
logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def build_model_manager() -> ModelManager:
    """Crear el ModelManager a partir de la configuración"""
    return ModelManager(
        settings.model_path,
        max_attempts=settings.model_max_load_attempts,
        retry_delay=settings.model_retry_delay,
        inference_timeout=settings.inference_timeout
    )


# Lifespan events
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Gestionar inicio y cierre de la aplicación"""
    # Startup
    logger.info("🚀 Iniciando servicio de tamizaje de anemia...")
    await connect_to_mongo()

    init_folders()

    manager = build_model_manager()
    if settings.ai_enabled:
        status = await manager.initialize()
        logger.info(f"🤖 Estado del modelo: {status}")
    else:
        logger.warning("⚠️ IA deshabilitada: todas las predicciones serán por defecto")
    app.state.model_manager = manager

    logger.info("✅ Aplicación lista")

    yield

    # Shutdown
    logger.info("🛑 Cerrando aplicación...")
    manager.close()
    await close_mongo_connection()
    logger.info("👋 Aplicación cerrada")


# Crear aplicación FastAPI
app = FastAPI(
    title="Anemia Screening API",
    description="API para tamizaje de anemia mediante imágenes de párpado",
    version="1.0.0",
    lifespan=lifespan
)


# Configurar CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Middleware para logging de requests
@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info(f"📨 {request.method} {request.url.path}")
    response = await call_next(request)
    logger.info(f"📤 Status: {response.status_code}")
    return response


# Exception handler global
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"❌ Error no manejado: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )


# Incluir routers
app.include_router(prediction_router)
app.include_router(assessments_router)
app.include_router(doctors_router)
app.include_router(model_router)


# Rutas básicas
@app.get("/")
async def root():
    """Endpoint raíz"""
    return {
        "message": "Anemia Screening API",
        "version": "1.0.0",
        "status": "online",
        "docs": "/docs"
    }


@app.get("/health")
async def health_check(request: Request):
    """Health check endpoint"""
    manager = getattr(request.app.state, "model_manager", None)
    model_loaded = bool(manager and manager.is_loaded)

    try:
        await ping_database()

        return {
            "status": "ok",
            "modelLoaded": model_loaded,
            "database": "connected",
            "timestamp": datetime.utcnow().isoformat()
        }
    except DatabaseUnavailableError as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "modelLoaded": model_loaded,
                "database": "disconnected",
                "error": str(e)
            }
        )
