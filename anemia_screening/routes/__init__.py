from .prediction import router as prediction_router
from .assessments import router as assessments_router
from .doctors import router as doctors_router
from .model import router as model_router

__all__ = [
    "prediction_router",
    "assessments_router",
    "doctors_router",
    "model_router"
]
