from fastapi import HTTPException, Request, status

from anemia_screening.ai import ModelManager


def get_model_manager(request: Request) -> ModelManager:
    """Obtener el ModelManager creado en el arranque de la aplicación"""
    manager = getattr(request.app.state, "model_manager", None)
    if manager is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Model manager not initialized"
        )
    return manager
