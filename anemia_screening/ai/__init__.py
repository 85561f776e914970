"""
Módulo de Inteligencia Artificial
Detección de anemia mediante análisis de imágenes de párpado
"""

from .ai_model import (
    ANEMIC,
    NON_ANEMIC,
    ModelManager,
    OnnxClassifier,
    PredictionResult,
    default_prediction,
    interpret_output
)

from .exceptions import (
    InferenceError,
    InferenceTimeoutError,
    InvalidTensorError,
    ModelUnavailableError,
    PreprocessingError,
    ScreeningError,
    UnsupportedFileError
)

from .preprocessing import (
    preprocess_image,
    validate_tensor,
    validate_upload
)

__all__ = [
    "ANEMIC",
    "NON_ANEMIC",
    "ModelManager",
    "OnnxClassifier",
    "PredictionResult",
    "default_prediction",
    "interpret_output",
    "InferenceError",
    "InferenceTimeoutError",
    "InvalidTensorError",
    "ModelUnavailableError",
    "PreprocessingError",
    "ScreeningError",
    "UnsupportedFileError",
    "preprocess_image",
    "validate_tensor",
    "validate_upload"
]
