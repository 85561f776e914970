"""
Errores del pipeline de tamizaje
Los tres primeros son fatales para la solicitud; los de inferencia se
convierten en la predicción por defecto
"""

from typing import List, Optional


class ScreeningError(Exception):
    """Error base del pipeline de preprocesamiento e inferencia"""


class UnsupportedFileError(ScreeningError):
    """Archivo rechazado por tipo, extensión o tamaño antes de procesarlo"""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class PreprocessingError(ScreeningError):
    """La decodificación o el redimensionado no produjo el buffer esperado"""


class InvalidTensorError(ScreeningError):
    """El tensor normalizado tiene valores no finitos o longitud incorrecta"""


class ModelUnavailableError(ScreeningError):
    """No hay modelo cargado"""

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "Model not loaded")


class InferenceError(ScreeningError):
    """Falló la ejecución del modelo"""


class InferenceTimeoutError(InferenceError):
    """La inferencia excedió el tiempo máximo permitido"""
