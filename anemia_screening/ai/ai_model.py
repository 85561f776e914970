"""
Servicio de IA para detección de anemia
Ejecuta el clasificador ONNX de imágenes de párpado e interpreta su salida
"""

import asyncio
import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Awaitable, Callable, Literal, Optional, Tuple

import numpy as np
import onnxruntime as ort
from pydantic import BaseModel, ConfigDict, Field

from .exceptions import InferenceError, InferenceTimeoutError, ModelUnavailableError
from .preprocessing import ImageSource, preprocess_image, validate_tensor

logger = logging.getLogger(__name__)

# Configuración
ANEMIC = "Anemic"
NON_ANEMIC = "Non-anemic"
DECISION_THRESHOLD = 0.5
DEFAULT_CONFIDENCE = 0.8


class PredictionResult(BaseModel):
    """Resultado de una predicción, real o por defecto"""

    model_config = ConfigDict(populate_by_name=True)

    prediction: Literal["Anemic", "Non-anemic"]
    confidence: float
    using_default_prediction: bool = Field(False, alias="usingDefaultPrediction")
    error: Optional[str] = None
    debug: Optional[dict] = None

    def to_response(self) -> dict:
        """Forma pública: prediction, confidence, usingDefaultPrediction y error si existe"""
        return self.model_dump(by_alias=True, exclude_none=True, exclude={"debug"})


def interpret_output(raw: float) -> PredictionResult:
    """
    Traducir la salida escalar del modelo a una decisión

    raw > 0.5 -> Non-anemic; en otro caso Anemic. La confianza reportada
    es siempre el valor crudo, también para Anemic.
    """
    raw = float(raw)
    prediction = NON_ANEMIC if raw > DECISION_THRESHOLD else ANEMIC
    return PredictionResult(prediction=prediction, confidence=raw)


def default_prediction(error: Optional[str] = None) -> PredictionResult:
    """Predicción cautelosa cuando no hay inferencia real"""
    return PredictionResult(
        prediction=ANEMIC,
        confidence=DEFAULT_CONFIDENCE,
        using_default_prediction=True,
        error=error
    )


class OnnxClassifier:
    """Adaptador sobre una sesión de onnxruntime que devuelve un escalar"""

    def __init__(self, session: ort.InferenceSession):
        self.session = session
        self.input_name = session.get_inputs()[0].name
        self.output_name = session.get_outputs()[0].name

    @classmethod
    def from_path(cls, model_path: str) -> "OnnxClassifier":
        """Crear sesión de inferencia en CPU"""
        session = ort.InferenceSession(
            model_path,
            providers=["CPUExecutionProvider"]
        )
        logger.info(
            f"📋 Modelo ONNX: entradas={[i.name for i in session.get_inputs()]}, "
            f"salidas={[o.name for o in session.get_outputs()]}"
        )
        return cls(session)

    def run(self, tensor: np.ndarray) -> float:
        return self.run_with_shape(tensor)[0]

    def run_with_shape(self, tensor: np.ndarray) -> Tuple[float, list]:
        """Valor escalar y forma de la salida de esta llamada"""
        outputs = self.session.run([self.output_name], {self.input_name: tensor})
        output = np.asarray(outputs[0])
        if output.size == 0:
            raise InferenceError("Model returned an empty output")
        return float(output.reshape(-1)[0]), list(output.shape)


class ModelManager:
    """
    Ciclo de vida del modelo y adaptador de inferencia

    El clasificador se inyecta (o se construye con `classifier_factory`)
    y es de solo lectura una vez cargado, por lo que puede compartirse
    entre solicitudes concurrentes.
    """

    def __init__(
        self,
        model_path: str,
        max_attempts: int = 3,
        retry_delay: float = 2.0,
        inference_timeout: Optional[float] = 10.0,
        classifier_factory: Callable[[str], Any] = OnnxClassifier.from_path,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        classifier: Any = None
    ):
        self.model_path = model_path
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.inference_timeout = inference_timeout
        self.classifier_factory = classifier_factory
        self._sleep = sleep
        self.classifier = classifier
        self.load_attempts = 0
        self.is_loading = False
        self.last_error: Optional[str] = None
        self._executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="inference")

    @property
    def is_loaded(self) -> bool:
        return self.classifier is not None

    # ============================================
    # CARGA DEL MODELO
    # ============================================

    def load_model(self) -> bool:
        """Un intento de carga; registra el error y devuelve False si falla"""
        self.load_attempts += 1
        logger.info(
            f"🔄 Cargando modelo desde {self.model_path} "
            f"(intento {self.load_attempts}/{self.max_attempts})"
        )

        try:
            if not os.path.exists(self.model_path):
                raise FileNotFoundError(f"Model file not found at: {self.model_path}")

            size = os.path.getsize(self.model_path)
            if size == 0:
                raise ValueError("Model file is empty")
            logger.info(f"📊 Archivo del modelo: {size / (1024 * 1024):.2f}MB")

            self.classifier = self.classifier_factory(self.model_path)
            self.last_error = None
            logger.info("✅ Modelo cargado exitosamente")
            return True

        except Exception as e:
            self.last_error = str(e)
            logger.error(f"❌ Intento {self.load_attempts} de carga fallido: {e}")
            return False

    async def initialize(self) -> dict:
        """
        Cargar el modelo con reintentos acotados

        Espera `retry_delay` segundos entre intentos fallidos. Nunca lanza:
        si se agotan los intentos la aplicación sigue sin modelo.
        """
        if self.is_loading:
            logger.info("🔄 Carga del modelo ya en progreso...")
            return self.status()

        self.is_loading = True
        try:
            while not self.is_loaded and self.load_attempts < self.max_attempts:
                if self.load_model():
                    break
                if self.load_attempts < self.max_attempts:
                    logger.info(f"🔄 Reintentando en {self.retry_delay} segundos...")
                    await self._sleep(self.retry_delay)
            if not self.is_loaded:
                logger.error("❌ Todos los intentos de carga fallaron. Funcionando sin modelo.")
        finally:
            self.is_loading = False

        return self.status()

    async def retry_load(self) -> dict:
        """Intento manual adicional, solo si quedan intentos"""
        if self.is_loaded:
            return self.status()
        if self.is_loading:
            logger.info("🔄 Carga del modelo ya en progreso...")
            return self.status()

        if self.load_attempts < self.max_attempts:
            self.is_loading = True
            try:
                self.load_model()
            finally:
                self.is_loading = False
        else:
            logger.warning("⚠️ No se puede reintentar: máximo de intentos alcanzado")

        return self.status()

    def status(self) -> dict:
        return {
            "is_loaded": self.is_loaded,
            "load_attempts": self.load_attempts,
            "max_attempts": self.max_attempts,
            "is_loading": self.is_loading,
            "model_path": self.model_path,
            "model_exists": os.path.exists(self.model_path),
            "last_error": self.last_error
        }

    def close(self) -> None:
        self._executor.shutdown(wait=False)

    # ============================================
    # PREDICCIÓN
    # ============================================

    def _run_inference(self, tensor: np.ndarray) -> Tuple[float, list]:
        if self.inference_timeout is None:
            return self.classifier.run_with_shape(tensor)

        future = self._executor.submit(self.classifier.run_with_shape, tensor)
        try:
            return future.result(timeout=self.inference_timeout)
        except FutureTimeoutError:
            future.cancel()
            raise InferenceTimeoutError(
                f"Inference timed out after {self.inference_timeout}s"
            )

    def predict(self, source: ImageSource) -> PredictionResult:
        """
        Realizar predicción sobre una imagen

        Args:
            source: Ruta o bytes de la imagen

        Returns:
            PredictionResult; si no hay modelo o la inferencia falla se
            devuelve la predicción por defecto marcada

        Raises:
            PreprocessingError: Si la imagen no puede convertirse en tensor
            InvalidTensorError: Si el tensor tiene valores no finitos
        """
        logger.info("🔄 Paso 1: preprocesando imagen...")
        tensor = preprocess_image(source)

        logger.info("🔄 Paso 2: validando tensor...")
        validate_tensor(tensor)

        if not self.is_loaded:
            error = ModelUnavailableError()
            logger.error("❌ Modelo no cargado - usando predicción por defecto")
            return default_prediction(str(error))

        logger.info("🔄 Paso 3: ejecutando inferencia...")
        try:
            start = time.perf_counter()
            raw, output_shape = self._run_inference(tensor)
            inference_ms = round((time.perf_counter() - start) * 1000, 2)
            if not np.isfinite(raw):
                raise InferenceError(f"Model returned a non-finite output: {raw}")
            if not 0.0 <= raw <= 1.0:
                raise InferenceError(f"Model output out of range [0, 1]: {raw}")
        except InferenceError as e:
            logger.error(f"❌ Error en inferencia: {e}")
            return default_prediction(str(e))
        except Exception as e:
            error = InferenceError(str(e) or e.__class__.__name__)
            logger.error(f"❌ Error en inferencia: {error}", exc_info=True)
            return default_prediction(str(error))

        result = interpret_output(raw)
        result.debug = {
            "rawOutput": raw,
            "outputShape": output_shape,
            "inferenceTime": inference_ms
        }

        logger.info(
            f"✅ Predicción: {result.prediction} "
            f"(confianza: {result.confidence:.4f}, {inference_ms}ms)"
        )
        return result
