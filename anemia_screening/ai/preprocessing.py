"""
Preprocesamiento de imágenes de párpado
Convierte una imagen arbitraria en el tensor [1, 3, 224, 224] que espera el modelo
"""

import io
import logging
from pathlib import Path
from typing import List, Optional, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from .exceptions import InvalidTensorError, PreprocessingError, UnsupportedFileError

logger = logging.getLogger(__name__)


# ============================================
# CONFIGURACIÓN
# ============================================

IMAGE_SIZE = 224
NUM_CHANNELS = 3
PIXELS_PER_CHANNEL = IMAGE_SIZE * IMAGE_SIZE  # 50176
TENSOR_LENGTH = NUM_CHANNELS * PIXELS_PER_CHANNEL  # 150528
TENSOR_SHAPE = (1, NUM_CHANNELS, IMAGE_SIZE, IMAGE_SIZE)

# Estadísticas de ImageNet, idénticas a las del entrenamiento
IMAGENET_MEAN = (0.485, 0.456, 0.406)
IMAGENET_STD = (0.229, 0.224, 0.225)

MIN_FILE_SIZE = 1024  # 1KB
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
MAX_IMAGE_WIDTH = 10000
MAX_IMAGE_HEIGHT = 10000

ALLOWED_CONTENT_TYPES = {
    'image/jpeg': {'.jpg', '.jpeg'},
    'image/jpg': {'.jpg', '.jpeg'},
    'image/png': {'.png'},
    'image/gif': {'.gif'},
    'image/webp': {'.webp'},
}
ALLOWED_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.gif', '.webp'}

ImageSource = Union[str, Path, bytes, bytearray]


# ============================================
# VALIDACIÓN DE ARCHIVOS
# ============================================

def validate_upload(
    filename: Optional[str],
    content_type: Optional[str],
    size: int,
    min_size: int = MIN_FILE_SIZE,
    max_size: int = MAX_FILE_SIZE
) -> None:
    """
    Validar un archivo antes de cualquier procesamiento

    No decodifica la imagen ni construye ningún tensor.

    Args:
        filename: Nombre original del archivo
        content_type: MIME type declarado
        size: Tamaño en bytes
        min_size: Tamaño mínimo permitido
        max_size: Tamaño máximo permitido

    Raises:
        UnsupportedFileError: Con la lista de todas las restricciones violadas
    """
    errors: List[str] = []

    if size > max_size:
        errors.append(f"File size exceeds {max_size // (1024 * 1024)}MB limit")
    if size < min_size:
        errors.append(f"File size too small (minimum {min_size // 1024}KB)")

    content_type = (content_type or "").lower()
    if content_type not in ALLOWED_CONTENT_TYPES:
        errors.append("Invalid file type. Please upload JPEG, PNG, GIF, or WebP images only.")

    if not filename:
        errors.append("File has no name")
    else:
        extension = Path(filename).suffix.lower()
        if extension not in ALLOWED_EXTENSIONS:
            errors.append("Invalid file extension")
        elif content_type in ALLOWED_CONTENT_TYPES and extension not in ALLOWED_CONTENT_TYPES[content_type]:
            errors.append(f"File extension '{extension}' does not match type '{content_type}'")

    if errors:
        logger.warning(f"⚠️ Archivo rechazado ({filename}): {errors}")
        raise UnsupportedFileError(errors)


# ============================================
# PIPELINE
# ============================================

def load_image(source: ImageSource) -> Image.Image:
    """
    Decodificar una imagen desde ruta o bytes

    Las dimensiones se verifican con la cabecera, antes de decodificar
    los píxeles.

    Raises:
        PreprocessingError: Si la imagen está corrupta o excede
            MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT
    """
    try:
        if isinstance(source, (bytes, bytearray)):
            image = Image.open(io.BytesIO(source))
        else:
            image = Image.open(source)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise PreprocessingError(f"Could not decode image: {e}") from e

    width, height = image.size
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        image.close()
        raise PreprocessingError(
            f"Image too large ({width}x{height}px). "
            f"Maximum dimensions: {MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT}px"
        )

    try:
        image.load()
    except (Image.DecompressionBombError, OSError, ValueError) as e:
        raise PreprocessingError(f"Could not decode image: {e}") from e

    logger.debug(
        f"📊 Imagen original: {image.width}x{image.height}, "
        f"formato: {image.format}, modo: {image.mode}"
    )
    return image


def to_rgb_buffer(image: Image.Image) -> np.ndarray:
    """
    Redimensionar a 224x224 (sin conservar proporción) y descartar alfa

    Returns:
        Array uint8 en formato HWC

    Raises:
        PreprocessingError: Si el buffer no tiene 224*224*3 bytes
    """
    if image.mode != 'RGB':
        # El canal alfa se descarta, no se compone sobre un fondo
        image = image.convert('RGB')

    resized = image.resize((IMAGE_SIZE, IMAGE_SIZE), resample=Image.BILINEAR)
    buffer = np.asarray(resized, dtype=np.uint8)

    expected = IMAGE_SIZE * IMAGE_SIZE * NUM_CHANNELS
    if buffer.size != expected:
        raise PreprocessingError(
            f"Buffer size mismatch: expected {expected}, got {buffer.size}"
        )

    return buffer.reshape(IMAGE_SIZE, IMAGE_SIZE, NUM_CHANNELS)


def normalize(rgb: np.ndarray) -> np.ndarray:
    """
    Normalizar por canal y reordenar HWC -> NCHW

    El índice plano del píxel i en el canal c es c * 50176 + i.
    """
    mean = np.array(IMAGENET_MEAN, dtype=np.float64)
    std = np.array(IMAGENET_STD, dtype=np.float64)

    normalized = (rgb.astype(np.float64) / 255.0 - mean) / std
    chw = normalized.transpose(2, 0, 1).astype(np.float32)

    return np.ascontiguousarray(chw.reshape(TENSOR_SHAPE))


def validate_tensor(tensor: np.ndarray) -> None:
    """
    Verificar longitud y que todos los valores sean finitos

    Raises:
        InvalidTensorError: Si el tensor no puede pasarse al modelo
    """
    if tensor is None or tensor.size != TENSOR_LENGTH:
        size = None if tensor is None else tensor.size
        raise InvalidTensorError(
            f"Invalid input tensor: expected {TENSOR_LENGTH} values, got {size}"
        )

    invalid = int(np.count_nonzero(~np.isfinite(tensor)))
    if invalid:
        logger.error(f"❌ {invalid} valores inválidos en el tensor")
        raise InvalidTensorError("Input tensor contains NaN or infinite values")


def tensor_stats(tensor: np.ndarray) -> dict:
    """Estadísticas por canal para depuración"""
    channels = tensor.reshape(NUM_CHANNELS, PIXELS_PER_CHANNEL)
    return {
        name: {
            "min": round(float(channel.min()), 4),
            "max": round(float(channel.max()), 4),
            "mean": round(float(channel.mean()), 4),
        }
        for name, channel in zip(("R", "G", "B"), channels)
    }


def preprocess_image(source: ImageSource) -> np.ndarray:
    """
    Pipeline completo: decodificar -> redimensionar -> RGB -> normalizar -> NCHW

    Args:
        source: Ruta o bytes de la imagen

    Returns:
        Tensor float32 de forma (1, 3, 224, 224)

    Raises:
        PreprocessingError: Si la imagen no se puede decodificar o redimensionar
    """
    image = load_image(source)
    rgb = to_rgb_buffer(image)
    tensor = normalize(rgb)

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(f"📊 Tensor normalizado: {tensor_stats(tensor)}")

    return tensor
