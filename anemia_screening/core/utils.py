"""
Utilidades del core
Funciones helper para validación y gestión de archivos subidos
"""

import random
import re
import string
from datetime import datetime
from pathlib import Path
from typing import Optional
from fastapi import UploadFile, HTTPException, status
import logging

from anemia_screening.ai import UnsupportedFileError, validate_upload
from anemia_screening.config import settings

logger = logging.getLogger(__name__)


# ============================================
# CONFIGURACIÓN
# ============================================

ORIGINALS_SUBFOLDER = "originals"


def upload_root() -> Path:
    return Path(settings.upload_folder)


def init_folders():
    """Crear carpetas necesarias si no existen"""
    (upload_root() / ORIGINALS_SUBFOLDER).mkdir(parents=True, exist_ok=True)
    logger.info("📁 Carpetas de upload inicializadas")


# ============================================
# VALIDACIÓN DE IMÁGENES
# ============================================

async def read_upload(file: Optional[UploadFile]) -> bytes:
    """
    Leer y validar un archivo subido

    Verifica nombre, content-type, extensión y tamaño antes de
    cualquier decodificación.

    Args:
        file: Archivo recibido

    Returns:
        bytes: Contenido del archivo

    Raises:
        HTTPException: 400 con la lista de errores si la validación falla
    """
    if not file:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No file uploaded."
        )

    try:
        image_bytes = await file.read()
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error reading file: {str(e)}"
        )

    try:
        validate_upload(
            file.filename,
            file.content_type,
            len(image_bytes),
            min_size=settings.min_upload_size,
            max_size=settings.max_upload_size
        )
    except UnsupportedFileError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"errors": e.errors}
        )

    logger.info(
        f"✅ Archivo validado: {file.filename} ({file.content_type}, "
        f"{len(image_bytes) / 1024:.2f}KB)"
    )
    return image_bytes


# ============================================
# GESTIÓN DE ARCHIVOS
# ============================================

def sanitize_filename(filename: str) -> str:
    """
    Sanitizar nombre de archivo

    Remueve caracteres peligrosos y espacios
    """
    # Remover caracteres peligrosos
    filename = re.sub(r'[^\w\s\-\.]', '', filename)
    # Reemplazar espacios por guiones bajos
    filename = re.sub(r'\s+', '_', filename)
    # Remover múltiples puntos
    filename = re.sub(r'\.+', '.', filename)

    return filename.lower()


def save_upload(image_bytes: bytes, filename: str, code: str) -> str:
    """
    Guardar imagen aceptada en disco

    Args:
        image_bytes: Contenido de la imagen
        filename: Nombre original (solo se usa la extensión)
        code: Código de la evaluación

    Returns:
        str: Ruta relativa desde la carpeta de uploads
    """
    extension = Path(filename).suffix.lower()
    name = sanitize_filename(f"eyelid-{code}{extension}")
    file_path = upload_root() / ORIGINALS_SUBFOLDER / name

    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_bytes(image_bytes)
    logger.info(f"💾 Archivo guardado: {file_path}")

    return str(file_path.relative_to(upload_root()))


def get_file_path(relative_path: str) -> Path:
    """Obtener ruta completa de un archivo subido"""
    return upload_root() / relative_path


def delete_file(relative_path: str) -> bool:
    """
    Eliminar un archivo

    Returns:
        bool: True si se eliminó correctamente
    """
    try:
        file_path = get_file_path(relative_path)

        if file_path.exists():
            file_path.unlink()
            logger.info(f"🗑️ Archivo eliminado: {file_path}")
            return True
        else:
            logger.warning(f"⚠️ Archivo no existe: {file_path}")
            return False

    except OSError as e:
        logger.error(f"❌ Error eliminando archivo: {e}")
        return False


# ============================================
# CÓDIGO DE EVALUACIÓN
# ============================================

def generate_assessment_code() -> str:
    """
    Generar código de evaluación

    Formato: YYYYMMDD-XXXX
    Donde XXXX son 4 caracteres alfanuméricos aleatorios
    """
    fecha = datetime.now().strftime("%Y%m%d")

    chars = string.ascii_uppercase + string.digits
    random_part = ''.join(random.choices(chars, k=4))

    return f"{fecha}-{random_part}"
