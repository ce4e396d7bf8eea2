"""
Almacenamiento local de archivos subidos.

Los archivos se guardan en el directorio de uploads (volumen ``/uploads`` en
contenedores) y se sirven por la ruta estática ``/uploads``.
"""
import logging
import os
import secrets
import time
from pathlib import Path
from typing import Iterable, Optional

from fastapi import HTTPException, Request, UploadFile, status

from app.core.config import settings

logger = logging.getLogger(__name__)

IMAGE_TYPES = ("image/png", "image/jpeg", "image/jpg", "image/webp")
IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".webp")

DOCUMENT_TYPES = IMAGE_TYPES + (
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
)
DOCUMENT_EXTENSIONS = IMAGE_EXTENSIONS + (".pdf", ".doc", ".docx")

MB = 1024 * 1024

# Extensión con la que se guarda cada tipo MIME aceptado
EXTENSION_BY_TYPE = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/webp": ".webp",
    "application/pdf": ".pdf",
    "application/msword": ".doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": ".docx",
}


def resolve_upload_dir() -> Path:
    """Directorio de uploads: UPLOAD_DIR, volumen /uploads o ./uploads."""
    volume = Path("/uploads")
    configured = (settings.UPLOAD_DIR or "").strip()
    if configured:
        if configured in ("./uploads", "uploads") and volume.is_dir():
            return volume
        return Path(configured).resolve()
    if volume.is_dir():
        return volume
    return Path.cwd() / "uploads"


def ensure_upload_dir() -> Path:
    upload_dir = resolve_upload_dir()
    upload_dir.mkdir(parents=True, exist_ok=True)
    return upload_dir


def public_base_url(request: Optional[Request]) -> str:
    for configured in (settings.PUBLIC_BASE_URL, settings.API_BASE_URL):
        if configured and configured.strip():
            return configured.strip().rstrip("/")
    if request is None:
        return ""
    proto = request.headers.get("x-forwarded-proto", "").split(",")[0].strip()
    host = request.headers.get("x-forwarded-host", "").split(",")[0].strip()
    if proto and host:
        return f"{proto}://{host}"
    return str(request.base_url).rstrip("/")


def public_url(request: Optional[Request], path: str) -> str:
    return f"{public_base_url(request)}{path}"


def _stored_extension(
    file: UploadFile, types: Iterable[str], extensions: Iterable[str], extension_fallback: bool
) -> Optional[str]:
    """
    Extensión segura para guardar el archivo, o None si no se acepta.

    Con un MIME permitido la extensión sale del MIME, nunca del nombre del cliente.
    """
    content_type = (file.content_type or "").lower()
    if content_type in types:
        return EXTENSION_BY_TYPE.get(content_type, "")
    if extension_fallback and content_type in ("", "application/octet-stream"):
        ext = os.path.splitext(file.filename or "")[1].lower()
        if ext in extensions:
            return ext
    return None


async def save_upload(
    request: Request,
    file: Optional[UploadFile],
    *,
    max_bytes: int,
    types: Iterable[str] = IMAGE_TYPES,
    extensions: Iterable[str] = IMAGE_EXTENSIONS,
    extension_fallback: bool = False,
    prefix: str = "",
) -> dict:
    """
    Valida y guarda un archivo subido.

    Args:
        request: Request actual (para construir la URL pública)
        file: Archivo recibido en multipart
        max_bytes: Tamaño máximo permitido
        types: Tipos MIME permitidos
        extensions: Extensiones aceptadas cuando el MIME no es confiable
        extension_fallback: Aceptar por extensión si el MIME viene vacío
        prefix: Prefijo del nombre del archivo

    Returns:
        dict con filename, path y url
    """
    if file is None or not file.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Archivo requerido")

    ext = _stored_extension(file, types, extensions, extension_fallback)
    if ext is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Tipo de archivo no permitido: {file.content_type or 'desconocido'}"
        )

    content = await file.read()
    if len(content) > max_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"El archivo excede el tamaño máximo de {max_bytes // MB}MB"
        )

    filename = f"{prefix}{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{ext}"
    target = ensure_upload_dir() / filename
    target.write_bytes(content)
    logger.info(f"Archivo guardado: {target} ({len(content)} bytes)")

    path = f"/uploads/{filename}"
    return {"filename": filename, "path": path, "url": public_url(request, path)}
