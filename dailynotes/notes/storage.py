"""Stockage objet des images: disque local, servi sous MEDIA_URL_PREFIX."""
import logging
import os
import time
import uuid

from flask import current_app
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from dailynotes.common.errors import ApiError

log = logging.getLogger(__name__)

def _root() -> str:
    return current_app.config["UPLOAD_FOLDER"]

def public_url(path: str) -> str:
    prefix = current_app.config.get("MEDIA_URL_PREFIX", "/media").rstrip("/")
    return f"{prefix}/{path}"

def _extension(filename: str) -> str:
    name = secure_filename(filename or "")
    ext = name.rsplit(".", 1)[-1].lower() if "." in name else ""
    allowed = current_app.config.get("ALLOWED_IMAGE_EXTENSIONS", ())
    if ext not in allowed:
        raise ApiError(
            "Unsupported image type.", 400, "validation_error",
            details={"filename": filename, "allowed": sorted(allowed)},
        )
    return ext

def save_image(note_id: uuid.UUID, upload: FileStorage) -> tuple[str, str]:
    """Écrit le fichier sous <note_id>/<ms>-<8 hex>.<ext>; renvoie (chemin relatif, URL publique)."""
    if upload is None or not upload.filename:
        raise ApiError("Image file required.", 400, "validation_error")
    ext = _extension(upload.filename)
    path = f"{note_id}/{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}.{ext}"

    target = os.path.join(_root(), *path.split("/"))
    os.makedirs(os.path.dirname(target), exist_ok=True)
    upload.save(target)
    log.info("image_stored", extra={"note_id": str(note_id), "path": path})
    return path, public_url(path)

def delete_image(path: str) -> None:
    # best effort: un fichier déjà absent n'empêche pas la suppression du bloc
    try:
        os.remove(os.path.join(_root(), *path.split("/")))
    except FileNotFoundError:
        log.warning("image_missing", extra={"path": path})
