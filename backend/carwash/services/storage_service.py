# Overview: Image storage for catalog items (local disk, public URLs).

from __future__ import annotations

import logging
import os
import uuid

from flask import current_app
from werkzeug.utils import secure_filename

logger = logging.getLogger(__name__)

ALLOWED_ENTITIES = ("productos", "servicios")


class UploadValidationError(ValueError):
    """Rejected upload (type, size, or destination)."""


def storage_root() -> str:
    folder = current_app.config["UPLOAD_FOLDER"]
    if os.path.isabs(folder):
        return folder
    return os.path.join(current_app.instance_path, folder)


def _stream_size(file_storage) -> int:
    stream = file_storage.stream
    position = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(position)
    return size


def validate_image(file_storage) -> None:
    if file_storage is None or not file_storage.filename:
        raise UploadValidationError("No file provided")

    mimetype = (file_storage.mimetype or "").lower()
    if not mimetype.startswith("image/"):
        raise UploadValidationError("Only image files are allowed")

    max_bytes = current_app.config["MAX_IMAGE_BYTES"]
    if _stream_size(file_storage) > max_bytes:
        raise UploadValidationError(f"Image exceeds the {max_bytes // (1024 * 1024)} MB limit")


def save_image(file_storage, entity: str) -> str:
    """
    Store an image under <entity>/<uuid>.<ext> and return its public URL.
    """
    if entity not in ALLOWED_ENTITIES:
        raise UploadValidationError(f"Unknown upload destination: {entity}")
    validate_image(file_storage)

    _, ext = os.path.splitext(secure_filename(file_storage.filename))
    name = f"{uuid.uuid4().hex}{ext.lower() or '.img'}"

    directory = os.path.join(storage_root(), entity)
    os.makedirs(directory, exist_ok=True)
    file_storage.stream.seek(0)
    file_storage.save(os.path.join(directory, name))
    logger.info("Stored image %s/%s", entity, name)

    return public_url(entity, name)


def public_url(entity: str, name: str) -> str:
    base = current_app.config["PUBLIC_STORAGE_URL"].rstrip("/")
    return f"{base}/{entity}/{name}"
