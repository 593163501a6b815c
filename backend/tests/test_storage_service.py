"""
Image storage tests (local disk under UPLOAD_FOLDER).
"""

import os
from io import BytesIO

import pytest
from werkzeug.datastructures import FileStorage

from carwash.services import storage_service
from carwash.services.storage_service import UploadValidationError


def _upload(data=b"\xff\xd8 jpeg", filename="auto.JPG", content_type="image/jpeg"):
    return FileStorage(stream=BytesIO(data), filename=filename, content_type=content_type)


def test_save_image_writes_under_entity_folder(app):
    url = storage_service.save_image(_upload(), "servicios")

    assert url.startswith("/uploads/servicios/")
    assert url.endswith(".jpg")
    name = url.rsplit("/", 1)[1]
    with open(os.path.join(storage_service.storage_root(), "servicios", name), "rb") as fh:
        assert fh.read() == b"\xff\xd8 jpeg"


def test_names_are_unique(app):
    assert storage_service.save_image(_upload(), "productos") != storage_service.save_image(_upload(), "productos")


def test_unsafe_filename_is_not_used(app):
    url = storage_service.save_image(_upload(filename="../../etc/passwd.png", content_type="image/png"), "productos")
    assert "passwd" not in url
    assert ".." not in url


@pytest.mark.parametrize(
    "upload",
    [
        None,
        _upload(filename=""),
        _upload(content_type="text/plain"),
    ],
)
def test_rejects_invalid_uploads(app, upload):
    with pytest.raises(UploadValidationError):
        storage_service.save_image(upload, "productos")


def test_rejects_unknown_destination(app):
    with pytest.raises(UploadValidationError):
        storage_service.save_image(_upload(), "usuarios")


def test_size_limit(app, monkeypatch):
    monkeypatch.setitem(app.config, "MAX_IMAGE_BYTES", 1024 * 1024)
    with pytest.raises(UploadValidationError, match="1 MB"):
        storage_service.validate_image(_upload(data=b"x" * (1024 * 1024 + 1)))

    storage_service.validate_image(_upload(data=b"x" * (1024 * 1024)))
