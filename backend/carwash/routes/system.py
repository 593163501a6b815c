# Overview: Flask API routes for system operations; health check and uploaded files.

from flask import Blueprint, jsonify, send_from_directory
from sqlalchemy import text

from ..extensions import db
from ..services import storage_service
from carwash.time_utils import utcnow, to_utc_z


system_bp = Blueprint("system", __name__)


@system_bp.get("/api/health")
def health():
    db.session.execute(text("SELECT 1"))
    return jsonify({"status": "ok", "time": to_utc_z(utcnow())})


@system_bp.get("/uploads/<path:filename>")
def uploaded_file(filename: str):
    return send_from_directory(storage_service.storage_root(), filename)
