"""General routes."""

from __future__ import annotations

from flask import Blueprint, current_app, send_from_directory


bp = Blueprint("main", __name__)


@bp.get("/health")
def health():
    return {"status": "ok"}, 200


@bp.get("/photos/<path:filename>")
def photo(filename: str):
    return send_from_directory(current_app.config["PHOTO_STORAGE_DIR"], filename)
