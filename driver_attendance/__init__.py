"""Flask application factory."""

from __future__ import annotations

import os

from flask import Flask

from driver_attendance.blueprints.api import bp as api_bp
from driver_attendance.blueprints.main import bp as main_bp
from driver_attendance.commands import register_commands
from driver_attendance.config import Config
from driver_attendance.extensions import db
from driver_attendance.photos import LocalPhotoStore


def create_app(config_object: type[Config] = Config) -> Flask:
    app = Flask(__name__, instance_relative_config=False)
    app.config.from_object(config_object)

    photo_dir = app.config.get("PHOTO_STORAGE_DIR") or os.path.join(app.instance_path, "photos")
    app.config["PHOTO_STORAGE_DIR"] = os.path.abspath(photo_dir)

    db.init_app(app)
    app.extensions["photo_store"] = LocalPhotoStore(app.config["PHOTO_STORAGE_DIR"], app.config["PHOTO_BASE_URL"])

    # Ensure model metadata is loaded for migrations and tests.
    from driver_attendance import models as _models  # noqa: F401

    app.register_blueprint(main_bp)
    app.register_blueprint(api_bp)
    register_commands(app)

    @app.errorhandler(404)
    def not_found(_exc):
        return {"success": False, "error": "Not found."}, 404

    @app.errorhandler(413)
    def payload_too_large(_exc):
        return {"success": False, "error": "Photo is too large."}, 413

    return app
