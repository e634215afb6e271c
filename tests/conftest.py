from __future__ import annotations

import base64
from typing import Iterator

import pytest
from sqlalchemy.pool import StaticPool

from driver_attendance import create_app
from driver_attendance.config import Config
from driver_attendance.extensions import db


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite+pysqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {
        "connect_args": {"check_same_thread": False},
        "poolclass": StaticPool,
    }
    APP_TIMEZONE = "Asia/Dubai"
    APP_URL = "http://attendance.test"
    PHOTO_BASE_URL = "http://attendance.test/photos"
    OVERTIME_THRESHOLD_HOURS = 9
    TREND_WINDOW_DAYS = 30


class FakePhotoStore:
    def __init__(self) -> None:
        self.saved: dict[str, bytes] = {}
        self.fail = False

    def store(self, data: bytes, filename: str) -> str:
        if self.fail:
            raise RuntimeError("photo storage quota exceeded")
        self.saved[filename] = data
        return f"https://photos.test/{filename}"


@pytest.fixture()
def app(tmp_path) -> Iterator:
    class IsolatedConfig(TestConfig):
        PHOTO_STORAGE_DIR = str(tmp_path / "photos")

    app = create_app(IsolatedConfig)
    app.extensions["photo_store"] = FakePhotoStore()
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def photos(app) -> FakePhotoStore:
    return app.extensions["photo_store"]


@pytest.fixture()
def photo_payload() -> str:
    return "data:image/jpeg;base64," + base64.b64encode(b"\xff\xd8\xff\xe0 odometer").decode("ascii")
