"""Odometer and drop photo persistence."""

from __future__ import annotations

import base64
import binascii
import re
from pathlib import Path
from typing import Protocol

from flask import current_app
from werkzeug.utils import secure_filename

from driver_attendance.errors import DependencyError, ValidationError


DATA_URI_PREFIX = re.compile(r"^data:image/[\w.+-]+;base64,", re.IGNORECASE)


class PhotoStore(Protocol):
    def store(self, data: bytes, filename: str) -> str:
        """Persist raw image bytes and return a publicly viewable URL."""


class LocalPhotoStore:
    """Writes photos to a directory served back under ``base_url``."""

    def __init__(self, directory: str | Path, base_url: str) -> None:
        self.directory = Path(directory)
        self.base_url = base_url.rstrip("/")

    def store(self, data: bytes, filename: str) -> str:
        safe_name = secure_filename(filename)
        if not safe_name:
            raise DependencyError("Invalid photo filename.")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            (self.directory / safe_name).write_bytes(data)
        except OSError as exc:
            raise DependencyError("Could not save the photo. Please try again.") from exc
        return f"{self.base_url}/{safe_name}"


def decode_photo_payload(payload: str | None, label: str = "Photo") -> bytes:
    """Decode a base64 image, with or without a ``data:image/...;base64,`` prefix."""
    if not payload or not str(payload).strip():
        raise ValidationError(f"{label} is required.")
    cleaned = DATA_URI_PREFIX.sub("", str(payload).strip(), count=1)
    try:
        data = base64.b64decode(cleaned, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError(f"{label} could not be decoded.") from exc
    if not data:
        raise ValidationError(f"{label} is empty.")
    return data


def current_photo_store() -> PhotoStore:
    return current_app.extensions["photo_store"]


def save_photo(payload: str | None, filename: str, label: str = "Photo") -> str:
    data = decode_photo_payload(payload, label)
    try:
        return current_photo_store().store(data, filename)
    except DependencyError:
        raise
    except Exception as exc:
        raise DependencyError(f"Could not save the photo: {exc}") from exc
