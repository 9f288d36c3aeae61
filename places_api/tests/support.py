"""Shared fixtures for the test-suite."""

import os
import tempfile
import unittest
from unittest.mock import patch

from places_api.app.core.config import settings
from places_api.app.core.db import get_connection, get_cursor, init_db, new_id
from places_api.app.core.errors import GeocodingError
from places_api.app.core.security import CurrentUser, hash_password
from places_api.app.schemas.place import Location


GOOGLEPLEX = Location(lat=37.42, lng=-122.08)

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


class FakeGeocoder:
    """Resolver returning a fixed location, or raising when ``fail`` is set."""

    def __init__(self, location: Location = GOOGLEPLEX, fail: bool = False):
        self.location = location
        self.fail = fail
        self.calls: list[str] = []

    def resolve(self, address: str) -> Location:
        self.calls.append(address)
        if self.fail:
            raise GeocodingError()
        return self.location


class TemporaryStoreMixin:
    """Points the settings at a fresh database and upload directory."""

    def setUp(self):
        super().setUp()
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.tmp_dir = tmp.name
        self.upload_dir = os.path.join(tmp.name, "uploads", "images")
        for name, value in (
            ("database_url", os.path.join(tmp.name, "places-test.db")),
            ("upload_dir", self.upload_dir),
            ("google_api_key", ""),
        ):
            patcher = patch.object(settings, name, value)
            patcher.start()
            self.addCleanup(patcher.stop)
        init_db()

    def create_user(self, name: str = "Max", email: str = "max@example.com") -> CurrentUser:
        user_id = new_id()
        with get_cursor() as cursor:
            cursor.execute(
                "INSERT INTO users (id, name, email, password, image) VALUES (?, ?, ?, ?, ?)",
                (user_id, name, email, hash_password("secret1"), "uploads/images/avatar.png"),
            )
        return CurrentUser(user_id=user_id, email=email)

    def count(self, table: str) -> int:
        conn = get_connection()
        try:
            return conn.execute(f"SELECT COUNT(*) AS n FROM {table}").fetchone()["n"]
        finally:
            conn.close()

    def owner_place_ids(self, user_id: str) -> list[str]:
        conn = get_connection()
        try:
            rows = conn.execute(
                "SELECT place_id FROM user_places WHERE user_id = ? ORDER BY position",
                (user_id,),
            ).fetchall()
            return [row["place_id"] for row in rows]
        finally:
            conn.close()


class StoreTestCase(TemporaryStoreMixin, unittest.IsolatedAsyncioTestCase):
    pass
