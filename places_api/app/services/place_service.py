"""
Business logic for places.

Every place row has an entry in its creator's ordered ``user_places``
collection, and every entry points at an existing place.  ``create_place``
and ``delete_place`` change both tables and therefore run inside a
single ``transaction()``; if any statement fails the transaction is
rolled back by the store and nothing is left half written.
``update_place`` only touches the ``places`` table but still reads and
writes inside one transaction so the ownership check cannot go stale.

Ownership is checked against the ``CurrentUser`` passed in by the
endpoint.  Removal of a deleted place's image is left to the caller,
which schedules it once the transaction has committed.
"""

import logging
import sqlite3
from typing import List

from fastapi.concurrency import run_in_threadpool

from ..core.db import get_connection, new_id, transaction
from ..core.errors import (
    CreateFailed,
    DeleteFailed,
    Forbidden,
    LookupFailed,
    NoPlacesFound,
    PlaceNotFound,
    StoreUnavailable,
    UpdateFailed,
    UserLookupFailed,
    UserNotFound,
)
from ..core.geocoding import GeoResolver
from ..core.security import CurrentUser
from ..schemas.place import Location, PlaceCreate, PlaceRead, PlaceUpdate


logger = logging.getLogger(__name__)

PLACE_COLUMNS = "id, title, description, address, lat, lng, image, creator_id"


def _row_to_place(row: sqlite3.Row) -> PlaceRead:
    return PlaceRead(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        address=row["address"],
        location=Location(lat=row["lat"], lng=row["lng"]),
        image=row["image"],
        creator=row["creator_id"],
    )


class PlaceService:
    """Сервис для работы с местами (places).

    Reads use a fresh connection each; writes that involve the owner's
    place list go through the unit of work in ``core.db``.
    """

    @staticmethod
    def _fetch_place(conn: sqlite3.Connection, place_id: str) -> sqlite3.Row | None:
        return conn.execute(
            f"SELECT {PLACE_COLUMNS} FROM places WHERE id = ?", (place_id,)
        ).fetchone()

    @staticmethod
    def _insert_place(conn: sqlite3.Connection, place: PlaceRead) -> None:
        conn.execute(
            """
            INSERT INTO places (id, title, description, address, lat, lng, image, creator_id)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                place.id,
                place.title,
                place.description,
                place.address,
                place.location.lat,
                place.location.lng,
                place.image,
                place.creator,
            ),
        )

    @staticmethod
    def _append_to_owner(conn: sqlite3.Connection, user_id: str, place_id: str) -> None:
        conn.execute(
            """
            INSERT INTO user_places (user_id, place_id, position)
            VALUES (?, ?, (SELECT COALESCE(MAX(position), -1) + 1 FROM user_places WHERE user_id = ?))
            """,
            (user_id, place_id, user_id),
        )

    @staticmethod
    def _remove_from_owner(conn: sqlite3.Connection, user_id: str, place_id: str) -> None:
        conn.execute(
            "DELETE FROM user_places WHERE user_id = ? AND place_id = ?",
            (user_id, place_id),
        )

    @staticmethod
    def _update_fields(conn: sqlite3.Connection, place_id: str, data: PlaceUpdate) -> int:
        return conn.execute(
            """
            UPDATE places SET title = ?, description = ?, updated_at = CURRENT_TIMESTAMP
            WHERE id = ?
            """,
            (data.title, data.description, place_id),
        ).rowcount

    @classmethod
    async def get_place(cls, place_id: str) -> PlaceRead:
        """Return a single place.

        Raises ``PlaceNotFound`` if there is no such place and
        ``StoreUnavailable`` if the lookup itself fails.
        """
        try:
            conn = get_connection()
            try:
                row = cls._fetch_place(conn, place_id)
            finally:
                conn.close()
        except sqlite3.Error as exc:
            logger.exception("Looking up place %s failed", place_id)
            raise StoreUnavailable() from exc
        if row is None:
            raise PlaceNotFound()
        return _row_to_place(row)

    @classmethod
    async def list_places_for_user(cls, user_id: str) -> List[PlaceRead]:
        """Return the places of ``user_id`` in the order they were added.

        The list is read through the user's ``user_places`` collection.
        A missing user raises ``UserNotFound``; a user without places
        raises ``NoPlacesFound``.
        """
        try:
            conn = get_connection()
            try:
                user = conn.execute("SELECT id FROM users WHERE id = ?", (user_id,)).fetchone()
                rows = []
                if user is not None:
                    rows = conn.execute(
                        """
                        SELECT p.id, p.title, p.description, p.address, p.lat, p.lng, p.image, p.creator_id
                        FROM user_places up
                        JOIN places p ON p.id = up.place_id
                        WHERE up.user_id = ?
                        ORDER BY up.position
                        """,
                        (user_id,),
                    ).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as exc:
            logger.exception("Fetching places for user %s failed", user_id)
            raise StoreUnavailable("Fetching places failed, please try again later.") from exc
        if user is None:
            raise UserNotFound()
        if not rows:
            raise NoPlacesFound()
        return [_row_to_place(row) for row in rows]

    @classmethod
    async def create_place(
        cls,
        data: PlaceCreate,
        image: str,
        current_user: CurrentUser,
        geocoder: GeoResolver,
    ) -> PlaceRead:
        """Create a place owned by ``current_user``.

        The address is geocoded before anything is written; a
        ``GeocodingError`` therefore leaves the store untouched.  The
        place row and the owner's list entry are written in one
        transaction.
        """
        location = await run_in_threadpool(geocoder.resolve, data.address)

        place = PlaceRead(
            id=new_id(),
            title=data.title,
            description=data.description,
            address=data.address,
            location=location,
            image=image,
            creator=current_user.user_id,
        )

        try:
            conn = get_connection()
            try:
                user = conn.execute(
                    "SELECT id FROM users WHERE id = ?", (current_user.user_id,)
                ).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as exc:
            logger.exception("Loading creator %s failed", current_user.user_id)
            raise UserLookupFailed() from exc
        if user is None:
            raise UserNotFound()

        try:
            with transaction() as conn:
                cls._insert_place(conn, place)
                cls._append_to_owner(conn, current_user.user_id, place.id)
        except sqlite3.Error as exc:
            logger.exception("Creating place for user %s failed", current_user.user_id)
            raise CreateFailed() from exc

        logger.info("User %s created place %s", current_user.user_id, place.id)
        return place

    @classmethod
    async def update_place(
        cls,
        place_id: str,
        data: PlaceUpdate,
        current_user: CurrentUser,
    ) -> PlaceRead:
        """Change the title and description of a place.

        Only the creator may update a place.  Existence is checked
        before ownership so a missing place is reported as
        ``PlaceNotFound`` rather than ``Forbidden``.  The check and the
        write share one transaction, so the place cannot disappear in
        between.
        """
        try:
            with transaction() as conn:
                try:
                    row = cls._fetch_place(conn, place_id)
                except sqlite3.Error as exc:
                    logger.exception("Loading place %s for update failed", place_id)
                    raise LookupFailed() from exc
                if row is None:
                    raise PlaceNotFound()
                if row["creator_id"] != current_user.user_id:
                    logger.info("User %s may not edit place %s", current_user.user_id, place_id)
                    raise Forbidden()
                if cls._update_fields(conn, place_id, data) == 0:
                    raise PlaceNotFound()
        except sqlite3.Error as exc:
            logger.exception("Updating place %s failed", place_id)
            raise UpdateFailed() from exc

        logger.info("User %s updated place %s", current_user.user_id, place_id)
        place = _row_to_place(row)
        return place.model_copy(update={"title": data.title, "description": data.description})

    @classmethod
    async def delete_place(cls, place_id: str, current_user: CurrentUser) -> PlaceRead:
        """Delete a place and remove it from its creator's place list.

        The lookup, the ownership check and both deletions run in one
        transaction.  Returns the deleted place so the caller can clean
        up its image after this method returns.
        """
        try:
            with transaction() as conn:
                try:
                    row = cls._fetch_place(conn, place_id)
                    creator = None
                    if row is not None:
                        creator = conn.execute(
                            "SELECT id FROM users WHERE id = ?", (row["creator_id"],)
                        ).fetchone()
                except sqlite3.Error as exc:
                    logger.exception("Loading place %s for deletion failed", place_id)
                    raise LookupFailed("Something went wrong, could not delete place.") from exc
                if row is None:
                    raise PlaceNotFound("Could not find a place for this id.")
                if creator is None or creator["id"] != current_user.user_id:
                    logger.info("User %s may not delete place %s", current_user.user_id, place_id)
                    raise Forbidden("You are not allowed to delete this place.")

                deleted = conn.execute("DELETE FROM places WHERE id = ?", (place_id,)).rowcount
                if deleted == 0:
                    raise PlaceNotFound("Could not find a place for this id.")
                cls._remove_from_owner(conn, creator["id"], place_id)
        except sqlite3.Error as exc:
            logger.exception("Deleting place %s failed", place_id)
            raise DeleteFailed() from exc

        logger.info("User %s deleted place %s", current_user.user_id, place_id)
        return _row_to_place(row)
