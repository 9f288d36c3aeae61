"""
Business logic for users.

Users sign up with a name, email, password and an avatar image and
log in with email and password.  Both operations return an access
token whose subject is the user id; that id is what the place
endpoints receive as the authenticated identity.
"""

import logging
import sqlite3
from typing import List

from ..core.db import get_connection, new_id
from ..core.errors import InvalidCredentials, LoginFailed, SignupFailed, StoreError, UserExists
from ..core.security import create_access_token, hash_password, verify_password
from ..schemas.user import AuthResponse, UserCreate, UserRead


logger = logging.getLogger(__name__)


class UserService:
    """Сервис для работы с пользователями.

    Пароли хранятся в виде PBKDF2‑хеша; в ответах API они не
    возвращаются.
    """

    @classmethod
    async def list_users(cls) -> List[UserRead]:
        """Return all users together with the ids of their places."""
        try:
            conn = get_connection()
            try:
                users = conn.execute(
                    "SELECT id, name, email, image FROM users ORDER BY created_at, id"
                ).fetchall()
                links = conn.execute(
                    "SELECT user_id, place_id FROM user_places ORDER BY user_id, position"
                ).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as exc:
            logger.exception("Fetching users failed")
            raise StoreError("Fetching users failed, please try again later.") from exc

        places_by_user: dict[str, list[str]] = {}
        for link in links:
            places_by_user.setdefault(link["user_id"], []).append(link["place_id"])
        return [
            UserRead(
                id=row["id"],
                name=row["name"],
                email=row["email"],
                image=row["image"],
                places=places_by_user.get(row["id"], []),
            )
            for row in users
        ]

    @classmethod
    async def signup(cls, data: UserCreate, image: str) -> AuthResponse:
        """Register a new user and return an access token for it.

        Raises ``UserExists`` if the email is already registered.
        """
        logger.info("Registering user %s", data.email)
        user_id = new_id()
        try:
            conn = get_connection()
            try:
                existing = conn.execute(
                    "SELECT id FROM users WHERE email = ?", (data.email,)
                ).fetchone()
                if existing:
                    raise UserExists()
                conn.execute(
                    "INSERT INTO users (id, name, email, password, image) VALUES (?, ?, ?, ?, ?)",
                    (user_id, data.name, data.email, hash_password(data.password), image),
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.IntegrityError as exc:
            # Lost a race with a concurrent signup for the same email.
            raise UserExists() from exc
        except sqlite3.Error as exc:
            logger.exception("Signing up %s failed", data.email)
            raise SignupFailed() from exc

        token = create_access_token({"sub": user_id, "email": data.email})
        return AuthResponse(userId=user_id, email=data.email, token=token)

    @classmethod
    async def login(cls, email: str, password: str) -> AuthResponse:
        """Authenticate by email and password.

        Raises ``InvalidCredentials`` for an unknown email or a wrong
        password; the two cases are not distinguished.
        """
        email = email.strip().lower()
        try:
            conn = get_connection()
            try:
                row = conn.execute(
                    "SELECT id, email, password FROM users WHERE email = ?", (email,)
                ).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as exc:
            logger.exception("Logging in %s failed", email)
            raise LoginFailed() from exc

        if not row or not verify_password(password, row["password"]):
            logger.info("Rejected login for %s", email)
            raise InvalidCredentials()

        token = create_access_token({"sub": row["id"], "email": row["email"]})
        return AuthResponse(userId=row["id"], email=row["email"], token=token)
