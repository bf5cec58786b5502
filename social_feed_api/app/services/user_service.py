"""
Business logic for users.

The ``UserService`` manages account lifecycle (signup, login, profile
edits) and the follower graph.  Each follow relationship is a single
row in the ``follows`` table, so a user's ``followers`` and
``following`` lists are two views of the same edges and can never get
out of step.  Toggling a follow is one conditional delete or insert
inside one transaction.
"""

import logging
import sqlite3

from pydantic import validate_email

from social_feed_api.app.core.db import get_connection, is_object_id, new_id, utcnow
from social_feed_api.app.core.errors import (
    AuthError,
    ConflictError,
    NotFoundError,
    UnexpectedError,
    ValidationError,
)
from social_feed_api.app.core.image_store import ImageStore, ImageStoreError, discard_image
from social_feed_api.app.core.security import hash_password, verify_password
from ..schemas.user import UserCreate, UserLogin, UserRead, UserUpdate


logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid username or password"

_USER_COLUMNS = "id, name, email, username, profile_pic, bio, created_at"


def _read_user(cursor: sqlite3.Cursor, row: sqlite3.Row) -> UserRead:
    """Build the public view of a user row, including both follow lists."""
    followers = [
        r["follower_id"]
        for r in cursor.execute(
            "SELECT follower_id FROM follows WHERE followee_id = ? ORDER BY created_at",
            (row["id"],),
        ).fetchall()
    ]
    following = [
        r["followee_id"]
        for r in cursor.execute(
            "SELECT followee_id FROM follows WHERE follower_id = ? ORDER BY created_at",
            (row["id"],),
        ).fetchall()
    ]
    return UserRead(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        username=row["username"],
        profile_pic=row["profile_pic"],
        bio=row["bio"],
        followers=followers,
        following=following,
        created_at=row["created_at"],
    )


def _check_email(email: str) -> str:
    try:
        _, normalized = validate_email(email)
    except ValueError:
        raise ValidationError("Invalid email address")
    return normalized


class UserService:
    """Service for accounts and the follower graph."""

    @classmethod
    async def signup(cls, data: UserCreate) -> UserRead:
        """Register a new user and return its public view.

        All four fields are required and the email must be well formed.
        Signing up with an email or username that is already taken
        raises ``ConflictError`` without creating a record.
        """
        if not (data.name and data.email and data.username and data.password):
            raise ValidationError("Name, email, username and password are required")
        email = _check_email(data.email)
        conn = get_connection()
        try:
            cursor = conn.cursor()
            existing = cursor.execute(
                "SELECT id FROM users WHERE email = ? OR username = ?",
                (email, data.username),
            ).fetchone()
            if existing:
                raise ConflictError("User already exists")
            user_id = new_id()
            now = utcnow()
            try:
                cursor.execute(
                    "INSERT INTO users (id, name, email, username, password, created_at, updated_at) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?)",
                    (user_id, data.name, email, data.username, hash_password(data.password), now, now),
                )
            except sqlite3.IntegrityError:
                # lost a race with a concurrent signup for the same email/username
                raise ConflictError("User already exists")
            conn.commit()
            logger.info("Registered user %s (%s)", data.username, user_id)
            row = cursor.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (user_id,)).fetchone()
            return _read_user(cursor, row)
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @classmethod
    async def login(cls, data: UserLogin) -> UserRead:
        """Authenticate by username and password.

        Unknown usernames and wrong passwords produce the same
        ``AuthError`` so that callers cannot probe which accounts exist.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = cursor.execute(
                f"SELECT {_USER_COLUMNS}, password FROM users WHERE username = ?",
                (data.username or "",),
            ).fetchone()
            if not row or not verify_password(data.password or "", row["password"]):
                logger.info("Failed login for username %r", data.username)
                raise AuthError(INVALID_CREDENTIALS)
            logger.info("User %s logged in", row["id"])
            return _read_user(cursor, row)
        finally:
            conn.close()

    @classmethod
    async def follow_unfollow(cls, current_user: dict, target_id: str) -> str:
        """Toggle whether ``current_user`` follows ``target_id``.

        Returns ``"followed"`` or ``"unfollowed"``.  Self-follows are
        rejected before any lookup.
        """
        user_id = current_user.get("id")
        if target_id == user_id:
            raise ValidationError("You cannot follow/unfollow yourself")
        conn = get_connection()
        try:
            cursor = conn.cursor()
            target = cursor.execute("SELECT id FROM users WHERE id = ?", (target_id,)).fetchone()
            if not target:
                raise NotFoundError("User not found")
            cursor.execute(
                "DELETE FROM follows WHERE follower_id = ? AND followee_id = ?",
                (user_id, target_id),
            )
            if cursor.rowcount:
                action = "unfollowed"
            else:
                cursor.execute(
                    "INSERT OR IGNORE INTO follows (follower_id, followee_id, created_at) VALUES (?, ?, ?)",
                    (user_id, target_id, utcnow()),
                )
                action = "followed"
            conn.commit()
            logger.info("User %s %s user %s", user_id, action, target_id)
            return action
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @classmethod
    async def get_user_profile(cls, query: str) -> UserRead:
        """Look a user up by identifier, or by username otherwise.

        A username that happens to look like an identifier is still found
        once the identifier lookup misses.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = None
            if is_object_id(query):
                row = cursor.execute(
                    f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (query,)
                ).fetchone()
            if not row:
                row = cursor.execute(
                    f"SELECT {_USER_COLUMNS} FROM users WHERE username = ?", (query,)
                ).fetchone()
            if not row:
                raise NotFoundError("User not found")
            return _read_user(cursor, row)
        finally:
            conn.close()

    @classmethod
    async def update_user(
        cls,
        current_user: dict,
        user_id: str,
        data: UserUpdate,
        image_store: ImageStore,
    ) -> UserRead:
        """Edit the caller's own profile.

        A new password is hashed before storage.  A new profile picture
        is uploaded to the image store; the previous one is removed only
        after the change is committed, and the new one is removed again
        if the change fails.  Replies written earlier keep the username
        and picture they were written with.
        """
        if user_id != current_user.get("id"):
            raise AuthError("You cannot update other user's profile")
        uploaded = ""
        committed = False
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = cursor.execute(
                f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (user_id,)
            ).fetchone()
            if not row:
                raise NotFoundError("User not found")

            updates = {}
            if data.name:
                updates["name"] = data.name
            if data.email and data.email != row["email"]:
                updates["email"] = _check_email(data.email)
            if data.username and data.username != row["username"]:
                updates["username"] = data.username
            if data.password:
                updates["password"] = hash_password(data.password)
            if data.bio is not None:
                updates["bio"] = data.bio

            if "email" in updates or "username" in updates:
                clash = cursor.execute(
                    "SELECT id FROM users WHERE id != ? AND (email = ? OR username = ?)",
                    (user_id, updates.get("email", row["email"]), updates.get("username", row["username"])),
                ).fetchone()
                if clash:
                    raise ConflictError("User already exists")

            if data.profile_pic and data.profile_pic != row["profile_pic"]:
                try:
                    uploaded = image_store.upload(data.profile_pic)
                except ImageStoreError as exc:
                    raise UnexpectedError(f"Image upload failed: {exc}")
                updates["profile_pic"] = uploaded

            if updates:
                fields = ", ".join(f"{key} = ?" for key in updates)
                try:
                    cursor.execute(
                        f"UPDATE users SET {fields}, updated_at = ? WHERE id = ?",
                        (*updates.values(), utcnow(), user_id),
                    )
                except sqlite3.IntegrityError:
                    # email/username taken by a concurrent signup or update
                    raise ConflictError("User already exists")
                conn.commit()
                committed = True
                logger.info("Updated profile of %s: %s", user_id, sorted(updates))
            if uploaded and row["profile_pic"]:
                discard_image(image_store, row["profile_pic"])
            row = cursor.execute(
                f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (user_id,)
            ).fetchone()
            return _read_user(cursor, row)
        except Exception:
            conn.rollback()
            if uploaded and not committed:
                discard_image(image_store, uploaded)
            raise
        finally:
            conn.close()
