"""
Business logic for posts.

The ``PostService`` creates, reads and deletes posts, toggles likes,
appends replies and assembles two timelines: the posts of one user and
the feed of everyone a user follows.  Both timelines are ordered newest
first.  Likes are one row per ``(post, user)`` pair, so liking twice is
impossible and toggling is a single conditional delete or insert.

Images live in the external image store.  Uploading happens before the
post row is written; removing the image on delete is best-effort and
never blocks the deletion of the post itself.
"""

import logging
import sqlite3
from typing import Dict, List

from social_feed_api.app.core.db import get_connection, new_id, utcnow
from social_feed_api.app.core.errors import (
    AuthError,
    NotFoundError,
    UnexpectedError,
    ValidationError,
)
from social_feed_api.app.core.image_store import ImageStore, ImageStoreError, discard_image
from ..schemas.post import PostCreate, PostRead, ReplyCreate, ReplyRead


logger = logging.getLogger(__name__)

MAX_TEXT_LENGTH = 500

_POST_COLUMNS = "id, posted_by, text, img, created_at"


def _read_posts(cursor: sqlite3.Cursor, rows: List[sqlite3.Row]) -> List[PostRead]:
    """Attach likes and replies to a list of post rows, keeping their order."""
    if not rows:
        return []
    ids = [row["id"] for row in rows]
    placeholders = ", ".join("?" for _ in ids)
    likes: Dict[str, List[str]] = {post_id: [] for post_id in ids}
    for r in cursor.execute(
        f"SELECT post_id, user_id FROM post_likes WHERE post_id IN ({placeholders}) "
        "ORDER BY created_at, rowid",
        ids,
    ).fetchall():
        likes[r["post_id"]].append(r["user_id"])
    replies: Dict[str, List[ReplyRead]] = {post_id: [] for post_id in ids}
    for r in cursor.execute(
        "SELECT post_id, user_id, text, user_profile_pic, username, created_at "
        f"FROM post_replies WHERE post_id IN ({placeholders}) ORDER BY id",
        ids,
    ).fetchall():
        replies[r["post_id"]].append(
            ReplyRead(
                user_id=r["user_id"],
                text=r["text"],
                user_profile_pic=r["user_profile_pic"],
                username=r["username"],
                created_at=r["created_at"],
            )
        )
    return [
        PostRead(
            id=row["id"],
            posted_by=row["posted_by"],
            text=row["text"],
            img=row["img"],
            likes=likes[row["id"]],
            replies=replies[row["id"]],
            created_at=row["created_at"],
        )
        for row in rows
    ]


def _fetch_post(cursor: sqlite3.Cursor, post_id: str) -> sqlite3.Row:
    row = cursor.execute(
        f"SELECT {_POST_COLUMNS} FROM posts WHERE id = ?", (post_id,)
    ).fetchone()
    if not row:
        raise NotFoundError("Post not found")
    return row


class PostService:
    """Service for posts, likes, replies and timelines."""

    @classmethod
    async def create_post(
        cls,
        data: PostCreate,
        current_user: dict,
        image_store: ImageStore,
    ) -> PostRead:
        """Create a post on behalf of the authenticated user.

        ``posted_by`` must name an existing user and that user must be
        the caller.  The text is limited to ``MAX_TEXT_LENGTH``
        characters.  An attached image is uploaded first and the post
        stores the hosted URL.  The upload is removed again if the post
        cannot be stored.
        """
        if not data.posted_by or not data.text:
            raise ValidationError("Postedby and text fields are required")
        if len(data.text) > MAX_TEXT_LENGTH:
            raise ValidationError(f"Text must be less than {MAX_TEXT_LENGTH} characters")
        uploaded = None
        committed = False
        conn = get_connection()
        try:
            cursor = conn.cursor()
            author = cursor.execute("SELECT id FROM users WHERE id = ?", (data.posted_by,)).fetchone()
            if not author:
                raise NotFoundError("User not found")
            if author["id"] != current_user.get("id"):
                raise AuthError("Unauthorized to create post")

            if data.img:
                try:
                    uploaded = image_store.upload(data.img)
                except ImageStoreError as exc:
                    raise UnexpectedError(f"Image upload failed: {exc}")

            post_id = new_id()
            now = utcnow()
            cursor.execute(
                "INSERT INTO posts (id, posted_by, text, img, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (post_id, data.posted_by, data.text, uploaded, now, now),
            )
            conn.commit()
            committed = True
            logger.info("User %s created post %s", data.posted_by, post_id)
            return _read_posts(cursor, [_fetch_post(cursor, post_id)])[0]
        except Exception:
            conn.rollback()
            if uploaded and not committed:
                discard_image(image_store, uploaded)
            raise
        finally:
            conn.close()

    @classmethod
    async def get_post(cls, post_id: str) -> PostRead:
        conn = get_connection()
        try:
            cursor = conn.cursor()
            return _read_posts(cursor, [_fetch_post(cursor, post_id)])[0]
        finally:
            conn.close()

    @classmethod
    async def delete_post(cls, post_id: str, current_user: dict, image_store: ImageStore) -> None:
        """Delete a post owned by the caller.

        The hosted image, if any, is destroyed first.  A failure there is
        logged and the post row is deleted regardless.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = _fetch_post(cursor, post_id)
            if row["posted_by"] != current_user.get("id"):
                raise AuthError("Unauthorized to delete post")
            if row["img"]:
                discard_image(image_store, row["img"])
            cursor.execute("DELETE FROM posts WHERE id = ?", (post_id,))
            conn.commit()
            logger.info("User %s deleted post %s", current_user.get("id"), post_id)
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @classmethod
    async def like_unlike(cls, post_id: str, user_id: str) -> str:
        """Toggle the caller's like on a post; returns ``"liked"`` or ``"unliked"``."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            _fetch_post(cursor, post_id)
            cursor.execute(
                "DELETE FROM post_likes WHERE post_id = ? AND user_id = ?",
                (post_id, user_id),
            )
            if cursor.rowcount:
                action = "unliked"
            else:
                cursor.execute(
                    "INSERT OR IGNORE INTO post_likes (post_id, user_id, created_at) VALUES (?, ?, ?)",
                    (post_id, user_id, utcnow()),
                )
                action = "liked"
            conn.commit()
            logger.info("User %s %s post %s", user_id, action, post_id)
            return action
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @classmethod
    async def reply_to_post(cls, post_id: str, data: ReplyCreate, current_user: dict) -> ReplyRead:
        """Append a reply, copying the author's current username and picture."""
        if not data.text:
            raise ValidationError("Text field is required")
        conn = get_connection()
        try:
            cursor = conn.cursor()
            _fetch_post(cursor, post_id)
            reply = ReplyRead(
                user_id=current_user["id"],
                text=data.text,
                user_profile_pic=current_user.get("profile_pic") or "",
                username=current_user["username"],
                created_at=utcnow(),
            )
            cursor.execute(
                "INSERT INTO post_replies (post_id, user_id, text, user_profile_pic, username, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (post_id, reply.user_id, reply.text, reply.user_profile_pic, reply.username, reply.created_at),
            )
            conn.commit()
            logger.info("User %s replied to post %s", reply.user_id, post_id)
            return reply
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @classmethod
    async def get_user_posts(cls, username: str) -> List[PostRead]:
        """Return the posts of ``username``, newest first."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            logger.debug("Fetching posts for username %s", username)
            user = cursor.execute("SELECT id FROM users WHERE username = ?", (username,)).fetchone()
            if not user:
                raise NotFoundError("User not found")
            rows = cursor.execute(
                f"SELECT {_POST_COLUMNS} FROM posts WHERE posted_by = ? "
                "ORDER BY created_at DESC, rowid DESC",
                (user["id"],),
            ).fetchall()
            logger.debug("Found %d posts for user %s", len(rows), user["id"])
            return _read_posts(cursor, rows)
        finally:
            conn.close()

    @classmethod
    async def get_feed_posts(cls, user_id: str) -> List[PostRead]:
        """Return posts by everyone ``user_id`` follows, newest first.

        A user who follows nobody gets an empty feed.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            user = cursor.execute("SELECT id FROM users WHERE id = ?", (user_id,)).fetchone()
            if not user:
                raise NotFoundError("User not found")
            rows = cursor.execute(
                f"SELECT {_POST_COLUMNS} FROM posts WHERE posted_by IN "
                "(SELECT followee_id FROM follows WHERE follower_id = ?) "
                "ORDER BY created_at DESC, rowid DESC",
                (user_id,),
            ).fetchall()
            return _read_posts(cursor, rows)
        finally:
            conn.close()
