"""
Post endpoints for API v1.

Reading a single post or a user's posts is public; the feed and every
mutation require an authenticated caller.  ``/feed`` is declared before
``/{post_id}`` so that it is not captured as a post id.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from social_feed_api.app.core.errors import ServiceError, to_http_exception
from social_feed_api.app.core.image_store import ImageStore, get_image_store
from social_feed_api.app.core.security import get_current_user
from social_feed_api.app.schemas.post import PostCreate, PostRead, ReplyCreate, ReplyRead
from social_feed_api.app.schemas.common import MessageResponse
from social_feed_api.app.services.post_service import PostService


logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/feed", response_model=List[PostRead])
async def get_feed_posts(current_user: dict = Depends(get_current_user)) -> List[PostRead]:
    """Posts of everyone the caller follows, newest first."""
    try:
        return await PostService.get_feed_posts(current_user["id"])
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception("Failed to build feed for %s", current_user.get("id"))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@router.get("/user/{username}", response_model=List[PostRead])
async def get_user_posts(username: str) -> List[PostRead]:
    try:
        return await PostService.get_user_posts(username)
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception("Error fetching posts of %s", username)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@router.get("/{post_id}", response_model=PostRead)
async def get_post(post_id: str) -> PostRead:
    try:
        return await PostService.get_post(post_id)
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception("Error fetching post %s", post_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@router.post("/create", response_model=PostRead, status_code=status.HTTP_201_CREATED)
async def create_post(
    data: PostCreate,
    current_user: dict = Depends(get_current_user),
    image_store: ImageStore = Depends(get_image_store),
) -> PostRead:
    """Create a post for the caller, uploading its image if one is given."""
    try:
        return await PostService.create_post(data, current_user, image_store)
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception("Error creating post")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@router.delete("/{post_id}", response_model=MessageResponse)
async def delete_post(
    post_id: str,
    current_user: dict = Depends(get_current_user),
    image_store: ImageStore = Depends(get_image_store),
) -> MessageResponse:
    """Delete one of the caller's posts together with its hosted image."""
    try:
        await PostService.delete_post(post_id, current_user, image_store)
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception("Error deleting post %s", post_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    return MessageResponse(message="Post deleted successfully")


@router.put("/like/{post_id}", response_model=MessageResponse)
async def like_unlike_post(
    post_id: str,
    current_user: dict = Depends(get_current_user),
) -> MessageResponse:
    try:
        action = await PostService.like_unlike(post_id, current_user["id"])
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception("Error toggling like on post %s", post_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    return MessageResponse(message=f"Post {action} successfully")


@router.put("/reply/{post_id}", response_model=ReplyRead)
async def reply_to_post(
    post_id: str,
    data: ReplyCreate,
    current_user: dict = Depends(get_current_user),
) -> ReplyRead:
    try:
        return await PostService.reply_to_post(post_id, data, current_user)
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception("Error replying to post %s", post_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
