"""
User endpoints for API v1.

Provide signup, login, logout, profile lookup and edits, and the
follow toggle.  Signup and login set the session cookie; the same token
is accepted as a bearer token by every protected route.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status

from social_feed_api.app.core.errors import ServiceError, to_http_exception
from social_feed_api.app.core.image_store import ImageStore, get_image_store
from social_feed_api.app.core.security import clear_token_cookie, get_current_user, set_token_cookie
from social_feed_api.app.schemas.common import MessageResponse
from social_feed_api.app.schemas.user import UserCreate, UserLogin, UserRead, UserUpdate
from social_feed_api.app.services.user_service import UserService


logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/profile/{query}", response_model=UserRead)
async def get_user_profile(query: str) -> UserRead:
    """Fetch a public profile by user id or by username."""
    try:
        return await UserService.get_user_profile(query)
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception("Failed to load profile %s", query)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@router.post("/signup", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def signup_user(data: UserCreate, response: Response) -> UserRead:
    """Register a new user and start a session for it."""
    try:
        user = await UserService.signup(data)
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception("Signup failed")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    set_token_cookie(response, user.id)
    return user


@router.post("/login", response_model=UserRead)
async def login_user(data: UserLogin, response: Response) -> UserRead:
    try:
        user = await UserService.login(data)
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception("Login failed")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    set_token_cookie(response, user.id)
    return user


@router.post("/logout", response_model=MessageResponse)
async def logout_user(response: Response) -> MessageResponse:
    clear_token_cookie(response)
    return MessageResponse(message="User logged out successfully")


@router.post("/follow/{user_id}", response_model=MessageResponse)
async def follow_unfollow_user(
    user_id: str,
    current_user: dict = Depends(get_current_user),
) -> MessageResponse:
    """Follow ``user_id``, or unfollow it if already followed."""
    try:
        action = await UserService.follow_unfollow(current_user, user_id)
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception("Follow toggle failed for %s -> %s", current_user.get("id"), user_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    return MessageResponse(message=f"User {action} successfully")


@router.put("/update/{user_id}", response_model=UserRead)
async def update_user(
    user_id: str,
    data: UserUpdate,
    current_user: dict = Depends(get_current_user),
    image_store: ImageStore = Depends(get_image_store),
) -> UserRead:
    """Edit the caller's own profile."""
    try:
        return await UserService.update_user(current_user, user_id, data, image_store)
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception("Profile update failed for %s", user_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
