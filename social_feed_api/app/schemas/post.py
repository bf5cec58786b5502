"""
Pydantic schemas for posts and replies.

Replies are embedded in the post they answer and carry a copy of the
author's username and profile picture taken when the reply was written.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class PostCreate(BaseModel):
    """Schema for creating a post.

    ``img`` may be a remote URL or a base64 data URI; it is replaced by
    the hosted URL returned by the image store before the post is saved.
    """

    posted_by: Optional[str] = Field(None, description="Identifier of the author")
    text: Optional[str] = Field(None, description="Post body, at most 500 characters")
    img: Optional[str] = Field(None, description="Image to attach")


class ReplyCreate(BaseModel):
    text: Optional[str] = None


class ReplyRead(BaseModel):
    user_id: str
    text: str
    user_profile_pic: str = ""
    username: str
    created_at: Optional[str] = None


class PostRead(BaseModel):
    """Schema for reading a post from the API."""

    id: str
    posted_by: str
    text: str
    img: Optional[str] = None
    likes: List[str] = Field(default_factory=list)
    replies: List[ReplyRead] = Field(default_factory=list)
    created_at: str

    model_config = {
        "from_attributes": True,
    }
