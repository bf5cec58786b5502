"""
Pydantic models for user data.

Request schemas keep every field optional so that missing values reach
the service layer, which reports them with the API's own error
messages instead of FastAPI's generic validation payload.  ``UserRead``
is the public view of a user: it never carries the password hash.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class UserCreate(BaseModel):
    """Schema for signing up."""

    name: Optional[str] = Field(None, examples=["Jane Doe"])
    email: Optional[str] = Field(None, examples=["jane@example.com"])
    username: Optional[str] = Field(None, examples=["janedoe"])
    password: Optional[str] = Field(None, examples=["strongpassword"])


class UserLogin(BaseModel):
    username: Optional[str] = Field(None, examples=["janedoe"])
    password: Optional[str] = Field(None, examples=["strongpassword"])


class UserUpdate(BaseModel):
    """Schema for editing a profile.

    Only the fields that are present (and not ``None``) are changed.
    ``profile_pic`` is uploaded to the image store before being saved,
    so it may be a remote URL or a base64 data URI.
    """

    name: Optional[str] = None
    email: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    profile_pic: Optional[str] = None
    bio: Optional[str] = Field(None, max_length=500)


class UserRead(BaseModel):
    """Schema for reading a user from the API."""

    id: str
    name: str
    email: str
    username: str
    profile_pic: str = ""
    bio: str = ""
    followers: List[str] = Field(default_factory=list)
    following: List[str] = Field(default_factory=list)
    created_at: Optional[str] = None

    model_config = {
        "from_attributes": True,
    }
