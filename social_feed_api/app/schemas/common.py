"""Schemas shared by the user and post routers."""

from pydantic import BaseModel


class MessageResponse(BaseModel):
    """Acknowledgement returned by toggles, deletions and logout."""

    message: str
