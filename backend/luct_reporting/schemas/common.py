"""Envelope schemas shared by every router."""

from pydantic import BaseModel


class MessageResponse(BaseModel):
    success: bool = True
    message: str
