"""Engagement-related Pydantic schemas."""

from typing import Literal

from pydantic import BaseModel, Field

from topbreja.services.engagement_state import EngagementState


class EngagementResponse(BaseModel):
    """New state of a vote or favorite after a toggle."""

    state: EngagementState
    active: bool


class RatingCreate(BaseModel):
    """Schema for submitting a star rating."""

    stars: int = Field(..., ge=1, le=5, description="Number of stars, 1 to 5")


class RatingResponse(BaseModel):
    ok: bool
    stars: int


class ReactionCreate(BaseModel):
    """Like or dislike on a comment."""

    tipo: Literal["curtida", "descurtida"]


class ReactionResponse(BaseModel):
    tipo: Literal["curtida", "descurtida"] | None = None
