"""Response models for the chat relay API."""

from pydantic import BaseModel, Field


class CompletionResponse(BaseModel):
    """The assistant's reply relayed back to the client."""

    content: str


class ErrorResponse(BaseModel):
    """Body returned for rejected requests (400 and 429)."""

    error: str = Field(..., description="Human readable reason for the rejection.")
