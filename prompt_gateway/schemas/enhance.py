from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: str


class EnhanceRequest(BaseModel):
    """One enhancement ask, as decoded by any of the transports."""

    model_config = ConfigDict(frozen=True)

    prompt: str = Field(..., description="The prompt text to enhance")
    context: Optional[str] = Field(default=None, description="Optional conversation or code context")
    messages: Optional[List[ChatMessage]] = Field(default=None, description="Recent conversation messages, most recent last")
    model: Optional[str] = Field(default=None, description="AI model to use for enhancement")


class EnhanceResponse(BaseModel):
    success: bool = True
    enhanced: str
    original: str
    model: str
