"""
Inbound OpenAI-compatible request models.
"""

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ContentPart(BaseModel):
    """One typed segment of a message's content."""
    model_config = ConfigDict(extra="allow")

    type: str
    text: Optional[str] = None


class ChatMessage(BaseModel):
    """A role-tagged chat message."""
    model_config = ConfigDict(extra="allow")

    role: Literal["system", "user", "assistant"]
    content: Union[str, List[ContentPart], None] = None


class ChatCompletionRequest(BaseModel):
    """OpenAI chat completion request body."""
    model_config = ConfigDict(extra="ignore")

    model: str
    messages: List[ChatMessage] = Field(min_length=1)
    stream: Optional[bool] = False
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    frequency_penalty: Optional[float] = None
    presence_penalty: Optional[float] = None
