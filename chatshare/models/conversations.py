"""
Conversation models for parsed share pages.

These models are what the extraction engine hands to its collaborators:
the share store consumes `CreateShareInput`, the render/export pipeline
consumes the ordered `ParsedMessage` list.
"""

from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

Role = Literal["user", "assistant"]
Platform = Literal["chatgpt", "claude", "gemini"]


class ParsedMessage(BaseModel):
    """Represents a single turn recovered from a share page."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Provider message id, or a positional fallback id")
    role: Role = Field(..., description="Message role: 'user' or 'assistant'")
    content: str = Field(..., description="Message content as plain text or Markdown")
    html: str = Field("", description="Rendered HTML when the source was markup; may be empty")

    @field_validator("content")
    @classmethod
    def _ensure_non_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Message content cannot be blank or whitespace-only.")
        return value


class ExtractedConversation(BaseModel):
    """Output of a single extraction strategy, before URL and platform are known."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(..., description="Conversation title")
    messages: List[ParsedMessage] = Field(..., description="Ordered conversation turns")


class CreateShareInput(BaseModel):
    """Payload handed to the share store."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str = Field(..., description="Conversation title")
    source_url: str = Field(..., alias="sourceUrl", description="Original share URL")
    messages: List[ParsedMessage] = Field(..., description="Ordered conversation turns")


class ParseResult(BaseModel):
    """Successful extraction of a conversation from a share URL."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str = Field(..., description="Conversation title")
    source_url: str = Field(..., alias="sourceUrl", description="Original share URL")
    messages: List[ParsedMessage] = Field(..., description="Ordered conversation turns")
    platform: Platform = Field(..., description="Provider the conversation was shared from")

    def to_share_input(self) -> CreateShareInput:
        return CreateShareInput(
            title=self.title,
            source_url=self.source_url,
            messages=list(self.messages),
        )


class ParseOutcome(BaseModel):
    """A ParseResult together with the extraction strategy that produced it."""

    model_config = ConfigDict(frozen=True)

    result: ParseResult = Field(..., description="The parsed conversation")
    strategy: str = Field(..., description="Name of the winning extraction strategy")
    attempted_strategies: List[str] = Field(
        default_factory=list, description="Strategies tried, in order, ending with the winner"
    )

    @property
    def fallback_used(self) -> bool:
        return len(self.attempted_strategies) > 1


class ParseRequest(BaseModel):
    """Request body for the parse endpoint."""

    url: str = Field("", description="Share URL to parse")


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    success: bool = Field(False, description="Always false for error responses")
    error: str = Field(..., description="Error message describing what went wrong")


class PlatformsResponse(BaseModel):
    """Supported share URL patterns and platform identifiers."""

    success: bool = Field(True, description="Always true")
    patterns: List[str] = Field(..., description="Human-readable supported URL patterns")
    platforms: List[str] = Field(..., description="Registered platform identifiers")
