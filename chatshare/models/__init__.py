"""
Models module for ChatShare

This module exports all Pydantic models for data validation and API contracts.
"""

from chatshare.models.conversations import (
    CreateShareInput,
    ErrorResponse,
    ExtractedConversation,
    ParsedMessage,
    ParseOutcome,
    ParseRequest,
    ParseResult,
    Platform,
    PlatformsResponse,
    Role,
)

__all__ = [
    "CreateShareInput",
    "ErrorResponse",
    "ExtractedConversation",
    "ParsedMessage",
    "ParseOutcome",
    "ParseRequest",
    "ParseResult",
    "Platform",
    "PlatformsResponse",
    "Role",
]
