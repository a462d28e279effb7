from chatshare.services.scraper.chat_gpt_parser import ChatGPTParserService
from chatshare.services.scraper.claude_parser import ClaudeParserService
from chatshare.services.scraper.errors import (
    ConversationNotFoundError,
    FetchError,
    InvalidUrlError,
    NoMessagesFoundError,
    ScraperError,
    UnsupportedPlatformError,
)
from chatshare.services.scraper.gemini_parser import GeminiParserService

__all__ = [
    "ChatGPTParserService",
    "ClaudeParserService",
    "ConversationNotFoundError",
    "FetchError",
    "GeminiParserService",
    "InvalidUrlError",
    "NoMessagesFoundError",
    "ScraperError",
    "UnsupportedPlatformError",
]
