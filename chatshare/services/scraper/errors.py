"""
Scraper errors module.

Holds exceptions shared across scraper/parser implementations. Only the
aggregate failures below ever reach a caller; individual extraction
strategies fail quietly inside the fallback chain.
"""

from typing import Dict, List, Optional


class ScraperError(Exception):
    """Base class for all share-page parsing errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidUrlError(ScraperError):
    """Raised when a provider parser is handed a URL it does not own."""

    def __init__(self, message: str = "Invalid share URL") -> None:
        super().__init__(message)


class ConversationNotFoundError(ScraperError):
    """Raised when a shared conversation URL returns 404 or is not found."""

    def __init__(self, message: str = "Conversation not found") -> None:
        super().__init__(message)


class FetchError(ScraperError):
    """Raised when the share page answers with a non-2xx status other than 404."""

    def __init__(self, status_code: int, message: Optional[str] = None) -> None:
        super().__init__(message or f"Failed to fetch URL: {status_code}")
        self.status_code = status_code


class NoMessagesFoundError(ScraperError):
    """Raised when every extraction strategy ran and none produced a message."""

    def __init__(
        self,
        page_title: str = "the conversation",
        attempted_strategies: Optional[List[str]] = None,
        errors_by_strategy: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__(
            f"No messages found in {page_title}. The page format may have changed."
        )
        self.page_title = page_title
        self.attempted_strategies: List[str] = list(attempted_strategies or [])
        self.errors_by_strategy: Dict[str, str] = dict(errors_by_strategy or {})

    @property
    def strategy_count(self) -> int:
        return len(self.attempted_strategies)


class UnsupportedPlatformError(ScraperError):
    """Raised by the registry when no parser claims the URL."""

    def __init__(self, url: str) -> None:
        super().__init__(f"No parser available for URL: {url}")
        self.url = url
