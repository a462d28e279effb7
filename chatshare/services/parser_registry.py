"""
Parser Registry.

Holds the provider parsers in priority order and dispatches a share URL to
the first one whose URL patterns accept it.
"""

import logging
from typing import List, Optional, Protocol

from chatshare.models import ParseOutcome, ParseResult, Platform
from chatshare.services.scraper.chat_gpt_parser import ChatGPTParserService
from chatshare.services.scraper.claude_parser import ClaudeParserService
from chatshare.services.scraper.errors import UnsupportedPlatformError
from chatshare.services.scraper.gemini_parser import GeminiParserService

logger = logging.getLogger(__name__)


class ChatParser(Protocol):
    """Interface every provider parser satisfies."""

    platform: Platform

    def can_parse(self, url: str) -> bool: ...

    def get_supported_patterns(self) -> List[str]: ...

    async def parse(self, url: str) -> ParseResult: ...

    async def parse_with_strategy(self, url: str) -> ParseOutcome: ...


class ParserRegistry:
    """Routes parse requests to the registered provider parsers."""

    def __init__(self, parsers: Optional[List[ChatParser]] = None) -> None:
        self._parsers: List[ChatParser] = []
        for parser in parsers or []:
            self.register(parser)

    @classmethod
    def with_default_parsers(cls) -> "ParserRegistry":
        return cls([ChatGPTParserService(), ClaudeParserService(), GeminiParserService()])

    def register(self, parser: ChatParser) -> None:
        if any(existing.platform == parser.platform for existing in self._parsers):
            logger.debug(f"Parser for platform {parser.platform} already registered")
            return
        self._parsers.append(parser)

    def unregister(self, platform: str) -> None:
        self._parsers = [parser for parser in self._parsers if parser.platform != platform]

    def get_parser(self, url: str) -> Optional[ChatParser]:
        for parser in self._parsers:
            if parser.can_parse(url):
                return parser
        return None

    def can_parse(self, url: str) -> bool:
        return self.get_parser(url) is not None

    def _require_parser(self, url: str) -> ChatParser:
        parser = self.get_parser(url)
        if parser is None:
            raise UnsupportedPlatformError(url)
        logger.debug(f"Using {parser.platform} parser for URL: {url}")
        return parser

    async def parse(self, url: str) -> ParseResult:
        """
        Parse a share URL with the first matching parser.

        Raises:
            UnsupportedPlatformError: No registered parser accepts the URL
        """
        return await self._require_parser(url).parse(url)

    async def parse_with_strategy(self, url: str) -> ParseOutcome:
        """Like `parse`, but also reports which extraction strategy won."""
        return await self._require_parser(url).parse_with_strategy(url)

    def get_parsers(self) -> List[ChatParser]:
        return list(self._parsers)

    def get_supported_patterns(self) -> List[str]:
        return [pattern for parser in self._parsers for pattern in parser.get_supported_patterns()]

    def get_supported_platforms(self) -> List[str]:
        return [parser.platform for parser in self._parsers]


parser_registry = ParserRegistry.with_default_parsers()
