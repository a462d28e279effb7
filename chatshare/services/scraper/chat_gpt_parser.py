"""
ChatGPT Parser Service.

Parses ChatGPT share pages (chatgpt.com/share/*, chat.openai.com/share/*).
The page streams its loader data as a pointer-compacted heap; the chain is
structured graph walk, then heuristic heap scan, then manual extraction.
"""

import logging
import re
from typing import List, Optional

import httpx

from chatshare.models import ParseOutcome, ParseResult, Platform
from chatshare.services.scraper.errors import InvalidUrlError
from chatshare.services.scraper.fallback import Strategy, run_strategies
from chatshare.services.scraper.heuristic_extractor import extract_heuristic
from chatshare.services.scraper.manual_extractor import extract_manual
from chatshare.services.scraper.page_fetcher import fetch_share_page
from chatshare.services.scraper.results import build_parse_outcome
from chatshare.services.scraper.structured_extractor import extract_structured

logger = logging.getLogger(__name__)

CHATGPT_URL_PATTERNS = (
    re.compile(r"https://chatgpt\.com/share/[a-zA-Z0-9-]+"),
    re.compile(r"https://chat\.openai\.com/share/[a-zA-Z0-9-]+"),
)

CHATGPT_STRATEGIES = (
    Strategy(name="structured", extract=extract_structured),
    Strategy(name="heuristic", extract=extract_heuristic),
    Strategy(name="manual", extract=extract_manual),
)


class ChatGPTParserService:
    """Service for parsing ChatGPT conversations from share URLs."""

    platform: Platform = "chatgpt"

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self._transport = transport

    def can_parse(self, url: str) -> bool:
        return any(pattern.fullmatch(url) for pattern in CHATGPT_URL_PATTERNS)

    def get_supported_patterns(self) -> List[str]:
        return ["https://chatgpt.com/share/*", "https://chat.openai.com/share/*"]

    def parse_page(self, html: str, url: str) -> ParseOutcome:
        outcome = run_strategies(CHATGPT_STRATEGIES, html)
        return build_parse_outcome(outcome, html=html, url=url, platform="chatgpt")

    async def parse(self, url: str) -> ParseResult:
        outcome = await self.parse_with_strategy(url)
        return outcome.result

    async def parse_with_strategy(self, url: str) -> ParseOutcome:
        """
        Parse a ChatGPT conversation from a share URL, keeping the name of
        the strategy that recovered it.

        Raises:
            InvalidUrlError: The URL is not a ChatGPT share URL
            ConversationNotFoundError: The share page answered 404
            FetchError: The share page answered another non-2xx status
            NoMessagesFoundError: No extraction strategy produced messages
        """
        if not self.can_parse(url):
            raise InvalidUrlError("Invalid ChatGPT share URL")

        logger.debug(f"Starting ChatGPT conversation parsing for URL: {url}")
        html = await fetch_share_page(
            url,
            not_found_message="ChatGPT conversation not found",
            transport=self._transport,
        )
        return self.parse_page(html, url=url)
