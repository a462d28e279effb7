"""
Claude Parser Service.

Parses Claude share pages (claude.ai/share/*). The conversation is usually
server-rendered into Next.js `__NEXT_DATA__`; older pages assign it to
`window.__CLAUDE_DATA__`; the rendered markup is the last resort.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

import httpx

from chatshare.models import ExtractedConversation, ParsedMessage, ParseOutcome, ParseResult, Platform
from chatshare.services.scraper.errors import InvalidUrlError
from chatshare.services.scraper.fallback import Strategy, run_strategies
from chatshare.services.scraper.manual_extractor import DomProfile, extract_dom, parse_document
from chatshare.services.scraper.page_fetcher import fetch_share_page
from chatshare.services.scraper.results import build_parse_outcome

logger = logging.getLogger(__name__)

CLAUDE_URL_PATTERN = re.compile(r"https://claude\.ai/share/[a-zA-Z0-9-]+")
CLAUDE_DATA_PATTERN = re.compile(r"window\.__CLAUDE_DATA__\s*=\s*(\{[\s\S]*?\});")
DEFAULT_TITLE = "Claude Conversation"

CLAUDE_DOM_PROFILE = DomProfile(
    selectors=(
        '[data-testid="user-message"], .font-claude-response',
        '[data-testid="message"], .message-content, .conversation-message, '
        '[class*="Message"], [class*="message"]',
    ),
    id_prefix="claude-html-msg",
    default_title=DEFAULT_TITLE,
    user_class_markers=("human", "user"),
    assistant_class_markers=("assistant", "claude"),
    title_affixes=(" - Claude",),
)


def _claude_message_text(message: Dict[str, Any]) -> str:
    """Prefer the joined text blocks of `content`, fall back to `text`."""
    blocks = message.get("content")
    if isinstance(blocks, list):
        texts = [
            block.get("text")
            for block in blocks
            if isinstance(block, dict) and block.get("type") == "text"
        ]
        joined = "\n".join(text for text in texts if isinstance(text, str) and text)
        if joined:
            return joined
    text = message.get("text")
    return text if isinstance(text, str) else ""


def extract_next_data(html: str) -> Optional[ExtractedConversation]:
    soup = parse_document(html)
    script = soup.find("script", id="__NEXT_DATA__")
    if script is None:
        return None
    data = json.loads(script.get_text())
    if not isinstance(data, dict):
        return None

    page_props = (data.get("props") or {}).get("pageProps") or {}
    conversation = page_props.get("sharedConversation") or page_props.get("conversation")
    if not isinstance(conversation, dict):
        return None
    chat_messages = conversation.get("chat_messages")
    if not isinstance(chat_messages, list) or not chat_messages:
        return None

    messages: List[ParsedMessage] = []
    for position, message in enumerate(chat_messages):
        if not isinstance(message, dict):
            continue
        sender = message.get("sender")
        if sender not in ("human", "assistant"):
            continue
        content = _claude_message_text(message)
        if not content.strip():
            continue
        uuid = message.get("uuid")
        messages.append(
            ParsedMessage(
                id=uuid if isinstance(uuid, str) and uuid else f"claude-msg-{position}",
                role="user" if sender == "human" else "assistant",
                content=content,
                html="",
            )
        )

    if not messages:
        return None
    return ExtractedConversation(title=conversation.get("name") or DEFAULT_TITLE, messages=messages)


def _messages_from_claude_data(data: Any) -> Optional[ExtractedConversation]:
    if not isinstance(data, dict):
        return None
    conversation = (
        data.get("conversation") or data.get("sharedConversation") or data.get("chat") or data.get("data")
    )
    if not isinstance(conversation, dict):
        return None
    raw_messages = conversation.get("messages") or conversation.get("chat_messages")
    if not isinstance(raw_messages, list) or not raw_messages:
        return None

    messages: List[ParsedMessage] = []
    for position, message in enumerate(raw_messages):
        if not isinstance(message, dict):
            continue
        sender = message.get("sender") or message.get("role")
        if sender not in ("human", "user", "assistant"):
            continue
        content = message.get("text") or message.get("content") or ""
        if not isinstance(content, str) or not content.strip():
            continue
        message_id = message.get("uuid") or message.get("id")
        messages.append(
            ParsedMessage(
                id=message_id if isinstance(message_id, str) else f"claude-msg-{position}",
                role="assistant" if sender == "assistant" else "user",
                content=content,
                html="",
            )
        )

    if not messages:
        return None
    title = conversation.get("name") or conversation.get("title") or DEFAULT_TITLE
    return ExtractedConversation(title=title, messages=messages)


def extract_embedded_data(html: str) -> Optional[ExtractedConversation]:
    for match in CLAUDE_DATA_PATTERN.finditer(html):
        try:
            data = json.loads(match.group(1))
        except ValueError as e:
            logger.debug(f"Failed to parse Claude embedded data: {e}")
            continue
        extracted = _messages_from_claude_data(data)
        if extracted is not None:
            return extracted
    return None


def extract_claude_dom(html: str) -> Optional[ExtractedConversation]:
    return extract_dom(html, profile=CLAUDE_DOM_PROFILE)


CLAUDE_STRATEGIES = (
    Strategy(name="next_data", extract=extract_next_data),
    Strategy(name="embedded_data", extract=extract_embedded_data),
    Strategy(name="dom", extract=extract_claude_dom),
)


class ClaudeParserService:
    """Service for parsing Claude conversations from share URLs."""

    platform: Platform = "claude"

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self._transport = transport

    def can_parse(self, url: str) -> bool:
        return CLAUDE_URL_PATTERN.fullmatch(url) is not None

    def get_supported_patterns(self) -> List[str]:
        return ["https://claude.ai/share/*"]

    def parse_page(self, html: str, url: str) -> ParseOutcome:
        outcome = run_strategies(CLAUDE_STRATEGIES, html)
        return build_parse_outcome(outcome, html=html, url=url, platform="claude")

    async def parse(self, url: str) -> ParseResult:
        outcome = await self.parse_with_strategy(url)
        return outcome.result

    async def parse_with_strategy(self, url: str) -> ParseOutcome:
        if not self.can_parse(url):
            raise InvalidUrlError("Invalid Claude share URL")

        logger.debug(f"Starting Claude conversation parsing for URL: {url}")
        html = await fetch_share_page(
            url,
            not_found_message="Claude conversation not found",
            transport=self._transport,
        )
        return self.parse_page(html, url=url)
