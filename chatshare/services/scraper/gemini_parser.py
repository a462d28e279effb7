"""
Gemini Parser Service.

Parses Gemini share pages (gemini.google.com/share/*, g.co/gemini/share/*).
Gemini has no single stable embedding: conversation data may sit in one of
several window globals, in an `AF_initDataCallback` payload or in a
`wrb.fr` batch array, so each is tried before the rendered markup.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

import httpx

from chatshare.models import (
    ExtractedConversation,
    ParsedMessage,
    ParseOutcome,
    ParseResult,
    Platform,
    Role,
)
from chatshare.services.scraper.errors import InvalidUrlError
from chatshare.services.scraper.fallback import Strategy, run_strategies
from chatshare.services.scraper.manual_extractor import (
    DomProfile,
    extract_dom,
    parse_document,
    script_bodies,
)
from chatshare.services.scraper.page_fetcher import fetch_share_page
from chatshare.services.scraper.results import build_parse_outcome

logger = logging.getLogger(__name__)

GEMINI_URL_PATTERNS = (
    re.compile(r"https://gemini\.google\.com/share/[a-zA-Z0-9]+"),
    re.compile(r"https://g\.co/gemini/share/[a-zA-Z0-9]+"),
)

EMBEDDED_DATA_PATTERNS = (
    re.compile(r"window\.__INITIAL_STATE__\s*=\s*(\{[\s\S]*?\});"),
    re.compile(r"window\.__DATA__\s*=\s*(\{[\s\S]*?\});"),
    re.compile(r"AF_initDataCallback\(\{[^}]*data:\s*(\[[\s\S]*?\])\s*\}"),
    re.compile(r'"conversation":\s*(\{[\s\S]*?\})\s*[,}]'),
)
WRB_ARRAY_PATTERN = re.compile(r'\[\s*\[\s*"wrb\.fr"[\s\S]*?\]\s*\]')

DEFAULT_TITLE = "Gemini Conversation"
MESSAGE_KEYS = ("messages", "turns", "conversation")
CONVERSATION_PATHS = ("conversation", "data", "sharedConversation", "chat", "thread")
MESSAGE_HINT_KEYS = ("role", "author", "text", "content")
USER_ROLES = frozenset({"user", "USER", "human", "0"})
ASSISTANT_ROLES = frozenset({"model", "MODEL", "assistant", "gemini", "1"})
MAX_SEARCH_DEPTH = 20

GEMINI_DOM_PROFILE = DomProfile(
    selectors=(
        ".message-content",
        ".user-query, .model-response",
        '[class*="query"], [class*="response"]',
        '[class*="turn"]',
        "[data-message-role]",
        ".conversation-turn",
        '[class*="message"], [class*="chat"], [class*="conversation"]',
    ),
    id_prefix="gemini-html",
    default_title=DEFAULT_TITLE,
    user_class_markers=("user", "query", "human"),
    assistant_class_markers=("model", "response", "gemini", "assistant"),
    title_affixes=(" - Gemini", "Gemini - "),
)


def _message_list(record: Dict[str, Any]) -> Optional[List[Any]]:
    for key in MESSAGE_KEYS:
        value = record.get(key)
        if isinstance(value, list) and value:
            return value
    return None


def find_conversation_data(data: Dict[str, Any], depth: int = 0) -> Optional[Dict[str, Any]]:
    """
    Locate the object holding the message list: the object itself, one of
    the usual nesting keys, or any nested array of message-shaped objects.
    """
    if depth > MAX_SEARCH_DEPTH:
        return None
    if _message_list(data) is not None:
        return data

    for path in CONVERSATION_PATHS:
        nested = data.get(path)
        if isinstance(nested, dict) and _message_list(nested) is not None:
            return nested

    for value in data.values():
        if isinstance(value, list) and value:
            first = value[0]
            if isinstance(first, dict) and any(key in first for key in MESSAGE_HINT_KEYS):
                return {"messages": value}
        if isinstance(value, dict):
            found = find_conversation_data(value, depth=depth + 1)
            if found is not None:
                return found
    return None


def _gemini_content(message: Dict[str, Any]) -> str:
    text = message.get("text")
    if isinstance(text, str):
        return text
    content = message.get("content")
    if isinstance(content, str):
        return content
    blocks = content if isinstance(content, list) else message.get("parts")
    if isinstance(blocks, list):
        return "\n".join(
            block["text"] for block in blocks if isinstance(block, dict) and isinstance(block.get("text"), str) and block["text"]
        )
    return ""


def _gemini_role(message: Dict[str, Any], position: int) -> Role:
    raw_role = message.get("role") or message.get("author")
    if raw_role in USER_ROLES:
        return "user"
    if raw_role in ASSISTANT_ROLES:
        return "assistant"
    return "user" if position % 2 == 0 else "assistant"


def parse_gemini_messages(raw_messages: List[Any]) -> List[ParsedMessage]:
    messages: List[ParsedMessage] = []
    for position, message in enumerate(raw_messages):
        if not isinstance(message, dict):
            continue
        content = _gemini_content(message).strip()
        if not content:
            continue
        message_id = message.get("id")
        messages.append(
            ParsedMessage(
                id=message_id if isinstance(message_id, str) and message_id else f"gemini-msg-{position}",
                role=_gemini_role(message, position=position),
                content=content,
                html="",
            )
        )
    return messages


def _conversation_from_data(data: Any) -> Optional[ExtractedConversation]:
    if not isinstance(data, dict):
        return None
    conversation = find_conversation_data(data)
    if conversation is None:
        return None

    raw_messages = _message_list(conversation)
    if raw_messages is None:
        return None
    messages = parse_gemini_messages(raw_messages)
    if not messages:
        return None

    title = conversation.get("title") or conversation.get("name") or DEFAULT_TITLE
    return ExtractedConversation(title=title, messages=messages)


def extract_embedded_json(html: str) -> Optional[ExtractedConversation]:
    for body in script_bodies(parse_document(html)):
        for pattern in EMBEDDED_DATA_PATTERNS:
            match = pattern.search(body)
            if match is None:
                continue
            try:
                data = json.loads(match.group(1))
            except ValueError:
                continue
            extracted = _conversation_from_data(data)
            if extracted is not None:
                return extracted
    return None


def collect_wrb_messages(batch: List[Any]) -> List[ParsedMessage]:
    """Walk a `wrb.fr` batch array for objects that carry text or content."""
    messages: List[ParsedMessage] = []
    stack: List[Any] = [batch]
    while stack:
        value = stack.pop()
        if isinstance(value, list):
            stack.extend(reversed(value))
            continue
        if not isinstance(value, dict):
            continue
        content = value.get("text") or value.get("content")
        if not isinstance(content, str) or not content.strip():
            continue
        is_user = value.get("author") == "user" or value.get("role") == "user"
        message_id = value.get("id")
        messages.append(
            ParsedMessage(
                id=message_id if isinstance(message_id, str) and message_id else f"gemini-wrb-{len(messages)}",
                role="user" if is_user else "assistant",
                content=content.strip(),
                html="",
            )
        )
    return messages


def extract_wrb_data(html: str) -> Optional[ExtractedConversation]:
    for body in script_bodies(parse_document(html)):
        match = WRB_ARRAY_PATTERN.search(body)
        if match is None:
            continue
        try:
            batch = json.loads(match.group(0))
        except ValueError:
            continue
        if not isinstance(batch, list):
            continue
        messages = collect_wrb_messages(batch)
        if messages:
            return ExtractedConversation(title=DEFAULT_TITLE, messages=messages)
    return None


def extract_gemini_dom(html: str) -> Optional[ExtractedConversation]:
    return extract_dom(html, profile=GEMINI_DOM_PROFILE)


GEMINI_STRATEGIES = (
    Strategy(name="embedded_json", extract=extract_embedded_json),
    Strategy(name="wrb_data", extract=extract_wrb_data),
    Strategy(name="dom", extract=extract_gemini_dom),
)


class GeminiParserService:
    """Service for parsing Gemini conversations from share URLs."""

    platform: Platform = "gemini"

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self._transport = transport

    def can_parse(self, url: str) -> bool:
        return any(pattern.fullmatch(url) for pattern in GEMINI_URL_PATTERNS)

    def get_supported_patterns(self) -> List[str]:
        return ["https://gemini.google.com/share/*", "https://g.co/gemini/share/*"]

    def parse_page(self, html: str, url: str) -> ParseOutcome:
        outcome = run_strategies(GEMINI_STRATEGIES, html)
        return build_parse_outcome(outcome, html=html, url=url, platform="gemini")

    async def parse(self, url: str) -> ParseResult:
        outcome = await self.parse_with_strategy(url)
        return outcome.result

    async def parse_with_strategy(self, url: str) -> ParseOutcome:
        if not self.can_parse(url):
            raise InvalidUrlError("Invalid Gemini share URL")

        logger.debug(f"Starting Gemini conversation parsing for URL: {url}")
        html = await fetch_share_page(
            url,
            not_found_message="Gemini conversation not found",
            transport=self._transport,
        )
        return self.parse_page(html, url=url)
