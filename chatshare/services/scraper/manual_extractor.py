"""
Manual extraction: the last resort when the streamed heap is unusable.

Tries, in order:
1. literal `"parts": [...]` arrays inside script bodies, roles alternating from "user";
2. a hydration-data script block (e.g. `__NEXT_DATA__`) holding a literal
   conversation export, walked like the structured extractor but without
   pointer decoding;
3. the rendered markup itself, turning message-like elements into turns.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple

import html2text
from bs4 import BeautifulSoup, Tag

from chatshare.models import ExtractedConversation, ParsedMessage, Role
from chatshare.services.scraper.structured_extractor import messages_from_conversation

logger = logging.getLogger(__name__)

PARTS_PATTERN = re.compile(
    r'"parts"\s*:\s*(\[\s*(?:"(?:[^"\\]|\\.)*"\s*(?:,\s*"(?:[^"\\]|\\.)*"\s*)*)?\])',
    re.DOTALL,
)

HYDRATION_SCRIPT_IDS = ("__NEXT_DATA__", "__NUXT_DATA__")
MAX_HYDRATION_DEPTH = 12

CONTENT_ROOT_SELECTOR = ".markdown, .prose, .whitespace-pre-wrap, [data-message-content]"
ROLE_ATTRIBUTES = (
    "data-message-author-role",
    "data-role",
    "data-sender",
    "data-message-role",
    "data-testid",
)
USER_ROLE_VALUES = frozenset({"user", "human", "user-message"})
ASSISTANT_ROLE_VALUES = frozenset({"assistant", "model", "gemini", "claude", "chatgpt"})

NOISE_EXACT = frozenset(
    {
        "log in",
        "sign up",
        "sign up for free",
        "cookie preferences",
        "share",
        "copy link",
        "new chat",
        "get the app",
        "upgrade",
    }
)
NOISE_SUBSTRINGS = (
    "we use cookies",
    "cookie settings",
    "accept all cookies",
    "reject all cookies",
    "performance & security by cloudflare",
    "verify you are human",
)
HEADER_NOISE_PREFIXES = ("log in", "sign up", "sign in", "cookie", "search")


@dataclass(frozen=True)
class DomProfile:
    """Provider-specific knobs for markup extraction."""

    selectors: Tuple[str, ...]
    id_prefix: str = "dom-msg"
    default_title: str = "Conversation"
    user_class_markers: Tuple[str, ...] = ("human", "user")
    assistant_class_markers: Tuple[str, ...] = ("assistant",)
    title_affixes: Tuple[str, ...] = field(default_factory=tuple)


CHATGPT_DOM_PROFILE = DomProfile(
    selectors=(
        "main [data-message-author-role]",
        "article [data-message-author-role]",
        "[data-message-author-role]",
        "main article",
        "article",
    ),
    id_prefix="chatgpt-html-msg",
    default_title="ChatGPT Conversation",
    title_affixes=("ChatGPT - ", " - ChatGPT"),
)


def parse_document(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


def _new_html_converter() -> html2text.HTML2Text:
    converter = html2text.HTML2Text()
    converter.ignore_links = False
    converter.body_width = 0  # Disable line wrapping
    converter.protect_links = True
    converter.single_line_break = True
    return converter


def read_meta_title(soup: BeautifulSoup) -> Optional[str]:
    """Return the page's og:title, if it has a non-empty one."""
    meta = soup.find("meta", attrs={"property": "og:title"})
    if isinstance(meta, Tag):
        content = meta.get("content")
        if isinstance(content, str) and content.strip():
            return content.strip()
    return None


def read_page_title(soup: BeautifulSoup, profile: DomProfile) -> str:
    meta_title = read_meta_title(soup)
    if meta_title:
        return meta_title
    title_tag = soup.find("title")
    if isinstance(title_tag, Tag):
        text = title_tag.get_text()
        for affix in profile.title_affixes:
            text = text.replace(affix, "")
        text = text.strip()
        if text:
            return text
    return profile.default_title


def script_bodies(soup: BeautifulSoup) -> List[str]:
    bodies: List[str] = []
    for script in soup.find_all("script"):
        body = script.string if script.string is not None else script.get_text()
        if body and body.strip():
            bodies.append(str(body))
    return bodies


def is_noise_text(text: str) -> bool:
    """Return True if the text is clearly UI chrome and not a chat message."""
    if not text:
        return True
    normalized = "\n".join(line.strip() for line in text.splitlines()).strip().lower()
    if normalized in NOISE_EXACT:
        return True
    if any(substring in normalized for substring in NOISE_SUBSTRINGS):
        return True
    if len(normalized) <= 2:
        return True
    if any(normalized.startswith(prefix) for prefix in HEADER_NOISE_PREFIXES) and len(normalized) <= 30:
        return True
    letters = [c for c in normalized if c.isalpha()]
    return len(letters) < 3


def extract_parts_arrays(soup: BeautifulSoup) -> List[ParsedMessage]:
    messages: List[ParsedMessage] = []
    for body in script_bodies(soup):
        for match in PARTS_PATTERN.finditer(body):
            try:
                parts = json.loads(match.group(1))
            except ValueError:
                continue
            text = "".join(part for part in parts if isinstance(part, str))
            if not text.strip():
                continue
            role: Role = "user" if len(messages) % 2 == 0 else "assistant"
            messages.append(
                ParsedMessage(id=f"parts-msg-{len(messages)}", role=role, content=text, html="")
            )
    return messages


def find_conversation_export(data: Any) -> Optional[Dict[str, Any]]:
    """Breadth-first search for the first object holding a `mapping` object."""
    queue: List[Tuple[Any, int]] = [(data, 0)]
    while queue:
        value, depth = queue.pop(0)
        if depth > MAX_HYDRATION_DEPTH:
            continue
        if isinstance(value, dict):
            if isinstance(value.get("mapping"), dict):
                return value
            queue.extend((child, depth + 1) for child in value.values())
        elif isinstance(value, list):
            queue.extend((child, depth + 1) for child in value)
    return None


def extract_hydration_mapping(soup: BeautifulSoup) -> Optional[ExtractedConversation]:
    for script in soup.find_all("script"):
        is_hydration = script.get("id") in HYDRATION_SCRIPT_IDS or script.get("type") == "application/json"
        if not is_hydration:
            continue
        try:
            data = json.loads(script.get_text())
        except ValueError:
            logger.debug("Skipping hydration script that is not valid JSON")
            continue
        conversation = find_conversation_export(data)
        if conversation is None:
            continue
        extracted = messages_from_conversation(conversation)
        if extracted is not None:
            return extracted
    return None


def resolve_dom_role(element: Tag, position: int, profile: DomProfile) -> Role:
    for attribute in ROLE_ATTRIBUTES:
        value = element.get(attribute)
        if isinstance(value, str):
            normalized = value.strip().lower()
            if normalized in USER_ROLE_VALUES:
                return "user"
            if normalized in ASSISTANT_ROLE_VALUES:
                return "assistant"

    classes = element.get("class") or []
    class_text = " ".join(classes if isinstance(classes, list) else [classes]).lower()
    if any(marker in class_text for marker in profile.user_class_markers):
        return "user"
    if any(marker in class_text for marker in profile.assistant_class_markers):
        return "assistant"

    return "user" if position % 2 == 0 else "assistant"


def _message_from_element(
    element: Tag, position: int, profile: DomProfile, converter: html2text.HTML2Text
) -> Optional[ParsedMessage]:
    content_root = element.select_one(CONTENT_ROOT_SELECTOR) or element
    inner_html = content_root.decode_contents().strip()
    content = converter.handle(inner_html).strip() if inner_html else ""
    if not content:
        content = content_root.get_text("\n", strip=True)
    if is_noise_text(content):
        return None
    return ParsedMessage(
        id=f"{profile.id_prefix}-{position}",
        role=resolve_dom_role(element, position=position, profile=profile),
        content=content,
        html=inner_html,
    )


def extract_dom_messages(soup: BeautifulSoup, profile: DomProfile) -> List[ParsedMessage]:
    """Return the turns found by the first selector that yields any."""
    converter = _new_html_converter()
    for selector in profile.selectors:
        accepted_ids: Set[int] = set()
        messages: List[ParsedMessage] = []
        for element in soup.select(selector):
            if any(id(parent) in accepted_ids for parent in element.parents):
                continue
            message = _message_from_element(
                element, position=len(messages), profile=profile, converter=converter
            )
            if message is None:
                continue
            accepted_ids.add(id(element))
            messages.append(message)
        if messages:
            logger.debug(f"DOM selector {selector!r} matched {len(messages)} messages")
            return messages
    return []


def extract_dom(html: str, profile: DomProfile) -> Optional[ExtractedConversation]:
    soup = parse_document(html)
    messages = extract_dom_messages(soup, profile=profile)
    if not messages:
        return None
    return ExtractedConversation(title=read_page_title(soup, profile=profile), messages=messages)


def extract_manual(
    html: str, profile: DomProfile = CHATGPT_DOM_PROFILE
) -> Optional[ExtractedConversation]:
    soup = parse_document(html)

    parts_messages = extract_parts_arrays(soup)
    if parts_messages:
        logger.debug(f"Manual extraction found {len(parts_messages)} literal parts arrays")
        return ExtractedConversation(
            title=read_page_title(soup, profile=profile), messages=parts_messages
        )

    hydrated = extract_hydration_mapping(soup)
    if hydrated is not None:
        logger.debug("Manual extraction used hydration data")
        return hydrated

    dom_messages = extract_dom_messages(soup, profile=profile)
    if dom_messages:
        return ExtractedConversation(
            title=read_page_title(soup, profile=profile), messages=dom_messages
        )
    return None
