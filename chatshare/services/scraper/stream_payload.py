"""
Streamed payload location.

Share pages rendered by a streaming router embed their loader data as
`streamController.enqueue("...")` calls. Each argument is a JSON string
literal whose value is itself a JSON document, so a fragment is decoded
twice: once to unescape the literal, once to parse the array inside.
"""

import json
import logging
import re
from typing import Any, Iterator, List, Optional

logger = logging.getLogger(__name__)

ENQUEUE_PATTERN = re.compile(r'streamController\.enqueue\("((?:[^"\\]|\\.)*)"\)', re.DOTALL)

# Fragments shorter than this cannot hold a conversation.
MIN_PAYLOAD_LENGTH = 1000


def iter_enqueue_fragments(html: str) -> Iterator[str]:
    """Yield the raw, still-escaped argument of every enqueue call in document order."""
    for match in ENQUEUE_PATTERN.finditer(html):
        yield match.group(1)


def decode_fragment(raw: str) -> Optional[List[Any]]:
    """Double-decode one fragment; None when either decode fails or the root is not an array."""
    try:
        unescaped = json.loads(f'"{raw}"')
        parsed = json.loads(unescaped)
    except (ValueError, TypeError):
        return None
    if not isinstance(parsed, list):
        return None
    return parsed


def select_marked_payload(html: str, marker: str) -> Optional[List[Any]]:
    """
    Pick the most complete decoded fragment that contains `marker` as a heap value.

    Longest array wins; the first one seen wins a tie. Undecodable fragments
    are skipped.
    """
    best: Optional[List[Any]] = None
    for raw in iter_enqueue_fragments(html):
        heap = decode_fragment(raw)
        if heap is None or marker not in heap:
            continue
        if best is None or len(heap) > len(best):
            best = heap
    return best


def select_largest_payload(
    html: str, min_length: int = MIN_PAYLOAD_LENGTH
) -> Optional[List[Any]]:
    """
    Pick the decodable fragment with the longest raw text.

    Returns None when nothing decodes or the winner is shorter than
    `min_length` characters.
    """
    best_raw: Optional[str] = None
    best_heap: Optional[List[Any]] = None
    for raw in iter_enqueue_fragments(html):
        if best_raw is not None and len(raw) <= len(best_raw):
            continue
        heap = decode_fragment(raw)
        if heap is None:
            continue
        best_raw, best_heap = raw, heap

    if best_raw is None or len(best_raw) < min_length:
        logger.debug("No streamed payload large enough to hold a conversation")
        return None
    return best_heap
