"""
Heuristic extraction from the flat stream heap.

Used when the conversation graph cannot be decoded. Message text in the
flat encoding sits right after a single-element array, so every such pair
whose string passes the content classifier becomes a candidate turn.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Set

from chatshare.models import ExtractedConversation, ParsedMessage, Role
from chatshare.services.scraper.content_classifier import (
    ROLE_MARKERS,
    classify,
    find_reasoning_indices,
)
from chatshare.services.scraper.stream_payload import select_largest_payload

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "ChatGPT Conversation"

# Pointer objects carrying this key reference the heap index of the author role.
ROLE_POINTER_KEY = "_49"
ROLE_LOOKBEHIND_WINDOW = 50
DEDUPE_PREFIX_LENGTH = 200


@dataclass
class Candidate:
    index: int
    content: str
    detected_role: Optional[Role]


def find_title(heap: Sequence[Any]) -> str:
    for i in range(len(heap) - 1):
        if heap[i] == "title" and isinstance(heap[i + 1], str) and heap[i + 1]:
            return heap[i + 1]
    return DEFAULT_TITLE


def build_role_index_map(heap: Sequence[Any]) -> Dict[int, Role]:
    return {i: value for i, value in enumerate(heap) if isinstance(value, str) and value in ROLE_MARKERS}


def detect_role(
    heap: Sequence[Any], array_index: int, role_index_map: Dict[int, Role]
) -> Optional[Role]:
    """
    Scan backwards from a candidate for its author role: a pointer object
    whose role key references a role marker, or failing that the nearest
    bare "user"/"assistant" value.
    """
    for j in range(array_index - 1, max(0, array_index - ROLE_LOOKBEHIND_WINDOW) - 1, -1):
        value = heap[j]
        if isinstance(value, dict):
            pointer = value.get(ROLE_POINTER_KEY)
            if isinstance(pointer, int) and not isinstance(pointer, bool):
                role = role_index_map.get(pointer)
                if role:
                    return role
        if isinstance(value, str) and value in ROLE_MARKERS:
            return value  # type: ignore[return-value]
    return None


def find_candidates(heap: List[Any]) -> List[Candidate]:
    reasoning_indices = find_reasoning_indices(heap)
    role_index_map = build_role_index_map(heap)

    candidates: List[Candidate] = []
    for i in range(len(heap) - 1):
        marker = heap[i]
        if not isinstance(marker, list) or len(marker) != 1:
            continue
        content_index = i + 1
        verdict = classify(
            heap[content_index],
            heap=heap,
            index=content_index,
            reasoning_indices=reasoning_indices,
        )
        if not verdict.is_extractable or not heap[content_index].strip():
            continue
        candidates.append(
            Candidate(
                index=content_index,
                content=heap[content_index],
                detected_role=detect_role(heap, array_index=i, role_index_map=role_index_map),
            )
        )
    return candidates


def dedupe_candidates(candidates: List[Candidate]) -> List[Candidate]:
    """Keep the first candidate for each content prefix, preserving order."""
    seen: Set[str] = set()
    unique: List[Candidate] = []
    for candidate in candidates:
        key = candidate.content[:DEDUPE_PREFIX_LENGTH]
        if key in seen:
            continue
        seen.add(key)
        unique.append(candidate)
    return unique


def assign_roles(candidates: List[Candidate]) -> List[ParsedMessage]:
    """
    Turn candidates into messages. A candidate without a detected role takes
    the opposite of the previous message's role ("user" first). This is a
    best-effort guess and can misattribute turns.
    """
    messages: List[ParsedMessage] = []
    last_role: Optional[Role] = None
    for position, candidate in enumerate(candidates):
        if candidate.detected_role:
            role: Role = candidate.detected_role
        else:
            role = "assistant" if last_role == "user" else "user"
        last_role = role
        messages.append(
            ParsedMessage(id=f"msg-{position}", role=role, content=candidate.content, html="")
        )
    return messages


def extract_heuristic(html: str) -> Optional[ExtractedConversation]:
    heap = select_largest_payload(html)
    if heap is None:
        return None

    candidates = find_candidates(heap)
    if not candidates:
        logger.debug("Heuristic scan found no candidate messages")
        return None

    unique = dedupe_candidates(candidates)
    logger.debug(f"Heuristic scan kept {len(unique)} of {len(candidates)} candidates")
    return ExtractedConversation(title=find_title(heap), messages=assign_roles(unique))
