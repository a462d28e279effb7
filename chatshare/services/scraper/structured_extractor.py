"""
Structured extraction from a decoded conversation graph.

The share page's loader data holds a `serverResponse` envelope whose
`data` is the exported conversation: a `mapping` of node id to node, where
each node may carry a `message` and links to its `parent`/`children`, plus
a `current_node` pointer to the leaf of the active branch.
"""

import logging
from typing import Any, Dict, List, Optional, Set

from chatshare.models import ExtractedConversation, ParsedMessage
from chatshare.services.scraper.heap_decoder import HeapDecoder
from chatshare.services.scraper.stream_payload import select_marked_payload

logger = logging.getLogger(__name__)

SERVER_RESPONSE_MARKER = "serverResponse"
SYNTHETIC_ROOT_ID = "client-created-root"
TEXT_CONTENT_TYPE = "text"
DEFAULT_TITLE = "ChatGPT Conversation"

# Hard cap on the last-child walk so a malformed graph cannot loop forever.
MAX_TREE_WALK_STEPS = 10000


def _as_dict(value: Any) -> Optional[Dict[str, Any]]:
    return value if isinstance(value, dict) else None


def resolve_node_path(mapping: Dict[str, Any], current_node: Optional[str]) -> List[str]:
    """
    Return the active conversation path, root first.

    Follows `parent` links up from `current_node` when it resolves, which
    picks the most recently edited branch. Otherwise walks down from the
    synthetic root taking the last child at each level.
    """
    path: List[str] = []
    seen: Set[str] = set()

    def get_node(node_id: str) -> Optional[Dict[str, Any]]:
        return _as_dict(mapping.get(node_id))

    if current_node and get_node(current_node) is not None:
        cursor: Optional[str] = current_node
        while cursor and cursor not in seen:
            seen.add(cursor)
            path.append(cursor)
            node = get_node(cursor)
            parent = node.get("parent") if node else None
            cursor = parent if isinstance(parent, str) else None
        path.reverse()
        return path

    cursor = SYNTHETIC_ROOT_ID
    for _ in range(MAX_TREE_WALK_STEPS):
        if not cursor or cursor in seen:
            break
        seen.add(cursor)
        path.append(cursor)
        node = get_node(cursor)
        children = node.get("children") if node else None
        last_child = children[-1] if isinstance(children, list) and children else None
        cursor = last_child if isinstance(last_child, str) else None
    return path


def _message_from_node(node_id: str, node: Dict[str, Any]) -> Optional[ParsedMessage]:
    message = _as_dict(node.get("message"))
    if message is None:
        return None
    author = _as_dict(message.get("author"))
    if author is None:
        return None
    role = author.get("role")
    if role not in ("user", "assistant"):
        return None
    content = _as_dict(message.get("content"))
    if content is None or content.get("content_type") != TEXT_CONTENT_TYPE:
        return None

    parts = content.get("parts")
    text = "".join(part for part in parts if isinstance(part, str)) if isinstance(parts, list) else ""
    if not text.strip():
        return None

    message_id = message.get("id")
    return ParsedMessage(
        id=message_id if isinstance(message_id, str) else node_id,
        role=role,
        content=text,
        html="",
    )


def messages_from_conversation(conversation: Dict[str, Any]) -> Optional[ExtractedConversation]:
    """
    Build the ordered message list from a literal conversation export
    (`{title, mapping, current_node}`). Nodes that are not user/assistant
    text turns are skipped without stopping the walk.
    """
    mapping = _as_dict(conversation.get("mapping"))
    if mapping is None:
        return None

    current_node = conversation.get("current_node")
    title = conversation.get("title")
    if not isinstance(title, str) or not title:
        title = DEFAULT_TITLE

    path = resolve_node_path(
        mapping=mapping,
        current_node=current_node if isinstance(current_node, str) else None,
    )
    if not path:
        return None

    messages: List[ParsedMessage] = []
    for node_id in path:
        node = _as_dict(mapping.get(node_id))
        if node is None:
            continue
        message = _message_from_node(node_id=node_id, node=node)
        if message is not None:
            messages.append(message)

    if not messages:
        return None
    return ExtractedConversation(title=title, messages=messages)


def extract_structured(html: str) -> Optional[ExtractedConversation]:
    """Decode the `serverResponse` envelope from the streamed heap and walk its graph."""
    heap = select_marked_payload(html, marker=SERVER_RESPONSE_MARKER)
    if heap is None:
        logger.debug("No streamed payload carries a serverResponse marker")
        return None

    marker_index = heap.index(SERVER_RESPONSE_MARKER)
    pointer = heap[marker_index + 1] if marker_index + 1 < len(heap) else None
    if not isinstance(pointer, dict):
        return None

    envelope = _as_dict(HeapDecoder(heap).decode_value(pointer))
    if envelope is None:
        return None
    conversation = _as_dict(envelope.get("data"))
    if conversation is None:
        return None

    extracted = messages_from_conversation(conversation)
    if extracted is not None:
        logger.debug(f"Structured walk produced {len(extracted.messages)} messages")
    return extracted
