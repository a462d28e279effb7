"""
Pytest configuration and shared fixtures.
"""

import json
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from chatshare.main import app


class HeapBuilder:
    """
    Encodes plain Python values into the pointer-compacted heap format.

    Dicts become pointer objects (`{"_<name index>": <value index>}`) and
    lists become arrays of heap indices. Property names are interned, so a
    name appears once in the heap however often it is used.
    """

    def __init__(self) -> None:
        self.heap: List[Any] = []
        self._names: Dict[str, int] = {}

    def append(self, value: Any) -> int:
        """Append a raw heap value without encoding it."""
        self.heap.append(value)
        return len(self.heap) - 1

    def name(self, key: str) -> int:
        if key not in self._names:
            self._names[key] = self.append(key)
        return self._names[key]

    def add(self, value: Any) -> int:
        index = self.append(None)
        if isinstance(value, dict):
            pointer: Dict[str, int] = {}
            for key, child in value.items():
                pointer[f"_{self.name(key)}"] = self.add(child)
            self.heap[index] = pointer
        elif isinstance(value, list):
            self.heap[index] = [self.add(item) for item in value]
        else:
            self.heap[index] = value
        return index


def enqueue_fragment(heap: List[Any]) -> str:
    """The escaped argument of a `streamController.enqueue` call carrying `heap`."""
    return json.dumps(json.dumps(heap))[1:-1]


def enqueue_html(*fragments: str, title: Optional[str] = None) -> str:
    meta = f'<meta property="og:title" content="{title}">' if title else ""
    scripts = "".join(
        f'<script>window.__reactRouterContext.streamController.enqueue("{fragment}");</script>'
        for fragment in fragments
    )
    return f"<html><head>{meta}<title>Shared chat</title></head><body>{scripts}</body></html>"


def text_node(
    node_id: str,
    role: str,
    text: str,
    parent: Optional[str],
    children: Optional[List[str]] = None,
    content_type: str = "text",
) -> Dict[str, Any]:
    return {
        "id": node_id,
        "message": {
            "id": f"msg-{node_id}",
            "author": {"role": role},
            "content": {"content_type": content_type, "parts": [text]},
        },
        "parent": parent,
        "children": children or [],
    }


def build_conversation(
    turns: List[Dict[str, str]], title: str = "Sorting lists in Python"
) -> Dict[str, Any]:
    """A linear conversation export rooted at the synthetic client root."""
    mapping: Dict[str, Any] = {
        "client-created-root": {
            "id": "client-created-root",
            "message": None,
            "parent": None,
            "children": [],
        }
    }
    parent = "client-created-root"
    for position, turn in enumerate(turns):
        node_id = f"node-{position}"
        mapping[parent]["children"].append(node_id)
        mapping[node_id] = text_node(node_id, role=turn["role"], text=turn["text"], parent=parent)
        parent = node_id
    return {"title": title, "mapping": mapping, "current_node": parent}


def build_server_response_heap(conversation: Dict[str, Any]) -> List[Any]:
    builder = HeapBuilder()
    builder.append("loaderData")
    builder.append("serverResponse")
    builder.add({"type": "data", "data": conversation})
    return builder.heap


@pytest.fixture
def heap_builder() -> HeapBuilder:
    return HeapBuilder()


@pytest.fixture
def two_turn_conversation() -> Dict[str, Any]:
    return build_conversation(
        [
            {"role": "user", "text": "How do I sort a list of numbers in Python?"},
            {"role": "assistant", "text": "Use the built-in sorted function, for example sorted(values)."},
        ]
    )


@pytest.fixture
def chatgpt_share_html(two_turn_conversation: Dict[str, Any]) -> str:
    heap = build_server_response_heap(two_turn_conversation)
    return enqueue_html(enqueue_fragment(heap), title="Sorting lists in Python")


@pytest.fixture
def corrupted_share_html(two_turn_conversation: Dict[str, Any]) -> str:
    fragment = enqueue_fragment(build_server_response_heap(two_turn_conversation))
    truncated = fragment[: len(fragment) // 2].rstrip("\\")
    return enqueue_html(truncated, title="Sorting lists in Python")


@pytest.fixture
def html_transport() -> Callable[..., httpx.MockTransport]:
    """Build a MockTransport that answers every request with the given page."""

    def _build(html: str = "", status_code: int = 200) -> httpx.MockTransport:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status_code, text=html)

        return httpx.MockTransport(handler)

    return _build


@pytest.fixture
def app_client() -> TestClient:
    return TestClient(app)
