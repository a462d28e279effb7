"""
Heap decoder for pointer-compacted stream payloads.

The payload is a flat array (the heap). Objects in it are compacted into
pointer objects: each key is `_<N>`, where heap[N] holds the real property
name, and each value is the heap index of the property value. Arrays hold
heap indices for their elements. Decoding rebuilds ordinary dicts/lists.

Decoding runs on an explicit frame stack rather than the Python call stack,
so deep payloads cannot hit the recursion limit. Every index is memoized,
and a placeholder (None) is stored before an index is expanded: a reference
back into an index that is still being decoded resolves to None instead of
looping, and the finished value replaces the placeholder once done.
"""

from typing import Any, Dict, Generator, List, Optional

# A frame yields heap indices it needs and receives their decoded values.
Frame = Generator[int, Any, Any]


def _is_index(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _has_pointer_keys(value: Dict[str, Any]) -> bool:
    return any(isinstance(key, str) and key.startswith("_") for key in value)


class HeapDecoder:
    """Decodes values out of one heap. Create a fresh decoder per payload."""

    def __init__(self, heap: List[Any]) -> None:
        self._heap = heap
        self._cache: Dict[int, Any] = {}

    def decode(self, index: int) -> Any:
        """Fully decode the value stored at `index`."""
        if index in self._cache:
            return self._cache[index]
        return self._run(self._index_frame(index))

    def decode_value(self, value: Any) -> Any:
        """Decode a value taken from the heap without looking it up by index."""
        return self._run(self._value_frame(value))

    def _in_range(self, index: int) -> bool:
        return 0 <= index < len(self._heap)

    def _property_name(self, key: str) -> Optional[str]:
        suffix = key[1:]
        if not suffix.isdecimal():
            return None
        name_index = int(suffix)
        if not self._in_range(name_index):
            return None
        name = self._heap[name_index]
        return name if isinstance(name, str) else None

    def _run(self, root: Frame) -> Any:
        stack: List[Frame] = [root]
        sent: Any = None
        result: Any = None
        while stack:
            frame = stack[-1]
            try:
                index = frame.send(sent)
            except StopIteration as stop:
                stack.pop()
                result = stop.value
                sent = result
                continue

            if index in self._cache:
                sent = self._cache[index]
            elif not self._in_range(index):
                self._cache[index] = None
                sent = None
            else:
                self._cache[index] = None
                stack.append(self._index_frame(index))
                sent = None
        return result

    def _index_frame(self, index: int) -> Frame:
        if not self._in_range(index):
            return None
        self._cache.setdefault(index, None)
        decoded = yield from self._value_frame(self._heap[index])
        self._cache[index] = decoded
        return decoded

    def _value_frame(self, value: Any) -> Frame:
        if isinstance(value, list):
            items: List[Any] = []
            for item in value:
                if _is_index(item):
                    items.append((yield item))
                else:
                    items.append((yield from self._value_frame(item)))
            return items

        if isinstance(value, dict):
            if not _has_pointer_keys(value):
                return value
            out: Dict[str, Any] = {}
            for key, child in value.items():
                if not key.startswith("_") or not _is_index(child):
                    continue
                name = self._property_name(key)
                if name is None:
                    continue
                out[name] = yield child
            return out

        return value


def decode(heap: List[Any], root_index: int) -> Any:
    """Decode `heap[root_index]` with a fresh memo cache."""
    return HeapDecoder(heap).decode(root_index)
