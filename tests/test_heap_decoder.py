from typing import Any, List

from chatshare.services.scraper.heap_decoder import HeapDecoder, decode
from tests.conftest import HeapBuilder


def test_decodes_pointer_object_into_named_properties() -> None:
    heap = [{"_1": 2, "_3": 4}, "title", "Trip planning", "count", 3]

    assert decode(heap, 0) == {"title": "Trip planning", "count": 3}


def test_decodes_arrays_of_indices() -> None:
    heap: List[Any] = [[1, 2], "first", {"_3": 1}, "name"]

    assert decode(heap, 0) == ["first", {"name": "first"}]


def test_builder_round_trips_nested_structure(heap_builder: HeapBuilder) -> None:
    value = {
        "title": "Nested",
        "mapping": {"a": {"children": ["b", "c"], "parent": None}},
        "flags": [True, False],
        "weight": 1.5,
    }
    root = heap_builder.add(value)

    assert decode(heap_builder.heap, root) == value


def test_self_referential_pointer_terminates() -> None:
    heap = [{"_1": 0}, "self"]

    decoded = decode(heap, 0)

    assert decoded == {"self": None}


def test_two_node_cycle_terminates() -> None:
    heap = [{"_2": 1}, {"_3": 0}, "next", "back"]

    decoded = decode(heap, 0)

    assert decoded == {"next": {"back": None}}


def test_placeholder_is_replaced_once_index_finishes() -> None:
    heap = [{"_2": 1}, {"_3": 0}, "next", "back"]
    decoder = HeapDecoder(heap)

    first = decoder.decode(0)
    again = decoder.decode(0)

    assert first is not None
    assert again is first


def test_decoding_is_deterministic_across_fresh_caches() -> None:
    heap = [{"_1": 2, "_3": 0}, "items", [4, 4, 0], "loop", "entry"]

    assert decode(heap, 0) == decode(heap, 0)


def test_decoding_plain_values_is_idempotent() -> None:
    decoder = HeapDecoder(["unused"])

    assert decoder.decode_value("plain text") == "plain text"
    assert decoder.decode_value(42) == 42
    assert decoder.decode_value(None) is None
    assert decoder.decode_value({"title": "Already decoded"}) == {"title": "Already decoded"}


def test_decoding_a_decoded_value_again_returns_it_unchanged(heap_builder: HeapBuilder) -> None:
    root = heap_builder.add({"title": "Once", "parts": ["a b c"]})
    decoded = decode(heap_builder.heap, root)

    assert HeapDecoder(heap_builder.heap).decode_value(decoded["title"]) == "Once"


def test_shared_references_decode_to_the_same_object() -> None:
    heap = [[2, 2], "key", {"_1": 3}, "value"]

    decoded = decode(heap, 0)

    assert decoded == [{"key": "value"}, {"key": "value"}]
    assert decoded[0] is decoded[1]


def test_out_of_range_and_negative_indices_decode_to_none() -> None:
    heap = [{"_1": 99, "_2": -5}, "missing", "undefined"]

    assert decode(heap, 0) == {"missing": None, "undefined": None}
    assert decode(heap, 7) is None


def test_keys_with_unusable_names_are_skipped() -> None:
    heap = [{"_1": 3, "_2": 3, "_99": 3, "_x": 3, "plain": 3}, 17, "kept", "value"]

    assert decode(heap, 0) == {"kept": "value"}


def test_boolean_values_are_not_treated_as_indices() -> None:
    heap = [{"_1": True}, "flag"]

    assert decode(heap, 0) == {}


def test_dict_without_pointer_keys_is_returned_as_is() -> None:
    heap = [{"role": "user"}]

    assert decode(heap, 0) == {"role": "user"}


def test_deep_nesting_does_not_exhaust_the_call_stack() -> None:
    depth = 5000
    heap: List[Any] = [[i + 1] for i in range(depth)]
    heap.append("leaf")

    value = decode(heap, 0)
    for _ in range(depth):
        value = value[0]

    assert value == "leaf"
