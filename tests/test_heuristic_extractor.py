from typing import Any, List, Optional

from chatshare.models import Role
from chatshare.services.scraper.heuristic_extractor import (
    Candidate,
    assign_roles,
    build_role_index_map,
    dedupe_candidates,
    detect_role,
    extract_heuristic,
    find_candidates,
    find_title,
)
from tests.conftest import enqueue_fragment, enqueue_html

QUESTION = "How do I sort a list in Python?"
ANSWER = "You can use the sorted function on any iterable."


def _flat_heap() -> List[Any]:
    return [
        "title",
        "Sorting help",
        "user",
        [4],
        QUESTION,
        "assistant",
        [7],
        ANSWER,
    ]


def _candidate(content: str, role: Optional[Role] = None, index: int = 0) -> Candidate:
    return Candidate(index=index, content=content, detected_role=role)


def test_find_candidates_takes_text_after_single_element_arrays() -> None:
    candidates = find_candidates(_flat_heap())

    assert [(c.index, c.content, c.detected_role) for c in candidates] == [
        (4, QUESTION, "user"),
        (7, ANSWER, "assistant"),
    ]


def test_find_candidates_skips_code_metadata_and_reasoning() -> None:
    heap = _flat_heap() + [
        [0],
        "import os\nprint(os.getcwd())",
        [0],
        "finished_successfully",
        "thoughts",
        [0],
        "Thinking about how to explain sorting",
    ]

    contents = [c.content for c in find_candidates(heap)]

    assert contents == [QUESTION, ANSWER]


def test_find_candidates_skips_tool_output() -> None:
    heap: List[Any] = ["tool", [2], "Search results for python sorting"]

    assert find_candidates(heap) == []


def test_find_candidates_ignores_multi_element_arrays() -> None:
    heap: List[Any] = ["user", [1, 2], QUESTION]

    assert find_candidates(heap) == []


def test_detect_role_uses_role_pointer_key() -> None:
    heap: List[Any] = ["assistant"] + ["zz"] * 60 + [{"_49": 0}, [63], ANSWER]
    role_map = build_role_index_map(heap)

    assert detect_role(heap, array_index=62, role_index_map=role_map) == "assistant"


def test_detect_role_falls_back_to_nearest_role_value() -> None:
    heap: List[Any] = ["user", "zz", [3], QUESTION]

    assert detect_role(heap, array_index=2, role_index_map=build_role_index_map(heap)) == "user"


def test_detect_role_gives_up_outside_window() -> None:
    heap: List[Any] = ["user"] + ["zz"] * 60 + [[62], QUESTION]

    assert detect_role(heap, array_index=61, role_index_map=build_role_index_map(heap)) is None


def test_dedupe_collapses_identical_200_char_prefix() -> None:
    prefix = "A" * 100 + " " + "b" * 99
    first = _candidate(prefix + " first tail", index=1)
    second = _candidate(prefix + " second tail", index=2)
    third = _candidate("Something else entirely", index=3)

    unique = dedupe_candidates([first, second, third])

    assert unique == [first, third]


def test_dedupe_keeps_texts_differing_within_prefix() -> None:
    first = _candidate("Hello there, first message")
    second = _candidate("Hello there, second message")

    assert dedupe_candidates([first, second]) == [first, second]


def test_assign_roles_alternates_when_undetected_starting_with_user() -> None:
    messages = assign_roles(
        [_candidate("One two"), _candidate("Three four"), _candidate("Five six")]
    )

    assert [m.role for m in messages] == ["user", "assistant", "user"]
    assert [m.id for m in messages] == ["msg-0", "msg-1", "msg-2"]


def test_assign_roles_alternates_from_last_detected_role() -> None:
    messages = assign_roles(
        [_candidate("One two", role="assistant"), _candidate("Three four"), _candidate("Five six", role="assistant")]
    )

    assert [m.role for m in messages] == ["assistant", "user", "assistant"]


def test_find_title_falls_back_to_default() -> None:
    assert find_title(_flat_heap()) == "Sorting help"
    assert find_title(["title", 3]) == "ChatGPT Conversation"


def test_extract_heuristic_reads_largest_fragment() -> None:
    heap = _flat_heap() + ["padding " * 150]
    html = enqueue_html(enqueue_fragment(["tiny"]), enqueue_fragment(heap))

    extracted = extract_heuristic(html)

    assert extracted is not None
    assert extracted.title == "Sorting help"
    assert [(m.role, m.content) for m in extracted.messages] == [
        ("user", QUESTION),
        ("assistant", ANSWER),
    ]


def test_extract_heuristic_needs_a_large_payload() -> None:
    html = enqueue_html(enqueue_fragment(_flat_heap()))

    assert extract_heuristic(html) is None
