from typing import Any, List

import pytest

from chatshare.services.scraper.content_classifier import (
    ContentClassification,
    classify,
    find_reasoning_indices,
    is_filtered_content,
    is_valid_message_content,
    looks_like_standalone_code,
)


class TestIsValidMessageContent:
    def test_metadata_keyword_is_rejected(self) -> None:
        assert is_valid_message_content("user") is False

    def test_plain_sentence_is_accepted(self) -> None:
        assert is_valid_message_content("Hello, how are you today?") is True

    @pytest.mark.parametrize(
        "value",
        [
            "Content",
            "finished_successfully",
            "123e4567-e89b-12d3-a456-426614174000",
            "12345",
            "3.14",
            "gpt-4o",
            "abc123",
            "example.com",
            "example.com, docs.python.org",
            "_internal note",
            "$ref to something",
            "a",
        ],
    )
    def test_identifiers_and_metadata_are_rejected(self, value: str) -> None:
        assert is_valid_message_content(value) is False

    @pytest.mark.parametrize("value", [None, 42, ["Hello there"], {"text": "Hello there"}])
    def test_non_strings_are_rejected(self, value: Any) -> None:
        assert is_valid_message_content(value) is False

    def test_single_word_without_signal_is_rejected(self) -> None:
        assert is_valid_message_content("Hello") is False

    def test_multiline_text_is_accepted(self) -> None:
        assert is_valid_message_content("first line\nsecond line") is True

    def test_cjk_text_is_accepted(self) -> None:
        assert is_valid_message_content("你好") is True

    def test_code_punctuation_is_accepted(self) -> None:
        assert is_valid_message_content("x=compute(y)") is True


class TestLooksLikeStandaloneCode:
    def test_import_block_is_code(self) -> None:
        assert looks_like_standalone_code("import os\nprint(os.getcwd())") is True

    def test_sentence_mentioning_code_words_is_not_code(self) -> None:
        assert looks_like_standalone_code("This is a sentence about imports and classes.") is False

    def test_function_definition_is_code(self) -> None:
        assert looks_like_standalone_code("def area(radius):\n    return 3.14 * radius ** 2") is True

    def test_decorator_first_line_is_code(self) -> None:
        assert looks_like_standalone_code("@app.get('/')\nasync def root():\n    return {}") is True

    def test_mostly_assignments_is_code(self) -> None:
        assert looks_like_standalone_code("x = 1\ny = 2\nz = x + y") is True

    def test_numeric_expression_is_code(self) -> None:
        assert looks_like_standalone_code("1 + 2 * 3") is True

    def test_bulleted_explanation_is_not_code(self) -> None:
        content = (
            "Here is how you do it.\n"
            "- First open the file with the editor\n"
            "- Then read every line carefully"
        )
        assert looks_like_standalone_code(content) is False

    def test_markdown_heading_and_prose_is_not_code(self) -> None:
        content = (
            "## Summary\n"
            "The sorted function returns a new list and leaves the input untouched.\n"
            "**Note:** list.sort works in place instead."
        )
        assert looks_like_standalone_code(content) is False

    def test_explanation_with_a_few_code_lines_is_not_code(self) -> None:
        content = (
            "You can sort a list of numbers with the built-in function below.\n"
            "values = [3, 1, 2]\n"
            "It works on any iterable and returns a brand new list for you.\n"
            "There is also an in-place variant on list objects themselves."
        )
        assert looks_like_standalone_code(content) is False


class TestIsFilteredContent:
    def test_filtered_content_type_before_candidate(self) -> None:
        heap = ["assistant", "content_type", "tether_quote", "Quoted text from the page"]

        assert is_filtered_content(heap, 3) is True

    def test_tool_role_before_candidate(self) -> None:
        heap = ["tool", "Result of the tool call here"]

        assert is_filtered_content(heap, 1) is True

    def test_code_execution_keyword_after_candidate(self) -> None:
        heap = ["user", "Hello there friend", "python"]

        assert is_filtered_content(heap, 1) is True

    def test_role_marker_stops_lookbehind(self) -> None:
        heap = ["tool", "user", "Hello there friend"]

        assert is_filtered_content(heap, 2) is False

    def test_role_marker_stops_lookahead(self) -> None:
        heap = ["Hello there friend", "assistant", "python"]

        assert is_filtered_content(heap, 0) is False

    def test_markers_outside_window_are_ignored(self) -> None:
        heap: List[Any] = ["tool"] + ["zz"] * 60 + ["Hello there friend"]

        assert is_filtered_content(heap, len(heap) - 1) is False

    def test_non_string_neighbours_are_skipped(self) -> None:
        heap: List[Any] = ["system", {"_1": 2}, [4], 12, "Hello there friend"]

        assert is_filtered_content(heap, 4) is True


class TestFindReasoningIndices:
    def test_long_strings_after_marker_are_reasoning(self) -> None:
        heap = [
            "thoughts",
            "short",
            "Considering how to explain sorting",
            "user",
            "This is a user message that is long enough",
        ]

        assert find_reasoning_indices(heap) == {2}

    def test_no_markers_means_no_reasoning(self) -> None:
        heap = ["user", "This is a user message that is long enough"]

        assert find_reasoning_indices(heap) == set()


class TestClassify:
    def test_plain_message_is_extractable(self) -> None:
        verdict = classify("Hello, how are you today?")

        assert verdict == ContentClassification(
            is_message_content=True,
            is_code=False,
            is_reasoning=False,
            is_filtered_by_context=False,
        )
        assert verdict.is_extractable is True

    def test_code_is_not_extractable(self) -> None:
        verdict = classify("import os\nprint(os.getcwd())")

        assert verdict.is_message_content is True
        assert verdict.is_code is True
        assert verdict.is_extractable is False

    def test_metadata_is_neither_content_nor_code(self) -> None:
        verdict = classify("assistant")

        assert verdict.is_message_content is False
        assert verdict.is_code is False

    def test_code_is_flagged_even_when_not_message_content(self) -> None:
        verdict = classify("1+2")

        assert verdict.is_message_content is False
        assert verdict.is_code is True
        assert verdict.is_extractable is False

    def test_non_strings_are_never_code(self) -> None:
        verdict = classify(["import os"])

        assert verdict.is_message_content is False
        assert verdict.is_code is False

    def test_reasoning_context_blocks_extraction(self) -> None:
        heap = ["reasoning_recap", "Thought about sorting for a few seconds"]

        verdict = classify(heap[1], heap=heap, index=1)

        assert verdict.is_reasoning is True
        assert verdict.is_extractable is False

    def test_filtered_context_blocks_extraction(self) -> None:
        heap = ["tool", "Search results for sorting algorithms"]

        verdict = classify(heap[1], heap=heap, index=1)

        assert verdict.is_filtered_by_context is True
        assert verdict.is_extractable is False

    def test_context_checks_skipped_without_position(self) -> None:
        verdict = classify("Search results for sorting algorithms", heap=["tool"])

        assert verdict.is_filtered_by_context is False
        assert verdict.is_reasoning is False

    def test_precomputed_reasoning_indices_are_used(self) -> None:
        heap = ["user", "Hello, how are you today?"]

        verdict = classify(heap[1], heap=heap, index=1, reasoning_indices={1})

        assert verdict.is_reasoning is True
