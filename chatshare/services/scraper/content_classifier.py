"""
Content classification heuristics for flat stream heaps.

A heap interleaves real message text with property names, ids, model slugs,
tool output and reasoning summaries. The predicates here decide which
strings look like conversation turns. Context predicates take the heap and
a position and scan a bounded window around it, stopping at the nearest
role boundary ("user" / "assistant").
"""

import re
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Set

ROLE_MARKERS = frozenset({"user", "assistant"})

METADATA_KEYWORDS = frozenset(
    {
        "user", "assistant", "system", "text", "parts", "role", "content",
        "metadata", "author", "message", "status", "finished_successfully",
        "all", "recipient", "weight", "end_turn", "children", "parent",
        "id", "mapping", "create_time", "update_time", "model_slug",
        "default_model_slug", "parent_id", "channel", "final", "stop", "stop_tokens",
        "finish_details", "is_complete", "citations", "content_references", "message_type",
        "next", "origin", "ntp", "client_id", "client_capability_version", "sources",
        "request_id", "message_source", "turn_exchange_id", "rebase_system_message",
        "sonic_classification_result", "latency_ms", "search_decision", "classifier_config",
        "content_type", "is_visually_hidden_from_conversation", "shared_conversation_id",
        "loaderData", "root", "dd", "traceId", "traceTime", "disablePrefetch",
        "shouldPrefetchAccount", "shouldPrefetchUser", "shouldPrefetchSystemHints",
        "promoteCss", "disableSSR", "statsigGateEvaluationsPromise", "sharedConversationId",
        "serverResponse", "type", "data", "client-created-root", "history_off_approved",
    }
)

REASONING_KEYWORDS = frozenset(
    {
        "reasoning_title", "reasoning_recap", "reasoning_status", "reasoning_ended",
        "thoughts", "thinking", "is_reasoning", "thinking_effort", "skip_reasoning_title",
        "finished_duration_sec", "source_analysis_msg_id",
    }
)

FILTERED_CONTENT_TYPES = frozenset(
    {
        "execution_output", "code", "tether_browsing_display", "tether_quote",
        "system_error", "stderr", "multimodal_text",
    }
)

FILTERED_ROLES = frozenset({"tool", "system"})

CODE_EXECUTION_KEYWORDS = frozenset(
    {
        "python", "code", "execution_output", "aggregate_result", "run_id",
        "start_time", "end_time", "final_expression_output", "in_kernel_exception",
        "system_exception", "success", "jupyter_messages", "jupyter_message_type",
    }
)

CONTEXT_LOOKBEHIND = 50
CONTEXT_LOOKAHEAD = 30
REASONING_CONTENT_LOOKAHEAD = 100
MIN_REASONING_CONTENT_LENGTH = 20

CODE_RATIO_THRESHOLD = 0.7
MAX_TEXT_LINES_FOR_CODE_RATIO = 2
SHORT_CONTENT_THRESHOLD = 300

UUID_PATTERN = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.IGNORECASE
)
INTEGER_PATTERN = re.compile(r"[0-9]+")
DECIMAL_PATTERN = re.compile(r"[0-9]+\.[0-9]+")
MODEL_NAME_PATTERN = re.compile(r"gpt-[0-9]")
SHORT_ID_PATTERN = re.compile(r"[a-z0-9]{4,12}")
_TLD = r"(?:com|org|net|edu|io|co|au)"
DOMAIN_PATTERN = re.compile(rf"[a-z0-9.-]+\.{_TLD}", re.IGNORECASE)
DOMAIN_LIST_PATTERN = re.compile(
    rf"[a-z0-9.-]+\.{_TLD}(?:,\s*[a-z0-9.-]+\.{_TLD})*", re.IGNORECASE
)
CJK_PATTERN = re.compile(r"[\u3131-\ud79d]")
CODE_PUNCTUATION_PATTERN = re.compile(r"[{}();=]")

STRONG_CODE_PATTERNS = (
    re.compile(r"import\s+[a-z]", re.IGNORECASE),
    re.compile(r"from\s+[a-z]", re.IGNORECASE),
    re.compile(r"def\s+[a-z_]", re.IGNORECASE),
    re.compile(r"class\s+[A-Z]", re.IGNORECASE),
    re.compile(r"@[a-z]", re.IGNORECASE),
)

TEXT_LINE_PATTERNS = (
    re.compile(r"[-*•]"),
    re.compile(r"\*\*"),
    re.compile(r"#{1,6}\s"),
    re.compile(r"\\\("),
    re.compile(r"\([a-z]\)\s", re.IGNORECASE),
    re.compile(r"Problem\s+\d", re.IGNORECASE),
    re.compile(r"Question\s+\d", re.IGNORECASE),
    re.compile(r"\d+\.\s+[A-Z]", re.IGNORECASE),
)
CAPITALIZED_PATTERN = re.compile(r"[A-Z][a-z]")
LATEX_BRACKET_PATTERN = re.compile(r"\\?\[")
ENGLISH_FOR_PATTERN = re.compile(r"for\s+[a-z]+\s+[a-z]+", re.IGNORECASE)
IN_CLAUSE_PATTERN = re.compile(r"\s+in\s+")

CODE_LINE_PATTERNS = (
    re.compile(r"[a-z_][a-z0-9_]*\s*=", re.IGNORECASE),
    re.compile(r"(?:while|elif|else|return|print|try|except|with)\s", re.IGNORECASE),
    re.compile(r"for\s+[a-z_]+\s+in\s+", re.IGNORECASE),
    re.compile(r"if\s+.+:", re.IGNORECASE),
    re.compile(r"#[^#]"),
    re.compile(r"\s*(?:def|class|import|from)\s", re.IGNORECASE),
    re.compile(r"[a-z_][a-z0-9_]*\.[a-z]", re.IGNORECASE),
    re.compile(r"\[\d"),
    re.compile(r"\{['\"]"),
)
CALL_LINE_PATTERN = re.compile(r"[a-z_][a-z0-9_]*\s*\([^)]*\)\s*", re.IGNORECASE)
TUPLE_LINE_PATTERN = re.compile(r"\([a-z_]", re.IGNORECASE)
PROBLEM_LABEL_PATTERN = re.compile(r"\([a-z]\)\s", re.IGNORECASE)
NUMERIC_EXPRESSION_PATTERN = re.compile(r"[\d.e\-+*/()\s,\[\]]+", re.IGNORECASE)
BARE_ASSIGNMENT_PATTERN = re.compile(r"[a-z_][a-z0-9_]*\s*=")


@dataclass(frozen=True)
class ContentClassification:
    is_message_content: bool
    is_code: bool
    is_reasoning: bool
    is_filtered_by_context: bool

    @property
    def is_extractable(self) -> bool:
        return (
            self.is_message_content
            and not self.is_code
            and not self.is_reasoning
            and not self.is_filtered_by_context
        )


def is_valid_message_content(value: Any) -> bool:
    """Return True if a heap value looks like prose or code rather than an identifier."""
    if not isinstance(value, str):
        return False
    if len(value) < 2:
        return False
    if value in METADATA_KEYWORDS or value.lower() in METADATA_KEYWORDS:
        return False
    if UUID_PATTERN.fullmatch(value):
        return False
    if INTEGER_PATTERN.fullmatch(value) or DECIMAL_PATTERN.fullmatch(value):
        return False
    if MODEL_NAME_PATTERN.match(value):
        return False
    if SHORT_ID_PATTERN.fullmatch(value):
        return False
    if DOMAIN_PATTERN.fullmatch(value) or DOMAIN_LIST_PATTERN.fullmatch(value):
        return False
    if value.startswith(("_", "$")):
        return False

    return (
        " " in value
        or "\n" in value
        or CJK_PATTERN.search(value) is not None
        or CODE_PUNCTUATION_PATTERN.search(value) is not None
    )


def _is_text_line(line: str) -> bool:
    if CAPITALIZED_PATTERN.match(line) and " " in line and len(line) > 30:
        return True
    if any(pattern.match(line) for pattern in TEXT_LINE_PATTERNS):
        return True
    if LATEX_BRACKET_PATTERN.match(line) and "\\" in line:
        return True
    if "\\frac" in line or "\\text" in line:
        return True
    return bool(
        ENGLISH_FOR_PATTERN.match(line) and " " in line and not IN_CLAUSE_PATTERN.search(line)
    )


def _is_code_line(line: str) -> bool:
    if any(pattern.match(line) for pattern in CODE_LINE_PATTERNS):
        return True
    if CALL_LINE_PATTERN.fullmatch(line):
        return True
    return bool(TUPLE_LINE_PATTERN.match(line) and not PROBLEM_LABEL_PATTERN.match(line))


def looks_like_standalone_code(content: str) -> bool:
    """Return True if the text reads as a code block rather than an explanation."""
    trimmed = content.strip()
    lines = trimmed.split("\n")
    first_line = lines[0].strip()

    if any(pattern.match(first_line) for pattern in STRONG_CODE_PATTERNS):
        return True

    code_lines = 0
    text_lines = 0
    for raw_line in lines:
        line = raw_line.strip()
        if not line:
            continue
        if _is_text_line(line):
            text_lines += 1
        elif _is_code_line(line):
            code_lines += 1

    classified = code_lines + text_lines
    if classified > 0:
        code_ratio = code_lines / classified
        if code_ratio > CODE_RATIO_THRESHOLD and text_lines <= MAX_TEXT_LINES_FOR_CODE_RATIO:
            return True

    if len(trimmed) < SHORT_CONTENT_THRESHOLD:
        if NUMERIC_EXPRESSION_PATTERN.fullmatch(trimmed):
            return True
        if BARE_ASSIGNMENT_PATTERN.match(trimmed) and "\n\n" not in trimmed:
            has_natural_text = any(
                CAPITALIZED_PATTERN.match(line.strip()) and " " in line for line in lines
            )
            if not has_natural_text:
                return True

    return False


def is_filtered_content(heap: Sequence[Any], index: int) -> bool:
    """
    Return True if the value at `index` belongs to a tool/system turn, a
    code-execution block or a filtered content type.
    """
    for j in range(index - 1, max(0, index - CONTEXT_LOOKBEHIND) - 1, -1):
        value = heap[j]
        if isinstance(value, str):
            if value == "content_type" and j + 1 < len(heap) and isinstance(heap[j + 1], str):
                if heap[j + 1] in FILTERED_CONTENT_TYPES:
                    return True
            if value in CODE_EXECUTION_KEYWORDS or value in FILTERED_ROLES:
                return True
            if value in ROLE_MARKERS:
                break

    for j in range(index + 1, min(len(heap), index + CONTEXT_LOOKAHEAD)):
        value = heap[j]
        if isinstance(value, str):
            if value in CODE_EXECUTION_KEYWORDS:
                return True
            if value in ROLE_MARKERS:
                break

    return False


def find_reasoning_indices(heap: Sequence[Any]) -> Set[int]:
    """Collect positions of long strings that follow a reasoning/thinking marker."""
    indices: Set[int] = set()
    for i in range(len(heap) - 1):
        value = heap[i]
        if not isinstance(value, str) or value not in REASONING_KEYWORDS:
            continue
        for j in range(i + 1, min(len(heap), i + REASONING_CONTENT_LOOKAHEAD)):
            candidate = heap[j]
            if isinstance(candidate, str):
                if len(candidate) > MIN_REASONING_CONTENT_LENGTH:
                    indices.add(j)
                if candidate in ROLE_MARKERS:
                    break
    return indices


def classify(
    candidate: Any,
    heap: Optional[List[Any]] = None,
    index: Optional[int] = None,
    reasoning_indices: Optional[Set[int]] = None,
) -> ContentClassification:
    """
    Label a candidate string. The code check applies to any string, message
    content or not. Context checks only run when the heap and the
    candidate's position are given; pass precomputed `reasoning_indices` when
    classifying many candidates from the same heap.
    """
    is_content = is_valid_message_content(candidate)
    is_code = isinstance(candidate, str) and looks_like_standalone_code(candidate)

    is_reasoning = False
    is_filtered = False
    if heap is not None and index is not None:
        if reasoning_indices is None:
            reasoning_indices = find_reasoning_indices(heap)
        is_reasoning = index in reasoning_indices
        is_filtered = is_filtered_content(heap, index)

    return ContentClassification(
        is_message_content=is_content,
        is_code=is_code,
        is_reasoning=is_reasoning,
        is_filtered_by_context=is_filtered,
    )
