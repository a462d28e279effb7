"""
Prometheus counters for share URL parsing.

Counters live in the default prometheus_client registry and are exposed by
the `/metrics` route in `chatshare.main`.
"""

from prometheus_client import Counter

from chatshare.models import ParseOutcome

PARSE_OPERATIONS = Counter(
    "chatshare_parse_operations",
    "Total parse operations",
    ["status", "error_type"],
)
PARSE_SUCCESS = Counter(
    "chatshare_parse_success",
    "Total successful parse operations",
)
PARSE_FAILURE = Counter(
    "chatshare_parse_failure",
    "Total failed parse operations where all strategies failed",
)
PARSE_FALLBACK_USED = Counter(
    "chatshare_parse_fallback_used",
    "Total times a fallback strategy produced the parse result",
    ["strategy"],
)

# error_type label values
NOT_FOUND = "not_found"
NO_MESSAGES = "no_messages"
INVALID_URL = "invalid_url"
UNSUPPORTED_PLATFORM = "unsupported_platform"
SERVER_ERROR = "server_error"


def record_parse_success(outcome: ParseOutcome) -> None:
    PARSE_OPERATIONS.labels(status="success", error_type="").inc()
    PARSE_SUCCESS.inc()
    if outcome.fallback_used:
        PARSE_FALLBACK_USED.labels(strategy=outcome.strategy).inc()


def record_parse_error(error_type: str) -> None:
    PARSE_OPERATIONS.labels(status="error", error_type=error_type).inc()
    if error_type == NO_MESSAGES:
        PARSE_FAILURE.inc()
