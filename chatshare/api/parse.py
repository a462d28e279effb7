"""
Share URL parsing API endpoints.

Turns a share URL into a ParseResult, mapping scraper failures to status
codes and user-facing messages. Every request bumps the parse counters.
"""

import logging
from typing import Union

from fastapi import APIRouter, Response

from chatshare import metrics
from chatshare.models import ErrorResponse, ParseRequest, ParseResult, PlatformsResponse
from chatshare.services.parser_registry import parser_registry
from chatshare.services.scraper.errors import (
    ConversationNotFoundError,
    FetchError,
    InvalidUrlError,
    NoMessagesFoundError,
    UnsupportedPlatformError,
)

router = APIRouter(prefix="/parse")

logger = logging.getLogger(__name__)


def _unsupported_url_message() -> str:
    patterns = ", ".join(parser_registry.get_supported_patterns())
    return f"Unsupported URL. Supported platforms: {patterns}"


@router.post("")
async def parse_share_url(
    request: ParseRequest, response: Response
) -> Union[ParseResult, ErrorResponse]:
    """
    Parse a shared conversation URL into its title and ordered messages.
    """
    url = request.url.strip()
    if not url:
        metrics.record_parse_error(metrics.INVALID_URL)
        response.status_code = 400
        return ErrorResponse(error="URL is required")

    try:
        outcome = await parser_registry.parse_with_strategy(url)
    except ConversationNotFoundError:
        metrics.record_parse_error(metrics.NOT_FOUND)
        response.status_code = 404
        return ErrorResponse(error="Conversation not found. Please check the URL.")
    except NoMessagesFoundError as e:
        logger.warning(f"No messages extracted from {url}: {e.errors_by_strategy}")
        metrics.record_parse_error(metrics.NO_MESSAGES)
        response.status_code = 400
        return ErrorResponse(error=e.message)
    except InvalidUrlError:
        metrics.record_parse_error(metrics.INVALID_URL)
        response.status_code = 400
        return ErrorResponse(error=_unsupported_url_message())
    except UnsupportedPlatformError:
        metrics.record_parse_error(metrics.UNSUPPORTED_PLATFORM)
        response.status_code = 400
        return ErrorResponse(error=_unsupported_url_message())
    except FetchError as e:
        metrics.record_parse_error(metrics.SERVER_ERROR)
        response.status_code = 502
        return ErrorResponse(error=e.message)
    except Exception as e:
        logger.exception(f"Error parsing share URL {url}: {e}")
        metrics.record_parse_error(metrics.SERVER_ERROR)
        response.status_code = 500
        return ErrorResponse(error="Failed to parse the conversation. Please try again.")

    logger.info(f"Parsed {outcome.result.platform} share with {outcome.strategy} strategy")
    metrics.record_parse_success(outcome)
    return outcome.result


@router.get("/platforms")
async def list_platforms() -> PlatformsResponse:
    """List supported share URL patterns and platforms."""
    return PlatformsResponse(
        patterns=parser_registry.get_supported_patterns(),
        platforms=parser_registry.get_supported_platforms(),
    )
