"""
Share page fetching.

One GET per parse with browser-like headers; some providers answer 403 or
serve different markup to unknown clients. No retries happen here.
"""

import logging
from typing import Dict, Optional

import httpx

from chatshare.config import settings
from chatshare.services.scraper.errors import ConversationNotFoundError, FetchError

logger = logging.getLogger(__name__)


def build_request_headers() -> Dict[str, str]:
    return {
        "User-Agent": settings.FETCH_USER_AGENT,
        "Accept": settings.FETCH_ACCEPT,
        "Accept-Language": settings.FETCH_ACCEPT_LANGUAGE,
    }


async def fetch_share_page(
    url: str,
    not_found_message: str,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """
    Fetch the HTML document behind a share URL.

    Args:
        url: Share URL, already validated by the provider parser
        not_found_message: Message for the ConversationNotFoundError raised on 404
        transport: Optional httpx transport (tests inject a MockTransport)

    Returns:
        The response body as text

    Raises:
        ConversationNotFoundError: The page answered 404
        FetchError: The page answered any other non-2xx status
    """
    logger.debug(f"Fetching share page: {url}")
    async with httpx.AsyncClient(
        timeout=settings.FETCH_TIMEOUT_SECONDS,
        follow_redirects=True,
        transport=transport,
    ) as client:
        response = await client.get(url, headers=build_request_headers())

    if response.status_code == 404:
        raise ConversationNotFoundError(not_found_message)
    if not response.is_success:
        logger.debug(f"Share page fetch failed: HTTP {response.status_code}")
        raise FetchError(status_code=response.status_code)

    logger.debug(f"Fetched {len(response.text)} characters from {url}")
    return response.text
