"""Turning a finished fallback chain into a ParseOutcome or a typed failure."""

from chatshare.models import ParseOutcome, ParseResult, Platform
from chatshare.services.scraper.errors import NoMessagesFoundError
from chatshare.services.scraper.fallback import StrategyOutcome
from chatshare.services.scraper.manual_extractor import parse_document, read_meta_title

FALLBACK_PAGE_TITLE = "the conversation"


def build_parse_outcome(
    outcome: StrategyOutcome, html: str, url: str, platform: Platform
) -> ParseOutcome:
    """
    Raises:
        NoMessagesFoundError: The chain ended without a winning strategy
    """
    if outcome.succeeded and outcome.conversation is not None and outcome.strategy_name:
        result = ParseResult(
            title=outcome.conversation.title,
            source_url=url,
            messages=outcome.conversation.messages,
            platform=platform,
        )
        return ParseOutcome(
            result=result,
            strategy=outcome.strategy_name,
            attempted_strategies=list(outcome.attempted_strategies),
        )

    page_title = read_meta_title(parse_document(html)) or FALLBACK_PAGE_TITLE
    raise NoMessagesFoundError(
        page_title=page_title,
        attempted_strategies=outcome.attempted_strategies,
        errors_by_strategy=outcome.errors_by_strategy,
    )
