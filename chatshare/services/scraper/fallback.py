"""
Fallback orchestration across extraction strategies.

Strategies run in priority order against the same document. A strategy
that raises or comes back empty is recorded and the next one runs; the
first strategy that yields messages wins. The outcome always lists what
was attempted, so an exhausted chain can be reported precisely.
"""

import enum
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, NamedTuple, Optional, Sequence

from chatshare.models import ExtractedConversation

logger = logging.getLogger(__name__)

NO_MESSAGES_EXTRACTED = "no messages extracted"


class ChainState(str, enum.Enum):
    NOT_STARTED = "not_started"
    TRYING_STRATEGY = "trying_strategy"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class Strategy(NamedTuple):
    name: str
    extract: Callable[[str], Optional[ExtractedConversation]]


@dataclass
class StrategyOutcome:
    state: ChainState = ChainState.NOT_STARTED
    strategy_name: Optional[str] = None
    attempted_strategies: List[str] = field(default_factory=list)
    errors_by_strategy: Dict[str, str] = field(default_factory=dict)
    conversation: Optional[ExtractedConversation] = None

    @property
    def succeeded(self) -> bool:
        return self.state == ChainState.SUCCEEDED


def run_strategies(strategies: Sequence[Strategy], html: str) -> StrategyOutcome:
    """
    Run `strategies` in order until one yields at least one message.

    Never raises on behalf of a strategy: its exception message (or
    "no messages extracted") is stored under its name.
    """
    outcome = StrategyOutcome()
    for strategy in strategies:
        outcome.state = ChainState.TRYING_STRATEGY
        outcome.attempted_strategies.append(strategy.name)
        logger.debug(f"Trying extraction strategy: {strategy.name}")
        try:
            conversation = strategy.extract(html)
        except Exception as e:
            logger.debug(f"Strategy {strategy.name} failed: {e}")
            outcome.errors_by_strategy[strategy.name] = str(e) or type(e).__name__
            continue

        if conversation is None or not conversation.messages:
            outcome.errors_by_strategy[strategy.name] = NO_MESSAGES_EXTRACTED
            continue

        outcome.state = ChainState.SUCCEEDED
        outcome.strategy_name = strategy.name
        outcome.conversation = conversation
        logger.info(
            f"Strategy {strategy.name} extracted {len(conversation.messages)} messages"
        )
        return outcome

    outcome.state = ChainState.FAILED
    logger.warning(
        f"All {len(outcome.attempted_strategies)} extraction strategies failed: "
        f"{outcome.errors_by_strategy}"
    )
    return outcome
