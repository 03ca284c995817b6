"""Fan an event out to every configured provider."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from notifier.errors import NotifierError
from notifier.events import Event
from notifier.providers.base import Provider

logger = logging.getLogger(__name__)


@dataclass
class DispatchResult:
    name: str
    provider_type: str
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def dispatch_event(event: Event, providers: dict[str, Provider]) -> list[DispatchResult]:
    """
    Post an event to all providers concurrently.

    Args:
        event: The event to deliver
        providers: Provider instances keyed by configured name

    Each provider gets one delivery attempt. Failures are logged and
    reported in the results; they never stop delivery to the others.
    No ordering is guaranteed between providers.
    """
    names = list(providers)
    tasks = [providers[name].post(event) for name in names]
    outcomes = await asyncio.gather(*tasks, return_exceptions=True)

    results = []
    for name, outcome in zip(names, outcomes):
        provider = providers[name]
        result = DispatchResult(name=name, provider_type=provider.provider_type)
        if isinstance(outcome, asyncio.CancelledError):
            raise outcome
        if isinstance(outcome, NotifierError):
            logger.error(
                "Failed to deliver %s to %s provider %s: %s",
                event.object_ref(), provider.provider_type, name, outcome,
            )
            result.error = outcome
        elif isinstance(outcome, Exception):
            logger.error(
                "Unexpected error delivering %s to %s provider %s: %s",
                event.object_ref(), provider.provider_type, name, outcome,
                exc_info=outcome,
            )
            result.error = outcome
        else:
            logger.debug("Delivered %s to provider %s", event.object_ref(), name)
        results.append(result)
    return results
