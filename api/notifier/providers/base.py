"""Base notification provider interface."""

from abc import ABC, abstractmethod

from notifier.events import Event


class Provider(ABC):
    """
    Common interface for all notification providers.
    Each provider implements post() by translating the event into its
    backend's payload and sending exactly one request.
    """

    @property
    @abstractmethod
    def provider_type(self) -> str:
        ...

    @abstractmethod
    async def post(self, event: Event) -> None:
        """Deliver a single event."""
        ...
