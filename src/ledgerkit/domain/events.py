"""In-process domain events.

The write path publishes events here instead of calling read-side caches
directly; subscribers are invoked synchronously, in subscription order.
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable

from ledgerkit.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class AccountBalancesShouldRefresh:
    """Balances of these accounts changed or may have changed."""

    account_ids: tuple[int, ...]

    @classmethod
    def for_accounts(cls, *account_ids: int | None) -> "AccountBalancesShouldRefresh":
        unique = sorted({account_id for account_id in account_ids if account_id})
        return cls(account_ids=tuple(unique))


Handler = Callable[[Any], None]


class EventBus:
    """Minimal publish/subscribe bus keyed by event type."""

    def __init__(self):
        self._handlers: dict[type, list[Handler]] = defaultdict(list)

    def subscribe(self, event_type: type, handler: Handler) -> None:
        """Register a handler for an event type."""
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: type, handler: Handler) -> None:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, event: Any) -> None:
        """Deliver an event to every handler of its type."""
        handlers = list(self._handlers.get(type(event), []))
        logger.debug("Publishing %s to %d handler(s)", type(event).__name__, len(handlers))
        for handler in handlers:
            handler(event)


default_bus = EventBus()
