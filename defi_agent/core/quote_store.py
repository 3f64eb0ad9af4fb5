"""Short-lived quote storage keyed by quote id."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Optional, TypeVar

from ..cache import Clock, TTLCache
from ..config import settings
from .errors import QuoteExpiredError


logger = logging.getLogger(__name__)

Q = TypeVar("Q")


@dataclass
class StoredQuote(Generic[Q]):
    quote: Q
    expires_at: float
    extra: Dict[str, Any] = field(default_factory=dict)


class QuoteStore(Generic[Q]):
    """
    Holds issued quotes until a build-transaction call picks them up.

    Expiry is checked on every read and swept in bulk by ``clear_expired``;
    no timer is scheduled per quote.
    """

    def __init__(self, ttl_seconds: Optional[float] = None, clock: Optional[Clock] = None):
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.quote_ttl_seconds
        self._quotes = TTLCache(default_ttl=self.ttl_seconds, clock=clock)

    def store(self, quote: Q, **extra: Any) -> StoredQuote[Q]:
        quote_id = getattr(quote, "quote_id", None)
        if not quote_id:
            raise ValueError("Quote has no quote_id")
        stored = StoredQuote(quote=quote, expires_at=self._quotes.now() + self.ttl_seconds, extra=extra)
        self._quotes.set(quote_id, stored, ttl=self.ttl_seconds)
        return stored

    def get(self, quote_id: str) -> StoredQuote[Q]:
        stored = self._quotes.get(quote_id)
        if stored is None:
            raise QuoteExpiredError(quote_id)
        return stored

    def clear_expired(self) -> int:
        removed = self._quotes.clear_expired()
        if removed:
            logger.debug(f"Dropped {removed} expired quotes")
        return removed

    def clear(self) -> None:
        self._quotes.clear()

    def __contains__(self, quote_id: str) -> bool:
        return quote_id in self._quotes

    def __len__(self) -> int:
        return len(self._quotes)
