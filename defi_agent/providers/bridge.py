"""
Bridge provider family: moves a token from one network to another.

The quote's ``network`` is the source network; that is where the balance
check, approval and transaction happen.
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, List, Tuple

from ..core.errors import NetworkUnsupportedError
from .base import BaseProvider, Quote
from .swap import SwapType


@dataclass
class BridgeParams:
    from_network: str
    to_network: str
    from_token: str
    to_token: str
    amount: str
    type: SwapType = SwapType.INPUT


@dataclass
class BridgeQuote(Quote):
    to_network: str = ""
    to_wallet: str = ""

    @property
    def from_network(self) -> str:
        return self.network

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload.update({"fromNetwork": self.network, "toNetwork": self.to_network})
        return payload


class BaseBridgeProvider(BaseProvider):
    """Base class for bridge providers."""

    GAS_BUFFER_OVERRIDES: ClassVar[Dict[str, int]] = {"bnb": 10**15}

    def validate_route(self, from_network: str, to_network: str) -> None:
        self.validate_network(from_network)
        if from_network == to_network:
            raise NetworkUnsupportedError(
                to_network,
                supported=[n for n in self.get_supported_networks() if n != from_network],
                provider=self.get_name(),
                message=f"Source and destination network are both {from_network}",
            )
        if to_network not in self.get_supported_networks():
            raise NetworkUnsupportedError(
                to_network,
                supported=self.get_supported_networks(),
                provider=self.get_name(),
            )

    @abstractmethod
    async def get_quote(self, params: BridgeParams, from_wallet: str, to_wallet: str) -> BridgeQuote:
        """Fetch a quote and store it via ``store_quote`` before returning it."""

    def balances_touched(self, quote: Quote, wallet: str) -> List[Tuple[str, str, str]]:
        touched = [(quote.from_token.address, wallet, quote.network)]
        if isinstance(quote, BridgeQuote) and quote.to_network and quote.to_wallet:
            touched.append((quote.to_token.address, quote.to_wallet, quote.to_network))
        return touched
