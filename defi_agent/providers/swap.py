"""
Swap provider family: DEX aggregators and AMMs.

A swap is either amount-in fixed (``input``: spend exactly X of fromToken)
or amount-out fixed (``output``: receive exactly Y of toToken).
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from ..core.amounts import parse_token_amount
from ..core.errors import UnsupportedOperationError
from ..core.networks import get_network
from ..core.tx_builder import Transaction, build_unwrap, build_wrap
from .base import BaseProvider, Quote


class SwapType(str, Enum):
    INPUT = "input"
    OUTPUT = "output"


@dataclass
class SwapParams:
    network: str
    from_token: str
    to_token: str
    amount: str
    type: SwapType = SwapType.INPUT
    slippage: float = 0.5


@dataclass
class SwapQuote(Quote):
    slippage: float = 0.5
    price_impact: float = 0.0
    route: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload.update({"slippage": self.slippage, "priceImpact": self.price_impact})
        return payload


class BaseSwapProvider(BaseProvider):
    """Base class for swap providers; subclasses implement ``get_quote``."""

    @abstractmethod
    async def get_quote(self, params: SwapParams, wallet: str) -> SwapQuote:
        """Fetch a quote and store it via ``store_quote`` before returning it."""

    async def wrap_token(self, network: str, amount: str, wallet: str) -> Transaction:
        """Build a deposit of native currency into the wrapped-native contract."""
        self.validate_network(network)
        config = get_network(network)
        if not config.wrapped_native or not config.is_evm:
            raise UnsupportedOperationError(
                f"Wrapping is not supported on {network}",
                provider=self.get_name(),
                network=network,
            )
        self.invalidate_balance_cache(config.wrapped_native, wallet, network)
        return build_wrap(network, parse_token_amount(amount, config.native_decimals))

    async def unwrap_token(self, network: str, amount: str, wallet: str) -> Transaction:
        """Build a withdrawal of native currency from the wrapped-native contract."""
        self.validate_network(network)
        config = get_network(network)
        if not config.wrapped_native or not config.is_evm:
            raise UnsupportedOperationError(
                f"Unwrapping is not supported on {network}",
                provider=self.get_name(),
                network=network,
            )
        self.invalidate_balance_cache(config.wrapped_native, wallet, network)
        return build_unwrap(network, parse_token_amount(amount, config.native_decimals))
