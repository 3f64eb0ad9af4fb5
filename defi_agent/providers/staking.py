"""
Staking provider family: lending markets and liquid staking protocols.
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional

from ..core.token_cache import Token
from .base import BaseProvider, Quote


class StakingType(str, Enum):
    SUPPLY = "supply"
    WITHDRAW = "withdraw"
    STAKE = "stake"
    UNSTAKE = "unstake"
    DEPOSIT = "deposit"


@dataclass
class StakingParams:
    network: str
    token_a: str
    amount_a: str
    type: StakingType
    token_b: Optional[str] = None
    amount_b: Optional[str] = None


@dataclass
class StakingQuote(Quote):
    current_apy: Optional[float] = None
    average_apy: Optional[float] = None
    liquidity: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload.update({"currentAPY": self.current_apy, "averageAPY": self.average_apy, "liquidity": self.liquidity})
        return payload


@dataclass
class StakingBalance:
    token: Token
    balance: int
    formatted_balance: str
    apy: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            **self.token.to_dict(),
            "balance": self.formatted_balance,
        }
        if self.apy is not None:
            payload["apy"] = self.apy
        return payload


@dataclass
class StakingBalances:
    address: str
    tokens: List[StakingBalance] = field(default_factory=list)


class BaseStakingProvider(BaseProvider):
    """Base class for staking providers."""

    # Staking transactions cost more gas than a swap on BNB Chain
    GAS_BUFFER_OVERRIDES: ClassVar[Dict[str, int]] = {"bnb": 10**15}

    @abstractmethod
    async def get_quote(self, params: StakingParams, wallet: str) -> StakingQuote:
        """Fetch a quote and store it via ``store_quote`` before returning it."""

    @abstractmethod
    async def get_all_staking_balances(self, wallet: str, network: str) -> StakingBalances:
        """Positions ``wallet`` holds with this protocol on ``network``."""
