"""Provider families: swap, staking, bridge and transfer."""

from .base import BalanceCheck, BaseProvider, Quote
from .bridge import BaseBridgeProvider, BridgeParams, BridgeQuote
from .staking import (
    BaseStakingProvider,
    StakingBalance,
    StakingBalances,
    StakingParams,
    StakingQuote,
    StakingType,
)
from .swap import BaseSwapProvider, SwapParams, SwapQuote, SwapType
from .transfer import BaseTransferProvider, RpcTransferProvider, TransferParams, TransferQuote

__all__ = [
    "BalanceCheck",
    "BaseProvider",
    "Quote",
    "BaseBridgeProvider",
    "BridgeParams",
    "BridgeQuote",
    "BaseStakingProvider",
    "StakingBalance",
    "StakingBalances",
    "StakingParams",
    "StakingQuote",
    "StakingType",
    "BaseSwapProvider",
    "SwapParams",
    "SwapQuote",
    "SwapType",
    "BaseTransferProvider",
    "RpcTransferProvider",
    "TransferParams",
    "TransferQuote",
]
