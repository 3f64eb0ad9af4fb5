"""Agent-callable operation tools."""

from .base import AgentContext, BaseOperationTool, BaseTool, OperationArgs
from .bridge import BridgeArgs, BridgeTool
from .staking import StakingArgs, StakingTool
from .staking_balance import GetStakingBalanceTool, StakingBalanceArgs
from .swap import SwapArgs, SwapTool
from .transfer import TransferArgs, TransferTool

__all__ = [
    "AgentContext",
    "BaseOperationTool",
    "BaseTool",
    "OperationArgs",
    "BridgeArgs",
    "BridgeTool",
    "StakingArgs",
    "StakingTool",
    "GetStakingBalanceTool",
    "StakingBalanceArgs",
    "SwapArgs",
    "SwapTool",
    "TransferArgs",
    "TransferTool",
]
