"""Plugins bundle a provider family with the tools that use it."""

from .base import BasePlugin, PluginConfig
from .bridge import BridgePlugin
from .staking import StakingPlugin
from .swap import SwapPlugin
from .wallet import WalletPlugin

__all__ = [
    "BasePlugin",
    "PluginConfig",
    "BridgePlugin",
    "StakingPlugin",
    "SwapPlugin",
    "WalletPlugin",
]
