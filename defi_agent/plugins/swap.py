from typing import List

from ..providers.swap import BaseSwapProvider
from ..tools.base import BaseTool
from ..tools.swap import SwapTool
from .base import BasePlugin, PluginConfig


class SwapPlugin(BasePlugin):
    """Token swaps across DEX aggregators and AMMs."""

    provider_type = BaseSwapProvider

    def get_name(self) -> str:
        return "swap"

    def create_tools(self, config: PluginConfig) -> List[BaseTool]:
        return [SwapTool(self.registry, default_slippage=config.default_slippage)]
