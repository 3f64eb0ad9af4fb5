from typing import List

from ..providers.transfer import BaseTransferProvider
from ..tools.base import BaseTool
from ..tools.transfer import TransferTool
from .base import BasePlugin, PluginConfig


class WalletPlugin(BasePlugin):
    """Token transfers out of the agent wallet."""

    provider_type = BaseTransferProvider

    def get_name(self) -> str:
        return "wallet"

    def create_tools(self, config: PluginConfig) -> List[BaseTool]:
        return [TransferTool(self.registry, default_network=config.default_network)]
