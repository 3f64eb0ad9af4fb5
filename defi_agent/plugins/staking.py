from typing import List

from ..providers.staking import BaseStakingProvider
from ..tools.base import BaseTool
from ..tools.staking import StakingTool
from ..tools.staking_balance import GetStakingBalanceTool
from .base import BasePlugin, PluginConfig


class StakingPlugin(BasePlugin):
    """Staking and lending positions: the ``staking`` and ``get_staking_balance`` tools."""

    provider_type = BaseStakingProvider

    def get_name(self) -> str:
        return "staking"

    def create_tools(self, config: PluginConfig) -> List[BaseTool]:
        return [
            StakingTool(self.registry),
            GetStakingBalanceTool(self.registry, default_network=config.default_network),
        ]
