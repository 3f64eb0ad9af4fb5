"""Read-only tool listing a wallet's staking positions across providers."""

import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, field_validator

from ..config import settings
from ..core.address import validate_wallet_address
from ..core.agent.schema import ToolParameter, ToolParameterType
from ..core.agent.tools import ProgressCallback
from ..core.errors import ErrorStep, ProviderUnavailableError, pipeline_step
from ..core.registry import ProviderRegistry
from ..providers.staking import BaseStakingProvider, StakingBalance
from .base import BaseTool, validate_network_name


logger = logging.getLogger(__name__)


class StakingBalanceArgs(BaseModel):
    address: Optional[str] = None
    network: Optional[str] = None

    @field_validator("network", mode="before")
    @classmethod
    def _check_network(cls, value: Any) -> Optional[str]:
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        return validate_network_name(value)

    @field_validator("address", mode="before")
    @classmethod
    def _blank_address(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class GetStakingBalanceTool(BaseTool[BaseStakingProvider, StakingBalanceArgs]):
    name = "get_staking_balance"
    args_model = StakingBalanceArgs

    def __init__(self, registry: ProviderRegistry[BaseStakingProvider], default_network: Optional[str] = None):
        super().__init__(registry)
        self.default_network = (default_network or settings.default_network).lower()

    def get_description(self) -> str:
        providers = ", ".join(self.registry.get_provider_names())
        return (
            "Get the tokens a wallet has staked or supplied, with balances and APY where "
            f"available. Available providers: {providers}. Use this to check a user's "
            "positions before unstaking or withdrawing."
        )

    def get_parameters(self, networks: List[str]) -> List[ToolParameter]:
        return [
            ToolParameter(
                name="address",
                type=ToolParameterType.STRING,
                description="Wallet address to query; defaults to the agent wallet",
                required=False,
            ),
            ToolParameter(
                name="network",
                type=ToolParameterType.STRING,
                description="Network to query",
                required=False,
                enum=networks,
                default=self.default_network if self.default_network in networks else None,
            ),
        ]

    async def run(self, args: StakingBalanceArgs, on_progress: Optional[ProgressCallback]) -> Dict[str, Any]:
        network = args.network or self.default_network

        with pipeline_step(ErrorStep.NETWORK_VALIDATION):
            self.validate_network(network)

        with pipeline_step(ErrorStep.WALLET_ACCESS):
            if args.address:
                address = validate_wallet_address(args.address, network)
            else:
                address = await self.get_wallet_address(network)

        self.report_progress(on_progress, 20, f"Retrieving staking information for {address}")

        providers = self.registry.get_providers_by_network(network)
        if not providers:
            raise ProviderUnavailableError(
                f"No providers available for network {network}",
                network=network,
                availableProviders=self.registry.get_provider_names(),
            )

        tokens: List[StakingBalance] = []
        errors: Dict[str, str] = {}
        for provider in providers:
            try:
                balances = await provider.get_all_staking_balances(address, network)
                tokens.extend(balances.tokens)
            except Exception as e:
                logger.warning(f"Failed to get staking balances from {provider.get_name()}: {e}")
                errors[provider.get_name()] = str(e) or e.__class__.__name__

        if len(errors) == len(providers):
            raise ProviderUnavailableError(
                f"Failed to retrieve staking balances for {address} from every provider",
                network=network,
                address=address,
                providerErrors=errors,
            )

        self.report_progress(on_progress, 100, f"Retrieved staking information for {address}")

        payload: Dict[str, Any] = {
            "status": "success",
            "data": {"address": address, "tokens": [token.to_dict() for token in tokens]},
            "network": network,
            "address": address,
        }
        if not tokens:
            payload["message"] = f"No staking balances found for {address}"
        if errors:
            payload["errors"] = errors
        return payload
