"""Staking tool: supply, stake, withdraw or unstake through the cheapest provider."""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import ConfigDict, Field, field_validator

from ..core.address import resolve_token_address
from ..core.agent.schema import ToolParameter, ToolParameterType
from ..providers.base import Quote
from ..providers.staking import BaseStakingProvider, StakingParams, StakingType
from .base import BaseOperationTool, OperationArgs, validate_positive_amount


logger = logging.getLogger(__name__)

# Operations that spend token A from the wallet (as opposed to redeeming a position)
SPENDING_TYPES = frozenset({StakingType.SUPPLY, StakingType.STAKE, StakingType.DEPOSIT})


class StakingArgs(OperationArgs):
    model_config = ConfigDict(populate_by_name=True)

    token_a: str = Field(alias="tokenA")
    amount_a: str = Field(alias="amountA")
    type: StakingType
    token_b: Optional[str] = Field(default=None, alias="tokenB")
    amount_b: Optional[str] = Field(default=None, alias="amountB")

    @field_validator("amount_a", mode="before")
    @classmethod
    def _check_amount_a(cls, value: Any) -> str:
        return validate_positive_amount(value)

    @field_validator("amount_b", mode="before")
    @classmethod
    def _check_amount_b(cls, value: Any) -> Optional[str]:
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        return validate_positive_amount(value)

    @field_validator("token_b", mode="before")
    @classmethod
    def _blank_token_b(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class StakingTool(BaseOperationTool[BaseStakingProvider, StakingArgs]):
    name = "staking"
    args_model = StakingArgs

    def get_description(self) -> str:
        return (
            "Supply, stake, deposit, withdraw or unstake tokens with a lending or staking protocol. "
            "Quotes every available provider and uses the one requiring the least input. "
            "For unstake or withdraw, token A may need to be the provider's receipt token "
            "(for example the interest-bearing token you received when supplying)."
            + self._provider_prompts()
        )

    def get_parameters(self, networks: List[str]) -> List[ToolParameter]:
        return [
            ToolParameter(
                name="tokenA",
                type=ToolParameterType.STRING,
                description="Address (or known symbol) of the token being staked or redeemed",
            ),
            ToolParameter(
                name="amountA",
                type=ToolParameterType.STRING,
                description="Amount of token A as a decimal string, e.g. '0.1'",
            ),
            ToolParameter(
                name="type",
                type=ToolParameterType.STRING,
                description="Staking operation to perform",
                enum=[t.value for t in StakingType],
            ),
            ToolParameter(
                name="tokenB",
                type=ToolParameterType.STRING,
                description="Second token for paired (liquidity) positions",
                required=False,
            ),
            ToolParameter(
                name="amountB",
                type=ToolParameterType.STRING,
                description="Amount of token B for paired positions",
                required=False,
            ),
            ToolParameter(
                name="network",
                type=ToolParameterType.STRING,
                description="Network to stake on",
                enum=networks,
            ),
            ToolParameter(
                name="provider",
                type=ToolParameterType.STRING,
                description="Preferred provider; falls back to the best quote if it fails",
                required=False,
                enum=self.registry.get_provider_names() or None,
            ),
        ]

    def resolve_tokens(self, args: StakingArgs) -> StakingArgs:
        update: Dict[str, Any] = {"token_a": resolve_token_address(args.token_a, args.network)}
        if args.token_b:
            update["token_b"] = resolve_token_address(args.token_b, args.network)
        return args.model_copy(update=update)

    async def request_quote(self, provider: BaseStakingProvider, args: StakingArgs, wallet: str) -> Quote:
        amount_a = args.amount_a
        if args.type in SPENDING_TYPES:
            amount_a = await provider.adjust_amount(args.token_a, amount_a, wallet, args.network)
        params = StakingParams(
            network=args.network,
            token_a=args.token_a,
            amount_a=amount_a,
            type=args.type,
            token_b=args.token_b,
            amount_b=args.amount_b,
        )
        return await provider.get_quote(params, wallet)

    def pick_best(
        self,
        candidates: Sequence[Tuple[BaseStakingProvider, Quote]],
        args: StakingArgs,
    ) -> Tuple[BaseStakingProvider, Quote]:
        return min(candidates, key=lambda pair: pair[1].from_amount_units)

    def success_payload(
        self,
        provider: BaseStakingProvider,
        quote: Quote,
        tx_hash: str,
        args: StakingArgs,
    ) -> Dict[str, Any]:
        return {
            "provider": provider.get_name(),
            "tokenA": quote.from_token.to_dict(),
            "tokenB": quote.to_token.to_dict(),
            "amountA": quote.from_amount,
            "amountB": quote.to_amount,
            "transactionHash": tx_hash,
            "type": args.type.value,
            "network": quote.network,
        }
