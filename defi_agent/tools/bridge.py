"""Bridge tool: move tokens between networks through the best bridge quote."""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import ConfigDict, Field, field_validator

from ..core.address import resolve_token_address
from ..core.agent.schema import ToolParameter, ToolParameterType
from ..core.errors import NetworkUnsupportedError
from ..providers.base import Quote
from ..providers.bridge import BaseBridgeProvider, BridgeParams, BridgeQuote
from ..providers.swap import SwapType
from .base import BaseOperationTool, OperationArgs, validate_network_name, validate_positive_amount


logger = logging.getLogger(__name__)


class BridgeArgs(OperationArgs):
    model_config = ConfigDict(populate_by_name=True)

    network: str = Field(alias="fromNetwork")
    to_network: str = Field(alias="toNetwork")
    from_token: str = Field(alias="fromToken")
    to_token: str = Field(alias="toToken")
    amount: str
    type: SwapType = SwapType.INPUT
    # destination address, filled from the agent wallet before quoting
    to_wallet: Optional[str] = Field(default=None, alias="toWallet")

    @field_validator("to_network", mode="before")
    @classmethod
    def _check_to_network(cls, value: Any) -> str:
        return validate_network_name(value)

    @field_validator("amount", mode="before")
    @classmethod
    def _check_amount(cls, value: Any) -> str:
        return validate_positive_amount(value)


class BridgeTool(BaseOperationTool[BaseBridgeProvider, BridgeArgs]):
    """
    Bridge a token from ``fromNetwork`` to ``toNetwork``.

    Everything that spends funds (balance check, approval, submission)
    happens on the source network; the destination address is the agent
    wallet's address on ``toNetwork``.
    """

    name = "bridge"
    args_model = BridgeArgs

    def get_description(self) -> str:
        return (
            "Bridge tokens from one network to another. Quotes every bridge provider "
            "covering the route and executes the best one."
            + self._provider_prompts()
        )

    def get_parameters(self, networks: List[str]) -> List[ToolParameter]:
        return [
            ToolParameter(
                name="fromNetwork",
                type=ToolParameterType.STRING,
                description="Network to bridge from",
                enum=networks,
            ),
            ToolParameter(
                name="toNetwork",
                type=ToolParameterType.STRING,
                description="Network to bridge to",
                enum=networks,
            ),
            ToolParameter(
                name="fromToken",
                type=ToolParameterType.STRING,
                description="Address (or known symbol) of the token on the source network",
            ),
            ToolParameter(
                name="toToken",
                type=ToolParameterType.STRING,
                description="Address (or known symbol) of the token on the destination network",
            ),
            ToolParameter(
                name="amount",
                type=ToolParameterType.STRING,
                description="Amount as a decimal string",
            ),
            ToolParameter(
                name="type",
                type=ToolParameterType.STRING,
                description="Whether the amount is spent ('input') or received ('output')",
                required=False,
                enum=[t.value for t in SwapType],
                default=SwapType.INPUT.value,
            ),
            ToolParameter(
                name="provider",
                type=ToolParameterType.STRING,
                description="Preferred bridge provider; falls back to the best quote if it fails",
                required=False,
                enum=self.registry.get_provider_names() or None,
            ),
        ]

    def validate_networks(self, args: BridgeArgs) -> None:
        self.validate_network(args.network)
        supported = self.get_supported_networks()
        if args.to_network == args.network or args.to_network not in supported:
            raise NetworkUnsupportedError(
                args.to_network,
                supported=[n for n in supported if n != args.network],
                message=(
                    f"Cannot bridge from {args.network} to {args.to_network}. "
                    f"Supported destinations: {', '.join(n for n in supported if n != args.network)}"
                ),
            )

    def resolve_tokens(self, args: BridgeArgs) -> BridgeArgs:
        return args.model_copy(
            update={
                "from_token": resolve_token_address(args.from_token, args.network),
                "to_token": resolve_token_address(args.to_token, args.to_network),
            }
        )

    async def prepare_args(self, args: BridgeArgs, wallet_address: str) -> BridgeArgs:
        if args.to_wallet:
            return args
        return args.model_copy(update={"to_wallet": await self.get_wallet_address(args.to_network)})

    async def request_quote(self, provider: BaseBridgeProvider, args: BridgeArgs, wallet: str) -> Quote:
        provider.validate_route(args.network, args.to_network)
        amount = args.amount
        if args.type == SwapType.INPUT:
            amount = await provider.adjust_amount(args.from_token, amount, wallet, args.network)
        params = BridgeParams(
            from_network=args.network,
            to_network=args.to_network,
            from_token=args.from_token,
            to_token=args.to_token,
            amount=amount,
            type=args.type,
        )
        return await provider.get_quote(params, wallet, args.to_wallet or wallet)

    def pick_best(
        self,
        candidates: Sequence[Tuple[BaseBridgeProvider, Quote]],
        args: BridgeArgs,
    ) -> Tuple[BaseBridgeProvider, Quote]:
        if args.type == SwapType.OUTPUT:
            return min(candidates, key=lambda pair: pair[1].from_amount_units)
        return max(candidates, key=lambda pair: pair[1].to_amount_units)

    def success_payload(
        self,
        provider: BaseBridgeProvider,
        quote: Quote,
        tx_hash: str,
        args: BridgeArgs,
    ) -> Dict[str, Any]:
        to_network = quote.to_network if isinstance(quote, BridgeQuote) and quote.to_network else args.to_network
        return {
            "provider": provider.get_name(),
            "fromNetwork": quote.network,
            "toNetwork": to_network,
            "fromToken": quote.from_token.to_dict(),
            "toToken": quote.to_token.to_dict(),
            "fromAmount": quote.from_amount,
            "toAmount": quote.to_amount,
            "transactionHash": tx_hash,
            "type": args.type.value,
        }
