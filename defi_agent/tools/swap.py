"""Swap tool: best-price token swap across every registered swap provider."""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import ConfigDict, Field, field_validator

from ..config import settings
from ..core.address import resolve_token_address
from ..core.agent.schema import ToolParameter, ToolParameterType
from ..core.registry import ProviderRegistry
from ..providers.base import Quote
from ..providers.swap import BaseSwapProvider, SwapParams, SwapQuote, SwapType
from .base import BaseOperationTool, OperationArgs, validate_positive_amount


logger = logging.getLogger(__name__)


class SwapArgs(OperationArgs):
    model_config = ConfigDict(populate_by_name=True)

    from_token: str = Field(alias="fromToken")
    to_token: str = Field(alias="toToken")
    amount: str
    type: SwapType = SwapType.INPUT
    slippage: Optional[float] = Field(default=None, ge=0, le=50)

    @field_validator("amount", mode="before")
    @classmethod
    def _check_amount(cls, value: Any) -> str:
        return validate_positive_amount(value)


class SwapTool(BaseOperationTool[BaseSwapProvider, SwapArgs]):
    """
    Swap tokens through whichever provider quotes the best price.

    ``type=input`` spends exactly ``amount`` of fromToken and maximizes the
    output; ``type=output`` receives exactly ``amount`` of toToken and
    minimizes the input.
    """

    name = "swap"
    args_model = SwapArgs

    def __init__(self, registry: ProviderRegistry[BaseSwapProvider], default_slippage: Optional[float] = None):
        super().__init__(registry)
        self.default_slippage = default_slippage if default_slippage is not None else settings.default_slippage

    def get_description(self) -> str:
        return (
            "Swap one token for another on a single network. Quotes every available "
            "provider and executes the best one, approving the input token first if needed. "
            "Use type 'input' to fix the amount sold or 'output' to fix the amount bought. "
            "Native tokens may be passed as their symbol (e.g. BNB, ETH, SOL)."
            + self._provider_prompts()
        )

    def get_parameters(self, networks: List[str]) -> List[ToolParameter]:
        return [
            ToolParameter(
                name="fromToken",
                type=ToolParameterType.STRING,
                description="Address (or known symbol) of the token to sell",
            ),
            ToolParameter(
                name="toToken",
                type=ToolParameterType.STRING,
                description="Address (or known symbol) of the token to buy",
            ),
            ToolParameter(
                name="amount",
                type=ToolParameterType.STRING,
                description="Amount as a decimal string in token units, e.g. '0.5'",
            ),
            ToolParameter(
                name="type",
                type=ToolParameterType.STRING,
                description="Which side the amount fixes: 'input' (sell amount) or 'output' (buy amount)",
                required=False,
                enum=[t.value for t in SwapType],
                default=SwapType.INPUT.value,
            ),
            ToolParameter(
                name="network",
                type=ToolParameterType.STRING,
                description="Network to swap on",
                enum=networks,
            ),
            ToolParameter(
                name="provider",
                type=ToolParameterType.STRING,
                description="Preferred provider; falls back to the best quote if it fails",
                required=False,
                enum=self.registry.get_provider_names() or None,
            ),
            ToolParameter(
                name="slippage",
                type=ToolParameterType.NUMBER,
                description="Maximum slippage in percent",
                required=False,
                default=self.default_slippage,
            ),
        ]

    def resolve_tokens(self, args: SwapArgs) -> SwapArgs:
        return args.model_copy(
            update={
                "from_token": resolve_token_address(args.from_token, args.network),
                "to_token": resolve_token_address(args.to_token, args.network),
            }
        )

    async def request_quote(self, provider: BaseSwapProvider, args: SwapArgs, wallet: str) -> Quote:
        amount = args.amount
        if args.type == SwapType.INPUT:
            amount = await provider.adjust_amount(args.from_token, amount, wallet, args.network)
        params = SwapParams(
            network=args.network,
            from_token=args.from_token,
            to_token=args.to_token,
            amount=amount,
            type=args.type,
            slippage=args.slippage if args.slippage is not None else self.default_slippage,
        )
        return await provider.get_quote(params, wallet)

    def pick_best(
        self,
        candidates: Sequence[Tuple[BaseSwapProvider, Quote]],
        args: SwapArgs,
    ) -> Tuple[BaseSwapProvider, Quote]:
        if args.type == SwapType.OUTPUT:
            return min(candidates, key=lambda pair: pair[1].from_amount_units)
        return max(candidates, key=lambda pair: pair[1].to_amount_units)

    def success_payload(
        self,
        provider: BaseSwapProvider,
        quote: Quote,
        tx_hash: str,
        args: SwapArgs,
    ) -> Dict[str, Any]:
        price_impact: Optional[float] = quote.price_impact if isinstance(quote, SwapQuote) else None
        return {
            "provider": provider.get_name(),
            "fromToken": quote.from_token.to_dict(),
            "toToken": quote.to_token.to_dict(),
            "fromAmount": quote.from_amount,
            "toAmount": quote.to_amount,
            "transactionHash": tx_hash,
            "priceImpact": price_impact,
            "type": args.type.value,
            "network": quote.network,
        }
