"""Transfer tool: send a token from the agent wallet to a recipient address."""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import ConfigDict, Field, field_validator

from ..config import settings
from ..core.address import resolve_token_address, validate_wallet_address
from ..core.agent.schema import ToolParameter, ToolParameterType
from ..core.errors import ProviderUnavailableError
from ..core.registry import ProviderRegistry
from ..providers.base import Quote
from ..providers.transfer import BaseTransferProvider, TransferParams, TransferQuote
from .base import BaseOperationTool, OperationArgs, validate_positive_amount


logger = logging.getLogger(__name__)


class TransferArgs(OperationArgs):
    model_config = ConfigDict(populate_by_name=True)

    token: str
    to_address: str = Field(alias="toAddress")
    amount: str

    @field_validator("amount", mode="before")
    @classmethod
    def _check_amount(cls, value: Any) -> str:
        return validate_positive_amount(value)


class TransferTool(BaseOperationTool[BaseTransferProvider, TransferArgs]):
    """
    Transfer ``amount`` of ``token`` to ``toAddress``.

    There is no price to compete on, so the preferred provider (or the first
    one registered for the network) is asked for the quote. Native transfers
    are clamped to leave the gas buffer.
    """

    name = "transfer_tokens"
    args_model = TransferArgs

    def __init__(self, registry: ProviderRegistry[BaseTransferProvider], default_network: Optional[str] = None):
        super().__init__(registry)
        self.default_network = (default_network or settings.default_network).lower()

    def get_description(self) -> str:
        providers = ", ".join(self.registry.get_provider_names())
        return (
            "Transfer tokens from the agent wallet to another address. "
            f"Available providers: {providers}. "
            "Native tokens may be passed as their symbol (e.g. BNB, ETH)."
            + self._provider_prompts()
        )

    def get_parameters(self, networks: List[str]) -> List[ToolParameter]:
        return [
            ToolParameter(
                name="token",
                type=ToolParameterType.STRING,
                description="Address (or known symbol) of the token to transfer",
            ),
            ToolParameter(
                name="toAddress",
                type=ToolParameterType.STRING,
                description="Recipient wallet address",
            ),
            ToolParameter(
                name="amount",
                type=ToolParameterType.STRING,
                description="Amount as a decimal string in token units, e.g. '0.5'",
            ),
            ToolParameter(
                name="network",
                type=ToolParameterType.STRING,
                description="Network to transfer on",
                required=False,
                enum=networks,
                default=self.default_network if self.default_network in networks else None,
            ),
            ToolParameter(
                name="provider",
                type=ToolParameterType.STRING,
                description="Provider to use; defaults to the standard provider for the network",
                required=False,
                enum=self.registry.get_provider_names() or None,
            ),
        ]

    def parse_arguments(self, arguments: Dict[str, Any]) -> TransferArgs:
        arguments = dict(arguments or {})
        if not arguments.get("network"):
            arguments["network"] = self.default_network
        return super().parse_arguments(arguments)

    def resolve_tokens(self, args: TransferArgs) -> TransferArgs:
        return args.model_copy(
            update={
                "token": resolve_token_address(args.token, args.network),
                "to_address": validate_wallet_address(args.to_address.strip(), args.network),
            }
        )

    async def select_quote(self, args: TransferArgs, wallet: str) -> Tuple[BaseTransferProvider, Quote]:
        if not args.provider:
            providers = self.registry.get_providers_by_network(args.network)
            if not providers:
                raise ProviderUnavailableError(
                    f"No providers available for network {args.network}",
                    network=args.network,
                    availableProviders=self.registry.get_provider_names(),
                )
            args = args.model_copy(update={"provider": providers[0].get_name()})
        return await super().select_quote(args, wallet)

    async def request_quote(self, provider: BaseTransferProvider, args: TransferArgs, wallet: str) -> Quote:
        params = TransferParams(
            network=args.network,
            token=args.token,
            to_address=args.to_address,
            amount=args.amount,
        )
        return await provider.get_quote(params, wallet)

    def pick_best(
        self,
        candidates: Sequence[Tuple[BaseTransferProvider, Quote]],
        args: TransferArgs,
    ) -> Tuple[BaseTransferProvider, Quote]:
        return max(candidates, key=lambda pair: pair[1].to_amount_units)

    def success_payload(
        self,
        provider: BaseTransferProvider,
        quote: Quote,
        tx_hash: str,
        args: TransferArgs,
    ) -> Dict[str, Any]:
        from_address = quote.from_address if isinstance(quote, TransferQuote) else None
        return {
            "provider": provider.get_name(),
            "token": quote.from_token.to_dict(),
            "fromAddress": from_address,
            "toAddress": args.to_address,
            "amount": quote.from_amount,
            "transactionHash": tx_hash,
            "network": quote.network,
        }
