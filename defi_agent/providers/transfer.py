"""
Transfer provider family: send a token from the agent wallet to another address.

A transfer quote prices nothing; it pins the token, the (possibly clamped)
amount and both parties so the balance check and the built transaction agree.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from ..core.errors import UnsupportedOperationError, WalletError
from ..core.networks import get_network
from ..core.quote_store import StoredQuote
from ..core.token_cache import Token
from ..core.tx_builder import Transaction, build_erc20_transfer, build_native_transfer
from .base import BaseProvider, Quote


logger = logging.getLogger(__name__)

NATIVE_TRANSFER_GAS = 21_000
ERC20_TRANSFER_GAS = 65_000


@dataclass
class TransferParams:
    network: str
    token: str
    to_address: str
    amount: str


@dataclass
class TransferQuote(Quote):
    from_address: str = ""
    to_address: str = ""

    @property
    def token(self) -> Token:
        return self.from_token

    @property
    def amount(self) -> str:
        return self.from_amount

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload.update({"fromAddress": self.from_address, "toAddress": self.to_address})
        return payload


class BaseTransferProvider(BaseProvider):
    """
    Quotes and encodes plain token transfers.

    EVM encoding is built in: native value sends and ERC20 ``transfer``
    calls. Networks with another transaction format override
    :meth:`encode_transfer`.
    """

    async def get_quote(self, params: TransferParams, wallet: str) -> TransferQuote:
        self.validate_network(params.network)
        token = await self.get_token(params.token, params.network)
        amount = await self.adjust_amount(params.token, params.amount, wallet, params.network)
        if amount != params.amount:
            logger.info(f"{self.get_name()} adjusted transfer amount from {params.amount} to {amount}")

        native = self.is_native_token(token.address, params.network)
        quote = TransferQuote(
            network=params.network,
            provider=self.get_name(),
            type="transfer",
            from_token=token,
            to_token=token,
            from_amount=amount,
            to_amount=amount,
            estimated_gas=str(NATIVE_TRANSFER_GAS if native else ERC20_TRANSFER_GAS),
            from_address=wallet,
            to_address=params.to_address,
        )
        self.store_quote(quote)
        return quote

    def balances_touched(self, quote: Quote, wallet: str) -> List[Tuple[str, str, str]]:
        touched = [(quote.from_token.address, wallet, quote.network)]
        if isinstance(quote, TransferQuote) and quote.to_address:
            touched.append((quote.from_token.address, quote.to_address, quote.network))
        return touched

    def encode_transfer(self, quote: TransferQuote) -> Transaction:
        network = quote.network
        if not get_network(network).is_evm:
            raise UnsupportedOperationError(
                f"{self.get_name()} cannot encode transfers on {network}",
                provider=self.get_name(),
                network=network,
            )
        units = quote.from_amount_units
        gas_limit = int(quote.estimated_gas)
        if self.is_native_token(quote.from_token.address, network):
            return build_native_transfer(network, quote.to_address, units, gas_limit=gas_limit)
        return build_erc20_transfer(network, quote.from_token.address, quote.to_address, units, gas_limit=gas_limit)

    async def _transaction_from_stored(self, stored: StoredQuote, wallet: str) -> Transaction:
        quote: TransferQuote = stored.quote
        same_sender = (
            quote.from_address.lower() == wallet.lower()
            if get_network(quote.network).is_evm
            else quote.from_address == wallet
        )
        if not same_sender:
            raise WalletError("Quote sender does not match wallet address", network=quote.network)
        return self.encode_transfer(quote)

    async def build_transfer_transaction(self, quote: TransferQuote, wallet: str) -> Transaction:
        return await self.build_transaction(quote, wallet)


class RpcTransferProvider(BaseTransferProvider):
    """Transfers over the configured JSON-RPC clients on every EVM network."""

    def get_name(self) -> str:
        return "rpc"

    def get_supported_networks(self) -> List[str]:
        return [network for network in self.chain_clients if get_network(network).is_evm]
