"""
Base provider shared by the swap, staking, bridge and transfer families.

A concrete provider wraps one external protocol and only has to implement
quote fetching (and, if it does not ship a prebuilt transaction with its
quotes, transaction encoding). Everything else a provider needs before money
moves lives here: network validation, gas reservation, balance checks with
tolerance, approvals, allowance reads and the quote lifecycle.
"""

from __future__ import annotations

import dataclasses
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Tuple

from ..cache import Clock
from ..config import settings
from ..core.amounts import (
    adjust_token_amount,
    format_token_amount,
    is_within_tolerance,
    is_zero_amount,
    parse_token_amount,
)
from ..core.chain import ChainClient
from ..core.errors import (
    AmountTooSmallError,
    InsufficientBalanceError,
    NativeTokenApprovalError,
    NetworkUnsupportedError,
    UnsupportedOperationError,
)
from ..core.networks import get_network, is_known_network
from ..core.quote_store import QuoteStore, StoredQuote
from ..core.token_cache import Token, TokenBalance, TokenCache
from ..core.tx_builder import MAX_UINT256, Transaction, build_erc20_approve, generate_quote_id


logger = logging.getLogger(__name__)


@dataclass
class BalanceCheck:
    is_valid: bool
    message: Optional[str] = None


@dataclass
class Quote:
    """Provider-issued terms for one operation, valid until its stored entry expires."""

    network: str
    provider: str
    type: str
    from_token: Token
    to_token: Token
    from_amount: str
    to_amount: str
    estimated_gas: str = "0"
    tx: Optional[Transaction] = None
    quote_id: str = field(default_factory=generate_quote_id)

    @property
    def from_amount_units(self) -> int:
        return parse_token_amount(self.from_amount, self.from_token.decimals)

    @property
    def to_amount_units(self) -> int:
        return parse_token_amount(self.to_amount, self.to_token.decimals)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "quoteId": self.quote_id,
            "network": self.network,
            "provider": self.provider,
            "type": self.type,
            "fromToken": self.from_token.to_dict(),
            "toToken": self.to_token.to_dict(),
            "fromAmount": self.from_amount,
            "toAmount": self.to_amount,
            "estimatedGas": self.estimated_gas,
        }


class BaseProvider(ABC):
    """
    Shared behavior for every DeFi protocol adapter.

    Args:
        chain_clients: network -> ChainClient; the networks this instance can
            actually reach. Operations require the network to be both
            supported by the protocol and present here.
        token_cache: shared TokenCache (default: one per provider)
        quote_store: QuoteStore for issued quotes (default: one per provider)
        tolerance_percentage: slack for balance comparisons
            (default: settings.balance_tolerance_percentage)
        clock: time source for the default caches
    """

    # Per-family replacements for the network gas buffer table (base units)
    GAS_BUFFER_OVERRIDES: ClassVar[Dict[str, int]] = {}

    def __init__(
        self,
        chain_clients: Mapping[str, ChainClient],
        token_cache: Optional[TokenCache] = None,
        quote_store: Optional[QuoteStore] = None,
        tolerance_percentage: Optional[float] = None,
        clock: Optional[Clock] = None,
    ):
        if not chain_clients:
            raise ValueError(f"{type(self).__name__} requires at least one configured chain client")
        unknown = [network for network in chain_clients if not is_known_network(network)]
        if unknown:
            raise ValueError(f"Unknown networks in chain client map: {', '.join(unknown)}")

        self.chain_clients: Dict[str, ChainClient] = {k.lower(): v for k, v in chain_clients.items()}
        self.token_cache = token_cache or TokenCache(self.chain_clients, clock=clock)
        self.quote_store: QuoteStore = quote_store or QuoteStore(clock=clock)
        self.tolerance_percentage = (
            tolerance_percentage
            if tolerance_percentage is not None
            else settings.balance_tolerance_percentage
        )

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    @abstractmethod
    def get_name(self) -> str:
        """Stable identifier used for provider selection and registry keys."""

    @abstractmethod
    def get_supported_networks(self) -> List[str]:
        """Networks the wrapped protocol is deployed on."""

    def get_prompt(self) -> Optional[str]:
        """Optional guidance appended to the tool description for the LLM."""
        return None

    def is_native_token(self, address: str, network: str) -> bool:
        return get_network(network).is_native_address(address)

    # ------------------------------------------------------------------
    # Network + gas
    # ------------------------------------------------------------------

    def get_available_networks(self) -> List[str]:
        """Supported networks that also have a configured chain client."""
        return [n for n in self.get_supported_networks() if n in self.chain_clients]

    def validate_network(self, network: str) -> None:
        if network not in self.get_available_networks():
            raise NetworkUnsupportedError(
                network,
                supported=self.get_available_networks(),
                provider=self.get_name(),
            )

    def get_gas_buffer(self, network: str) -> int:
        if network in self.GAS_BUFFER_OVERRIDES:
            return self.GAS_BUFFER_OVERRIDES[network]
        return get_network(network).gas_buffer

    def _client(self, network: str) -> ChainClient:
        self.validate_network(network)
        return self.chain_clients[network]

    # ------------------------------------------------------------------
    # Tokens + balances
    # ------------------------------------------------------------------

    async def get_token(self, address: str, network: str) -> Token:
        self.validate_network(network)
        return await self.token_cache.get_token(address, network)

    async def get_token_balance(
        self,
        token_address: str,
        wallet: str,
        network: str,
        force_refresh: bool = False,
    ) -> TokenBalance:
        self.validate_network(network)
        return await self.token_cache.get_token_balance(
            token_address, wallet, network, force_refresh=force_refresh
        )

    async def get_native_balance(self, wallet: str, network: str, force_refresh: bool = False) -> TokenBalance:
        self.validate_network(network)
        return await self.token_cache.get_native_balance(wallet, network, force_refresh=force_refresh)

    def invalidate_balance_cache(self, token_address: str, wallet: str, network: str) -> None:
        """Drop the cached balance; non-native tokens also drop native (gas was spent)."""
        self.token_cache.invalidate_balance(token_address, wallet, network)
        if not self.is_native_token(token_address, network):
            self.token_cache.invalidate_balance(get_network(network).native_address, wallet, network)

    # ------------------------------------------------------------------
    # Amount adjustment
    # ------------------------------------------------------------------

    async def adjust_native_token_amount(
        self,
        amount: str,
        decimals: int,
        wallet: str,
        network: str,
    ) -> str:
        """
        Make sure spending ``amount`` of the native token leaves the gas buffer.

        Returns ``amount`` unchanged if it fits under ``balance - gas_buffer``,
        otherwise clamps it to exactly that. Fails when the wallet cannot
        even cover the buffer, or when the amount is no larger than the buffer.
        """
        self.validate_network(network)
        requested = parse_token_amount(amount, decimals)
        native = await self.get_native_balance(wallet, network, force_refresh=True)
        gas_buffer = self.get_gas_buffer(network)
        max_spendable = max(0, native.balance - gas_buffer)

        if requested <= max_spendable:
            return amount

        symbol = get_network(network).native_symbol
        if native.balance <= gas_buffer:
            raise InsufficientBalanceError(
                f"Insufficient native token balance. Need more than ~{format_token_amount(gas_buffer, decimals)} "
                f"{symbol} to cover gas, Available: {format_token_amount(native.balance, decimals)}",
                required=format_token_amount(gas_buffer, decimals),
                available=format_token_amount(native.balance, decimals),
                token=symbol,
                network=network,
            )
        if requested <= gas_buffer:
            raise AmountTooSmallError(format_token_amount(gas_buffer, decimals), network=network)

        adjusted = format_token_amount(max_spendable, decimals)
        log = logger.info if is_within_tolerance(requested, max_spendable, self.tolerance_percentage) else logger.warning
        log(
            f"Adjusted {symbol} amount from {amount} to {adjusted} "
            f"to keep ~{format_token_amount(gas_buffer, decimals)} {symbol} for gas"
        )
        return adjusted

    async def adjust_amount(self, token_address: str, amount: str, wallet: str, network: str) -> str:
        """Fit ``amount`` to what the wallet holds (native: minus gas buffer)."""
        if is_zero_amount(amount):
            return "0"
        self.validate_network(network)
        token = await self.get_token(token_address, network)
        if self.is_native_token(token_address, network):
            return await self.adjust_native_token_amount(amount, token.decimals, wallet, network)

        balance = await self.get_token_balance(token_address, wallet, network)
        return adjust_token_amount(amount, balance.formatted_balance, token.decimals, self.tolerance_percentage)

    # ------------------------------------------------------------------
    # Balance verification
    # ------------------------------------------------------------------

    async def check_balance(self, quote: Quote, wallet: str) -> BalanceCheck:
        """
        Verify the wallet can fund ``quote`` and still pay gas.

        Never raises: insufficient funds is an expected outcome and comes back
        as ``BalanceCheck(is_valid=False, message=...)``.
        """
        if not wallet:
            return BalanceCheck(False, "Invalid quote or wallet address")
        if is_zero_amount(quote.from_amount):
            return BalanceCheck(True)

        try:
            network = quote.network
            self.validate_network(network)
            token = quote.from_token
            required = quote.from_amount_units
            gas_buffer = self.get_gas_buffer(network)
            native_decimals = get_network(network).native_decimals

            if self.is_native_token(token.address, network):
                native = await self.get_native_balance(wallet, network)
                total = required + gas_buffer
                if not is_within_tolerance(total, native.balance, self.tolerance_percentage):
                    return BalanceCheck(
                        False,
                        "Insufficient native token balance. "
                        f"Required: {format_token_amount(required, native_decimals)} "
                        f"(+ ~{format_token_amount(gas_buffer, native_decimals)} for gas = "
                        f"{format_token_amount(total, native_decimals)}), "
                        f"Available: {native.formatted_balance}",
                    )
                return BalanceCheck(True)

            balance = await self.get_token_balance(token.address, wallet, network)
            if not is_within_tolerance(required, balance.balance, self.tolerance_percentage):
                symbol = token.symbol or token.address
                return BalanceCheck(
                    False,
                    f"Insufficient {symbol} balance. "
                    f"Required: {format_token_amount(required, token.decimals)} {symbol}, "
                    f"Available: {balance.formatted_balance} {symbol}",
                )

            native = await self.get_native_balance(wallet, network)
            if native.balance < gas_buffer:
                return BalanceCheck(
                    False,
                    "Insufficient native token for gas fees. "
                    f"Required: ~{format_token_amount(gas_buffer, native_decimals)}, "
                    f"Available: {native.formatted_balance}",
                )
            return BalanceCheck(True)
        except Exception as e:
            logger.error(f"Balance check failed for {self.get_name()}: {e}")
            return BalanceCheck(False, f"Failed to check balance: {e}")

    # ------------------------------------------------------------------
    # Approvals
    # ------------------------------------------------------------------

    async def build_approve_transaction(
        self,
        network: str,
        token_address: str,
        spender: str,
        amount: str,
        wallet: str,
    ) -> Transaction:
        self.validate_network(network)
        if self.is_native_token(token_address, network):
            raise NativeTokenApprovalError(token_address, network)
        if get_network(network).is_solana:
            raise UnsupportedOperationError(
                "SPL tokens do not use approvals",
                provider=self.get_name(),
                network=network,
            )

        token = await self.get_token(token_address, network)
        tx = build_erc20_approve(network, token_address, spender, parse_token_amount(amount, token.decimals))
        # approval costs gas
        self.token_cache.invalidate_balance(get_network(network).native_address, wallet, network)
        return tx

    async def check_allowance(self, network: str, token_address: str, owner: str, spender: str) -> int:
        if self.is_native_token(token_address, network):
            return MAX_UINT256
        return await self._client(network).get_allowance(token_address, owner, spender)

    # ------------------------------------------------------------------
    # Quote lifecycle
    # ------------------------------------------------------------------

    def store_quote(self, quote: Quote, **extra: Any) -> StoredQuote:
        return self.quote_store.store(quote, **extra)

    def get_stored_quote(self, quote_id: str) -> StoredQuote:
        return self.quote_store.get(quote_id)

    def balances_touched(self, quote: Quote, wallet: str) -> List[Tuple[str, str, str]]:
        """(token, wallet, network) tuples whose balances a quote's execution changes."""
        return [
            (quote.from_token.address, wallet, quote.network),
            (quote.to_token.address, wallet, quote.network),
        ]

    def invalidate_after_execution(self, quote: Quote, wallet: str) -> None:
        """Drop cached balances for everything ``quote`` moved, on networks this provider reaches."""
        for token_address, owner, network in self.balances_touched(quote, wallet):
            if network in self.chain_clients:
                self.invalidate_balance_cache(token_address, owner, network)

    async def _transaction_from_stored(self, stored: StoredQuote, wallet: str) -> Transaction:
        """Turn a stored quote into its transaction; override to encode at build time."""
        quote: Quote = stored.quote
        if quote.tx is None:
            raise UnsupportedOperationError(
                f"{self.get_name()} did not attach a transaction to quote {quote.quote_id}",
                provider=self.get_name(),
            )
        return dataclasses.replace(quote.tx, network=quote.network, spender=quote.tx.spender or quote.tx.to)

    async def build_transaction(self, quote: Quote, wallet: str) -> Transaction:
        """
        Build the transaction for a previously issued quote.

        Raises QuoteExpiredError when the quote was never stored here or has
        expired. Balances of every token involved (plus native, for gas) are
        invalidated first so the next read reflects this operation.
        """
        stored = self.get_stored_quote(quote.quote_id)
        issued: Quote = stored.quote
        self.validate_network(issued.network)

        self.invalidate_after_execution(issued, wallet)

        return await self._transaction_from_stored(stored, wallet)

    # ------------------------------------------------------------------
    # Housekeeping
    # ------------------------------------------------------------------

    def clear_expired(self) -> int:
        return self.token_cache.clear_expired() + self.quote_store.clear_expired()

    def cleanup(self) -> None:
        self.token_cache.clear()
        self.quote_store.clear()
