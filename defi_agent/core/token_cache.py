"""
Token metadata and wallet balance caches.

Both caches are keyed per network. Token metadata is immutable on-chain and
lives for ``token_ttl_seconds`` (30 minutes by default); balances change
with every transaction, so they are short-lived and are explicitly
invalidated after anything that could move them.

Nothing here locks: the caches are touched between awaits on one event
loop. A value read before an ``await`` may be stale after it, which is why
callers invalidate instead of relying on TTL for correctness.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Tuple

from ..cache import Clock, TTLCache
from ..config import settings
from .amounts import format_token_amount
from .errors import NetworkUnsupportedError
from .networks import get_network
from .chain import ChainClient


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Token:
    address: str
    decimals: int
    symbol: str
    network: str

    def to_dict(self) -> Dict[str, object]:
        return {"address": self.address, "decimals": self.decimals, "symbol": self.symbol}


@dataclass(frozen=True)
class TokenBalance:
    token: str
    wallet: str
    network: str
    balance: int
    formatted_balance: str
    fetched_at: float


def _norm(network: str, address: str) -> str:
    # EVM addresses compare case-insensitively, base58 does not
    return address if get_network(network).is_solana else address.lower()


class TokenCache:
    """
    Per-network token metadata + balance cache backed by ``ChainClient`` reads.

    Args:
        chain_clients: network -> ChainClient for every network the owner serves
        token_ttl_seconds: metadata TTL (default: settings.token_cache_ttl_seconds)
        balance_ttl_seconds: balance TTL (default: settings.balance_cache_ttl_seconds)
        clock: time source, injectable for tests
    """

    def __init__(
        self,
        chain_clients: Mapping[str, ChainClient],
        token_ttl_seconds: Optional[float] = None,
        balance_ttl_seconds: Optional[float] = None,
        clock: Optional[Clock] = None,
    ):
        self._clients: Dict[str, ChainClient] = {k.lower(): v for k, v in chain_clients.items()}
        self._tokens = TTLCache(
            default_ttl=token_ttl_seconds if token_ttl_seconds is not None else settings.token_cache_ttl_seconds,
            clock=clock,
        )
        self._balances = TTLCache(
            default_ttl=balance_ttl_seconds if balance_ttl_seconds is not None else settings.balance_cache_ttl_seconds,
            clock=clock,
        )

    def client_for(self, network: str) -> ChainClient:
        client = self._clients.get(network.lower())
        if client is None:
            raise NetworkUnsupportedError(
                network,
                supported=self._clients.keys(),
                message=f"No chain client configured for network {network}",
            )
        return client

    async def get_token(self, address: str, network: str) -> Token:
        config = get_network(network)
        if config.is_native_address(address):
            return Token(
                address=config.native_address,
                decimals=config.native_decimals,
                symbol=config.native_symbol,
                network=config.name,
            )

        key = (config.name, _norm(network, address))
        cached = self._tokens.get(key)
        if cached is not None:
            return cached

        decimals, symbol = await self.client_for(network).get_token_metadata(address)
        token = Token(address=address, decimals=decimals, symbol=symbol, network=config.name)
        self._tokens.set(key, token)
        logger.debug(f"Cached token {symbol or address} ({decimals} decimals) on {network}")
        return token

    async def get_token_balance(
        self,
        token_address: str,
        wallet: str,
        network: str,
        force_refresh: bool = False,
    ) -> TokenBalance:
        config = get_network(network)
        key = self._balance_key(token_address, wallet, network)
        if not force_refresh:
            cached = self._balances.get(key)
            if cached is not None:
                return cached

        client = self.client_for(network)
        if config.is_native_address(token_address):
            raw = await client.get_native_balance(wallet)
            decimals = config.native_decimals
        else:
            token = await self.get_token(token_address, network)
            raw = await client.get_token_balance(token_address, wallet)
            decimals = token.decimals

        entry = TokenBalance(
            token=token_address,
            wallet=wallet,
            network=config.name,
            balance=int(raw),
            formatted_balance=format_token_amount(int(raw), decimals),
            fetched_at=self._balances.now(),
        )
        self._balances.set(key, entry)
        return entry

    async def get_native_balance(self, wallet: str, network: str, force_refresh: bool = False) -> TokenBalance:
        return await self.get_token_balance(
            get_network(network).native_address, wallet, network, force_refresh=force_refresh
        )

    def _balance_key(self, token_address: str, wallet: str, network: str) -> Tuple[str, str, str]:
        config = get_network(network)
        token_key = config.native_address if config.is_native_address(token_address) else token_address
        return (config.name, _norm(network, token_key), _norm(network, wallet))

    def invalidate_balance(self, token_address: str, wallet: str, network: str) -> None:
        if self._balances.delete(self._balance_key(token_address, wallet, network)):
            logger.debug(f"Invalidated balance {token_address} for {wallet} on {network}")

    def clear_expired(self) -> int:
        removed = self._tokens.clear_expired() + self._balances.clear_expired()
        if removed:
            logger.debug(f"Cleared {removed} expired token/balance cache entries")
        return removed

    def clear_all_balances(self) -> None:
        self._balances.clear()

    def clear(self) -> None:
        self._tokens.clear()
        self._balances.clear()

    def __len__(self) -> int:
        return len(self._tokens) + len(self._balances)
