"""
Chain read clients.

Providers never talk to a node directly; they go through a ``ChainClient``
for the four reads the quote/execute pipeline needs: native balance, token
balance, token metadata and allowance. Two JSON-RPC implementations are
provided, one for EVM chains and one for Solana. Tests inject fakes that
satisfy the same protocol.

Usage:
    clients = build_chain_clients({"bnb": "https://bsc-dataset.example"})
    balance = await clients["bnb"].get_native_balance("0xabc...")
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Protocol, Tuple, runtime_checkable

import httpx

from ..config import settings
from .errors import ChainRpcError
from .networks import NETWORKS, get_network
from .tx_builder import (
    ERC20_ALLOWANCE_SELECTOR,
    ERC20_BALANCE_OF_SELECTOR,
    ERC20_DECIMALS_SELECTOR,
    ERC20_SYMBOL_SELECTOR,
    MAX_UINT256,
    encode_address,
    encode_call,
)


logger = logging.getLogger(__name__)


@runtime_checkable
class ChainClient(Protocol):
    """Read-only view of one network used by providers and caches."""

    async def get_native_balance(self, wallet: str) -> int: ...

    async def get_token_balance(self, token: str, wallet: str) -> int: ...

    async def get_token_metadata(self, token: str) -> Tuple[int, str]: ...

    async def get_allowance(self, token: str, owner: str, spender: str) -> int: ...


def _decode_abi_string(result: str) -> str:
    """Decode an ABI ``string`` return value, falling back to ``bytes32``."""
    raw = bytes.fromhex(result[2:] if result.startswith("0x") else result)
    if len(raw) >= 64:
        offset = int.from_bytes(raw[:32], "big")
        if offset + 32 <= len(raw):
            length = int.from_bytes(raw[offset:offset + 32], "big")
            data = raw[offset + 32:offset + 32 + length]
            if len(data) == length:
                return data.decode("utf-8", errors="ignore")
    # Older tokens (MKR, SAI) return bytes32
    return raw[:32].rstrip(b"\x00").decode("utf-8", errors="ignore")


class _JsonRpcClient:
    """Shared JSON-RPC plumbing over a lazily created httpx client."""

    def __init__(
        self,
        network: str,
        rpc_url: str,
        timeout_s: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.network = network
        self.rpc_url = rpc_url
        self.timeout_s = timeout_s if timeout_s is not None else settings.rpc_timeout_seconds
        self._client = client
        self._request_id = 0

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout_s)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _rpc_call(self, method: str, params: List[Any]) -> Any:
        """Make an RPC call to the node."""
        client = await self._get_client()
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params,
        }

        try:
            response = await client.post(self.rpc_url, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as exc:
            raise ChainRpcError(f"RPC request failed: {exc}", network=self.network, method=method) from exc

        if "error" in data:
            error = data["error"]
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            raise ChainRpcError(f"RPC error: {message}", network=self.network, method=method)

        return data.get("result")


class EvmRpcClient(_JsonRpcClient):
    """Reads balances, ERC20 metadata and allowances over ``eth_*`` JSON-RPC."""

    async def _eth_call(self, to: str, data: str) -> str:
        result = await self._rpc_call("eth_call", [{"to": to, "data": data}, "latest"])
        if not isinstance(result, str):
            raise ChainRpcError("Unexpected eth_call result", network=self.network, method="eth_call")
        return result

    @staticmethod
    def _to_int(result: str) -> int:
        if result in ("0x", ""):
            return 0
        return int(result, 16)

    async def get_native_balance(self, wallet: str) -> int:
        result = await self._rpc_call("eth_getBalance", [wallet, "latest"])
        return self._to_int(result or "0x")

    async def get_token_balance(self, token: str, wallet: str) -> int:
        data = encode_call(ERC20_BALANCE_OF_SELECTOR, encode_address(wallet))
        return self._to_int(await self._eth_call(token, data))

    async def get_token_metadata(self, token: str) -> Tuple[int, str]:
        decimals = self._to_int(await self._eth_call(token, ERC20_DECIMALS_SELECTOR))
        symbol_raw = await self._eth_call(token, ERC20_SYMBOL_SELECTOR)
        symbol = _decode_abi_string(symbol_raw) if symbol_raw not in ("0x", "") else ""
        return decimals, symbol

    async def get_allowance(self, token: str, owner: str, spender: str) -> int:
        data = encode_call(
            ERC20_ALLOWANCE_SELECTOR,
            encode_address(owner),
            encode_address(spender),
        )
        return self._to_int(await self._eth_call(token, data))


class SolanaRpcClient(_JsonRpcClient):
    """Reads SOL and SPL balances over Solana JSON-RPC.

    SPL tokens have no allowance model, so :meth:`get_allowance` always
    reports the maximum and the tools never issue an approval on Solana.
    """

    async def get_native_balance(self, wallet: str) -> int:
        result = await self._rpc_call("getBalance", [wallet, {"commitment": "confirmed"}])
        value = result.get("value") if isinstance(result, dict) else result
        return int(value or 0)

    async def get_token_balance(self, token: str, wallet: str) -> int:
        result = await self._rpc_call(
            "getTokenAccountsByOwner",
            [wallet, {"mint": token}, {"encoding": "jsonParsed", "commitment": "confirmed"}],
        )
        accounts = (result or {}).get("value") or []
        total = 0
        for account in accounts:
            try:
                info = account["account"]["data"]["parsed"]["info"]
                total += int(info["tokenAmount"]["amount"])
            except (KeyError, TypeError, ValueError):
                logger.debug(f"Skipping unparsable token account for mint {token}")
        return total

    async def get_token_metadata(self, token: str) -> Tuple[int, str]:
        result = await self._rpc_call("getTokenSupply", [token])
        try:
            decimals = int(result["value"]["decimals"])
        except (KeyError, TypeError, ValueError) as exc:
            raise ChainRpcError(
                f"Could not read decimals for mint {token}",
                network=self.network,
                method="getTokenSupply",
            ) from exc
        symbol = ""
        for known_symbol, address in get_network(self.network).known_tokens.items():
            if address == token:
                symbol = known_symbol
                break
        return decimals, symbol

    async def get_allowance(self, token: str, owner: str, spender: str) -> int:
        return MAX_UINT256


def build_chain_clients(
    rpc_urls: Optional[Mapping[str, str]] = None,
    timeout_s: Optional[float] = None,
) -> Dict[str, ChainClient]:
    """Create one client per configured network (``settings.rpc_urls`` by default)."""

    urls = dict(rpc_urls if rpc_urls is not None else settings.rpc_urls)
    clients: Dict[str, ChainClient] = {}
    for network, url in urls.items():
        config = NETWORKS.get(network.lower())
        if config is None:
            logger.warning(f"Ignoring RPC URL for unknown network {network}")
            continue
        client_cls = SolanaRpcClient if config.is_solana else EvmRpcClient
        clients[config.name] = client_cls(config.name, url, timeout_s=timeout_s)
    return clients


__all__ = [
    "ChainClient",
    "EvmRpcClient",
    "SolanaRpcClient",
    "build_chain_clients",
]
