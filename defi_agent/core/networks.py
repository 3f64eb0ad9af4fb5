"""Per-network configuration: chain type, native pseudo-token and gas reserve.

Native-token detection lives here so every provider agrees on what the
chain's gas currency looks like, instead of each integration carrying its
own sentinel literal.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .errors import NetworkUnsupportedError


EVM_NATIVE_TOKEN_ADDRESS = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"
EVM_ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
SOL_NATIVE_TOKEN_ADDRESS = "So11111111111111111111111111111111111111111"
SOL_WRAPPED_MINT = "So11111111111111111111111111111111111111112"

EVM_DECIMALS = 18
SOL_DECIMALS = 9


class NetworkType(str, Enum):
    EVM = "evm"
    SOLANA = "solana"


@dataclass(frozen=True)
class NetworkConfig:
    """Static description of one supported network."""

    name: str
    network_type: NetworkType
    native_symbol: str
    native_decimals: int
    gas_buffer: int  # base units of the native token kept unspent for fees
    chain_id: Optional[int] = None
    native_address: str = EVM_NATIVE_TOKEN_ADDRESS
    native_aliases: Tuple[str, ...] = (EVM_ZERO_ADDRESS,)
    wrapped_native: Optional[str] = None
    known_tokens: Dict[str, str] = field(default_factory=dict)

    @property
    def is_evm(self) -> bool:
        return self.network_type == NetworkType.EVM

    @property
    def is_solana(self) -> bool:
        return self.network_type == NetworkType.SOLANA

    def is_native_address(self, address: Optional[str]) -> bool:
        if not address:
            return False
        if self.is_evm:
            candidate = address.lower()
            return candidate == self.native_address.lower() or candidate in {
                alias.lower() for alias in self.native_aliases
            }
        # base58 is case sensitive
        return address == self.native_address or address in self.native_aliases


def _evm(
    name: str,
    chain_id: int,
    symbol: str,
    gas_buffer: int,
    wrapped: Optional[str],
    tokens: Dict[str, str],
) -> NetworkConfig:
    known = {symbol: EVM_NATIVE_TOKEN_ADDRESS}
    if wrapped:
        known[f"W{symbol}"] = wrapped
    known.update(tokens)
    return NetworkConfig(
        name=name,
        network_type=NetworkType.EVM,
        chain_id=chain_id,
        native_symbol=symbol,
        native_decimals=EVM_DECIMALS,
        gas_buffer=gas_buffer,
        wrapped_native=wrapped,
        known_tokens=known,
    )


def _solana(name: str, tokens: Dict[str, str]) -> NetworkConfig:
    known = {"SOL": SOL_NATIVE_TOKEN_ADDRESS, "WSOL": SOL_WRAPPED_MINT}
    known.update(tokens)
    return NetworkConfig(
        name=name,
        network_type=NetworkType.SOLANA,
        native_symbol="SOL",
        native_decimals=SOL_DECIMALS,
        gas_buffer=10_000_000,  # 0.01 SOL
        native_address=SOL_NATIVE_TOKEN_ADDRESS,
        native_aliases=(SOL_WRAPPED_MINT,),
        wrapped_native=SOL_WRAPPED_MINT,
        known_tokens=known,
    )


NETWORKS: Dict[str, NetworkConfig] = {
    "bnb": _evm(
        "bnb",
        56,
        "BNB",
        10**14,  # 0.0001 BNB
        "0xbb4CdB9CBd36B01bD1cBaEBF2De08d9173bc095c",
        {
            "USDT": "0x55d398326f99059fF775485246999027B3197955",
            "USDC": "0x8AC76a51cc950d9822D68b83fE1Ad97B32Cd580d",
        },
    ),
    "ethereum": _evm(
        "ethereum",
        1,
        "ETH",
        10**15,  # 0.001 ETH
        "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2",
        {
            "USDT": "0xdAC17F958D2ee523a2206206994597C13D831ec7",
            "USDC": "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
        },
    ),
    "arbitrum": _evm(
        "arbitrum",
        42161,
        "ETH",
        10**15,
        "0x82aF49447D8a07e3bd95BD0d56f35241523fBab1",
        {
            "USDT": "0xFd086bC7CD5C481DCC9C85ebE478A1C0b69FCbb9",
            "USDC": "0xaf88d065e77c8cC2239327C5EDb3A432268e5831",
        },
    ),
    "optimism": _evm(
        "optimism",
        10,
        "ETH",
        10**15,
        "0x4200000000000000000000000000000000000006",
        {"USDC": "0x0b2C639c533813f4Aa9D7837CAf62653d097Ff85"},
    ),
    "base": _evm(
        "base",
        8453,
        "ETH",
        10**15,
        "0x4200000000000000000000000000000000000006",
        {"USDC": "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"},
    ),
    "polygon": _evm(
        "polygon",
        137,
        "POL",
        10**17,  # 0.1 POL
        "0x0d500B1d8E8eF31E21C99d1Db9A6444d3ADf1270",
        {
            "USDT": "0xc2132D05D31c914a87C6611C10748AEb04B58e8F",
            "USDC": "0x3c499c542cEF5E3811e1192ce70d8cC03d5c3359",
        },
    ),
    "sepolia": _evm("sepolia", 11155111, "ETH", 10**15, None, {}),
    "solana": _solana(
        "solana",
        {
            "USDC": "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v",
            "USDT": "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB",
        },
    ),
    "solana-devnet": _solana("solana-devnet", {}),
}


def get_network(network: str) -> NetworkConfig:
    """Look up a network, raising NetworkUnsupportedError with the known set."""
    config = NETWORKS.get((network or "").lower())
    if config is None:
        raise NetworkUnsupportedError(network, supported=NETWORKS.keys())
    return config


def is_known_network(network: str) -> bool:
    return (network or "").lower() in NETWORKS


def is_solana_network(network: str) -> bool:
    config = NETWORKS.get((network or "").lower())
    return config is not None and config.is_solana


def is_native_token(address: Optional[str], network: str) -> bool:
    return get_network(network).is_native_address(address)


def known_networks() -> List[str]:
    return list(NETWORKS.keys())


__all__ = [
    "EVM_NATIVE_TOKEN_ADDRESS",
    "EVM_ZERO_ADDRESS",
    "SOL_NATIVE_TOKEN_ADDRESS",
    "SOL_WRAPPED_MINT",
    "EVM_DECIMALS",
    "SOL_DECIMALS",
    "NetworkType",
    "NetworkConfig",
    "NETWORKS",
    "get_network",
    "is_known_network",
    "is_solana_network",
    "is_native_token",
    "known_networks",
]
