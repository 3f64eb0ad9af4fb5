"""Helpers for validating token and wallet addresses per network."""

from __future__ import annotations

import logging
import re
from functools import lru_cache

from eth_utils import is_hex_address, to_checksum_address

from .errors import InvalidAddressError
from .networks import EVM_NATIVE_TOKEN_ADDRESS, EVM_ZERO_ADDRESS, get_network


logger = logging.getLogger(__name__)

_BASE58_ALPHABET = set("123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz")

_EVM_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")


def is_valid_evm_address(address: str | None) -> bool:
    if not address or not _EVM_ADDRESS_RE.match(address):
        return False
    return is_hex_address(address)


@lru_cache(maxsize=512)
def is_valid_solana_address(address: str) -> bool:
    if not address:
        return False
    length = len(address)
    if length < 32 or length > 44:
        return False
    return all(ch in _BASE58_ALPHABET for ch in address)


def is_valid_token_address(address: str | None, network: str) -> bool:
    config = get_network(network)
    if not address:
        return False
    if config.is_solana:
        return is_valid_solana_address(address)
    return is_valid_evm_address(address)


def normalize_evm_address(address: str) -> str:
    """Checksum an EVM address; the zero address becomes the native sentinel."""

    if address.lower() == EVM_ZERO_ADDRESS:
        return EVM_NATIVE_TOKEN_ADDRESS
    if address.lower() == EVM_NATIVE_TOKEN_ADDRESS.lower():
        return EVM_NATIVE_TOKEN_ADDRESS
    return to_checksum_address(address)


def resolve_token_address(value: str | None, network: str) -> str:
    """Turn a tool argument into a token address valid on ``network``.

    Accepts an address directly, or a symbol from the network's known-token
    table (agents regularly pass "USDT" where a contract address belongs).
    Anything else is rejected before a single RPC call is made.
    """

    config = get_network(network)
    candidate = (value or "").strip()
    if not candidate:
        raise InvalidAddressError(value or "", network, "empty token address")

    if is_valid_token_address(candidate, network):
        if config.is_evm:
            return normalize_evm_address(candidate)
        return candidate

    by_symbol = {symbol.upper(): address for symbol, address in config.known_tokens.items()}
    resolved = by_symbol.get(candidate.upper())
    if resolved:
        logger.info(f"Resolved token symbol {candidate} to {resolved} on {network}")
        return resolved

    raise InvalidAddressError(candidate, network)


def validate_wallet_address(address: str | None, network: str) -> str:
    if not is_valid_token_address(address, network):
        raise InvalidAddressError(address or "", network, "not a valid wallet address")
    return address  # type: ignore[return-value]


__all__ = [
    "is_valid_evm_address",
    "is_valid_solana_address",
    "is_valid_token_address",
    "normalize_evm_address",
    "resolve_token_address",
    "validate_wallet_address",
]
