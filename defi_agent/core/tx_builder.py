"""
Transaction descriptors and minimal ABI encoding for the calls the core needs.
"""

import secrets
from dataclasses import dataclass
from typing import Optional

from .networks import get_network


# Common contract selectors (minimal for encoding)
ERC20_APPROVE_SELECTOR = "0x095ea7b3"  # approve(address,uint256)
ERC20_TRANSFER_SELECTOR = "0xa9059cbb"  # transfer(address,uint256)
ERC20_BALANCE_OF_SELECTOR = "0x70a08231"  # balanceOf(address)
ERC20_ALLOWANCE_SELECTOR = "0xdd62ed3e"  # allowance(address,address)
ERC20_DECIMALS_SELECTOR = "0x313ce567"  # decimals()
ERC20_SYMBOL_SELECTOR = "0x95d89b41"  # symbol()
WETH_DEPOSIT_SELECTOR = "0xd0e30db0"  # deposit()
WETH_WITHDRAW_SELECTOR = "0x2e1a7d4d"  # withdraw(uint256)

# Maximum uint256 for unlimited approval
MAX_UINT256 = 2**256 - 1


@dataclass
class Transaction:
    """An unsigned transaction handed to the wallet for signing."""

    to: str
    data: str
    value: int = 0
    network: str = ""
    gas_limit: Optional[int] = None
    spender: Optional[str] = None

    def __post_init__(self) -> None:
        if self.spender is None:
            self.spender = self.to


def encode_uint256(value: int) -> str:
    """Encode a uint256 as a 32-byte hex string (without 0x prefix)."""
    if value < 0 or value > MAX_UINT256:
        raise ValueError(f"Value out of uint256 range: {value}")
    return format(value, "064x")


def encode_address(address: str) -> str:
    """Encode an address as a 32-byte hex string (without 0x prefix)."""
    addr = address.lower().replace("0x", "")
    return addr.zfill(64)


def encode_call(selector: str, *words: str) -> str:
    return selector + "".join(words)


def generate_quote_id() -> str:
    """Generate a unique quote ID."""
    return f"q_{secrets.token_hex(16)}"


def build_erc20_approve(
    network: str,
    token_address: str,
    spender_address: str,
    amount: int = MAX_UINT256,
) -> Transaction:
    """
    Build an ERC20 approval transaction.

    Args:
        network: Network the token lives on
        token_address: The ERC20 token contract
        spender_address: The address being approved to spend
        amount: The amount to approve in base units (default: unlimited)
    """
    calldata = encode_call(
        ERC20_APPROVE_SELECTOR,
        encode_address(spender_address),
        encode_uint256(amount),
    )
    return Transaction(
        to=token_address,
        data=calldata,
        value=0,
        network=network,
        spender=spender_address,
    )


def _wrapped_native(network: str) -> str:
    config = get_network(network)
    if not config.wrapped_native or not config.is_evm:
        raise ValueError(f"No wrapped native token configured for {network}")
    return config.wrapped_native


def build_wrap(network: str, amount: int) -> Transaction:
    """Deposit native currency into the network's wrapped-native contract."""
    wrapped = _wrapped_native(network)
    return Transaction(to=wrapped, data=WETH_DEPOSIT_SELECTOR, value=amount, network=network)


def build_unwrap(network: str, amount: int) -> Transaction:
    """Withdraw native currency from the network's wrapped-native contract."""
    wrapped = _wrapped_native(network)
    return Transaction(
        to=wrapped,
        data=encode_call(WETH_WITHDRAW_SELECTOR, encode_uint256(amount)),
        value=0,
        network=network,
    )


def build_erc20_transfer(
    network: str,
    token_address: str,
    recipient: str,
    amount: int,
    gas_limit: Optional[int] = None,
) -> Transaction:
    """Build an ERC20 ``transfer(recipient, amount)`` call on the token contract."""
    return Transaction(
        to=token_address,
        data=encode_call(ERC20_TRANSFER_SELECTOR, encode_address(recipient), encode_uint256(amount)),
        value=0,
        network=network,
        gas_limit=gas_limit,
    )


def build_native_transfer(
    network: str,
    recipient: str,
    amount: int,
    gas_limit: Optional[int] = None,
) -> Transaction:
    """Send native currency straight to ``recipient``."""
    return Transaction(to=recipient, data="0x", value=amount, network=network, gas_limit=gas_limit)
