"""
Tests for the network table, native-token detection and address handling.
"""

import pytest

from defi_agent.core.address import (
    is_valid_evm_address,
    is_valid_solana_address,
    is_valid_token_address,
    normalize_evm_address,
    resolve_token_address,
    validate_wallet_address,
)
from defi_agent.core.errors import InvalidAddressError, NetworkUnsupportedError
from defi_agent.core.networks import (
    EVM_NATIVE_TOKEN_ADDRESS,
    EVM_ZERO_ADDRESS,
    SOL_NATIVE_TOKEN_ADDRESS,
    SOL_WRAPPED_MINT,
    get_network,
    is_known_network,
    is_native_token,
    is_solana_network,
    known_networks,
)

from fakes import BNB_USDT, SOL_WALLET, WALLET


# =============================================================================
# Network table
# =============================================================================

class TestNetworks:
    """Tests for per-network configuration."""

    def test_gas_buffers(self):
        """Test the fixed per-network gas reserves."""
        assert get_network("bnb").gas_buffer == 10**14
        assert get_network("ethereum").gas_buffer == 10**15
        assert get_network("solana").gas_buffer == 10_000_000

    def test_lookup_is_case_insensitive(self):
        """Test that network names are normalized."""
        assert get_network("BNB").name == "bnb"
        assert is_known_network("Solana")

    def test_unknown_network_lists_supported(self):
        """Test that an unknown network raises with the supported list."""
        with pytest.raises(NetworkUnsupportedError) as exc:
            get_network("dogechain")
        assert "bnb" in exc.value.supported
        assert "Supported networks" in exc.value.message

    def test_solana_detection(self):
        """Test network type helpers."""
        assert is_solana_network("solana")
        assert is_solana_network("solana-devnet")
        assert not is_solana_network("bnb")
        assert not is_solana_network("nope")
        assert "polygon" in known_networks()

    def test_evm_native_aliases(self):
        """Test that both EVM sentinels count as native, case-insensitively."""
        assert is_native_token(EVM_NATIVE_TOKEN_ADDRESS, "bnb")
        assert is_native_token(EVM_NATIVE_TOKEN_ADDRESS.lower(), "ethereum")
        assert is_native_token(EVM_ZERO_ADDRESS, "bnb")
        assert not is_native_token(BNB_USDT, "bnb")
        assert not is_native_token(None, "bnb")

    def test_solana_native_aliases(self):
        """Test that the SOL sentinel and wrapped mint count as native."""
        assert is_native_token(SOL_NATIVE_TOKEN_ADDRESS, "solana")
        assert is_native_token(SOL_WRAPPED_MINT, "solana")
        assert not is_native_token(EVM_NATIVE_TOKEN_ADDRESS, "solana")


# =============================================================================
# Addresses
# =============================================================================

class TestAddresses:
    """Tests for address validation and token resolution."""

    def test_evm_address_format(self):
        """Test EVM address validation."""
        assert is_valid_evm_address(WALLET)
        assert not is_valid_evm_address("0x123")
        assert not is_valid_evm_address(None)
        assert not is_valid_evm_address("1111111111111111111111111111111111111111")

    def test_solana_address_format(self):
        """Test base58 address validation."""
        assert is_valid_solana_address(SOL_WALLET)
        assert not is_valid_solana_address("0OIl" * 10)
        assert not is_valid_solana_address("short")

    def test_token_address_per_network(self):
        """Test that validation follows the network type."""
        assert is_valid_token_address(WALLET, "bnb")
        assert not is_valid_token_address(WALLET, "solana")
        assert is_valid_token_address(SOL_WALLET, "solana")

    def test_normalize_maps_zero_to_sentinel(self):
        """Test that the zero address becomes the native sentinel."""
        assert normalize_evm_address(EVM_ZERO_ADDRESS) == EVM_NATIVE_TOKEN_ADDRESS
        assert normalize_evm_address(BNB_USDT.lower()) == BNB_USDT

    def test_resolve_symbol(self):
        """Test that known symbols resolve to addresses."""
        assert resolve_token_address("usdt", "bnb") == BNB_USDT
        assert resolve_token_address("BNB", "bnb") == EVM_NATIVE_TOKEN_ADDRESS
        assert resolve_token_address("SOL", "solana") == SOL_NATIVE_TOKEN_ADDRESS

    def test_resolve_rejects_unknown(self):
        """Test that garbage is rejected before any I/O."""
        with pytest.raises(InvalidAddressError) as exc:
            resolve_token_address("not-a-token", "bnb")
        assert exc.value.network == "bnb"
        with pytest.raises(InvalidAddressError):
            resolve_token_address("", "bnb")

    def test_validate_wallet_address(self):
        """Test wallet address validation."""
        assert validate_wallet_address(WALLET, "bnb") == WALLET
        with pytest.raises(InvalidAddressError):
            validate_wallet_address(WALLET, "solana")
