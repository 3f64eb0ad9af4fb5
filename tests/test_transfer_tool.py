"""
Tests for the transfer provider family and the transfer_tokens tool.
"""

import json

import pytest

from defi_agent.core.agent import Agent
from defi_agent.core.errors import UnsupportedOperationError, WalletError
from defi_agent.core.networks import EVM_NATIVE_TOKEN_ADDRESS, SOL_NATIVE_TOKEN_ADDRESS
from defi_agent.core.token_cache import Token
from defi_agent.core.tx_builder import ERC20_APPROVE_SELECTOR, ERC20_TRANSFER_SELECTOR
from defi_agent.plugins import PluginConfig, WalletPlugin
from defi_agent.providers.transfer import RpcTransferProvider, TransferParams, TransferQuote

from fakes import (
    BNB_USDT,
    ETHER,
    OTHER_WALLET,
    SOL_WALLET,
    WALLET,
    RecordingWallet,
    bnb_client,
)


BUFFER = 10**14  # bnb gas buffer


def build_agent(providers, default_network=None):
    plugin = WalletPlugin()
    plugin.initialize(PluginConfig(providers=list(providers), default_network=default_network))
    wallet = RecordingWallet()
    agent = Agent(wallet, networks=["bnb"])
    agent.register_plugin(plugin)
    return agent, wallet


async def call(agent, arguments):
    return json.loads(await agent.execute_tool("transfer_tokens", arguments))


# =============================================================================
# Tool pipeline
# =============================================================================

class TestTransferTool:
    """Tests for transfers driven through an Agent."""

    @pytest.mark.asyncio
    async def test_erc20_transfer_approves_token_contract_first(self):
        """Test that a short allowance on the token contract is approved before the transfer."""
        client = bnb_client(usdt=100 * ETHER, allowance=0, spender=BNB_USDT)
        agent, wallet = build_agent([RpcTransferProvider({"bnb": client})])

        result = await call(
            agent, {"token": "USDT", "toAddress": OTHER_WALLET, "amount": "10", "network": "bnb"}
        )

        assert result["status"] == "success"
        assert result["provider"] == "rpc"
        assert result["amount"] == "10"
        assert result["fromAddress"] == WALLET
        assert result["toAddress"] == OTHER_WALLET
        assert result["transactionHash"] == "0xhash2"
        assert len(wallet.sent) == 2

        approve_tx = wallet.sent[0][1]
        assert approve_tx.to == BNB_USDT
        assert approve_tx.data.startswith(ERC20_APPROVE_SELECTOR)

        transfer_tx = wallet.sent[1][1]
        assert transfer_tx.to == BNB_USDT
        assert transfer_tx.value == 0
        assert transfer_tx.data.startswith(ERC20_TRANSFER_SELECTOR)
        assert OTHER_WALLET[2:].lower() in transfer_tx.data
        assert transfer_tx.data.endswith(format(10 * ETHER, "064x"))

    @pytest.mark.asyncio
    async def test_native_transfer_clamped_to_leave_gas(self):
        """Test that sending the whole native balance keeps the gas buffer back."""
        client = bnb_client(native=ETHER)
        agent, wallet = build_agent([RpcTransferProvider({"bnb": client})])

        result = await call(
            agent, {"token": "BNB", "toAddress": OTHER_WALLET, "amount": "1", "network": "bnb"}
        )

        assert result["status"] == "success"
        assert result["amount"] == "0.9999"
        assert result["token"]["address"] == EVM_NATIVE_TOKEN_ADDRESS
        assert len(wallet.sent) == 1
        tx = wallet.sent[0][1]
        assert tx.to == OTHER_WALLET
        assert tx.value == ETHER - BUFFER
        assert tx.data == "0x"

    @pytest.mark.asyncio
    async def test_default_network_applies(self):
        """Test that the network falls back to the plugin default when omitted."""
        agent, wallet = build_agent([RpcTransferProvider({"bnb": bnb_client(native=ETHER)})], default_network="bnb")

        result = await call(agent, {"token": "BNB", "toAddress": OTHER_WALLET, "amount": "0.1"})

        assert result["status"] == "success"
        assert result["network"] == "bnb"
        assert wallet.sent[0][1].value == 10**17

    @pytest.mark.asyncio
    async def test_invalid_recipient(self):
        """Test that a malformed recipient fails before anything is quoted."""
        client = bnb_client()
        agent, wallet = build_agent([RpcTransferProvider({"bnb": client})])

        result = await call(
            agent, {"token": "USDT", "toAddress": "0x1234", "amount": "1", "network": "bnb"}
        )

        assert result["status"] == "error"
        assert result["errorCode"] == "invalid_address"
        assert result["errorStep"] == "token_validation"
        assert client.calls == []
        assert wallet.sent == []

    @pytest.mark.asyncio
    async def test_unknown_provider_rejected(self):
        """Test that naming an unregistered provider is a provider validation error."""
        agent, wallet = build_agent([RpcTransferProvider({"bnb": bnb_client()})])

        result = await call(
            agent,
            {"token": "USDT", "toAddress": OTHER_WALLET, "amount": "1", "network": "bnb", "provider": "nope"},
        )

        assert result["status"] == "error"
        assert result["errorCode"] == "provider_not_found"
        assert result["errorStep"] == "provider_validation"
        assert wallet.sent == []

    @pytest.mark.asyncio
    async def test_insufficient_token_balance(self):
        """Test that a transfer far beyond the balance stops at the balance check."""
        agent, wallet = build_agent([RpcTransferProvider({"bnb": bnb_client(usdt=ETHER)})])

        result = await call(
            agent, {"token": "USDT", "toAddress": OTHER_WALLET, "amount": "50", "network": "bnb"}
        )

        assert result["status"] == "error"
        assert result["errorCode"] == "insufficient_balance"
        assert wallet.sent == []


# =============================================================================
# Provider
# =============================================================================

class TestTransferProvider:
    """Tests for transfer quoting and encoding."""

    @pytest.mark.asyncio
    async def test_quote_pins_both_parties(self):
        """Test that the quote carries sender, recipient and an unchanged amount."""
        provider = RpcTransferProvider({"bnb": bnb_client()})

        quote = await provider.get_quote(
            TransferParams(network="bnb", token=BNB_USDT, to_address=OTHER_WALLET, amount="5"), WALLET
        )

        assert quote.type == "transfer"
        assert quote.token.address == BNB_USDT
        assert quote.amount == "5"
        assert quote.to_dict()["fromAddress"] == WALLET
        assert quote.to_dict()["toAddress"] == OTHER_WALLET
        assert provider.balances_touched(quote, WALLET) == [
            (BNB_USDT, WALLET, "bnb"),
            (BNB_USDT, OTHER_WALLET, "bnb"),
        ]

    @pytest.mark.asyncio
    async def test_sender_mismatch_rejected(self):
        """Test that a quote issued for one wallet cannot be built for another."""
        provider = RpcTransferProvider({"bnb": bnb_client()})
        quote = await provider.get_quote(
            TransferParams(network="bnb", token=BNB_USDT, to_address=OTHER_WALLET, amount="5"), WALLET
        )

        with pytest.raises(WalletError):
            await provider.build_transfer_transaction(quote, OTHER_WALLET)

    @pytest.mark.asyncio
    async def test_sender_check_ignores_checksum_case(self):
        """Test that EVM sender comparison is case-insensitive."""
        sender = "0xAbCdEf0000000000000000000000000000000001"
        provider = RpcTransferProvider({"bnb": bnb_client()})
        quote = await provider.get_quote(
            TransferParams(network="bnb", token=BNB_USDT, to_address=OTHER_WALLET, amount="5"), sender
        )

        tx = await provider.build_transfer_transaction(quote, sender.lower())

        assert tx.to == BNB_USDT

    def test_non_evm_encoding_unsupported(self):
        """Test that networks without an EVM transaction format are refused."""
        provider = RpcTransferProvider({"bnb": bnb_client()})
        sol = Token(address=SOL_NATIVE_TOKEN_ADDRESS, decimals=9, symbol="SOL", network="solana")
        quote = TransferQuote(
            network="solana",
            provider="rpc",
            type="transfer",
            from_token=sol,
            to_token=sol,
            from_amount="1",
            to_amount="1",
            from_address=SOL_WALLET,
            to_address=SOL_WALLET,
        )

        with pytest.raises(UnsupportedOperationError):
            provider.encode_transfer(quote)

    def test_only_evm_networks_supported(self):
        """Test that the RPC provider advertises only EVM networks it has clients for."""
        provider = RpcTransferProvider({"bnb": bnb_client()})

        assert provider.get_supported_networks() == ["bnb"]
