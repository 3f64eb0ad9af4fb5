"""
Tests for the JSON-RPC chain clients, using httpx.MockTransport as the node.
"""

import json

import httpx
import pytest

from defi_agent.core.chain import EvmRpcClient, SolanaRpcClient, build_chain_clients
from defi_agent.core.errors import ChainRpcError
from defi_agent.core.tx_builder import (
    ERC20_ALLOWANCE_SELECTOR,
    ERC20_BALANCE_OF_SELECTOR,
    ERC20_DECIMALS_SELECTOR,
    ERC20_SYMBOL_SELECTOR,
    MAX_UINT256,
)

from fakes import BNB_USDT, ROUTER, SOL_WALLET, WALLET


USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"


def _abi_string(text: str) -> str:
    data = text.encode()
    return "0x" + format(32, "064x") + format(len(data), "064x") + data.hex().ljust(64, "0")


def node(handler):
    """Wrap ``handler(method, params) -> result`` as an httpx transport; records requests."""
    requests = []

    def respond(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        requests.append(body)
        result = handler(body["method"], body["params"])
        if isinstance(result, httpx.Response):
            return result
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})

    return httpx.AsyncClient(transport=httpx.MockTransport(respond)), requests


class TestEvmRpcClient:
    """Tests for EVM reads over eth_* calls."""

    @pytest.mark.asyncio
    async def test_native_balance(self):
        """Test eth_getBalance decoding."""
        client, requests = node(lambda method, params: hex(10**18))
        rpc = EvmRpcClient("bnb", "https://rpc.test", client=client)

        assert await rpc.get_native_balance(WALLET) == 10**18
        assert requests[0]["method"] == "eth_getBalance"
        assert requests[0]["params"] == [WALLET, "latest"]

    @pytest.mark.asyncio
    async def test_token_reads(self):
        """Test balanceOf, decimals, symbol and allowance encoding and decoding."""

        def handler(method, params):
            data = params[0]["data"]
            if data.startswith(ERC20_BALANCE_OF_SELECTOR):
                return "0x" + format(5 * 10**18, "064x")
            if data == ERC20_DECIMALS_SELECTOR:
                return "0x" + format(18, "064x")
            if data == ERC20_SYMBOL_SELECTOR:
                return _abi_string("USDT")
            if data.startswith(ERC20_ALLOWANCE_SELECTOR):
                return "0x" + format(7, "064x")
            return "0x"

        client, requests = node(handler)
        rpc = EvmRpcClient("bnb", "https://rpc.test", client=client)

        assert await rpc.get_token_balance(BNB_USDT, WALLET) == 5 * 10**18
        assert await rpc.get_token_metadata(BNB_USDT) == (18, "USDT")
        assert await rpc.get_allowance(BNB_USDT, WALLET, ROUTER) == 7

        balance_call = requests[0]["params"][0]
        assert balance_call["to"] == BNB_USDT
        assert balance_call["data"].endswith(WALLET[2:].lower())
        allowance_data = requests[-1]["params"][0]["data"]
        assert allowance_data.endswith(ROUTER[2:].lower())

    @pytest.mark.asyncio
    async def test_bytes32_symbol(self):
        """Test the fallback for tokens returning bytes32 symbols."""

        def handler(method, params):
            if params[0]["data"] == ERC20_DECIMALS_SELECTOR:
                return "0x" + format(18, "064x")
            return "0x" + b"MKR".hex().ljust(64, "0")

        client, _ = node(handler)
        rpc = EvmRpcClient("ethereum", "https://rpc.test", client=client)

        assert await rpc.get_token_metadata(BNB_USDT) == (18, "MKR")

    @pytest.mark.asyncio
    async def test_rpc_error(self):
        """Test that a JSON-RPC error object raises ChainRpcError."""

        def handler(method, params):
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "header not found"}})

        client, _ = node(handler)
        rpc = EvmRpcClient("bnb", "https://rpc.test", client=client)

        with pytest.raises(ChainRpcError) as exc:
            await rpc.get_native_balance(WALLET)
        assert "header not found" in exc.value.message
        assert exc.value.context.details["method"] == "eth_getBalance"

    @pytest.mark.asyncio
    async def test_http_error(self):
        """Test that HTTP failures raise ChainRpcError."""
        client, _ = node(lambda method, params: httpx.Response(502, text="bad gateway"))
        rpc = EvmRpcClient("bnb", "https://rpc.test", client=client)

        with pytest.raises(ChainRpcError) as exc:
            await rpc.get_native_balance(WALLET)
        assert exc.value.context.network == "bnb"


class TestSolanaRpcClient:
    """Tests for Solana reads."""

    @pytest.mark.asyncio
    async def test_native_balance(self):
        """Test getBalance decoding."""
        client, requests = node(lambda method, params: {"context": {"slot": 1}, "value": 2_500_000_000})
        rpc = SolanaRpcClient("solana", "https://rpc.test", client=client)

        assert await rpc.get_native_balance(SOL_WALLET) == 2_500_000_000
        assert requests[0]["method"] == "getBalance"

    @pytest.mark.asyncio
    async def test_token_balance_sums_accounts(self):
        """Test that all token accounts for the mint are summed."""

        def account(amount):
            return {"account": {"data": {"parsed": {"info": {"tokenAmount": {"amount": str(amount)}}}}}}

        client, _ = node(lambda method, params: {"value": [account(1_000_000), account(500_000), {"account": {}}]})
        rpc = SolanaRpcClient("solana", "https://rpc.test", client=client)

        assert await rpc.get_token_balance(USDC_MINT, SOL_WALLET) == 1_500_000

    @pytest.mark.asyncio
    async def test_token_metadata(self):
        """Test decimals from getTokenSupply and symbol from the known-token table."""
        client, _ = node(lambda method, params: {"value": {"amount": "1", "decimals": 6}})
        rpc = SolanaRpcClient("solana", "https://rpc.test", client=client)

        assert await rpc.get_token_metadata(USDC_MINT) == (6, "USDC")

    @pytest.mark.asyncio
    async def test_unreadable_mint(self):
        """Test that a missing mint raises ChainRpcError."""
        client, _ = node(lambda method, params: None)
        rpc = SolanaRpcClient("solana", "https://rpc.test", client=client)

        with pytest.raises(ChainRpcError):
            await rpc.get_token_metadata(USDC_MINT)

    @pytest.mark.asyncio
    async def test_allowance_is_unlimited(self):
        """Test that SPL tokens report unlimited allowance without a request."""
        client, requests = node(lambda method, params: None)
        rpc = SolanaRpcClient("solana", "https://rpc.test", client=client)

        assert await rpc.get_allowance(USDC_MINT, SOL_WALLET, SOL_WALLET) == MAX_UINT256
        assert requests == []


class TestBuildChainClients:
    """Tests for client construction from configuration."""

    def test_one_client_per_known_network(self):
        """Test that each URL becomes the right client type and unknown networks are skipped."""
        clients = build_chain_clients(
            {"BNB": "https://bsc.test", "solana": "https://sol.test", "dogechain": "https://doge.test"}
        )

        assert set(clients) == {"bnb", "solana"}
        assert isinstance(clients["bnb"], EvmRpcClient)
        assert isinstance(clients["solana"], SolanaRpcClient)
        assert clients["bnb"].rpc_url == "https://bsc.test"
