"""
Tests for the get_staking_balance tool.
"""

import json

import pytest

from defi_agent.core.agent import Agent
from defi_agent.core.token_cache import Token
from defi_agent.plugins import PluginConfig, StakingPlugin
from defi_agent.providers.staking import StakingBalance

from fakes import ETHER, OTHER_WALLET, WALLET, FakeStakingProvider, RecordingWallet, bnb_client


VUSDT = Token(address="0xfD5840Cd36d94D7229439859C0112a4185BC0255", decimals=8, symbol="vUSDT", network="bnb")
STKBNB = Token(address="0xc2E9d07F66A89c44062459A47a0D2Dc038E4fb16", decimals=18, symbol="stkBNB", network="bnb")


def position(token: Token, units: int, formatted: str, apy=None) -> StakingBalance:
    return StakingBalance(token=token, balance=units, formatted_balance=formatted, apy=apy)


def build_agent(*providers, networks=("bnb",), default_network=None):
    plugin = StakingPlugin()
    plugin.initialize(PluginConfig(providers=list(providers), default_network=default_network))
    agent = Agent(RecordingWallet(), networks=list(networks))
    agent.register_plugin(plugin)
    return agent


async def balances(agent, **arguments):
    return json.loads(await agent.execute_tool("get_staking_balance", arguments))


class TestGetStakingBalanceTool:
    """Tests for aggregating positions across staking providers."""

    @pytest.mark.asyncio
    async def test_aggregates_across_providers(self):
        """Test that every provider's positions are merged."""
        venus = FakeStakingProvider(
            "venus", {"bnb": bnb_client()}, balances=[position(VUSDT, 5 * 10**8, "5", apy=3.1)]
        )
        pstake = FakeStakingProvider(
            "pstake", {"bnb": bnb_client()}, balances=[position(STKBNB, ETHER, "1")]
        )
        agent = build_agent(venus, pstake)

        result = await balances(agent, network="bnb")

        assert result["status"] == "success"
        assert result["address"] == WALLET
        assert result["network"] == "bnb"
        tokens = result["data"]["tokens"]
        assert [t["symbol"] for t in tokens] == ["vUSDT", "stkBNB"]
        assert tokens[0]["balance"] == "5"
        assert tokens[0]["apy"] == 3.1
        assert "apy" not in tokens[1]
        assert "errors" not in result

    @pytest.mark.asyncio
    async def test_explicit_address(self):
        """Test that a given address is queried instead of the agent wallet."""
        venus = FakeStakingProvider("venus", {"bnb": bnb_client()})
        agent = build_agent(venus)

        result = await balances(agent, address=OTHER_WALLET, network="bnb")

        assert result["address"] == OTHER_WALLET
        assert result["data"]["address"] == OTHER_WALLET

    @pytest.mark.asyncio
    async def test_invalid_address(self):
        """Test that a malformed address is rejected before any provider is queried."""
        agent = build_agent(FakeStakingProvider("venus", {"bnb": bnb_client()}))

        result = await balances(agent, address="0x123", network="bnb")

        assert result["status"] == "error"
        assert result["errorCode"] == "invalid_address"
        assert "not a valid wallet address" in result["message"]

    @pytest.mark.asyncio
    async def test_partial_failure_keeps_results(self):
        """Test that one failing provider is reported next to the others' positions."""
        venus = FakeStakingProvider("venus", {"bnb": bnb_client()}, balance_error=RuntimeError("rpc down"))
        pstake = FakeStakingProvider("pstake", {"bnb": bnb_client()}, balances=[position(STKBNB, ETHER, "1")])
        agent = build_agent(venus, pstake)

        result = await balances(agent, network="bnb")

        assert result["status"] == "success"
        assert len(result["data"]["tokens"]) == 1
        assert result["errors"] == {"venus": "rpc down"}

    @pytest.mark.asyncio
    async def test_all_providers_fail(self):
        """Test that an error payload is returned when nothing could be read."""
        venus = FakeStakingProvider("venus", {"bnb": bnb_client()}, balance_error=RuntimeError("rpc down"))
        agent = build_agent(venus)

        result = await balances(agent, network="bnb")

        assert result["status"] == "error"
        assert result["errorCode"] == "provider_unavailable"
        assert result["errorStep"] == "provider_availability"
        assert result["details"]["providerErrors"] == {"venus": "rpc down"}
        assert result["details"]["address"] == WALLET

    @pytest.mark.asyncio
    async def test_empty_answer_with_failure_is_success(self):
        """Test that one provider reporting no positions is enough for a success."""
        venus = FakeStakingProvider("venus", {"bnb": bnb_client()})
        pstake = FakeStakingProvider("pstake", {"bnb": bnb_client()}, balance_error=RuntimeError("rpc down"))
        agent = build_agent(venus, pstake)

        result = await balances(agent, network="bnb")

        assert result["status"] == "success"
        assert result["data"]["tokens"] == []
        assert result["message"] == f"No staking balances found for {WALLET}"
        assert result["errors"] == {"pstake": "rpc down"}

    @pytest.mark.asyncio
    async def test_no_positions(self):
        """Test that an empty wallet is a success with a message."""
        agent = build_agent(FakeStakingProvider("venus", {"bnb": bnb_client()}))

        result = await balances(agent, network="bnb")

        assert result["status"] == "success"
        assert result["data"]["tokens"] == []
        assert result["message"] == f"No staking balances found for {WALLET}"

    @pytest.mark.asyncio
    async def test_default_network(self):
        """Test that an omitted network falls back to the configured default."""
        venus = FakeStakingProvider("venus", {"bnb": bnb_client()}, balances=[position(VUSDT, 10**8, "1")])
        agent = build_agent(venus, default_network="bnb")

        result = await balances(agent)

        assert result["network"] == "bnb"
        assert len(result["data"]["tokens"]) == 1

    @pytest.mark.asyncio
    async def test_unsupported_network(self):
        """Test that a network without staking providers is rejected."""
        agent = build_agent(FakeStakingProvider("venus", {"bnb": bnb_client()}), networks=("bnb", "ethereum"))

        result = await balances(agent, network="ethereum")

        assert result["status"] == "error"
        assert result["errorCode"] == "network_unsupported"
        assert result["errorStep"] == "network_validation"

    def test_definition(self):
        """Test the tool schema offered to the LLM."""
        agent = build_agent(FakeStakingProvider("venus", {"bnb": bnb_client()}), default_network="bnb")

        definition = next(d for d in agent.get_tool_definitions() if d.name == "get_staking_balance")
        schema = definition.to_anthropic_format()

        assert "venus" in definition.description
        assert schema["input_schema"]["required"] == []
        assert schema["input_schema"]["properties"]["network"]["enum"] == ["bnb"]
        assert schema["input_schema"]["properties"]["network"]["default"] == "bnb"
