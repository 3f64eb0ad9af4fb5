"""
Tests for error payloads and pipeline step tagging.
"""

import pytest

from defi_agent.core.errors import (
    DefiAgentError,
    ErrorStep,
    InsufficientBalanceError,
    NetworkUnsupportedError,
    NoValidQuotesError,
    ProviderNotFoundError,
    error_payload,
    pipeline_step,
)


class TestErrorPayloads:
    """Tests for the JSON payload every tool failure is reported as."""

    def test_network_unsupported_payload(self):
        """Test the fields carried by an unsupported network."""
        error = NetworkUnsupportedError("fantom", supported=["solana", "bnb"], provider="pancake")

        payload = error.to_payload()

        assert payload["status"] == "error"
        assert payload["errorCode"] == "network_unsupported"
        assert payload["errorStep"] == "network_validation"
        assert payload["message"] == "Network fantom is not supported by pancake. Supported networks: bnb, solana"
        assert payload["details"]["supportedNetworks"] == ["bnb", "solana"]
        assert payload["details"]["provider"] == "pancake"
        assert "suggestion" in payload

    def test_no_valid_quotes_lists_provider_errors(self):
        """Test that each provider's failure is kept."""
        error = NoValidQuotesError({"a": "no route", "b": "timeout"}, network="bnb")

        assert error.message == "No valid quotes found (a: no route; b: timeout)"
        assert error.to_payload()["details"]["providerErrors"] == {"a": "no route", "b": "timeout"}

    def test_insufficient_balance_details(self):
        """Test that required and available amounts are exposed."""
        payload = InsufficientBalanceError(
            "Insufficient USDT balance", required="10", available="5", token="USDT", network="bnb"
        ).to_payload()

        assert payload["details"] == {"required": "10", "available": "5", "token": "USDT", "network": "bnb"}

    def test_plain_exception_payload(self):
        """Test that foreign exceptions become unknown errors tagged with the step."""
        payload = error_payload(KeyError("x"), ErrorStep.EXECUTION)

        assert payload["errorCode"] == "unknown"
        assert payload["errorStep"] == "execution"


class TestPipelineStep:
    """Tests for step tagging."""

    def test_untagged_error_gets_step(self):
        """Test that an error without a step takes the enclosing one."""
        with pytest.raises(DefiAgentError) as exc:
            with pipeline_step(ErrorStep.APPROVAL):
                raise DefiAgentError("nope")
        assert exc.value.step == ErrorStep.APPROVAL

    def test_inner_step_wins(self):
        """Test that nested steps keep the innermost tag."""
        with pytest.raises(ProviderNotFoundError) as exc:
            with pipeline_step(ErrorStep.QUOTE_RETRIEVAL):
                with pipeline_step(ErrorStep.PROVIDER_VALIDATION):
                    raise ProviderNotFoundError("x")
        assert exc.value.step == ErrorStep.PROVIDER_VALIDATION

    def test_plain_exception_is_wrapped(self):
        """Test that library exceptions are wrapped with the step and chained."""
        with pytest.raises(DefiAgentError) as exc:
            with pipeline_step(ErrorStep.EXECUTION):
                raise ConnectionError("reset by peer")
        assert exc.value.step == ErrorStep.EXECUTION
        assert exc.value.message == "reset by peer"
        assert isinstance(exc.value.__cause__, ConnectionError)
