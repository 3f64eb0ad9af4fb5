"""
Agent-callable tools.

``BaseTool`` handles what every tool shares: argument validation against a
pydantic model, the network enum offered to the LLM, progress reporting and
the rule that a tool always answers with a JSON string, never an exception.

``BaseOperationTool`` is the quote -> balance check -> approve -> execute
pipeline used by the swap, staking, bridge and transfer tools. Subclasses describe
their arguments and how to compare quotes; the sequencing lives here.
"""

from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation
from typing import (
    Any,
    ClassVar,
    Dict,
    Generic,
    List,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    Type,
    TypeVar,
)

import structlog
from pydantic import BaseModel, ValidationError, field_validator

from ..core.agent.schema import ToolDefinition, ToolParameter, ToolProgress
from ..core.agent.tools import ProgressCallback
from ..core.amounts import exceeds_amount_range
from ..core.errors import (
    DefiAgentError,
    ErrorStep,
    InsufficientBalanceError,
    InvalidArgumentsError,
    NetworkUnsupportedError,
    NoValidQuotesError,
    ProviderUnavailableError,
    WalletError,
    error_payload,
    pipeline_step,
)
from ..core.networks import get_network, is_known_network
from ..core.registry import ProviderRegistry
from ..core.wallet import Wallet
from ..providers.base import BaseProvider, Quote


logger = logging.getLogger(__name__)

P = TypeVar("P", bound=BaseProvider)
A = TypeVar("A", bound=BaseModel)


class AgentContext(Protocol):
    """What a tool needs from the agent hosting it."""

    def get_wallet(self) -> Wallet: ...

    def get_networks(self) -> List[str]: ...


# =============================================================================
# Argument validation helpers
# =============================================================================

def validate_network_name(value: Any) -> str:
    name = str(value or "").strip().lower()
    if not is_known_network(name):
        raise ValueError(f"unknown network '{value}'")
    return name


def validate_positive_amount(value: Any) -> str:
    text = str(value).strip() if value is not None else ""
    try:
        amount = Decimal(text)
    except (InvalidOperation, ValueError):
        raise ValueError(f"'{value}' is not a decimal number")
    if not amount.is_finite() or amount <= 0:
        raise ValueError(f"'{value}' must be greater than zero")
    if exceeds_amount_range(amount):
        raise ValueError(f"'{value}' exceeds the uint256 range")
    return text


class OperationArgs(BaseModel):
    """Arguments common to every operation tool."""

    network: str
    provider: Optional[str] = None

    @field_validator("network", mode="before")
    @classmethod
    def _check_network(cls, value: Any) -> str:
        return validate_network_name(value)

    @field_validator("provider", mode="before")
    @classmethod
    def _blank_provider(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


# =============================================================================
# Tools
# =============================================================================

class BaseTool(ABC, Generic[P, A]):
    """Common plumbing for tools backed by a provider registry."""

    name: ClassVar[str]
    args_model: ClassVar[Type[BaseModel]]

    def __init__(self, registry: ProviderRegistry[P]):
        self.registry = registry
        self.agent: Optional[AgentContext] = None

    def set_agent(self, agent: AgentContext) -> None:
        self.agent = agent

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    @abstractmethod
    def get_description(self) -> str:
        ...

    @abstractmethod
    def get_parameters(self, networks: List[str]) -> List[ToolParameter]:
        ...

    def get_supported_networks(self) -> List[str]:
        """Networks both the agent and at least one registered provider support."""
        provider_networks = self.registry.get_supported_networks()
        if self.agent is None:
            return provider_networks
        agent_networks = self.agent.get_networks()
        return [network for network in agent_networks if network in provider_networks]

    def get_definition(self) -> ToolDefinition:
        return ToolDefinition(
            name=self.name,
            description=self.get_description(),
            parameters=self.get_parameters(self.get_supported_networks()),
        )

    def _provider_prompts(self) -> str:
        prompts = [
            f"{provider.get_name()}: {prompt}"
            for provider in self.registry.get_providers()
            if (prompt := provider.get_prompt())
        ]
        return (" Provider notes: " + " ".join(prompts)) if prompts else ""

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def parse_arguments(self, arguments: Dict[str, Any]) -> A:
        try:
            return self.args_model.model_validate(arguments or {})  # type: ignore[return-value]
        except ValidationError as e:
            problems = [
                f"{'.'.join(str(part) for part in err['loc']) or 'arguments'}: {err['msg']}"
                for err in e.errors()
            ]
            raise InvalidArgumentsError(self.name, problems) from e

    async def execute(self, arguments: Dict[str, Any], on_progress: Optional[ProgressCallback] = None) -> str:
        """Run the tool and always answer with a JSON string."""
        with structlog.contextvars.bound_contextvars(tool=self.name):
            try:
                args = self.parse_arguments(arguments)
                with structlog.contextvars.bound_contextvars(network=getattr(args, "network", None)):
                    payload = await self.run(args, on_progress)
            except DefiAgentError as e:
                logger.error(f"{self.name} failed at {e.step.value}: {e.message}")
                payload = e.to_payload()
            except Exception as e:
                logger.exception(f"{self.name} failed unexpectedly")
                payload = error_payload(e, ErrorStep.EXECUTION)
        return json.dumps(payload, default=str)

    @abstractmethod
    async def run(self, args: A, on_progress: Optional[ProgressCallback]) -> Dict[str, Any]:
        ...

    def _require_agent(self) -> AgentContext:
        if self.agent is None:
            raise WalletError(f"Tool {self.name} is not attached to an agent")
        return self.agent

    async def get_wallet_address(self, network: str) -> str:
        agent = self._require_agent()
        try:
            address = await agent.get_wallet().get_address(network)
        except Exception as e:
            raise WalletError(f"Failed to get wallet address for network {network}: {e}", network=network) from e
        if not address:
            raise WalletError(f"Wallet has no address on network {network}", network=network)
        return address

    def validate_network(self, network: str) -> None:
        supported = self.get_supported_networks()
        if network not in supported:
            if not self.registry.get_providers_by_network(network):
                logger.warning(f"No {self.name} providers registered for {network}")
            raise NetworkUnsupportedError(network, supported=supported)

    @staticmethod
    def report_progress(on_progress: Optional[ProgressCallback], progress: int, message: str) -> None:
        logger.debug(f"[{progress}%] {message}")
        if on_progress is None:
            return
        try:
            on_progress(ToolProgress(progress=progress, message=message))
        except Exception as e:
            # progress is a side channel and must not abort the operation
            logger.warning(f"Progress callback failed: {e}")


class BaseOperationTool(BaseTool[P, A]):
    """
    Quote, verify and execute one operation across competing providers.

    Steps, each tagged in error payloads:
        1. resolve token arguments to addresses on the target network
        2. resolve the agent wallet address
        3. check the network against agent and provider networks
        4. quote (preferred provider with fallback, or best of all)
        5. balance check (fails before anything is built)
        6. build the operation transaction from the stored quote
        7. approve and wait for confirmation when allowance is short
        8. submit, wait, invalidate balances, report
    """

    # ------------------------------------------------------------------
    # Family hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def resolve_tokens(self, args: A) -> A:
        """Return ``args`` with token fields resolved to addresses (step 1)."""

    @abstractmethod
    async def request_quote(self, provider: P, args: A, wallet: str) -> Quote:
        """Ask one provider for a quote (amount adjustment included)."""

    @abstractmethod
    def pick_best(self, candidates: Sequence[Tuple[P, Quote]], args: A) -> Tuple[P, Quote]:
        """Choose the winning quote, comparing integer base units."""

    @abstractmethod
    def success_payload(self, provider: P, quote: Quote, tx_hash: str, args: A) -> Dict[str, Any]:
        ...

    def quote_network(self, args: A) -> str:
        return args.network  # type: ignore[attr-defined]

    def validate_networks(self, args: A) -> None:
        self.validate_network(self.quote_network(args))

    async def prepare_args(self, args: A, wallet_address: str) -> A:
        """Fill in anything that needs the wallet (e.g. a destination address)."""
        return args

    # ------------------------------------------------------------------
    # Quoting
    # ------------------------------------------------------------------

    async def _safe_quote(self, provider: P, args: A, wallet: str) -> Tuple[P, Optional[Quote], Optional[str]]:
        try:
            quote = await self.request_quote(provider, args, wallet)
            return provider, quote, None
        except Exception as e:
            logger.warning(f"Quote from {provider.get_name()} failed: {e}")
            return provider, None, str(e) or e.__class__.__name__

    async def find_best_quote(
        self,
        args: A,
        wallet: str,
        exclude: Optional[Dict[str, str]] = None,
    ) -> Tuple[P, Quote]:
        """Query every provider on the network concurrently and keep the best quote.

        A failing provider is logged and skipped; only when none succeeds
        does this raise NoValidQuotesError.
        """
        network = self.quote_network(args)
        errors: Dict[str, str] = dict(exclude or {})
        providers = [
            provider
            for provider in self.registry.get_providers_by_network(network)
            if provider.get_name() not in errors
        ]
        if not providers and not errors:
            raise ProviderUnavailableError(
                f"No providers available for network {network}",
                network=network,
                availableProviders=self.registry.get_provider_names(),
            )

        results = await asyncio.gather(*(self._safe_quote(p, args, wallet) for p in providers))

        candidates: List[Tuple[P, Quote]] = []
        for provider, quote, error in results:
            if quote is not None:
                candidates.append((provider, quote))
            else:
                errors[provider.get_name()] = error or "unknown error"

        if not candidates:
            raise NoValidQuotesError(errors, network=network)

        provider, quote = self.pick_best(candidates, args)
        logger.info(
            f"Best quote from {provider.get_name()} among {len(candidates)} "
            f"of {len(providers)} providers on {network}"
        )
        return provider, quote

    async def select_quote(self, args: A, wallet: str) -> Tuple[P, Quote]:
        preferred_name: Optional[str] = getattr(args, "provider", None)
        if not preferred_name:
            return await self.find_best_quote(args, wallet)

        network = self.quote_network(args)
        with pipeline_step(ErrorStep.PROVIDER_VALIDATION):
            preferred = self.registry.get_provider(preferred_name)
            if network not in preferred.get_supported_networks():
                raise NetworkUnsupportedError(
                    network,
                    supported=preferred.get_supported_networks(),
                    provider=preferred_name,
                )

        try:
            return preferred, await self.request_quote(preferred, args, wallet)
        except Exception as e:
            logger.warning(f"Preferred provider {preferred_name} failed ({e}); falling back to best quote")
            return await self.find_best_quote(args, wallet, exclude={preferred_name: str(e) or e.__class__.__name__})

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def ensure_allowance(
        self,
        provider: P,
        quote: Quote,
        spender: str,
        wallet_address: str,
        wallet: Wallet,
        on_progress: Optional[ProgressCallback],
    ) -> Optional[str]:
        """Approve ``spender`` for the quote's input when needed and wait for it."""
        network = quote.network
        if get_network(network).is_solana:
            return None

        token = quote.from_token
        allowance = await provider.check_allowance(network, token.address, wallet_address, spender)
        if allowance >= quote.from_amount_units:
            return None

        logger.info(f"Allowance {allowance} below {quote.from_amount_units}; approving {token.symbol or token.address}")
        approve_tx = await provider.build_approve_transaction(
            network, token.address, spender, quote.from_amount, wallet_address
        )
        receipt = await wallet.sign_and_send_transaction(network, approve_tx)
        final = await receipt.wait()
        provider.invalidate_balance_cache(token.address, wallet_address, network)
        approval_hash = getattr(final, "hash", None) or receipt.hash
        logger.info(f"Approval confirmed: {approval_hash}")
        return approval_hash

    async def run(self, args: A, on_progress: Optional[ProgressCallback]) -> Dict[str, Any]:
        network = self.quote_network(args)
        self.report_progress(on_progress, 0, f"Preparing {self.name} on {network}")

        with pipeline_step(ErrorStep.TOKEN_VALIDATION):
            args = self.resolve_tokens(args)

        with pipeline_step(ErrorStep.WALLET_ACCESS):
            wallet_address = await self.get_wallet_address(network)
            wallet = self._require_agent().get_wallet()

        with pipeline_step(ErrorStep.NETWORK_VALIDATION):
            self.validate_networks(args)

        with pipeline_step(ErrorStep.WALLET_ACCESS):
            args = await self.prepare_args(args, wallet_address)

        self.report_progress(on_progress, 10, "Fetching quotes from providers")
        with pipeline_step(ErrorStep.QUOTE_RETRIEVAL):
            provider, quote = await self.select_quote(args, wallet_address)
        self.report_progress(
            on_progress,
            20,
            f"Selected {provider.get_name()}: {quote.from_amount} {quote.from_token.symbol} -> "
            f"{quote.to_amount} {quote.to_token.symbol}",
        )

        self.report_progress(on_progress, 40, "Checking balance")
        with pipeline_step(ErrorStep.BALANCE_CHECK):
            check = await provider.check_balance(quote, wallet_address)
            if not check.is_valid:
                raise InsufficientBalanceError(check.message or "Insufficient balance", network=network)

        with pipeline_step(ErrorStep.EXECUTION):
            tx = await provider.build_transaction(quote, wallet_address)

        self.report_progress(on_progress, 60, "Checking token approval")
        with pipeline_step(ErrorStep.APPROVAL):
            await self.ensure_allowance(
                provider, quote, tx.spender or tx.to, wallet_address, wallet, on_progress
            )

        self.report_progress(on_progress, 80, f"Submitting {self.name} transaction")
        with pipeline_step(ErrorStep.EXECUTION):
            receipt = await wallet.sign_and_send_transaction(network, tx)
            final = await receipt.wait()
            tx_hash = getattr(final, "hash", None) or receipt.hash
            provider.invalidate_after_execution(quote, wallet_address)

        self.report_progress(on_progress, 100, f"{self.name} complete: {tx_hash}")
        payload = {"status": "success"}
        payload.update(self.success_payload(provider, quote, tx_hash, args))
        return payload

