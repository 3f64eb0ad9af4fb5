"""
Error Classification

Tagged error types for the quote/execute pipeline. Every error carries an
``ErrorKind`` plus structured detail fields; the tool layer turns them into
JSON payloads via :meth:`DefiAgentError.to_payload`.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional


class ErrorKind(str, Enum):
    """What went wrong."""

    NETWORK_UNSUPPORTED = "network_unsupported"
    INVALID_ADDRESS = "invalid_address"
    INVALID_AMOUNT = "invalid_amount"
    INVALID_ARGUMENTS = "invalid_arguments"
    PROVIDER_NOT_FOUND = "provider_not_found"
    PROVIDER_UNAVAILABLE = "provider_unavailable"
    UNSUPPORTED_OPERATION = "unsupported_operation"
    NO_VALID_QUOTES = "no_valid_quotes"
    QUOTE_EXPIRED = "quote_expired"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    AMOUNT_TOO_SMALL = "amount_too_small"
    NATIVE_TOKEN_APPROVAL = "native_token_approval"
    WALLET = "wallet"
    CHAIN_RPC = "chain_rpc"
    UNKNOWN = "unknown"


class ErrorStep(str, Enum):
    """Where in a tool call it went wrong."""

    INPUT_VALIDATION = "input_validation"
    NETWORK_VALIDATION = "network_validation"
    WALLET_ACCESS = "wallet_access"
    TOKEN_VALIDATION = "token_validation"
    PROVIDER_AVAILABILITY = "provider_availability"
    PROVIDER_VALIDATION = "provider_validation"
    QUOTE_RETRIEVAL = "quote_retrieval"
    BALANCE_CHECK = "balance_check"
    APPROVAL = "approval"
    EXECUTION = "execution"
    DATA_RETRIEVAL = "data_retrieval"
    UNKNOWN = "unknown"


@dataclass
class ErrorContext:
    """Additional context about an error."""

    kind: ErrorKind = ErrorKind.UNKNOWN
    step: ErrorStep = ErrorStep.UNKNOWN
    suggested_action: Optional[str] = None
    provider: Optional[str] = None
    network: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


class DefiAgentError(Exception):
    """
    Base class for every error raised by providers, caches and tools.

    ``kind`` identifies the failure, ``context`` carries the structured
    fields that the agent can relay back to the user.
    """

    kind: ErrorKind = ErrorKind.UNKNOWN
    default_step: ErrorStep = ErrorStep.UNKNOWN

    def __init__(
        self,
        message: str,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext(kind=self.kind, step=self.default_step)

    @property
    def step(self) -> ErrorStep:
        return self.context.step

    def at_step(self, step: ErrorStep) -> "DefiAgentError":
        """Tag the error with the pipeline step it surfaced in (first tag wins)."""
        if self.context.step == ErrorStep.UNKNOWN:
            self.context.step = step
        return self

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "status": "error",
            "message": self.message,
            "errorCode": self.kind.value,
            "errorStep": self.context.step.value,
            "details": dict(self.context.details),
        }
        if self.context.provider:
            payload["details"].setdefault("provider", self.context.provider)
        if self.context.network:
            payload["details"].setdefault("network", self.context.network)
        if self.context.suggested_action:
            payload["suggestion"] = self.context.suggested_action
        return payload


def _context(
    kind: ErrorKind,
    step: ErrorStep,
    suggested_action: Optional[str] = None,
    provider: Optional[str] = None,
    network: Optional[str] = None,
    **details: Any,
) -> ErrorContext:
    return ErrorContext(
        kind=kind,
        step=step,
        suggested_action=suggested_action,
        provider=provider,
        network=network,
        details={k: v for k, v in details.items() if v is not None},
    )


class NetworkUnsupportedError(DefiAgentError):
    kind = ErrorKind.NETWORK_UNSUPPORTED
    default_step = ErrorStep.NETWORK_VALIDATION

    def __init__(
        self,
        network: str,
        supported: Iterable[str] = (),
        provider: Optional[str] = None,
        message: Optional[str] = None,
    ):
        self.network = network
        self.supported: List[str] = sorted(set(supported))
        if message is None:
            target = f" by {provider}" if provider else ""
            message = f"Network {network} is not supported{target}"
            if self.supported:
                message += f". Supported networks: {', '.join(self.supported)}"
        super().__init__(
            message,
            _context(
                self.kind,
                self.default_step,
                suggested_action="Retry on one of the supported networks",
                provider=provider,
                network=network,
                requestedNetwork=network,
                supportedNetworks=self.supported,
            ),
        )


class InvalidAddressError(DefiAgentError):
    kind = ErrorKind.INVALID_ADDRESS
    default_step = ErrorStep.TOKEN_VALIDATION

    def __init__(self, address: str, network: str, reason: Optional[str] = None):
        self.address = address
        self.network = network
        message = f"Invalid token address '{address}' for network {network}"
        if reason:
            message += f": {reason}"
        super().__init__(
            message,
            _context(
                self.kind,
                self.default_step,
                suggested_action="Pass a contract address (or a known token symbol) for the network",
                network=network,
                address=address,
            ),
        )


class InvalidAmountError(DefiAgentError):
    kind = ErrorKind.INVALID_AMOUNT
    default_step = ErrorStep.TOKEN_VALIDATION

    def __init__(self, amount: Any, reason: str = "not a non-negative decimal number"):
        self.amount = amount
        super().__init__(
            f"Invalid amount '{amount}': {reason}",
            _context(self.kind, self.default_step, amount=str(amount)),
        )


class InvalidArgumentsError(DefiAgentError):
    kind = ErrorKind.INVALID_ARGUMENTS
    default_step = ErrorStep.INPUT_VALIDATION

    def __init__(self, tool: str, problems: List[str]):
        self.problems = list(problems)
        super().__init__(
            f"Invalid arguments for {tool}: {'; '.join(self.problems)}",
            _context(self.kind, self.default_step, tool=tool, problems=self.problems),
        )


class ProviderNotFoundError(DefiAgentError):
    kind = ErrorKind.PROVIDER_NOT_FOUND
    default_step = ErrorStep.PROVIDER_VALIDATION

    def __init__(self, name: str, available: Iterable[str] = ()):
        self.name = name
        self.available = sorted(available)
        message = f"Provider {name} not found"
        if self.available:
            message += f". Available providers: {', '.join(self.available)}"
        super().__init__(
            message,
            _context(
                self.kind,
                self.default_step,
                suggested_action="Omit the provider to use the best quote, or pick an available one",
                provider=name,
                availableProviders=self.available,
            ),
        )


class ProviderUnavailableError(DefiAgentError):
    kind = ErrorKind.PROVIDER_UNAVAILABLE
    default_step = ErrorStep.PROVIDER_AVAILABILITY

    def __init__(self, message: str, network: Optional[str] = None, **details: Any):
        super().__init__(message, _context(self.kind, self.default_step, network=network, **details))


class UnsupportedOperationError(DefiAgentError):
    kind = ErrorKind.UNSUPPORTED_OPERATION

    def __init__(self, message: str, provider: Optional[str] = None, **details: Any):
        super().__init__(message, _context(self.kind, self.default_step, provider=provider, **details))


class NoValidQuotesError(DefiAgentError):
    kind = ErrorKind.NO_VALID_QUOTES
    default_step = ErrorStep.QUOTE_RETRIEVAL

    def __init__(self, errors: Optional[Dict[str, str]] = None, network: Optional[str] = None):
        self.errors = dict(errors or {})
        message = "No valid quotes found"
        if self.errors:
            reasons = "; ".join(f"{name}: {reason}" for name, reason in self.errors.items())
            message += f" ({reasons})"
        super().__init__(
            message,
            _context(
                self.kind,
                self.default_step,
                suggested_action="Try a different amount or token pair",
                network=network,
                providerErrors=self.errors or None,
            ),
        )


class QuoteExpiredError(DefiAgentError):
    kind = ErrorKind.QUOTE_EXPIRED
    default_step = ErrorStep.EXECUTION

    def __init__(self, quote_id: Optional[str] = None):
        self.quote_id = quote_id
        super().__init__(
            "Quote expired or not found. Please get a new quote.",
            _context(
                self.kind,
                self.default_step,
                suggested_action="Request a new quote",
                quoteId=quote_id,
            ),
        )


class InsufficientBalanceError(DefiAgentError):
    kind = ErrorKind.INSUFFICIENT_BALANCE
    default_step = ErrorStep.BALANCE_CHECK

    def __init__(
        self,
        message: str = "Insufficient balance",
        required: Optional[str] = None,
        available: Optional[str] = None,
        token: Optional[str] = None,
        network: Optional[str] = None,
    ):
        self.required = required
        self.available = available
        self.token = token
        super().__init__(
            message,
            _context(
                self.kind,
                self.default_step,
                suggested_action="Add funds to the wallet or reduce the amount",
                network=network,
                required=required,
                available=available,
                token=token,
            ),
        )


class AmountTooSmallError(DefiAgentError):
    kind = ErrorKind.AMOUNT_TOO_SMALL
    default_step = ErrorStep.BALANCE_CHECK

    def __init__(self, minimum: str, network: Optional[str] = None):
        self.minimum = minimum
        super().__init__(
            f"Amount too small. Minimum amount should be greater than {minimum} "
            "native token to cover gas",
            _context(self.kind, self.default_step, network=network, minimum=minimum),
        )


class NativeTokenApprovalError(DefiAgentError):
    kind = ErrorKind.NATIVE_TOKEN_APPROVAL
    default_step = ErrorStep.APPROVAL

    def __init__(self, token: str, network: Optional[str] = None):
        super().__init__(
            "Native token does not need approval",
            _context(self.kind, self.default_step, network=network, token=token),
        )


class WalletError(DefiAgentError):
    kind = ErrorKind.WALLET
    default_step = ErrorStep.WALLET_ACCESS

    def __init__(self, message: str, network: Optional[str] = None):
        super().__init__(message, _context(self.kind, self.default_step, network=network))


class ChainRpcError(DefiAgentError):
    kind = ErrorKind.CHAIN_RPC
    default_step = ErrorStep.DATA_RETRIEVAL

    def __init__(self, message: str, network: Optional[str] = None, method: Optional[str] = None):
        super().__init__(message, _context(self.kind, self.default_step, network=network, method=method))


def error_payload(error: BaseException, step: ErrorStep = ErrorStep.UNKNOWN) -> Dict[str, Any]:
    """Convert any exception into the JSON-able payload returned to the agent."""
    if isinstance(error, DefiAgentError):
        return error.at_step(step).to_payload()
    return {
        "status": "error",
        "message": str(error) or error.__class__.__name__,
        "errorCode": ErrorKind.UNKNOWN.value,
        "errorStep": step.value,
        "details": {},
    }


@contextmanager
def pipeline_step(step: ErrorStep) -> Iterator[None]:
    """Tag anything raised inside the block with ``step``.

    Plain exceptions (wallet or RPC library errors) are wrapped so the
    tool payload still reports where the call failed.
    """
    try:
        yield
    except DefiAgentError as e:
        raise e.at_step(step)
    except Exception as e:
        raise DefiAgentError(str(e) or e.__class__.__name__, ErrorContext(step=step)) from e
