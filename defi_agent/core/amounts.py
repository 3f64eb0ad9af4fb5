"""Token amount helpers.

Amounts travel as decimal strings (what the agent and the user see) and are
compared as integer base units. Nothing here goes through ``float``.
"""

from __future__ import annotations

import logging
from decimal import ROUND_DOWN, Decimal, InvalidOperation, localcontext
from typing import Union

from .errors import InvalidAmountError
from .networks import EVM_DECIMALS, SOL_DECIMALS
from .tx_builder import MAX_UINT256


logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE_PERCENTAGE = 0.5

AmountLike = Union[str, int, Decimal]

# uint256 needs 78 significant digits; the default context keeps 28
_PRECISION = 100

# uint256 tops out just above 1e77, so no amount can have more integer digits
MAX_AMOUNT_DIGITS = 78


def _to_decimal(amount: AmountLike) -> Decimal:
    if isinstance(amount, bool):
        raise InvalidAmountError(amount)
    try:
        value = Decimal(str(amount).strip())
    except (InvalidOperation, ValueError):
        raise InvalidAmountError(amount)
    if not value.is_finite() or value < 0:
        raise InvalidAmountError(amount)
    if exceeds_amount_range(value):
        raise InvalidAmountError(amount, "exceeds the uint256 range")
    return value


def exceeds_amount_range(value: Decimal) -> bool:
    return value != 0 and value.adjusted() >= MAX_AMOUNT_DIGITS


def is_zero_amount(amount: AmountLike | None) -> bool:
    if amount is None or amount == "":
        return True
    try:
        return _to_decimal(amount) == 0
    except InvalidAmountError:
        return False


def parse_token_amount(amount: AmountLike, decimals: int) -> int:
    """Convert a human amount ("1.5") to integer base units.

    Digits beyond ``decimals`` are truncated, never rounded up, so the result
    is never more than the caller asked for.
    """
    value = _to_decimal(amount)
    try:
        with localcontext() as ctx:
            ctx.prec = _PRECISION
            scaled = value.scaleb(decimals).quantize(Decimal(1), rounding=ROUND_DOWN)
    except InvalidOperation:
        raise InvalidAmountError(amount, "exceeds the uint256 range")
    units = int(scaled)
    if units > MAX_UINT256:
        raise InvalidAmountError(amount, "exceeds the uint256 range")
    return units


def format_token_amount(units: int, decimals: int) -> str:
    """Render base units as the shortest exact decimal string ("1", "0.25")."""
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        text = format(Decimal(int(units)).scaleb(-decimals), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


def is_within_tolerance(
    required: int,
    available: int,
    tolerance_percentage: float = DEFAULT_TOLERANCE_PERCENTAGE,
) -> bool:
    """True when ``available >= required * (1 - tolerance/100)``.

    The threshold itself counts as within tolerance.
    """
    if available >= required:
        return True
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        factor = Decimal(1) - Decimal(str(tolerance_percentage)) / Decimal(100)
        return Decimal(available) >= Decimal(required) * factor


def adjust_token_amount(
    requested_amount: str,
    available_amount: str,
    decimals: int,
    tolerance_percentage: float = DEFAULT_TOLERANCE_PERCENTAGE,
) -> str:
    """Clamp a requested amount down to the available balance when the gap is noise.

    Returns ``available_amount`` when the shortfall is at most one base unit
    or inside the tolerance band, otherwise ``requested_amount`` unchanged
    (the balance check will then reject it with a proper message).
    """
    if is_zero_amount(requested_amount):
        return "0"
    if is_zero_amount(available_amount):
        return requested_amount

    requested = parse_token_amount(requested_amount, decimals)
    available = parse_token_amount(available_amount, decimals)

    if available >= requested:
        return requested_amount

    if requested - available <= 1 or is_within_tolerance(requested, available, tolerance_percentage):
        logger.info(
            f"Adjusting amount from {requested_amount} to {available_amount} "
            f"(within {tolerance_percentage}% tolerance)"
        )
        return available_amount

    return requested_amount


__all__ = [
    "DEFAULT_TOLERANCE_PERCENTAGE",
    "EVM_DECIMALS",
    "SOL_DECIMALS",
    "MAX_AMOUNT_DIGITS",
    "exceeds_amount_range",
    "is_zero_amount",
    "parse_token_amount",
    "format_token_amount",
    "is_within_tolerance",
    "adjust_token_amount",
]
