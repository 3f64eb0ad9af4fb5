"""Wallet collaborator interface.

The core never holds keys. A host plugs in any object that can report its
address per network and sign + submit a :class:`Transaction`, returning a
receipt whose ``wait()`` resolves once the transaction is final.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol, runtime_checkable

from .tx_builder import Transaction


@dataclass
class FinalReceipt:
    hash: str
    status: Optional[int] = None
    block_number: Optional[int] = None


@runtime_checkable
class TransactionReceipt(Protocol):
    hash: str

    async def wait(self) -> FinalReceipt: ...


@runtime_checkable
class Wallet(Protocol):
    async def get_address(self, network: str) -> str: ...

    async def sign_and_send_transaction(self, network: str, tx: Transaction) -> TransactionReceipt: ...

    async def sign_message(self, network: str, message: str) -> Any: ...
