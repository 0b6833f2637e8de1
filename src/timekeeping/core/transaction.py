from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Protocol


class TransactionManager(Protocol):
    """Groups several repository writes into one atomic unit.

    Writes issued inside ``transaction()`` commit together when the block exits
    normally and are all rolled back when it raises.
    """

    def transaction(self) -> AbstractContextManager[None]:
        raise NotImplementedError
