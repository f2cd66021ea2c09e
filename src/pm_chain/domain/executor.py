"""Transaction executor Protocol.

Both calls are opaque, slow and fallible. Implementations raise
TransactionExecutionError on any failure (including timeouts) and are invoked at most
once per accepted request: the settlement service never retries them.
"""

from typing import Protocol

from src.pm_chain.domain.models import BreedingParams, BreedingReceipt, TradeParams


class TransactionExecutorProtocol(Protocol):
    async def execute_trade(self, params: TradeParams) -> str:
        """Returns the transaction hash."""
        ...

    async def execute_breeding(self, params: BreedingParams) -> BreedingReceipt: ...
