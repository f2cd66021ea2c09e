"""Simulated executor for local development and tests.

Produces well-formed random hashes/addresses without touching a chain.
"""

import logging
import secrets

from src.pm_chain.domain.models import BreedingParams, BreedingReceipt, TradeParams

logger = logging.getLogger("pm.chain")


class SimulatedTransactionExecutor:
    async def execute_trade(self, params: TradeParams) -> str:
        tx_hash = "0x" + secrets.token_hex(32)
        logger.info(
            "Simulated %s of %d x %s on prompt %s: %s",
            params.action.value, params.amount, params.price, params.prompt_id, tx_hash,
        )
        return tx_hash

    async def execute_breeding(self, params: BreedingParams) -> BreedingReceipt:
        receipt = BreedingReceipt(
            tx_hash="0x" + secrets.token_hex(32),
            child_token_address="0x" + secrets.token_hex(20),
        )
        logger.info("Simulated breeding of %s: %s", params.child_name, receipt.tx_hash)
        return receipt
