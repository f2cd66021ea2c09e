"""EVM transaction executor (web3.py).

Calls two contracts with the operator wallet:
  - marketplace: trade(tokenAddress, isBuy, amount, priceWei)
  - breeding:    breed(parent1, parent2, childName, childSymbol) -> emits HybridCreated

Transactions are built with EIP-1559 fees, signed locally with the operator key and
awaited until mined. Every failure, including a revert or a timeout, surfaces as
TransactionExecutionError.
"""

import asyncio
import logging
from typing import Any

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import Web3Exception

from src.pm_chain.domain.models import BreedingParams, BreedingReceipt, TradeParams
from src.pm_common.enums import TradeAction
from src.pm_common.errors import TransactionExecutionError

logger = logging.getLogger("pm.chain")

_ZERO_ADDRESS = "0x" + "0" * 40

MARKETPLACE_ABI: list[dict[str, Any]] = [
    {
        "inputs": [
            {"name": "token", "type": "address"},
            {"name": "isBuy", "type": "bool"},
            {"name": "amount", "type": "uint256"},
            {"name": "priceWei", "type": "uint256"},
        ],
        "name": "trade",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]

BREEDING_ABI: list[dict[str, Any]] = [
    {
        "inputs": [
            {"name": "parent1", "type": "address"},
            {"name": "parent2", "type": "address"},
            {"name": "childName", "type": "string"},
            {"name": "childSymbol", "type": "string"},
        ],
        "name": "breed",
        "outputs": [{"name": "child", "type": "address"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "name": "child", "type": "address"},
            {"indexed": True, "name": "parent1", "type": "address"},
            {"indexed": True, "name": "parent2", "type": "address"},
        ],
        "name": "HybridCreated",
        "type": "event",
    },
]


class EvmTransactionExecutor:
    def __init__(
        self,
        rpc_url: str,
        operator_private_key: str,
        marketplace_address: str,
        breeding_address: str,
        timeout_seconds: int = 120,
    ) -> None:
        self._w3 = AsyncWeb3(AsyncHTTPProvider(rpc_url))
        self._operator: LocalAccount = Account.from_key(operator_private_key)
        self._marketplace = self._w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(marketplace_address), abi=MARKETPLACE_ABI
        )
        self._breeding = self._w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(breeding_address), abi=BREEDING_ABI
        )
        self._timeout_seconds = timeout_seconds

    async def _send(self, contract_call: Any) -> Any:
        """Build, sign, broadcast and wait for the receipt of one contract call."""
        w3 = self._w3
        latest_block: Any = await w3.eth.get_block("latest")
        max_priority_fee: int = await w3.eth.max_priority_fee
        tx: dict[str, Any] = await contract_call.build_transaction({
            "from": self._operator.address,
            "nonce": await w3.eth.get_transaction_count(self._operator.address),
            "chainId": await w3.eth.chain_id,
            "maxFeePerGas": latest_block["baseFeePerGas"] * 2 + max_priority_fee,
            "maxPriorityFeePerGas": max_priority_fee,
        })
        signed = self._operator.sign_transaction(tx)
        tx_hash = await w3.eth.send_raw_transaction(signed.raw_transaction)
        receipt = await w3.eth.wait_for_transaction_receipt(
            tx_hash, timeout=self._timeout_seconds
        )
        if receipt["status"] != 1:
            raise TransactionExecutionError(f"transaction {tx_hash.hex()} reverted")
        return receipt

    async def execute_trade(self, params: TradeParams) -> str:
        try:
            call = self._marketplace.functions.trade(
                AsyncWeb3.to_checksum_address(params.token_address or _ZERO_ADDRESS),
                params.action == TradeAction.BUY,
                params.amount,
                AsyncWeb3.to_wei(params.price, "ether"),
            )
            receipt = await self._send(call)
        except (Web3Exception, ValueError, asyncio.TimeoutError, OSError) as exc:
            logger.error("Trade transaction for prompt %s failed: %s", params.prompt_id, exc)
            raise TransactionExecutionError(str(exc)) from exc
        return receipt["transactionHash"].to_0x_hex()

    async def execute_breeding(self, params: BreedingParams) -> BreedingReceipt:
        try:
            call = self._breeding.functions.breed(
                AsyncWeb3.to_checksum_address(params.parent1_address or _ZERO_ADDRESS),
                AsyncWeb3.to_checksum_address(params.parent2_address or _ZERO_ADDRESS),
                params.child_name,
                params.child_symbol,
            )
            receipt = await self._send(call)
            events = self._breeding.events.HybridCreated().process_receipt(receipt)
        except (Web3Exception, ValueError, asyncio.TimeoutError, OSError) as exc:
            logger.error("Breeding transaction for %s failed: %s", params.child_name, exc)
            raise TransactionExecutionError(str(exc)) from exc
        if not events:
            raise TransactionExecutionError("breeding receipt has no HybridCreated event")
        return BreedingReceipt(
            tx_hash=receipt["transactionHash"].to_0x_hex(),
            child_token_address=events[0]["args"]["child"],
        )

    async def close(self) -> None:
        if hasattr(self._w3.provider, "disconnect"):
            await self._w3.provider.disconnect()
