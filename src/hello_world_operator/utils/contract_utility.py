#!/usr/bin/env python3
"""Contract interaction utility for the Hello World operator.

Holds the AsyncWeb3 connection bound to the operator account, loads the
bundled ABIs and sends transactions one at a time.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import AsyncWeb3, Web3
from web3.contract import AsyncContract
from web3.contract.async_contract import AsyncContractFunction
from web3.middleware import SignAndSendRawMiddlewareBuilder
from web3.types import HexBytes, TxReceipt

logger = logging.getLogger(__name__)


class TransactionFailedError(Exception):
    """Raised when a mined transaction reports ``status != 1``."""

    def __init__(self, tx_hash: str, receipt: TxReceipt) -> None:
        self.tx_hash = tx_hash
        self.receipt = receipt
        super().__init__(f"Transaction {tx_hash} reverted (status={receipt.get('status')})")


class ContractUtility:
    """
    Utility for contract interaction and ABI loading.

    Owns the AsyncWeb3 connection bound to the operator account. Every
    transaction is signed locally by the sign-and-send-raw middleware.
    """

    ABI_DIR: Path = Path(__file__).parent.parent / "abis"

    def __init__(
        self,
        rpc_url: str,
        secret: str,
        request_timeout: int = 30,
        receipt_timeout: int = 120
    ) -> None:
        """
        Initialize the ContractUtility.

        Args:
            rpc_url: RPC URL for the network
            secret: Private key for signing transactions
            request_timeout: HTTP timeout for node requests in seconds
            receipt_timeout: Seconds to wait for a transaction receipt
        """
        if not rpc_url:
            raise ValueError("RPC URL is required")

        self.rpc_url = rpc_url
        self.receipt_timeout = receipt_timeout

        self.w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(
            self.rpc_url,
            request_kwargs={'timeout': request_timeout}
        ))
        self.account: LocalAccount = self._add_signing_middleware(secret)

        # Nonces are assigned at send time; sends from one account must not interleave
        self._send_lock = asyncio.Lock()

    def _add_signing_middleware(self, secret: str) -> LocalAccount:
        """
        Add signing middleware to the Web3 instance.

        Args:
            secret: Private key for signing transactions

        Returns:
            The account the middleware signs with
        """
        if not secret:
            raise ValueError("Private key is required for signing transactions")

        account: LocalAccount = Account.from_key(secret)
        self.w3.middleware_onion.add(SignAndSendRawMiddlewareBuilder.build(account))
        self.w3.eth.default_account = account.address
        return account

    @property
    def address(self) -> str:
        return self.account.address

    def get_contract_abi(self, contract_name: str) -> list[dict[str, Any]]:
        """Fetches ABI of the given contract from the bundled abis folder.

        Args:
            contract_name: Name of the contract (without .json extension)

        Returns:
            List of ABI dictionaries for the contract

        Raises:
            FileNotFoundError: If the contract file doesn't exist
            json.JSONDecodeError: If the contract file is invalid JSON
        """
        contract_path: Path = (self.ABI_DIR / f"{contract_name}.json").resolve()

        with contract_path.open() as file:
            contract_data: dict[str, Any] = json.load(file)

        return contract_data["abi"]

    def get_contract(self, contract_name: str, address: str) -> AsyncContract:
        """Build a contract handle for ``address`` using the bundled ABI."""
        return self.w3.eth.contract(
            address=Web3.to_checksum_address(address),
            abi=self.get_contract_abi(contract_name)
        )

    async def send_transaction(self, call: AsyncContractFunction) -> HexBytes:
        """
        Sign and broadcast a contract call without waiting for it to be mined.

        Args:
            call: Bound contract function, e.g. ``contract.functions.foo(1)``

        Returns:
            Transaction hash
        """
        async with self._send_lock:
            tx_hash: HexBytes = await call.transact({'from': self.account.address})

        logger.debug(f"Transaction {call.fn_name} submitted: {Web3.to_hex(tx_hash)}")
        return tx_hash

    async def wait_for_receipt(self, tx_hash: HexBytes) -> TxReceipt:
        """
        Wait until ``tx_hash`` is mined and check that it succeeded.

        Raises:
            TransactionFailedError: If the transaction reverted
        """
        receipt: TxReceipt = await self.w3.eth.wait_for_transaction_receipt(
            tx_hash, timeout=self.receipt_timeout
        )

        if (status := receipt.get('status', 0)) != 1:
            logger.error(f"✗ Transaction {Web3.to_hex(tx_hash)} failed with status={status}")
            raise TransactionFailedError(Web3.to_hex(tx_hash), receipt)

        logger.debug(f"✓ Transaction confirmed in block {receipt['blockNumber']}")
        return receipt

    async def transact_and_wait(self, call: AsyncContractFunction) -> TxReceipt:
        """Send a contract call and wait for one confirmation."""
        tx_hash = await self.send_transaction(call)
        return await self.wait_for_receipt(tx_hash)
