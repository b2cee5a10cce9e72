#!/usr/bin/env python3
"""Task response handling for the Hello World operator.

This module signs the greeting for a task and submits the signature to the
HelloWorld service manager through ``respondToTask``.
"""

import logging

from web3 import Web3
from web3.contract import AsyncContract

from .models import Task, TaskResponse
from .signers import Signer
from .utils.contract_utility import ContractUtility

logger = logging.getLogger(__name__)

GREETING_PREFIX = "Hello, "


def task_message(task_name: str) -> str:
    """The message an operator attests to for ``task_name``."""
    return f"{GREETING_PREFIX}{task_name}"


def task_message_hash(task_name: str) -> bytes:
    """keccak-256 of the UTF-8 encoded task message (32 bytes)."""
    return bytes(Web3.keccak(text=task_message(task_name)))


class Responder:
    """Signs tasks and submits responses to the service manager."""

    def __init__(
        self,
        contract_util: ContractUtility,
        signer: Signer,
        service_manager: AsyncContract
    ) -> None:
        """
        Initialize the Responder.

        Args:
            contract_util: Utility for sending transactions
            signer: Signer used for task digests (local or remote)
            service_manager: HelloWorldServiceManager contract handle
        """
        self.contract_util = contract_util
        self.signer = signer
        self.service_manager = service_manager

        logger.info(f"Responder initialized with {type(signer).__name__} for {signer.address}")
        logger.info(f"  ServiceManager Address: {service_manager.address}")

    async def build_response(self, task_index: int, task: Task) -> TaskResponse:
        """Hash the task message and sign it with the configured signer."""
        message_hash = task_message_hash(task.name)
        logger.debug(f"Task {task_index} message hash: {Web3.to_hex(message_hash)}")

        signature = await self.signer.sign(message_hash)
        return TaskResponse(task=task, task_index=task_index, signature=signature)

    async def respond_to_task(
        self,
        task_index: int,
        task_created_block: int,
        task_name: str
    ) -> bool:
        """
        Sign a task and submit the response, waiting for confirmation.

        Any failure (signer, revert, RPC) is logged and reported as False; it
        never propagates to the caller.

        Args:
            task_index: Index the contract assigned to the task
            task_created_block: Block the task was created in
            task_name: Name carried by the task

        Returns:
            True if the response transaction was confirmed, False otherwise
        """
        task = Task(name=task_name, task_created_block=task_created_block)

        try:
            response = await self.build_response(task_index, task)

            logger.info(f"Signing and responding to task {task_index}")
            logger.debug(f"Task payload: {task.to_dict()}")

            tx_hash = await self.contract_util.send_transaction(
                self.service_manager.functions.respondToTask(*response.to_contract_args())
            )
            logger.info(f"Response to task {task_index} submitted: {Web3.to_hex(tx_hash)}")

            receipt = await self.contract_util.wait_for_receipt(tx_hash)
            logger.info(f"✓ Responded to task {task_index} (block {receipt['blockNumber']})")
            return True

        except Exception as e:
            logger.error(f"✗ Error responding to task {task_index}: {e}", exc_info=True)
            return False
