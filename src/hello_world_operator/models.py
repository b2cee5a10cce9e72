#!/usr/bin/env python3
"""Data models for the Hello World operator.

This module provides immutable data classes for the tasks, signatures and
responses that flow between the operator and the AVS contracts.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class Task:
    """A HelloWorld task as stored on-chain.

    Attributes:
        name: Name the task asks the operator to greet
        task_created_block: Block number the task was created in
    """

    name: str
    task_created_block: int

    def to_contract_arg(self) -> tuple[str, int]:
        """Encode as the ``Task(string,uint32)`` struct argument."""
        return (self.name, self.task_created_block)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "taskCreatedBlock": self.task_created_block
        }


@dataclass(frozen=True, slots=True)
class OperatorSignature:
    """Signature registering the operator with the AVS directory.

    Attributes:
        expiry: Unix timestamp after which the signature is rejected
        salt: Random 32-byte value preventing replay
        signature: 65-byte ECDSA signature over the registration digest
    """

    expiry: int
    salt: bytes
    signature: bytes

    def __str__(self) -> str:
        """Human-readable string representation."""
        return (
            f"OperatorSignature(expiry={self.expiry}, "
            f"salt=0x{self.salt.hex()[:8]}...)"
        )

    def to_contract_arg(self) -> tuple[bytes, bytes, int]:
        """Encode as the ``SignatureWithSaltAndExpiry`` struct argument."""
        return (self.signature, self.salt, self.expiry)


@dataclass(frozen=True, slots=True)
class TaskResponse:
    """A signed answer to a task, ready for ``respondToTask``."""

    task: Task
    task_index: int
    signature: bytes

    def to_contract_args(self) -> tuple[tuple[str, int], int, bytes]:
        return (self.task.to_contract_arg(), self.task_index, self.signature)


@dataclass(frozen=True, slots=True)
class NewTaskEvent:
    """Represents a NewTaskCreated event from the service manager.

    Attributes:
        task_index: Index the contract assigned to the task
        task: The task payload
        event_block_number: Block number where the event was emitted
        transaction_hash: Hash of the transaction that emitted the event
        log_index: Index of the log entry in the block
    """

    task_index: int
    task: Task
    event_block_number: int
    transaction_hash: str
    log_index: int

    def __str__(self) -> str:
        """Human-readable string representation."""
        return (
            f"NewTaskEvent(index={self.task_index}, "
            f"name={self.task.name!r}, "
            f"created_block={self.task.task_created_block})"
        )

    @property
    def unique_key(self) -> int:
        """Key used for deduplication: the contract-assigned task index."""
        return self.task_index
