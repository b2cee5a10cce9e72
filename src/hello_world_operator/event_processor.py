#!/usr/bin/env python3
"""Event processing module for the Hello World operator.

This module handles the parsing, validation, and deduplication of
NewTaskCreated events emitted by the HelloWorld service manager.
"""

import logging
from collections import OrderedDict
from collections.abc import Mapping, Sequence
from typing import Any

from web3 import Web3

from .models import NewTaskEvent, Task

# Get logger for this module
logger = logging.getLogger(__name__)


class EventProcessor:
    """Processes and validates NewTaskCreated events for the operator.

    This class is responsible for:
    - Parsing decoded event logs into structured NewTaskEvent objects
    - Validating event structure and data
    - Making sure each task index is handed out at most once per run
    - Maintaining metrics on processed events
    """

    def __init__(self, dedupe_window: int = 10000) -> None:
        """Initialize the EventProcessor.

        Args:
            dedupe_window: Maximum number of task indices to remember
        """
        self.dedupe_window = dedupe_window

        # Task indices already handed out, oldest first
        self.processed_tasks: OrderedDict[int, None] = OrderedDict()

        # Metrics tracking
        self.events_processed = 0
        self.events_duplicated = 0
        self.events_invalid = 0

        logger.info(f"EventProcessor initialized with dedupe window of {dedupe_window} tasks")

    async def process_event(self, event_data: Any) -> NewTaskEvent | None:
        """Process a decoded log into a validated NewTaskEvent.

        Args:
            event_data: Decoded event from the event listener

        Returns:
            NewTaskEvent if valid and not seen before, None otherwise
        """
        try:
            parsed_event = self._parse_event_data(event_data)
            if not parsed_event:
                return None

            if self._is_duplicate(parsed_event):
                self.events_duplicated += 1
                logger.debug(f"Duplicate task detected: {parsed_event}")
                return None

            self._mark_processed(parsed_event)
            self.events_processed += 1

            logger.info(f"New task detected: Hello, {parsed_event.task.name}")
            return parsed_event

        except Exception as e:
            self.events_invalid += 1
            logger.error(f"Error processing event: {e}", exc_info=True)
            return None

    def _parse_event_data(self, event_data: Any) -> NewTaskEvent | None:
        """Parse decoded event data into a NewTaskEvent.

        Handles both mapping access (AttributeDict / dict) and plain
        attribute access.

        Args:
            event_data: Decoded event data

        Returns:
            Parsed NewTaskEvent or None if parsing fails
        """
        if isinstance(event_data, Mapping):
            args = event_data.get('args', {})
            event_block = event_data.get('blockNumber', 0)
            tx_hash = event_data.get('transactionHash', '')
            log_index = event_data.get('logIndex', 0)
        else:
            args = getattr(event_data, 'args', {})
            event_block = getattr(event_data, 'blockNumber', 0)
            tx_hash = getattr(event_data, 'transactionHash', '')
            log_index = getattr(event_data, 'logIndex', 0)

        task_index = args.get('taskIndex')
        raw_task = args.get('task')
        if task_index is None or raw_task is None:
            logger.warning(f"NewTaskCreated event missing fields: {dict(args)}")
            self.events_invalid += 1
            return None

        task = self._decode_task(raw_task)
        if task is None:
            self.events_invalid += 1
            return None

        if not isinstance(task_index, int) or task_index < 0:
            logger.warning(f"Invalid task index in event: {task_index!r}")
            self.events_invalid += 1
            return None

        # Normalize tx_hash format
        if isinstance(tx_hash, bytes):
            tx_hash = Web3.to_hex(tx_hash)
        elif tx_hash and not tx_hash.startswith('0x'):
            tx_hash = '0x' + tx_hash

        return NewTaskEvent(
            task_index=task_index,
            task=task,
            event_block_number=event_block,
            transaction_hash=tx_hash,
            log_index=log_index
        )

    def _decode_task(self, raw_task: Any) -> Task | None:
        """Decode the Task struct, given by name or by position.

        Args:
            raw_task: ``{'name', 'taskCreatedBlock'}`` mapping or ``(name, block)``

        Returns:
            Task or None if the struct is malformed
        """
        if isinstance(raw_task, Mapping):
            name = raw_task.get('name')
            created_block = raw_task.get('taskCreatedBlock')
        elif isinstance(raw_task, Sequence) and not isinstance(raw_task, str) and len(raw_task) == 2:
            name, created_block = raw_task
        else:
            logger.warning(f"Unrecognized task payload: {raw_task!r}")
            return None

        if not isinstance(name, str) or not isinstance(created_block, int) or created_block < 0:
            logger.warning(f"Malformed task payload: {raw_task!r}")
            return None

        return Task(name=name, task_created_block=created_block)

    def _is_duplicate(self, event: NewTaskEvent) -> bool:
        """Check if a task index has already been handed out."""
        return event.unique_key in self.processed_tasks

    def _mark_processed(self, event: NewTaskEvent) -> None:
        """Remember a task index, evicting the oldest beyond the window."""
        if len(self.processed_tasks) >= self.dedupe_window:
            # Remove oldest (first) item - FIFO eviction
            self.processed_tasks.popitem(last=False)

        self.processed_tasks[event.unique_key] = None

    def get_metrics(self) -> dict[str, int]:
        """Get current processing metrics.

        Returns:
            Dictionary of metric names to values
        """
        return {
            "events_processed": self.events_processed,
            "events_duplicated": self.events_duplicated,
            "events_invalid": self.events_invalid,
            "cache_size": len(self.processed_tasks)
        }
