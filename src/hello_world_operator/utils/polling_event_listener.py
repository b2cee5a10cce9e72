"""
Polling-based event listener utility for contract event monitoring.

"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from web3 import AsyncWeb3, Web3
from web3.types import EventData


class PollingEventListener:
    """
    Utility for polling contract events via HTTP RPC (``eth_getLogs``).

    Each poll covers the blocks mined since the previous successful poll, so
    a failed poll is retried over the same range on the next interval.
    """

    def __init__(
        self,
        w3: AsyncWeb3,
        contract_address: str,
        event_name: str,
        abi: list[dict[str, Any]],
        lookback_blocks: int = 0
    ) -> None:
        """
        Initialize the polling event listener.

        Args:
            w3: Connected AsyncWeb3 instance
            contract_address: Address of the contract to monitor
            event_name: Name of the event to listen for
            abi: Contract ABI
            lookback_blocks: Number of blocks to look back when no start block is given
        """
        self.w3 = w3
        self.contract_address = Web3.to_checksum_address(contract_address)
        self.event_name = event_name
        self.lookback_blocks = lookback_blocks

        self.contract = self.w3.eth.contract(
            address=self.contract_address,
            abi=abi
        )

        # Get the event object
        if not any(entry.get("type") == "event" and entry.get("name") == event_name for entry in abi):
            raise ValueError(f"Event {event_name} not found in contract ABI")
        self.event_obj = getattr(self.contract.events, event_name)

        # State tracking
        self.last_processed_block: int | None = None
        self.is_running = False
        self._stop_event = asyncio.Event()

        # Setup logging
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    async def _fetch_events(self, from_block: int, to_block: int) -> list[EventData]:
        return await self.event_obj.get_logs(
            from_block=from_block,
            to_block=to_block
        )

    async def initial_sync(
        self,
        callback: Callable[[EventData], Awaitable[Any]],
        from_block: int | None = None
    ) -> None:
        """
        Deliver events from ``from_block`` (or the lookback window) up to the head.

        Args:
            callback: Async function to call for each event found
            from_block: First block to scan; defaults to head minus lookback
        """
        current_block = await self.w3.eth.block_number
        if from_block is None:
            from_block = max(0, current_block - self.lookback_blocks)
        from_block = min(from_block, current_block)

        self.logger.info(
            f"Initial sync for {self.event_name} events "
            f"from block {from_block} to {current_block}"
        )

        events = await self._fetch_events(from_block, current_block)

        if events:
            self.logger.info(f"Found {len(events)} {self.event_name} events during initial sync")
            for event in events:
                await callback(event)

        self.last_processed_block = current_block

    async def poll_for_events(self, callback: Callable[[EventData], Awaitable[Any]]) -> None:
        """
        Poll for new events since last processed block.

        Args:
            callback: Async function to call for each new event
        """
        try:
            current_block = await self.w3.eth.block_number

            # Skip if no new blocks
            if self.last_processed_block is not None and current_block <= self.last_processed_block:
                return

            from_block = (
                self.last_processed_block + 1
                if self.last_processed_block is not None
                else current_block
            )

            events = await self._fetch_events(from_block, current_block)

            if events:
                self.logger.info(
                    f"Found {len(events)} new {self.event_name} events "
                    f"in blocks {from_block}-{current_block}"
                )
                for event in events:
                    await callback(event)

            self.last_processed_block = current_block

        except Exception as e:
            self.logger.error(f"Error polling for events: {e}")
            # Don't update last_processed_block on error

    async def start_polling(
        self,
        callback: Callable[[EventData], Awaitable[Any]],
        interval: float = 2,
        from_block: int | None = None
    ) -> None:
        """
        Start polling for events at the specified interval.

        Runs until ``stop()`` is called or the task is cancelled. A stop
        requested before polling starts is honoured: the call returns at once
        and the next call polls normally.

        Args:
            callback: Async function to call when events are received
            interval: Polling interval in seconds
            from_block: First block of the initial sync
        """
        if self.is_running:
            self.logger.warning("Polling already running")
            return

        if self._stop_event.is_set():
            self.logger.info(f"Stop requested before polling for {self.event_name} events started")
            self._stop_event.clear()
            return

        self.is_running = True
        self.logger.info(
            f"Starting polling for {self.event_name} events "
            f"on {self.contract_address} every {interval} seconds"
        )

        try:
            await self.initial_sync(callback, from_block=from_block)

            while self.is_running:
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=interval)
                    break  # Stop requested
                except asyncio.TimeoutError:
                    pass
                await self.poll_for_events(callback)
        except asyncio.CancelledError:
            self.logger.info("Polling cancelled")
            raise
        finally:
            self.is_running = False
            # The stop that ended this run is consumed
            self._stop_event.clear()

    async def stop(self) -> None:
        """Stop the polling loop."""
        self.logger.info(f"Stopping polling for {self.event_name} events")
        self.is_running = False
        self._stop_event.set()

    def get_status(self) -> dict[str, Any]:
        """
        Get current status of the polling listener.

        Returns:
            Dictionary with status information
        """
        return {
            "is_running": self.is_running,
            "last_processed_block": self.last_processed_block,
            "contract_address": self.contract_address,
            "event_name": self.event_name
        }
