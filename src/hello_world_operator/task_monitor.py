#!/usr/bin/env python3
"""Task monitoring and response dispatch.

The monitor subscribes to NewTaskCreated events and hands every new task to
the Responder as its own asyncio task, so the event listener never waits on
a response being confirmed. Responses in flight are tracked by task index
and drained on shutdown.
"""

import asyncio
import logging
from enum import Enum
from functools import partial
from typing import Any

from .config import MonitoringConfig
from .event_processor import EventProcessor
from .models import NewTaskEvent
from .responder import Responder
from .utils.contract_utility import ContractUtility
from .utils.polling_event_listener import PollingEventListener

logger = logging.getLogger(__name__)


class MonitorState(Enum):
    """Lifecycle state of the task monitor."""
    IDLE = "idle"
    SUBSCRIBED = "subscribed"
    STOPPED = "stopped"


class TaskMonitor:
    """Watches for new tasks and dispatches responses without blocking."""

    METRICS_LOG_EVERY = 10  # processed events

    def __init__(
        self,
        contract_util: ContractUtility,
        responder: Responder,
        event_processor: EventProcessor,
        event_listener: PollingEventListener,
        monitoring: MonitoringConfig
    ) -> None:
        """
        Initialize the TaskMonitor.

        Args:
            contract_util: Utility for sending transactions
            responder: Signs and submits task responses
            event_processor: Parses and de-duplicates NewTaskCreated events
            event_listener: Listener subscribed to the service manager
            monitoring: Monitoring settings
        """
        self.contract_util = contract_util
        self.responder = responder
        self.event_processor = event_processor
        self.event_listener = event_listener
        self.monitoring = monitoring

        self.state = MonitorState.IDLE
        self.in_flight: dict[int, asyncio.Task[bool]] = {}
        self._slots = asyncio.Semaphore(monitoring.max_in_flight)

        self.responses_succeeded = 0
        self.responses_failed = 0
        self._stop_requested = False

    @property
    def stop_requested(self) -> bool:
        """True once ``stop()`` has been called."""
        return self._stop_requested

    async def create_task(self, name: str) -> int:
        """
        Create a task on the service manager and wait for it to be mined.

        Args:
            name: Task name

        Returns:
            Block number the task was created in
        """
        logger.info(f"Creating new task {name!r}...")
        call = self.responder.service_manager.functions.createNewTask(name)
        receipt = await self.contract_util.transact_and_wait(call)
        logger.info(f"Task {name!r} created in block {receipt['blockNumber']}")
        return receipt['blockNumber']

    async def handle_event(self, event_data: Any) -> asyncio.Task[bool] | None:
        """
        Listener callback: validate an event and schedule its response.

        Returns as soon as the response is scheduled.

        Args:
            event_data: Decoded NewTaskCreated event

        Returns:
            The scheduled response task, or None if the event was skipped
        """
        event = await self.event_processor.process_event(event_data)
        if event is None:
            return None

        if event.task_index in self.in_flight:
            logger.debug(f"Task {event.task_index} already has a response in flight")
            return None

        response_task = asyncio.create_task(
            self._respond(event),
            name=f"respond-task-{event.task_index}"
        )
        self.in_flight[event.task_index] = response_task
        response_task.add_done_callback(partial(self._on_response_done, event.task_index))

        if self.event_processor.events_processed % self.METRICS_LOG_EVERY == 0:
            self.log_metrics()

        return response_task

    async def _respond(self, event: NewTaskEvent) -> bool:
        async with self._slots:
            return await self.responder.respond_to_task(
                event.task_index,
                event.task.task_created_block,
                event.task.name
            )

    def _on_response_done(self, task_index: int, response_task: asyncio.Task[bool]) -> None:
        self.in_flight.pop(task_index, None)

        if response_task.cancelled():
            self.responses_failed += 1
            logger.warning(f"Response to task {task_index} was cancelled")
        elif response_task.exception() is not None:
            self.responses_failed += 1
            logger.error(f"Response to task {task_index} crashed: {response_task.exception()}")
        elif response_task.result():
            self.responses_succeeded += 1
        else:
            self.responses_failed += 1

    async def drain(self, timeout: float) -> None:
        """
        Wait for in-flight responses, cancelling whatever outlives ``timeout``.

        Args:
            timeout: Seconds to wait before cancelling
        """
        pending = list(self.in_flight.values())
        if not pending:
            return

        logger.info(f"Waiting for {len(pending)} in-flight responses...")
        _, not_done = await asyncio.wait(pending, timeout=timeout or None)

        if not_done:
            logger.warning(f"Cancelling {len(not_done)} responses still in flight")
            for response_task in not_done:
                response_task.cancel()
            await asyncio.gather(*not_done, return_exceptions=True)

    async def run(self) -> None:
        """
        Create the self-test task (if enabled), then monitor until stopped.
        """
        if self.state is not MonitorState.IDLE:
            raise RuntimeError(f"TaskMonitor cannot start from state {self.state.value}")

        from_block: int | None = None
        if self.monitoring.create_demo_task:
            # Start the subscription at the demo task's block so it is never missed
            from_block = await self.create_task(self.monitoring.demo_task_name)

        try:
            if self._stop_requested:
                logger.info("Stop requested before subscribing, not monitoring")
            else:
                self.state = MonitorState.SUBSCRIBED
                logger.info("Monitoring for new tasks...")
                await self.event_listener.start_polling(
                    callback=self.handle_event,
                    interval=self.monitoring.polling_interval,
                    from_block=from_block
                )
        finally:
            await self.drain(self.monitoring.shutdown_timeout)
            self.state = MonitorState.STOPPED
            self.log_metrics()

    async def stop(self) -> None:
        """Stop the subscription; ``run()`` then drains and returns.

        May be called before ``run()`` subscribes, in which case ``run()``
        never subscribes.
        """
        self._stop_requested = True
        await self.event_listener.stop()

    def get_metrics(self) -> dict[str, int]:
        """Event processor metrics plus response outcomes."""
        return {
            **self.event_processor.get_metrics(),
            "responses_succeeded": self.responses_succeeded,
            "responses_failed": self.responses_failed,
            "responses_in_flight": len(self.in_flight)
        }

    def log_metrics(self) -> None:
        """Log current monitoring metrics."""
        metrics = self.get_metrics()
        listener_status = self.event_listener.get_status()
        logger.info(
            f"TaskMonitor Metrics: "
            f"Processed={metrics['events_processed']}, "
            f"Duplicates={metrics['events_duplicated']}, "
            f"Invalid={metrics['events_invalid']}, "
            f"Succeeded={metrics['responses_succeeded']}, "
            f"Failed={metrics['responses_failed']}, "
            f"InFlight={metrics['responses_in_flight']}, "
            f"Polling={listener_status['is_running']}, "
            f"LastBlock={listener_status['last_processed_block']}"
        )
