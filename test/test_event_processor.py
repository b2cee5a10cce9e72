#!/usr/bin/env python3
"""Unit tests for the EventProcessor module."""

import pytest
from web3.datastructures import AttributeDict
from web3.types import HexBytes

from hello_world_operator.event_processor import EventProcessor
from hello_world_operator.models import Task


def make_event(task_index=0, name="EigenWorld", created_block=100, log_index=0):
    """A decoded NewTaskCreated log as returned by ``get_logs``."""
    return AttributeDict({
        'args': AttributeDict({
            'taskIndex': task_index,
            'task': AttributeDict({'name': name, 'taskCreatedBlock': created_block}),
        }),
        'event': 'NewTaskCreated',
        'blockNumber': created_block,
        'transactionHash': HexBytes(b'\xab' * 32),
        'logIndex': log_index,
    })


@pytest.fixture
def processor():
    """Create an EventProcessor instance for testing."""
    return EventProcessor(dedupe_window=100)


class TestEventProcessor:
    """Test suite for EventProcessor functionality."""

    @pytest.mark.asyncio
    async def test_process_decoded_event(self, processor):
        event = await processor.process_event(make_event())

        assert event is not None
        assert event.task_index == 0
        assert event.task == Task(name="EigenWorld", task_created_block=100)
        assert event.event_block_number == 100
        assert event.transaction_hash == '0x' + 'ab' * 32
        assert processor.events_processed == 1

    @pytest.mark.asyncio
    async def test_process_plain_dict_with_tuple_task(self, processor):
        """Tasks decoded positionally are accepted too."""
        event = await processor.process_event({
            'args': {'taskIndex': 3, 'task': ('Bob', 7)},
            'blockNumber': 8,
            'transactionHash': 'cd' * 32,
            'logIndex': 1,
        })

        assert event.task == Task(name="Bob", task_created_block=7)
        assert event.transaction_hash == '0x' + 'cd' * 32

    @pytest.mark.asyncio
    async def test_process_attribute_object(self, processor):
        class EventData:
            args = {'taskIndex': 5, 'task': {'name': 'Alice', 'taskCreatedBlock': 9}}
            blockNumber = 9
            transactionHash = b'\x01' * 32
            logIndex = 2

        event = await processor.process_event(EventData())
        assert event.task_index == 5
        assert event.task.name == 'Alice'

    @pytest.mark.asyncio
    async def test_duplicate_task_index_is_skipped(self, processor):
        """Each task index is handed out at most once."""
        assert await processor.process_event(make_event(task_index=1)) is not None
        assert await processor.process_event(make_event(task_index=1, log_index=4)) is None

        assert processor.events_processed == 1
        assert processor.events_duplicated == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("args", [
        {'taskIndex': 1},
        {'task': {'name': 'x', 'taskCreatedBlock': 1}},
        {'taskIndex': -1, 'task': {'name': 'x', 'taskCreatedBlock': 1}},
        {'taskIndex': 1, 'task': {'name': 5, 'taskCreatedBlock': 1}},
        {'taskIndex': 1, 'task': {'name': 'x', 'taskCreatedBlock': 'soon'}},
        {'taskIndex': 1, 'task': 'not-a-struct'},
    ])
    async def test_invalid_events(self, processor, args):
        event = await processor.process_event({'args': args, 'blockNumber': 1, 'transactionHash': '0x00', 'logIndex': 0})

        assert event is None
        assert processor.events_invalid == 1
        assert processor.events_processed == 0

    @pytest.mark.asyncio
    async def test_object_without_fields(self, processor):
        """Objects carrying no event fields are rejected, not raised."""
        assert await processor.process_event(object()) is None
        assert processor.events_invalid == 1

    @pytest.mark.asyncio
    async def test_dedupe_window_eviction(self):
        processor = EventProcessor(dedupe_window=3)

        for index in range(4):
            await processor.process_event(make_event(task_index=index))

        assert list(processor.processed_tasks) == [1, 2, 3]
        # Evicted index is accepted again
        assert await processor.process_event(make_event(task_index=0)) is not None

    @pytest.mark.asyncio
    async def test_metrics(self, processor):
        await processor.process_event(make_event(task_index=0))
        await processor.process_event(make_event(task_index=0))

        assert processor.get_metrics() == {
            "events_processed": 1,
            "events_duplicated": 1,
            "events_invalid": 0,
            "cache_size": 1,
        }
