#!/usr/bin/env python3
"""Unit tests for ContractUtility."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from web3 import AsyncWeb3
from web3.types import HexBytes

from hello_world_operator.utils.contract_utility import (
    ContractUtility,
    TransactionFailedError,
)

from conftest import SERVICE_MANAGER, TEST_PRIVATE_KEY, TEST_RPC_URL, checksum

TX_HASH = HexBytes(b'\x34' * 32)


@pytest.fixture
def contract_util():
    return ContractUtility(TEST_RPC_URL, TEST_PRIVATE_KEY, request_timeout=5, receipt_timeout=7)


class TestContractUtility:
    """Test suite for ContractUtility."""

    def test_init_binds_account(self, contract_util, account):
        assert isinstance(contract_util.w3, AsyncWeb3)
        assert contract_util.address == account.address
        assert contract_util.w3.eth.default_account == account.address

    @pytest.mark.parametrize("rpc_url, secret, message", [
        ("", TEST_PRIVATE_KEY, "RPC URL is required"),
        (TEST_RPC_URL, "", "Private key is required"),
    ])
    def test_init_requires_url_and_key(self, rpc_url, secret, message):
        with pytest.raises(ValueError, match=message):
            ContractUtility(rpc_url, secret)

    @pytest.mark.parametrize("name", [
        "DelegationManager",
        "AVSDirectory",
        "ECDSAStakeRegistry",
        "HelloWorldServiceManager",
    ])
    def test_bundled_abis_load(self, contract_util, name):
        abi = contract_util.get_contract_abi(name)
        assert isinstance(abi, list) and abi

    def test_service_manager_abi_entries(self, contract_util):
        names = {entry["name"] for entry in contract_util.get_contract_abi("HelloWorldServiceManager")}
        assert {"createNewTask", "respondToTask", "NewTaskCreated"} <= names

    def test_missing_abi(self, contract_util):
        with pytest.raises(FileNotFoundError):
            contract_util.get_contract_abi("NoSuchContract")

    def test_get_contract(self, contract_util):
        contract = contract_util.get_contract("HelloWorldServiceManager", SERVICE_MANAGER)
        assert contract.address == checksum(SERVICE_MANAGER)

    @pytest.mark.asyncio
    async def test_send_transaction(self, contract_util, account):
        call = MagicMock()
        call.fn_name = "respondToTask"
        call.transact = AsyncMock(return_value=TX_HASH)

        assert await contract_util.send_transaction(call) == TX_HASH
        call.transact.assert_awaited_once_with({'from': account.address})

    @pytest.mark.asyncio
    async def test_sends_are_serialized(self, contract_util):
        """Concurrent sends never overlap inside ``transact``."""
        active = 0
        peak = 0

        async def transact(tx):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1
            return TX_HASH

        calls = []
        for _ in range(3):
            call = MagicMock()
            call.fn_name = "respondToTask"
            call.transact = AsyncMock(side_effect=transact)
            calls.append(call)

        await asyncio.gather(*(contract_util.send_transaction(c) for c in calls))

        assert peak == 1

    @pytest.mark.asyncio
    async def test_wait_for_receipt_success(self, contract_util):
        receipt = {'status': 1, 'blockNumber': 12}
        with patch.object(
            contract_util.w3.eth, 'wait_for_transaction_receipt', AsyncMock(return_value=receipt)
        ) as mock_wait:
            assert await contract_util.wait_for_receipt(TX_HASH) == receipt

        mock_wait.assert_awaited_once_with(TX_HASH, timeout=7)

    @pytest.mark.asyncio
    async def test_wait_for_receipt_reverted(self, contract_util):
        receipt = {'status': 0, 'blockNumber': 12}
        with patch.object(
            contract_util.w3.eth, 'wait_for_transaction_receipt', AsyncMock(return_value=receipt)
        ):
            with pytest.raises(TransactionFailedError, match="reverted") as exc_info:
                await contract_util.wait_for_receipt(TX_HASH)

        assert exc_info.value.receipt == receipt
        assert exc_info.value.tx_hash == '0x' + '34' * 32

    @pytest.mark.asyncio
    async def test_transact_and_wait(self, contract_util):
        call = MagicMock()
        call.fn_name = "createNewTask"
        call.transact = AsyncMock(return_value=TX_HASH)
        receipt = {'status': 1, 'blockNumber': 3}

        with patch.object(
            contract_util.w3.eth, 'wait_for_transaction_receipt', AsyncMock(return_value=receipt)
        ):
            assert await contract_util.transact_and_wait(call) == receipt
