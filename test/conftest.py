"""Shared pytest fixtures for the Hello World operator tests."""

import pytest
from eth_account import Account
from web3 import Web3

from hello_world_operator.config import (
    ChainConfig,
    ContractAddresses,
    MonitoringConfig,
    OperatorConfig,
    SignerConfig,
)

TEST_PRIVATE_KEY = "0x" + "1" * 64
TEST_RPC_URL = "http://localhost:8545"

DELEGATION_MANAGER = "0x85bfe05492afc3d04ff3b2ca6771acf6f853d90d"
SERVICE_MANAGER = "0x1111111111111111111111111111111111111111"
STAKE_REGISTRY = "0x2222222222222222222222222222222222222222"
AVS_DIRECTORY = "0x3333333333333333333333333333333333333333"


@pytest.fixture
def account():
    """The operator account behind TEST_PRIVATE_KEY."""
    return Account.from_key(TEST_PRIVATE_KEY)


@pytest.fixture
def base_env():
    """Minimal complete environment for OperatorConfig.from_env."""
    return {
        "RPC_URL": TEST_RPC_URL,
        "PRIVATE_KEY": TEST_PRIVATE_KEY,
        "DELEGATION_MANAGER_ADDRESS": DELEGATION_MANAGER,
        "CONTRACT_ADDRESS": SERVICE_MANAGER,
        "STAKE_REGISTRY_ADDRESS": STAKE_REGISTRY,
        "AVS_DIRECTORY_ADDRESS": AVS_DIRECTORY,
    }


@pytest.fixture
def contract_addresses():
    return ContractAddresses(
        delegation_manager=DELEGATION_MANAGER,
        service_manager=SERVICE_MANAGER,
        stake_registry=STAKE_REGISTRY,
        avs_directory=AVS_DIRECTORY,
    )


@pytest.fixture
def operator_config(contract_addresses):
    """Local-signer configuration with the demo task disabled."""
    return OperatorConfig(
        chain=ChainConfig(rpc_url=TEST_RPC_URL, private_key=TEST_PRIVATE_KEY),
        contracts=contract_addresses,
        signer=SignerConfig(),
        monitoring=MonitoringConfig(create_demo_task=False),
    )


def checksum(address: str) -> str:
    return Web3.to_checksum_address(address)
