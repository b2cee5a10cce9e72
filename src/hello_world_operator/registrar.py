#!/usr/bin/env python3
"""Operator registration with EigenLayer and the HelloWorld AVS.

Registration is two transactions, sent in order:

1. ``DelegationManager.registerAsOperator`` creates the operator identity.
2. ``ECDSAStakeRegistry.registerOperatorWithSignature`` registers it with the
   AVS, carrying a salted, expiring signature over the digest the AVS
   directory computes.

Neither step is retried; a revert in either aborts startup.
"""

import logging
import secrets
import time

from web3 import Web3
from web3.contract import AsyncContract
from web3.exceptions import ContractLogicError
from web3.types import TxReceipt

from .config import OperatorConfig
from .models import OperatorSignature
from .utils.contract_utility import ContractUtility, TransactionFailedError

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class RegistrationError(Exception):
    """Raised when a registration transaction reverts."""


class OperatorRegistrar:
    """Registers the operator on EigenLayer and with the AVS."""

    def __init__(self, contract_util: ContractUtility, config: OperatorConfig) -> None:
        """
        Initialize the OperatorRegistrar.

        Args:
            contract_util: Utility bound to the operator account
            config: Operator configuration
        """
        self.contract_util = contract_util
        self.config = config

        contracts = config.contracts
        self.delegation_manager: AsyncContract = contract_util.get_contract(
            "DelegationManager", contracts.delegation_manager
        )
        self.stake_registry: AsyncContract = contract_util.get_contract(
            "ECDSAStakeRegistry", contracts.stake_registry
        )
        self.avs_directory: AsyncContract = contract_util.get_contract(
            "AVSDirectory", contracts.avs_directory
        )

    async def register(self) -> None:
        """Run both registration steps.

        Raises:
            RegistrationError: If either transaction reverts
        """
        await self.register_on_eigenlayer()
        await self.register_on_avs()

    async def register_on_eigenlayer(self) -> TxReceipt:
        """Register the account as an EigenLayer operator."""
        operator = self.contract_util.address
        operator_details = (
            operator,  # earnings receiver
            ZERO_ADDRESS,  # no delegation approver
            0  # staker opt-out window, in blocks
        )

        logger.info(f"Registering {operator} as operator on EigenLayer...")
        call = self.delegation_manager.functions.registerAsOperator(
            operator_details,
            self.config.registration.metadata_uri
        )

        try:
            receipt = await self.contract_util.transact_and_wait(call)
        except (TransactionFailedError, ContractLogicError) as e:
            raise RegistrationError(f"EigenLayer operator registration failed: {e}") from e

        logger.info("Operator registered on EL successfully")
        return receipt

    async def create_operator_signature(self) -> OperatorSignature:
        """Sign the AVS directory's registration digest for a fresh salt."""
        salt = secrets.token_bytes(32)
        expiry = int(time.time()) + self.config.registration.signature_expiry_seconds

        digest: bytes = await self.avs_directory.functions.calculateOperatorAVSRegistrationDigestHash(
            self.contract_util.address,
            self.config.contracts.service_manager,
            salt,
            expiry
        ).call()
        logger.debug(f"Registration digest: {Web3.to_hex(digest)}")

        # The AVS directory recovers the signer from the raw digest, no message prefix
        signed = self.contract_util.account.unsafe_sign_hash(digest)

        return OperatorSignature(
            expiry=expiry,
            salt=salt,
            signature=bytes(signed.signature)
        )

    async def register_on_avs(self) -> TxReceipt:
        """Register the operator with the AVS through the stake registry."""
        operator_signature = await self.create_operator_signature()
        logger.info(f"Registering operator with AVS using {operator_signature}...")

        call = self.stake_registry.functions.registerOperatorWithSignature(
            operator_signature.to_contract_arg(),
            self.contract_util.address
        )

        try:
            receipt = await self.contract_util.transact_and_wait(call)
        except (TransactionFailedError, ContractLogicError) as e:
            raise RegistrationError(f"AVS operator registration failed: {e}") from e

        logger.info("Operator registered on AVS successfully")
        return receipt
