#!/usr/bin/env python3
"""Hello World operator service.

Wires configuration, contracts, signer, registrar and task monitor together
and runs registration followed by task monitoring.
"""

import logging

from .config import OperatorConfig
from .event_processor import EventProcessor
from .registrar import OperatorRegistrar
from .responder import Responder
from .signers import Signer, build_signer
from .task_monitor import TaskMonitor
from .utils.contract_utility import ContractUtility
from .utils.polling_event_listener import PollingEventListener

# Get logger for this module
logger = logging.getLogger(__name__)


class OperatorService:
    """
    Hello World AVS operator: registers on startup, then answers every
    NewTaskCreated event with a signed greeting.
    """

    TASK_EVENT = "NewTaskCreated"

    def __init__(self, config: OperatorConfig) -> None:
        """
        Wire all components from the configuration.

        :param config: Operator configuration object
        """
        self.config = config
        logger.info(f"Starting OperatorService initialization ({config.signer.signer_type.value} signer)")

        try:
            self.config.log_config()

            logger.debug("Initializing contract utility...")
            self.contract_utility = ContractUtility(
                config.chain.rpc_url,
                config.chain.private_key,
                request_timeout=config.monitoring.request_timeout,
                receipt_timeout=config.monitoring.receipt_timeout
            )

            logger.debug("Initializing signer...")
            self.signer: Signer = build_signer(config, self.contract_utility.account)

            logger.debug("Initializing registrar...")
            self.registrar = OperatorRegistrar(self.contract_utility, config)

            service_manager = self.contract_utility.get_contract(
                "HelloWorldServiceManager", config.contracts.service_manager
            )
            self.responder = Responder(
                contract_util=self.contract_utility,
                signer=self.signer,
                service_manager=service_manager
            )

            logger.debug("Initializing polling event listener...")
            self.event_listener = PollingEventListener(
                w3=self.contract_utility.w3,
                contract_address=config.contracts.service_manager,
                event_name=self.TASK_EVENT,
                abi=self.contract_utility.get_contract_abi("HelloWorldServiceManager"),
                lookback_blocks=config.monitoring.lookback_blocks
            )

            self.task_monitor = TaskMonitor(
                contract_util=self.contract_utility,
                responder=self.responder,
                event_processor=EventProcessor(),
                event_listener=self.event_listener,
                monitoring=config.monitoring
            )

            logger.info(f"OperatorService initialized for operator {self.contract_utility.address}")

        except Exception as e:
            logger.error(f"OperatorService initialization failed: {e}")
            logger.error(f"Exception type: {type(e).__name__}", exc_info=True)
            raise

    @classmethod
    def from_env(
        cls,
        register_operator: bool | None = None,
        create_demo_task: bool | None = None
    ) -> "OperatorService":
        """
        Create an OperatorService from environment variables.

        Raises:
            ValueError: If required environment variables are missing
        """
        config = OperatorConfig.from_env(
            register_operator=register_operator,
            create_demo_task=create_demo_task
        )
        return cls(config)

    async def run(self) -> None:
        """
        Register (if enabled), then monitor tasks until stopped.

        Registration failures propagate; monitoring never starts after one.
        """
        if self.config.registration.enabled:
            await self.registrar.register()
        else:
            logger.info("Skipping operator registration")

        if self.task_monitor.stop_requested:
            logger.info("Stop requested during startup, not monitoring")
            return

        await self.task_monitor.run()
        logger.info("OperatorService stopped")

    async def stop(self) -> None:
        """Stop monitoring; in-flight responses are drained by ``run()``."""
        logger.info("Shutting down OperatorService...")
        await self.task_monitor.stop()
