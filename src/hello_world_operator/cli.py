#!/usr/bin/env python3
"""Entry point for the Hello World AVS operator.

Loads configuration from the environment (and an optional ``.env`` file),
registers the operator and answers tasks until interrupted.
"""

import argparse
import asyncio
import logging
import os
import signal
import sys

from dotenv import load_dotenv

from .registrar import RegistrationError
from .service import OperatorService

# Get logger for this module
logger = logging.getLogger(__name__)

ENV_HELP = """Environment Variables:
  RPC_URL                    - Node RPC endpoint
  PRIVATE_KEY                - Operator private key
  DELEGATION_MANAGER_ADDRESS - EigenLayer DelegationManager
  CONTRACT_ADDRESS           - HelloWorldServiceManager
  STAKE_REGISTRY_ADDRESS     - ECDSAStakeRegistry
  AVS_DIRECTORY_ADDRESS      - EigenLayer AVSDirectory
  SIGNER_TYPE                - local or remote (default: local)
  REMOTE_SIGNER_URL          - Remote signer endpoint (required with SIGNER_TYPE=remote)
  OPERATOR_ADDRESS           - Address the remote signer signs for
  POLLING_INTERVAL           - Event polling interval (default: 2)
  LOG_LEVEL                  - Logging level (can be overridden with --log-level)
"""


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the application.

    Args:
        level: Logging level as string (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    log_level: int = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def build_parser() -> argparse.ArgumentParser:
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        description="Hello World AVS Operator - register and respond to tasks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=ENV_HELP
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging level (default: LOG_LEVEL or INFO)"
    )
    parser.add_argument(
        "--skip-registration",
        action="store_true",
        default=False,
        help="Do not register the operator on startup (already registered)"
    )
    parser.add_argument(
        "--no-demo-task",
        action="store_true",
        default=False,
        help="Do not create the self-test task on startup"
    )
    parser.add_argument(
        "--env-file",
        default=None,
        help="Path of a .env file to load (default: ./.env if present)"
    )
    return parser


async def run_operator(args: argparse.Namespace) -> int:
    """Build the operator from the environment and run it.

    Returns:
        Process exit code
    """
    try:
        service: OperatorService = OperatorService.from_env(
            register_operator=False if args.skip_registration else None,
            create_demo_task=False if args.no_demo_task else None
        )
    except ValueError as e:
        logger.error(f"Configuration Error: {e}")
        logger.error(ENV_HELP)
        return 1

    loop = asyncio.get_running_loop()
    shutdown_requested = asyncio.Event()
    handled_signals: list[signal.Signals] = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, shutdown_requested.set)
            handled_signals.append(sig)
        except NotImplementedError:
            # Windows event loops have no signal handlers; KeyboardInterrupt still applies
            pass

    async def stop_on_signal() -> None:
        await shutdown_requested.wait()
        logger.info("Received shutdown signal, stopping operator...")
        await service.stop()

    stopper: asyncio.Task[None] = asyncio.create_task(stop_on_signal(), name="stop-on-signal")

    try:
        await service.run()
    except RegistrationError as e:
        logger.error(f"Registration Error: {e}")
        return 1
    except Exception as e:
        logger.error(f"Fatal Error: {e}", exc_info=True)
        return 1
    finally:
        for sig in handled_signals:
            loop.remove_signal_handler(sig)
        stopper.cancel()
        (stop_result,) = await asyncio.gather(stopper, return_exceptions=True)
        if isinstance(stop_result, Exception):
            logger.error(f"Error while stopping operator: {stop_result}")

    return 0


def main(argv: list[str] | None = None) -> None:
    """Console entry point."""
    args: argparse.Namespace = build_parser().parse_args(argv)

    # Values already in the environment win over the .env file
    load_dotenv(args.env_file)

    setup_logging(args.log_level or os.environ.get("LOG_LEVEL", "INFO"))
    logger.info("=== Hello World Operator Starting ===")

    try:
        exit_code = asyncio.run(run_operator(args))
    except KeyboardInterrupt:
        logger.info("Received interrupt signal, shutting down...")
        exit_code = 0

    sys.exit(exit_code)
