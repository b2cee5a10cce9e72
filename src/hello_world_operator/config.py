#!/usr/bin/env python3
"""Configuration management for the Hello World AVS operator.

This module provides type-safe configuration dataclasses with validation
for the operator. Configuration is loaded from environment variables
with sensible defaults where appropriate.
"""

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from urllib.parse import urlparse

from eth_account import Account
from web3 import Web3

# Get logger for this module
logger = logging.getLogger(__name__)


class SignerType(str, Enum):
    """How task responses are signed."""
    LOCAL = "local"
    REMOTE = "remote"


def _checksum(value: str, label: str, env_var: str) -> str:
    """Validate an address and return it in checksum format."""
    if not value:
        raise ValueError(f"{label} address is required ({env_var})")

    if not Web3.is_address(value):
        raise ValueError(f"Invalid {label} address: {value}")

    return Web3.to_checksum_address(value)


def _parse_bool(raw: str, env_var: str) -> bool:
    match raw.strip().lower():
        case "1" | "true" | "yes" | "on":
            return True
        case "0" | "false" | "no" | "off":
            return False
        case _:
            raise ValueError(f"{env_var} must be a boolean (true/false), got {raw!r}")


def _parse_int(env_var: str, default: int) -> int:
    raw = os.environ.get(env_var, "")
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{env_var} must be an integer, got {raw!r}") from None


@dataclass(frozen=True, slots=True)
class ChainConfig:
    """Configuration for the chain the AVS contracts live on.

    Attributes:
        rpc_url: HTTP(S) RPC endpoint of the node
        private_key: Operator ECDSA private key used to send transactions
    """

    rpc_url: str
    private_key: str = field(repr=False)

    def __post_init__(self) -> None:
        """Validate chain configuration."""
        if not self.rpc_url:
            raise ValueError("RPC URL is required (RPC_URL)")

        parsed = urlparse(self.rpc_url)
        if parsed.scheme not in ('http', 'https'):
            raise ValueError(
                f"Invalid RPC URL scheme: {parsed.scheme}. "
                "Expected http or https"
            )

        if not self.private_key:
            raise ValueError("Private key is required (PRIVATE_KEY)")

        # Should be 64 hex chars, optionally with 0x prefix
        key = self.private_key.removeprefix('0x')
        if len(key) != 64:
            raise ValueError(
                f"Invalid private key length. Expected 64 hex characters, got {len(key)}"
            )

        try:
            int(key, 16)
        except ValueError:
            raise ValueError(
                "Invalid private key format. Must be hexadecimal"
            ) from None

    @property
    def operator_address(self) -> str:
        """Checksummed address derived from the private key."""
        return Account.from_key(self.private_key).address


@dataclass(frozen=True, slots=True)
class ContractAddresses:
    """Checksummed addresses of the EigenLayer core and AVS contracts."""

    delegation_manager: str
    service_manager: str
    stake_registry: str
    avs_directory: str

    def __post_init__(self) -> None:
        """Validate and checksum every address."""
        for attr, label, env_var in (
            ("delegation_manager", "delegation manager", "DELEGATION_MANAGER_ADDRESS"),
            ("service_manager", "service manager", "CONTRACT_ADDRESS"),
            ("stake_registry", "stake registry", "STAKE_REGISTRY_ADDRESS"),
            ("avs_directory", "AVS directory", "AVS_DIRECTORY_ADDRESS"),
        ):
            checksummed = _checksum(getattr(self, attr), label, env_var)
            # Use object.__setattr__ since dataclass is frozen
            object.__setattr__(self, attr, checksummed)


@dataclass(frozen=True, slots=True)
class SignerConfig:
    """Configuration for the task response signer.

    Attributes:
        signer_type: Local private key or remote JSON-RPC signer
        remote_signer_url: Endpoint of the remote signer (remote mode only)
        operator_address: Address the remote signer signs for
    """

    signer_type: SignerType = SignerType.LOCAL
    remote_signer_url: str | None = None
    operator_address: str | None = None

    def __post_init__(self) -> None:
        """Validate signer configuration."""
        try:
            signer_type = SignerType(self.signer_type)
        except ValueError:
            raise ValueError(
                f"Unsupported signer type: {self.signer_type!r}. "
                f"Supported signer types: {', '.join(t.value for t in SignerType)}"
            ) from None
        object.__setattr__(self, 'signer_type', signer_type)

        if self.operator_address:
            object.__setattr__(
                self,
                'operator_address',
                _checksum(self.operator_address, "operator", "OPERATOR_ADDRESS"),
            )

        if signer_type is SignerType.REMOTE:
            if not self.remote_signer_url:
                raise ValueError(
                    "Remote signer requires REMOTE_SIGNER_URL environment variable"
                )

            parsed = urlparse(self.remote_signer_url)
            if parsed.scheme not in ('http', 'https'):
                raise ValueError(
                    f"Invalid remote signer URL scheme: {parsed.scheme}. "
                    "Expected http or https"
                )

            if not self.operator_address:
                raise ValueError(
                    "Remote signer requires OPERATOR_ADDRESS environment variable"
                )


@dataclass(frozen=True, slots=True)
class RegistrationConfig:
    """Configuration for the startup registration sequence."""
    enabled: bool = True
    metadata_uri: str = ""
    signature_expiry_seconds: int = 3600  # validity of the AVS registration signature

    def __post_init__(self) -> None:
        """Validate registration configuration."""
        if self.signature_expiry_seconds <= 0:
            raise ValueError(
                f"Signature expiry must be positive, got {self.signature_expiry_seconds}"
            )
        if self.signature_expiry_seconds > 86400:
            raise ValueError(
                f"Signature expiry too long (max 86400s), got {self.signature_expiry_seconds}"
            )


@dataclass(frozen=True, slots=True)
class MonitoringConfig:
    """Configuration for task monitoring and response dispatch."""
    # Sensible defaults for a local devnet
    polling_interval: int = 2  # seconds between event polls
    lookback_blocks: int = 0  # blocks to look back when subscribing
    request_timeout: int = 30  # HTTP request timeout in seconds
    receipt_timeout: int = 120  # seconds to wait for a transaction receipt
    max_in_flight: int = 16  # concurrent task responses
    shutdown_timeout: int = 30  # seconds to drain in-flight responses
    create_demo_task: bool = True
    demo_task_name: str = "EigenWorld"

    def __post_init__(self) -> None:
        """Validate monitoring configuration."""
        if self.polling_interval <= 0:
            raise ValueError(f"Polling interval must be positive, got {self.polling_interval}")
        if self.polling_interval > 300:
            raise ValueError(f"Polling interval too long (max 300s), got {self.polling_interval}")

        if self.lookback_blocks < 0:
            raise ValueError(f"Lookback blocks must be non-negative, got {self.lookback_blocks}")
        if self.lookback_blocks > 1000:
            raise ValueError(f"Lookback blocks too high (max 1000), got {self.lookback_blocks}")

        if self.request_timeout <= 0:
            raise ValueError(f"Request timeout must be positive, got {self.request_timeout}")
        if self.request_timeout > 120:
            raise ValueError(f"Request timeout too long (max 120s), got {self.request_timeout}")

        if self.receipt_timeout <= 0:
            raise ValueError(f"Receipt timeout must be positive, got {self.receipt_timeout}")
        if self.receipt_timeout > 600:
            raise ValueError(f"Receipt timeout too long (max 600s), got {self.receipt_timeout}")

        if self.max_in_flight <= 0:
            raise ValueError(f"Max in-flight responses must be positive, got {self.max_in_flight}")
        if self.max_in_flight > 256:
            raise ValueError(f"Max in-flight responses too high (max 256), got {self.max_in_flight}")

        if self.shutdown_timeout < 0:
            raise ValueError(f"Shutdown timeout must be non-negative, got {self.shutdown_timeout}")

        if self.create_demo_task and not self.demo_task_name:
            raise ValueError("Demo task name must not be empty (DEMO_TASK_NAME)")


@dataclass(frozen=True, slots=True)
class OperatorConfig:
    """Main configuration for the operator.

    Attributes:
        chain: Node endpoint and operator key
        contracts: Addresses of the contracts the operator talks to
        signer: Task response signer selection
        registration: Startup registration settings
        monitoring: Event monitoring and dispatch settings
    """

    chain: ChainConfig
    contracts: ContractAddresses
    signer: SignerConfig = field(default_factory=SignerConfig)
    registration: RegistrationConfig = field(default_factory=RegistrationConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)

    @property
    def operator_address(self) -> str:
        """Address responses are signed for."""
        return self.signer.operator_address or self.chain.operator_address

    @classmethod
    def from_env(
        cls,
        register_operator: bool | None = None,
        create_demo_task: bool | None = None,
    ) -> "OperatorConfig":
        """Load configuration from environment variables.

        Args:
            register_operator: Overrides REGISTER_OPERATOR when not None
            create_demo_task: Overrides CREATE_DEMO_TASK when not None

        Returns:
            OperatorConfig instance with loaded values

        Raises:
            ValueError: If required environment variables are missing or invalid
        """
        rpc_url = os.environ.get("RPC_URL", "")
        if not rpc_url:
            raise ValueError(
                "RPC_URL environment variable is required. "
                "Example: http://localhost:8545"
            )

        private_key = os.environ.get("PRIVATE_KEY", "")
        if not private_key:
            raise ValueError(
                "PRIVATE_KEY environment variable is required. "
                "This key signs registration and response transactions."
            )

        chain_config = ChainConfig(rpc_url=rpc_url, private_key=private_key)

        contracts = ContractAddresses(
            delegation_manager=os.environ.get("DELEGATION_MANAGER_ADDRESS", ""),
            service_manager=os.environ.get("CONTRACT_ADDRESS", ""),
            stake_registry=os.environ.get("STAKE_REGISTRY_ADDRESS", ""),
            avs_directory=os.environ.get("AVS_DIRECTORY_ADDRESS", ""),
        )

        signer_config = SignerConfig(
            signer_type=os.environ.get("SIGNER_TYPE", SignerType.LOCAL.value).strip().lower(),
            remote_signer_url=os.environ.get("REMOTE_SIGNER_URL") or None,
            operator_address=os.environ.get("OPERATOR_ADDRESS") or None,
        )

        if register_operator is None:
            register_operator = _parse_bool(
                os.environ.get("REGISTER_OPERATOR", "true"), "REGISTER_OPERATOR"
            )

        registration_config = RegistrationConfig(
            enabled=register_operator,
            metadata_uri=os.environ.get("METADATA_URI", ""),
            signature_expiry_seconds=_parse_int("SIGNATURE_EXPIRY_SECONDS", 3600),
        )

        if create_demo_task is None:
            create_demo_task = _parse_bool(
                os.environ.get("CREATE_DEMO_TASK", "true"), "CREATE_DEMO_TASK"
            )

        monitoring_config = MonitoringConfig(
            polling_interval=_parse_int("POLLING_INTERVAL", 2),
            lookback_blocks=_parse_int("LOOKBACK_BLOCKS", 0),
            request_timeout=_parse_int("REQUEST_TIMEOUT", 30),
            receipt_timeout=_parse_int("RECEIPT_TIMEOUT", 120),
            max_in_flight=_parse_int("MAX_IN_FLIGHT", 16),
            shutdown_timeout=_parse_int("SHUTDOWN_TIMEOUT", 30),
            create_demo_task=create_demo_task,
            demo_task_name=os.environ.get("DEMO_TASK_NAME", "EigenWorld"),
        )

        return cls(
            chain=chain_config,
            contracts=contracts,
            signer=signer_config,
            registration=registration_config,
            monitoring=monitoring_config,
        )

    def log_config(self) -> None:
        """Log the configuration in a readable format for debugging."""
        logger.info("=" * 60)
        logger.info("Hello World Operator Configuration")
        logger.info("=" * 60)

        logger.info("Chain:")
        logger.info(f"  RPC URL: {self.chain.rpc_url}")
        logger.info("  Private Key: [CONFIGURED]")
        logger.info(f"  Operator: {self.operator_address}")

        logger.info("Contracts:")
        logger.info(f"  DelegationManager: {self.contracts.delegation_manager}")
        logger.info(f"  ServiceManager: {self.contracts.service_manager}")
        logger.info(f"  StakeRegistry: {self.contracts.stake_registry}")
        logger.info(f"  AVSDirectory: {self.contracts.avs_directory}")

        logger.info("Signer:")
        logger.info(f"  Type: {self.signer.signer_type.value.upper()}")
        if self.signer.signer_type is SignerType.REMOTE:
            logger.info(f"  Remote URL: {self.signer.remote_signer_url}")

        logger.info("Registration:")
        logger.info(f"  Enabled: {self.registration.enabled}")
        logger.info(f"  Signature Expiry: {self.registration.signature_expiry_seconds} seconds")

        logger.info("Monitoring Settings:")
        logger.info(f"  Polling Interval: {self.monitoring.polling_interval} seconds")
        logger.info(f"  Lookback Blocks: {self.monitoring.lookback_blocks}")
        logger.info(f"  Request Timeout: {self.monitoring.request_timeout} seconds")
        logger.info(f"  Receipt Timeout: {self.monitoring.receipt_timeout} seconds")
        logger.info(f"  Max In-Flight: {self.monitoring.max_in_flight}")
        if self.monitoring.create_demo_task:
            logger.info(f"  Demo Task: {self.monitoring.demo_task_name}")

        logger.info("=" * 60)
