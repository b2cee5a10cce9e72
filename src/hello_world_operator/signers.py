#!/usr/bin/env python3
"""Task response signers.

A ``Signer`` turns a 32-byte task digest into the 65-byte signature the
HelloWorld service manager verifies. The contract checks the signature
against the EIP-191 personal-message hash of the digest, which is what a
JSON-RPC ``eth_sign`` produces, so both variants sign the prefixed form:

* ``LocalKeySigner`` signs in-process with the operator's private key.
* ``RemoteRpcSigner`` asks an external signer over JSON-RPC and never
  touches the key.
"""

import logging
from abc import ABC, abstractmethod

from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.types import HexBytes

from .config import OperatorConfig, SignerType
from .utils.json_rpc_client import JsonRpcClient, JsonRpcError

logger = logging.getLogger(__name__)


class Signer(ABC):
    """Signs task digests on behalf of the operator."""

    @property
    @abstractmethod
    def address(self) -> str:
        """Address whose key produces the signatures."""

    @abstractmethod
    async def sign(self, digest: bytes) -> bytes:
        """Sign a 32-byte digest and return the 65-byte signature."""


class LocalKeySigner(Signer):
    """Signs with a private key held by this process."""

    def __init__(self, account: LocalAccount) -> None:
        self.account = account

    @property
    def address(self) -> str:
        return self.account.address

    async def sign(self, digest: bytes) -> bytes:
        logger.debug("Using local private key to sign message")
        signed = self.account.sign_message(encode_defunct(primitive=digest))
        return bytes(signed.signature)


class RemoteRpcSigner(Signer):
    """Delegates signing to an external ``eth_sign`` JSON-RPC endpoint."""

    METHOD: str = "eth_sign"

    def __init__(self, client: JsonRpcClient, operator_address: str) -> None:
        self.client = client
        self.operator_address = Web3.to_checksum_address(operator_address)

    @property
    def address(self) -> str:
        return self.operator_address

    async def sign(self, digest: bytes) -> bytes:
        logger.debug(f"Using remote signer at {self.client.url} to sign message")
        result = await self.client.call(
            self.METHOD,
            [self.operator_address, Web3.to_hex(digest)]
        )

        if not isinstance(result, str) or not result:
            raise JsonRpcError(f"Unexpected {self.METHOD} result: {result!r}")

        return bytes(HexBytes(result))


def build_signer(config: OperatorConfig, account: LocalAccount) -> Signer:
    """Select the signer variant named by the configuration.

    Args:
        config: Operator configuration
        account: The operator account (used by the local variant)

    Returns:
        The configured Signer
    """
    match config.signer.signer_type:
        case SignerType.LOCAL:
            logger.info("Task responses will be signed with the local private key")
            return LocalKeySigner(account)
        case SignerType.REMOTE:
            logger.info(f"Task responses will be signed by remote signer {config.signer.remote_signer_url}")
            client = JsonRpcClient(
                config.signer.remote_signer_url,
                timeout=config.monitoring.request_timeout
            )
            return RemoteRpcSigner(client, config.operator_address)
        case other:
            raise ValueError(f"Unsupported signer type: {other!r}")
