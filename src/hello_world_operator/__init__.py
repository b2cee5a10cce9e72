"""
Hello World AVS operator package.

Registers an operator with EigenLayer and the HelloWorld AVS, then signs and
answers every task the service manager emits.
"""

from .config import OperatorConfig, SignerType
from .models import NewTaskEvent, OperatorSignature, Task, TaskResponse
from .service import OperatorService
from .signers import LocalKeySigner, RemoteRpcSigner, Signer

__all__ = [
    "OperatorConfig",
    "OperatorService",
    "SignerType",
    "Signer",
    "LocalKeySigner",
    "RemoteRpcSigner",
    "Task",
    "TaskResponse",
    "OperatorSignature",
    "NewTaskEvent",
]
__version__ = "0.1.0"
