"""
Infrastructure package.

JSON-RPC transport, the contract call surface, nonce coordination and
logging configuration.
"""

from fundtrade.infra.contracts import ContractClient, ContractFunction, TransactionHandle
from fundtrade.infra.logging_cfg import build_logger, log_event
from fundtrade.infra.nonce import NonceCoordinator
from fundtrade.infra.rpc import RpcClient

__all__ = [
    "ContractClient",
    "ContractFunction",
    "TransactionHandle",
    "build_logger",
    "log_event",
    "NonceCoordinator",
    "RpcClient",
]
