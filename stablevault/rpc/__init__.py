"""JSON-RPC transport."""
from .client import JsonRpcClient

__all__ = ["JsonRpcClient"]
