"""
Entropy Keys RPC Module

Request validation and dispatch for the key operations.

Protocol: JSON-RPC 2.0 objects; the transport is the host's concern.
"""

from .errors import (
    RPCError,
    RPCErrorCode,
)
from .handler import (
    RequestHandler,
    SIGN_MESSAGE_PREFIX,
)

__all__ = [
    'RPCError',
    'RPCErrorCode',
    'RequestHandler',
    'SIGN_MESSAGE_PREFIX',
]
