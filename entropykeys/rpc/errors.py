"""
Entropy Keys RPC Errors

JSON-RPC 2.0 error object and the standard error codes.
"""

from typing import Any


class RPCError(Exception):
    """RPC error with code and message."""

    def __init__(self, code: int, message: str, data: Any = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data

    def to_dict(self) -> dict:
        result = {"code": self.code, "message": self.message}
        if self.data is not None:
            result["data"] = self.data
        return result

    @classmethod
    def invalid_params(cls, message: str) -> 'RPCError':
        return cls(RPCErrorCode.INVALID_PARAMS, message)

    @classmethod
    def method_not_found(cls, method: Any) -> 'RPCError':
        return cls(
            RPCErrorCode.METHOD_NOT_FOUND,
            "The method does not exist / is not available.",
            {"method": method},
        )


# Standard JSON-RPC error codes
class RPCErrorCode:
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603
