"""
Entropy Keys RPC Request Handler

Maps JSON-RPC requests from a calling origin onto EntropyKeyService.

Methods:
- getPublicKey            {entropySourceId?}
- getAllPublicKeys
- signMessage             {message: "metamask:...", entropySourceId?}
- getEncryptionPublicKey  {entropySourceId?}
- decryptMessage          {data: ERC1024 envelope, entropySourceId?}

Every method is salted with salt_for_origin(origin), so each external
origin sees its own keys while internal origins share the unsalted ones.
"""

import json
import logging
import re
from typing import Any, Awaitable, Callable, Dict, Optional, Sequence

from ..config import DEFAULT_INTERNAL_ORIGINS
from ..crypto.erc1024 import EncryptionVersion
from ..service import EntropyKeyService
from .errors import RPCError, RPCErrorCode


logger = logging.getLogger(__name__)

SIGN_MESSAGE_PREFIX = "metamask:"

# Encoded lengths of the fixed-size envelope fields
NONCE_B64_LENGTH = 32  # 24 bytes
EPHEM_PUBLIC_KEY_B64_LENGTH = 44  # 32 bytes

_BASE64_RE = re.compile(
    r"^([0-9a-zA-Z+/]{4})*(([0-9a-zA-Z+/]{2}==)|([0-9a-zA-Z+/]{3}=))?$"
)

Handler = Callable[[Any, Optional[str]], Awaitable[Any]]


def _is_base64(value: Any) -> bool:
    return isinstance(value, str) and _BASE64_RE.match(value) is not None


def _optional_source_id(params: Dict[str, Any]) -> bool:
    source_id = params.get("entropySourceId")
    return source_id is None or isinstance(source_id, str)


def assert_get_public_key_params(params: Any) -> None:
    if not isinstance(params, dict) or not _optional_source_id(params):
        raise RPCError.invalid_params(
            "`getPublicKey`, must take an optional `entropySourceId` parameter"
        )


def assert_sign_message_params(params: Any) -> None:
    valid = (
        isinstance(params, dict)
        and isinstance(params.get("message"), str)
        and params["message"].startswith(SIGN_MESSAGE_PREFIX)
        and _optional_source_id(params)
    )
    if not valid:
        raise RPCError.invalid_params(
            "`signMessage`, must take a `message` parameter that must begin with `metamask:`"
        )


def assert_get_encryption_public_key_params(params: Any) -> None:
    if not isinstance(params, dict) or not _optional_source_id(params):
        raise RPCError.invalid_params(
            "`getEncryptionPublicKey`, must take an optional `entropySourceId` parameter"
        )


def assert_decrypt_message_params(params: Any) -> None:
    data = params.get("data") if isinstance(params, dict) else None
    valid = (
        isinstance(data, dict)
        and data.get("version") == EncryptionVersion.X25519_XSALSA20_POLY1305.value
        and _is_base64(data.get("nonce"))
        and len(data["nonce"]) == NONCE_B64_LENGTH
        and _is_base64(data.get("ephemPublicKey"))
        and len(data["ephemPublicKey"]) == EPHEM_PUBLIC_KEY_B64_LENGTH
        and _is_base64(data.get("ciphertext"))
        and _optional_source_id(params)
    )
    if not valid:
        raise RPCError.invalid_params(
            "`decryptMessage`, must take a `data` parameter that must match "
            "the Eip1024EncryptedData schema"
        )


class RequestHandler:
    """
    Dispatches RPC methods to the service.

    Usage:
        handler = RequestHandler(EntropyKeyService(provider))
        result = await handler.handle("getPublicKey", None, origin="https://dapp.example")
        response = await handler.process(request_dict, origin="https://dapp.example")
    """

    def __init__(
        self,
        service: EntropyKeyService,
        internal_origins: Sequence[str] = DEFAULT_INTERNAL_ORIGINS,
    ):
        self._service = service
        self._internal_origins = frozenset(internal_origins)
        self._handlers: Dict[str, Handler] = {
            "getPublicKey": self._get_public_key,
            "getAllPublicKeys": self._get_all_public_keys,
            "signMessage": self._sign_message,
            "getEncryptionPublicKey": self._get_encryption_public_key,
            "decryptMessage": self._decrypt_message,
        }

    @property
    def methods(self) -> Sequence[str]:
        return tuple(self._handlers)

    def salt_for_origin(self, origin: Optional[str]) -> Optional[str]:
        """Internal (or empty) origins are unsalted; any other origin is its own salt."""
        if not origin or origin in self._internal_origins:
            return None
        return origin

    async def _get_public_key(self, params: Any, salt: Optional[str]) -> str:
        if not params:
            return await self._service.get_public_key(None, salt)
        assert_get_public_key_params(params)
        return await self._service.get_public_key(params.get("entropySourceId"), salt)

    async def _get_all_public_keys(self, params: Any, salt: Optional[str]) -> list:
        pairs = await self._service.get_all_public_keys(salt)
        return [[source_id, public_key] for source_id, public_key in pairs]

    async def _sign_message(self, params: Any, salt: Optional[str]) -> str:
        assert_sign_message_params(params)
        return await self._service.sign_message(
            params["message"], params.get("entropySourceId"), salt
        )

    async def _get_encryption_public_key(self, params: Any, salt: Optional[str]) -> str:
        if not params:
            return await self._service.get_encryption_public_key(None, salt)
        assert_get_encryption_public_key_params(params)
        return await self._service.get_encryption_public_key(
            params.get("entropySourceId"), salt
        )

    async def _decrypt_message(self, params: Any, salt: Optional[str]) -> str:
        assert_decrypt_message_params(params)
        return await self._service.decrypt_message(
            params["data"], params.get("entropySourceId"), salt
        )

    async def handle(self, method: str, params: Any = None, origin: Optional[str] = "") -> Any:
        """
        Run one method.

        Raises:
            RPCError: For unknown methods or invalid params
            Exception: Core errors propagate unchanged
        """
        handler = self._handlers.get(method)
        if handler is None:
            raise RPCError.method_not_found(method)

        salt = self.salt_for_origin(origin)
        logger.debug(f"RPC {method} from origin={origin!r} salted={salt is not None}")
        return await handler(params, salt)

    async def process(self, request: Any, origin: Optional[str] = "") -> dict:
        """
        Process a JSON-RPC 2.0 request object (or its JSON text).

        Returns:
            dict: JSON-RPC response with either "result" or "error"
        """
        request_id = None

        try:
            if isinstance(request, (str, bytes)):
                try:
                    request = json.loads(request)
                except json.JSONDecodeError as e:
                    raise RPCError(RPCErrorCode.PARSE_ERROR, f"Parse error: {e}")

            # Validate request
            if not isinstance(request, dict):
                raise RPCError(RPCErrorCode.INVALID_REQUEST, "Request must be object")

            request_id = request.get("id")

            if request.get("jsonrpc", "2.0") != "2.0":
                raise RPCError(RPCErrorCode.INVALID_REQUEST, "Invalid JSON-RPC version")

            method = request.get("method")
            if not isinstance(method, str):
                raise RPCError(RPCErrorCode.INVALID_REQUEST, "Method must be string")

            result = await self.handle(method, request.get("params"), origin)

            return {
                "jsonrpc": "2.0",
                "result": result,
                "id": request_id,
            }

        except RPCError as e:
            return {
                "jsonrpc": "2.0",
                "error": e.to_dict(),
                "id": request_id,
            }
        except Exception as e:
            logger.warning(f"RPC request failed: {type(e).__name__}: {e}")
            return {
                "jsonrpc": "2.0",
                "error": {"code": RPCErrorCode.INTERNAL_ERROR, "message": str(e)},
                "id": request_id,
            }
