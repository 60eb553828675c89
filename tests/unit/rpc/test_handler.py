"""Tests for JSON-RPC request validation and dispatch."""

import asyncio
import json

import pytest

from entropykeys.crypto import erc1024
from entropykeys.rpc import RequestHandler, RPCError, RPCErrorCode
from entropykeys.service import EntropyKeyService
from entropykeys.signing import verify_signature

from tests.fakes import FakeEntropyProvider, MOCK_PRIVATE_KEY, MOCK_PUBLIC_KEY, SOURCE_ENTROPY


DAPP = "https://dapp.example"
INTERNAL = "https://portfolio.metamask.io"


@pytest.fixture
def handler(provider):
    return RequestHandler(EntropyKeyService(provider))


def call(handler, method, params=None, origin=""):
    return asyncio.run(handler.handle(method, params, origin))


def rpc_error(handler, method, params=None, origin=""):
    with pytest.raises(RPCError) as exc_info:
        call(handler, method, params, origin)
    return exc_info.value


class TestSaltForOrigin:
    def test_internal_origins_unsalted(self, handler):
        assert handler.salt_for_origin("") is None
        assert handler.salt_for_origin(None) is None
        assert handler.salt_for_origin(INTERNAL) is None
        assert handler.salt_for_origin("https://docs.metamask.io") is None

    def test_external_origin_is_salt(self, handler):
        assert handler.salt_for_origin(DAPP) == DAPP

    def test_custom_internal_origins(self, provider):
        handler = RequestHandler(EntropyKeyService(provider), ["https://wallet.example"])
        assert handler.salt_for_origin("https://wallet.example") is None
        assert handler.salt_for_origin(INTERNAL) == INTERNAL


class TestGetPublicKey:
    def test_default_source(self):
        handler = RequestHandler(EntropyKeyService(FakeEntropyProvider({"p": MOCK_PRIVATE_KEY})))
        assert call(handler, "getPublicKey") == MOCK_PUBLIC_KEY
        assert call(handler, "getPublicKey", {}) == MOCK_PUBLIC_KEY
        assert call(handler, "getPublicKey", origin=INTERNAL) == MOCK_PUBLIC_KEY

    def test_origin_salts_key(self, handler, provider):
        unsalted = call(handler, "getPublicKey", {"entropySourceId": "id2"})
        salted = call(handler, "getPublicKey", {"entropySourceId": "id2"}, origin=DAPP)
        assert unsalted != salted
        assert provider.requests[-1].salt == DAPP

    @pytest.mark.parametrize("params", [{"entropySourceId": 5}, ["id1"], "id1"])
    def test_invalid_params(self, handler, params):
        error = rpc_error(handler, "getPublicKey", params)
        assert error.code == RPCErrorCode.INVALID_PARAMS
        assert error.message == (
            "`getPublicKey`, must take an optional `entropySourceId` parameter"
        )


class TestGetAllPublicKeys:
    def test_pairs_in_order(self, handler):
        result = call(handler, "getAllPublicKeys")
        assert [pair[0] for pair in result] == list(SOURCE_ENTROPY)
        assert result[0][1] == call(handler, "getPublicKey", {"entropySourceId": "id1"})

    def test_json_serializable(self, handler):
        json.dumps(call(handler, "getAllPublicKeys", origin=DAPP))


class TestSignMessage:
    def test_signs_with_salted_key(self, handler):
        signature = call(handler, "signMessage", {"message": "metamask:hi"}, origin=DAPP)
        public_key = call(handler, "getPublicKey", origin=DAPP)
        assert verify_signature(signature, "metamask:hi", public_key)

    def test_explicit_source(self, handler):
        params = {"message": "metamask:hi", "entropySourceId": "id3"}
        signature = call(handler, "signMessage", params)
        public_key = call(handler, "getPublicKey", {"entropySourceId": "id3"})
        assert verify_signature(signature, "metamask:hi", public_key)

    @pytest.mark.parametrize("params", [
        None,
        {},
        {"message": "hello"},
        {"message": 42},
        {"message": "metamask:hi", "entropySourceId": 1},
    ])
    def test_invalid_params(self, handler, params):
        error = rpc_error(handler, "signMessage", params)
        assert error.code == RPCErrorCode.INVALID_PARAMS
        assert "must begin with `metamask:`" in error.message


class TestEncryptionPublicKey:
    def test_returns_x25519_key(self, handler):
        public_key = call(handler, "getEncryptionPublicKey")
        assert public_key.startswith("0x")
        assert len(public_key) == 2 + 64

    def test_invalid_params(self, handler):
        error = rpc_error(handler, "getEncryptionPublicKey", {"entropySourceId": []})
        assert error.code == RPCErrorCode.INVALID_PARAMS


class TestDecryptMessage:
    def test_decrypts_for_origin(self, handler):
        public_key = call(handler, "getEncryptionPublicKey", {"entropySourceId": "id2"}, DAPP)
        envelope = erc1024.encrypt(public_key, "for the dapp").to_dict()

        assert call(handler, "decryptMessage", {"data": envelope}, DAPP) == "for the dapp"

    def test_explicit_source(self, handler):
        public_key = call(handler, "getEncryptionPublicKey", {"entropySourceId": "id3"})
        envelope = erc1024.encrypt(public_key, "id3 only").to_dict()
        params = {"data": envelope, "entropySourceId": "id3"}
        assert call(handler, "decryptMessage", params) == "id3 only"

    @pytest.mark.parametrize("change", [
        {"version": "other"},
        {"nonce": "WRONG+length"},
        {"nonce": "not base64 at all but 32 chars!!"},
        {"ephemPublicKey": "AAAA"},
        {"ciphertext": "###"},
        {"ciphertext": None},
    ])
    def test_invalid_envelope(self, handler, change):
        public_key = call(handler, "getEncryptionPublicKey")
        envelope = erc1024.encrypt(public_key, "x").to_dict()
        envelope.update(change)

        error = rpc_error(handler, "decryptMessage", {"data": envelope})
        assert error.code == RPCErrorCode.INVALID_PARAMS
        assert "Eip1024EncryptedData" in error.message

    def test_missing_data(self, handler):
        error = rpc_error(handler, "decryptMessage", {})
        assert error.code == RPCErrorCode.INVALID_PARAMS


class TestHandle:
    def test_methods(self, handler):
        assert set(handler.methods) == {
            "getPublicKey",
            "getAllPublicKeys",
            "signMessage",
            "getEncryptionPublicKey",
            "decryptMessage",
        }

    def test_unknown_method(self, handler):
        error = rpc_error(handler, "eth_sendTransaction")
        assert error.code == RPCErrorCode.METHOD_NOT_FOUND
        assert error.to_dict()["data"] == {"method": "eth_sendTransaction"}


class TestProcess:
    def process(self, handler, request, origin=""):
        return asyncio.run(handler.process(request, origin))

    def test_result(self, handler):
        response = self.process(handler, {"jsonrpc": "2.0", "method": "getPublicKey", "id": 7})
        assert response["id"] == 7
        assert response["result"].startswith("0x02") or response["result"].startswith("0x03")

    def test_json_text(self, handler):
        request = json.dumps({"jsonrpc": "2.0", "method": "getAllPublicKeys", "id": "a"})
        response = self.process(handler, request)
        assert response["id"] == "a"
        assert len(response["result"]) == 3

    def test_parse_error(self, handler):
        response = self.process(handler, "{not json")
        assert response["error"]["code"] == RPCErrorCode.PARSE_ERROR
        assert response["id"] is None

    @pytest.mark.parametrize("request_obj", [
        [1, 2],
        {"jsonrpc": "1.0", "method": "getPublicKey"},
        {"jsonrpc": "2.0", "method": 5},
    ])
    def test_invalid_request(self, handler, request_obj):
        response = self.process(handler, request_obj)
        assert response["error"]["code"] == RPCErrorCode.INVALID_REQUEST

    def test_invalid_params_error(self, handler):
        response = self.process(
            handler, {"jsonrpc": "2.0", "method": "signMessage", "params": {"message": "x"}, "id": 1}
        )
        assert response["error"]["code"] == RPCErrorCode.INVALID_PARAMS
        assert response["id"] == 1

    def test_core_error_is_internal(self, handler):
        public_key = self.process(
            handler, {"method": "getEncryptionPublicKey", "id": 1}
        )["result"]
        envelope = erc1024.encrypt(public_key, "x").to_dict()

        response = self.process(handler, {
            "method": "decryptMessage",
            "params": {"data": envelope},
            "id": 2,
        }, origin=DAPP)
        assert response["error"] == {
            "code": RPCErrorCode.INTERNAL_ERROR,
            "message": "invalid tag",
        }
