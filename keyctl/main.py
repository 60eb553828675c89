#!/usr/bin/env python3
"""
keyctl - Entropy Keys CLI

Command-line interface for the key operations, backed by an in-memory
entropy provider seeded from the ENTROPYKEYS_SEEDS environment variable
(comma-separated hex seeds, one per configured source, in order).

Usage:
    keyctl public-key               - Show signing public key (SRP ID)
    keyctl all-public-keys          - List SRP IDs of all sources
    keyctl sign                     - Sign a message
    keyctl verify                   - Verify a signature
    keyctl encryption-public-key    - Show encryption public key
    keyctl encrypt                  - Encrypt a message to a public key
    keyctl decrypt                  - Decrypt an ERC1024 envelope
"""

import os
import sys
import json
import asyncio
import logging
import argparse
from pathlib import Path
from typing import Any, List, Mapping, Optional

from entropykeys import __version__
from entropykeys.config import Config, DEFAULT_CONFIG_PATH
from entropykeys.entropy import EntropyError, StaticEntropyProvider
from entropykeys.service import EntropyKeyService
from entropykeys.signing import verify_signature
from entropykeys.rpc import RequestHandler
from entropykeys.crypto import erc1024
from entropykeys.crypto.box import BoxError
from entropykeys.crypto.primitives import hex_to_bytes, strip_hex_prefix


SEEDS_ENV = "ENTROPYKEYS_SEEDS"
DEFAULT_SOURCE_ID = "default"

logger = logging.getLogger("keyctl")


def setup_logging(config: Config, verbose: bool = False) -> None:
    """Configure root logging from config."""
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.log_file:
        handlers.append(logging.FileHandler(config.log_file, mode="a"))

    logging.basicConfig(
        level=logging.DEBUG if verbose else config.log_level_value,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
    )


def parse_seeds(value: str) -> List[bytes]:
    """
    Parse comma-separated hex seeds.

    Raises:
        ValueError: If a seed is empty or not hex
    """
    seeds = []
    for i, part in enumerate(value.split(",")):
        part = part.strip()
        if not strip_hex_prefix(part):
            raise ValueError(f"Seed {i} is empty")
        try:
            seeds.append(hex_to_bytes(part))
        except ValueError:
            raise ValueError(f"Seed {i} is not valid hex") from None
    return seeds


def build_provider(config: Config, environ: Mapping[str, str]) -> StaticEntropyProvider:
    """
    Build the static provider from configured sources and env seeds.

    With no configured sources a single seed becomes the primary
    source "default".
    """
    raw = environ.get(SEEDS_ENV, "")
    if not raw:
        raise EntropyError(f"{SEEDS_ENV} is not set")

    seeds = parse_seeds(raw)
    sources = config.entropy_sources()

    if not sources:
        if len(seeds) != 1:
            raise EntropyError(
                f"{len(seeds)} seeds given but no sources configured in {config.config_path}"
            )
        return StaticEntropyProvider.from_seeds({DEFAULT_SOURCE_ID: seeds[0]})

    return StaticEntropyProvider.from_sources(sources, seeds)


class KeyCtlError(Exception):
    """Error returned by a keyctl RPC call."""
    pass


class KeyCtl:
    """keyctl CLI application."""

    def __init__(self, handler: RequestHandler, origin: str = ""):
        """Initialize CLI with a request handler and calling origin."""
        self.handler = handler
        self.origin = origin

    def _call(self, method: str, params: Optional[dict] = None) -> Any:
        response = asyncio.run(self.handler.process(
            {"jsonrpc": "2.0", "method": method, "params": params, "id": 1},
            origin=self.origin,
        ))
        if "error" in response:
            raise KeyCtlError(response["error"].get("message", "Unknown error"))
        return response["result"]

    @staticmethod
    def _source_params(source: Optional[str]) -> Optional[dict]:
        return {"entropySourceId": source} if source else None

    def public_key(self, source: Optional[str]) -> int:
        """Show signing public key."""
        try:
            result = self._call("getPublicKey", self._source_params(source))
        except KeyCtlError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

        print(result)
        return 0

    def all_public_keys(self) -> int:
        """List SRP IDs of all sources."""
        try:
            result = self._call("getAllPublicKeys")
        except KeyCtlError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

        if not result:
            print("No entropy sources")
            return 0

        print(f"{'Source ID':<24} {'Public Key'}")
        print("-" * 94)
        for source_id, public_key in result:
            print(f"{source_id:<24} {public_key}")

        return 0

    def sign(self, message: str, source: Optional[str]) -> int:
        """Sign a message."""
        params = {"message": message}
        if source:
            params["entropySourceId"] = source
        try:
            result = self._call("signMessage", params)
        except KeyCtlError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

        print(result)
        return 0

    @staticmethod
    def verify(signature: str, message: str, public_key: str) -> int:
        """Verify a signature."""
        if verify_signature(signature, message, public_key):
            print("Signature valid")
            return 0
        print("Signature INVALID", file=sys.stderr)
        return 1

    def encryption_public_key(self, source: Optional[str]) -> int:
        """Show encryption public key."""
        try:
            result = self._call("getEncryptionPublicKey", self._source_params(source))
        except KeyCtlError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

        print(result)
        return 0

    @staticmethod
    def encrypt(public_key: str, message: str) -> int:
        """Encrypt a message to an X25519 public key."""
        try:
            envelope = erc1024.encrypt(public_key, message)
        except (BoxError, ValueError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

        print(json.dumps(envelope.to_dict(), indent=2))
        return 0

    def decrypt(self, envelope_json: str, source: Optional[str]) -> int:
        """Decrypt an ERC1024 envelope."""
        try:
            data = json.loads(envelope_json)
        except json.JSONDecodeError as e:
            print(f"Error: envelope is not valid JSON: {e}", file=sys.stderr)
            return 1

        params = {"data": data}
        if source:
            params["entropySourceId"] = source
        try:
            result = self._call("decryptMessage", params)
        except KeyCtlError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

        print(result)
        return 0


def main(argv: Optional[List[str]] = None, environ: Optional[Mapping[str, str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Entropy Keys CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Commands:
  public-key              Show signing public key (SRP ID)
  all-public-keys         List SRP IDs of all sources
  sign                    Sign a message
  verify                  Verify a signature
  encryption-public-key   Show encryption public key
  encrypt                 Encrypt a message to a public key
  decrypt                 Decrypt an ERC1024 envelope

Seeds are read from {SEEDS_ENV} (comma-separated hex).

Examples:
  keyctl public-key
  keyctl --origin https://dapp.example sign "metamask:hello"
  keyctl decrypt '{{"version": "x25519-xsalsa20-poly1305", ...}}'
""",
    )

    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help="Configuration file path",
    )
    parser.add_argument(
        "-o", "--origin",
        default="",
        help="Calling origin (determines the salt)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"keyctl {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command")

    # public-key command
    public_key_parser = subparsers.add_parser("public-key", help="Show signing public key")
    public_key_parser.add_argument("-s", "--source", help="Entropy source ID")

    # all-public-keys command
    subparsers.add_parser("all-public-keys", help="List SRP IDs of all sources")

    # sign command
    sign_parser = subparsers.add_parser("sign", help="Sign a message")
    sign_parser.add_argument("message", help="Message (must start with metamask:)")
    sign_parser.add_argument("-s", "--source", help="Entropy source ID")

    # verify command
    verify_parser = subparsers.add_parser("verify", help="Verify a signature")
    verify_parser.add_argument("signature", help="0x-prefixed compact signature")
    verify_parser.add_argument("message", help="Signed message")
    verify_parser.add_argument("public_key", help="0x-prefixed public key")

    # encryption-public-key command
    enc_key_parser = subparsers.add_parser(
        "encryption-public-key", help="Show encryption public key"
    )
    enc_key_parser.add_argument("-s", "--source", help="Entropy source ID")

    # encrypt command
    encrypt_parser = subparsers.add_parser("encrypt", help="Encrypt a message")
    encrypt_parser.add_argument("public_key", help="Recipient X25519 public key (hex)")
    encrypt_parser.add_argument("message", help="Message to encrypt")

    # decrypt command
    decrypt_parser = subparsers.add_parser("decrypt", help="Decrypt an envelope")
    decrypt_parser.add_argument("envelope", help="ERC1024 envelope JSON")
    decrypt_parser.add_argument("-s", "--source", help="Entropy source ID")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    environ = os.environ if environ is None else environ

    try:
        config = Config.load(args.config)
        config.validate()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    setup_logging(config, args.verbose)

    # Commands that need no key material
    if args.command == "verify":
        return KeyCtl.verify(args.signature, args.message, args.public_key)

    if args.command == "encrypt":
        return KeyCtl.encrypt(args.public_key, args.message)

    try:
        provider = build_provider(config, environ)
    except (EntropyError, ValueError) as e:
        logger.error(f"Entropy error: {e}")
        return 1

    handler = RequestHandler(EntropyKeyService(provider), config.internal_origins)
    cli = KeyCtl(handler, args.origin)

    # Dispatch command
    if args.command == "public-key":
        return cli.public_key(args.source)
    elif args.command == "all-public-keys":
        return cli.all_public_keys()
    elif args.command == "sign":
        return cli.sign(args.message, args.source)
    elif args.command == "encryption-public-key":
        return cli.encryption_public_key(args.source)
    elif args.command == "decrypt":
        return cli.decrypt(args.envelope, args.source)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
