"""Tests for the keyctl command-line interface."""

import json

import pytest

from keyctl.main import main, parse_seeds, build_provider, SEEDS_ENV
from entropykeys.config import Config, SourceConfig
from entropykeys.entropy import EntropyError
from entropykeys.signing import verify_signature

from tests.fakes import MOCK_PRIVATE_KEY, MOCK_PUBLIC_KEY


SEED_A = "01" * 32
SEED_B = "02" * 32


@pytest.fixture
def config_path(tmp_path):
    return tmp_path / "missing.toml"


@pytest.fixture
def two_source_config(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(
        '[[sources]]\nid = "hot"\n\n[[sources]]\nid = "cold"\n'
    )
    return path


def run(capsys, config_path, *args, seeds=SEED_A, origin=None):
    argv = ["-c", str(config_path)]
    if origin is not None:
        argv += ["--origin", origin]
    argv += list(args)
    environ = {SEEDS_ENV: seeds} if seeds is not None else {}
    code = main(argv, environ)
    out, err = capsys.readouterr()
    return code, out.strip(), err.strip()


class TestParseSeeds:
    def test_multiple(self):
        assert parse_seeds(f"0x{SEED_A}, {SEED_B}") == [bytes.fromhex(SEED_A), bytes.fromhex(SEED_B)]

    @pytest.mark.parametrize("value", ["", "01,", "zz", "0x", "01 02"])
    def test_rejects(self, value):
        with pytest.raises(ValueError):
            parse_seeds(value)


class TestBuildProvider:
    def test_single_default_source(self):
        provider = build_provider(Config(), {SEEDS_ENV: SEED_A})
        assert [s.id for s in provider.sources] == ["default"]
        assert provider.sources[0].primary

    def test_configured_sources(self):
        config = Config(sources=[SourceConfig(id="hot"), SourceConfig(id="cold", primary=True)])
        provider = build_provider(config, {SEEDS_ENV: f"{SEED_A},{SEED_B}"})
        assert provider.seeds["cold"] == bytes.fromhex(SEED_B)

    def test_missing_env(self):
        with pytest.raises(EntropyError, match=SEEDS_ENV):
            build_provider(Config(), {})

    def test_too_many_seeds_without_sources(self):
        with pytest.raises(EntropyError):
            build_provider(Config(), {SEEDS_ENV: f"{SEED_A},{SEED_B}"})


class TestCommands:
    def test_no_command(self, capsys, config_path):
        code, _, _ = run(capsys, config_path)
        assert code == 1

    def test_public_key(self, capsys, config_path):
        code, out, _ = run(capsys, config_path, "public-key", seeds=MOCK_PRIVATE_KEY)
        assert code == 0
        # Static provider answers HKDF(seed), not the seed itself
        assert out.startswith("0x0")
        assert out != MOCK_PUBLIC_KEY

    def test_origin_changes_key(self, capsys, config_path):
        _, internal, _ = run(capsys, config_path, "public-key")
        _, dapp, _ = run(capsys, config_path, "public-key", origin="https://dapp.example")
        assert internal != dapp

    def test_all_public_keys(self, capsys, two_source_config):
        code, out, _ = run(
            capsys, two_source_config, "all-public-keys", seeds=f"{SEED_A},{SEED_B}"
        )
        assert code == 0
        lines = out.splitlines()
        assert lines[2].startswith("hot")
        assert lines[3].startswith("cold")

    def test_sign_and_verify(self, capsys, config_path):
        code, signature, _ = run(capsys, config_path, "sign", "metamask:hello")
        assert code == 0
        _, public_key, _ = run(capsys, config_path, "public-key")
        assert verify_signature(signature, "metamask:hello", public_key)

        code, out, _ = run(capsys, config_path, "verify", signature, "metamask:hello", public_key)
        assert code == 0
        assert out == "Signature valid"

        code, _, err = run(capsys, config_path, "verify", signature, "metamask:bye", public_key)
        assert code == 1
        assert "INVALID" in err

    def test_sign_requires_prefix(self, capsys, config_path):
        code, _, err = run(capsys, config_path, "sign", "hello")
        assert code == 1
        assert "metamask:" in err

    def test_encrypt_then_decrypt(self, capsys, two_source_config):
        seeds = f"{SEED_A},{SEED_B}"
        _, public_key, _ = run(
            capsys, two_source_config, "encryption-public-key", "--source", "cold", seeds=seeds
        )
        code, envelope, _ = run(capsys, two_source_config, "encrypt", public_key, "hi cold", seeds=None)
        assert code == 0
        assert json.loads(envelope)["version"] == "x25519-xsalsa20-poly1305"

        code, out, _ = run(capsys, two_source_config, "decrypt", envelope, seeds=seeds)
        assert code == 0
        assert out == "hi cold"

        code, _, err = run(
            capsys, two_source_config, "decrypt", envelope, "--source", "hot", seeds=seeds
        )
        assert code == 1
        assert err == "Error: invalid tag"

    def test_decrypt_bad_json(self, capsys, config_path):
        code, _, err = run(capsys, config_path, "decrypt", "{nope")
        assert code == 1
        assert "not valid JSON" in err

    def test_encrypt_bad_key(self, capsys, config_path):
        code, _, err = run(capsys, config_path, "encrypt", "0xzz", "hi", seeds=None)
        assert code == 1
        assert "Bad public key" in err

    def test_missing_seeds(self, capsys, config_path):
        code, _, _ = run(capsys, config_path, "public-key", seeds=None)
        assert code == 1

    def test_bad_config(self, capsys, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text('log_level = "LOUD"\n')
        code, _, err = run(capsys, path, "public-key")
        assert code == 1
        assert "Configuration error" in err
