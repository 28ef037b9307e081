"""Tests for environment config delivery as step outputs."""

import base64
import json
import os

import pytest
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from record_release.channels.step_io import MemoryStepOutputs
from record_release.clients.http import MockHttpClient
from record_release.clients.ledger import LedgerTarget
from record_release.core.result import Err, Ok, Result
from record_release.output.console import MockConsole
from record_release.release.errors import ReleaseError
from record_release.services.config_delivery import deliver_environment_config

API = "https://ops.example.com"
CONFIG = f"{API}/webhook/config?environment=production"
TARGET = LedgerTarget(api_url=API, token="t")


@pytest.fixture(scope="module")
def private_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="module")
def secret_key(private_key: rsa.RSAPrivateKey) -> str:
    der = private_key.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    return base64.b64encode(der).decode("ascii")


def _seal(plaintext: str, private_key: rsa.RSAPrivateKey) -> dict[str, str]:
    aes_key = AESGCM.generate_key(bit_length=256)
    iv = os.urandom(12)
    wrapped = private_key.public_key().encrypt(
        aes_key,
        padding.OAEP(mgf=padding.MGF1(algorithm=hashes.SHA256()), algorithm=hashes.SHA256(), label=None),
    )
    return {
        "iv": base64.b64encode(iv).decode(),
        "encryptedKey": base64.b64encode(wrapped).decode(),
        "encryptedValue": base64.b64encode(AESGCM(aes_key).encrypt(iv, plaintext.encode(), None)).decode(),
    }


def _deliver(
    http: MockHttpClient, secret_key: str | None
) -> tuple[Result[None, ReleaseError], tuple[MemoryStepOutputs, MockConsole]]:
    outputs = MemoryStepOutputs()
    console = MockConsole()
    result = deliver_environment_config(
        http, console, outputs, target=TARGET, environment="production", secret_key=secret_key
    )
    return result, (outputs, console)


def test_variables_and_secrets(private_key: rsa.RSAPrivateKey, secret_key: str) -> None:
    http = MockHttpClient()
    http.set(
        "GET",
        CONFIG,
        {
            "variables": {"REGION": "eu-west-1"},
            "secrets": {"DB_URL": _seal("postgres://db", private_key), "TOKEN": json.dumps(_seal("tk", private_key))},
        },
    )

    result, (outputs, _) = _deliver(http, secret_key)

    assert result == Ok(None)
    assert outputs.outputs == {"var_REGION": "eu-west-1", "secret_DB_URL": "postgres://db", "secret_TOKEN": "tk"}
    assert set(outputs.masked) == {"postgres://db", "tk"}


def test_secrets_without_key_are_skipped(private_key: rsa.RSAPrivateKey) -> None:
    http = MockHttpClient()
    http.set("GET", CONFIG, {"variables": {"A": "1"}, "secrets": {"S": _seal("x", private_key)}})

    result, (outputs, console) = _deliver(http, None)

    assert result == Ok(None)
    assert outputs.outputs == {"var_A": "1"}
    assert console.has_warning()


def test_one_bad_secret_exposes_nothing(private_key: rsa.RSAPrivateKey, secret_key: str) -> None:
    http = MockHttpClient()
    http.set(
        "GET",
        CONFIG,
        {"secrets": {"A_GOOD": _seal("fine", private_key), "B_BAD": {"iv": "AAAA", "encryptedKey": "AAAA", "encryptedValue": "AAAA"}}},
    )

    result, (outputs, _) = _deliver(http, secret_key)

    assert isinstance(result, Err)
    assert result.error.kind == "secret_invalid"
    assert "B_BAD" in result.error.message
    assert not any(name.startswith("secret_") for name in outputs.outputs)


def test_invalid_secret_key(private_key: rsa.RSAPrivateKey) -> None:
    http = MockHttpClient()
    http.set("GET", CONFIG, {"secrets": {"S": _seal("x", private_key)}})

    result, _ = _deliver(http, "bm90IGEga2V5")

    assert isinstance(result, Err)
    assert result.error.kind == "secret_invalid"


def test_fetch_failure_propagates(secret_key: str) -> None:
    result, _ = _deliver(MockHttpClient(), secret_key)
    assert isinstance(result, Err)
    assert result.error.kind == "api_error"
