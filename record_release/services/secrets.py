"""Hybrid decryption of ledger secrets (RSA-OAEP key wrap + AES-256-GCM).

The ledger stores, per secret, ``{iv, encryptedKey, encryptedValue}`` (all
base64): a random AES-256 key wrapped under the project's RSA public key
(OAEP, SHA-256) and the value encrypted with AES-GCM, tag appended. Only the
job holding the private key can recover plaintext.
"""

from __future__ import annotations

import base64
import binascii
import json

from cryptography.exceptions import InvalidTag, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from record_release.core.result import Err, Ok, Result
from record_release.core.structured import as_str_dict, get_str
from record_release.release.errors import ReleaseError

__all__ = ["decrypt_secret", "load_private_key", "AUTH_TAG_SIZE"]

AUTH_TAG_SIZE = 16
_AES_KEY_SIZE = 32


def _invalid(message: str) -> Err[ReleaseError]:
    return Err(ReleaseError(kind="secret_invalid", message=message))


def _b64(value: str) -> bytes:
    return base64.b64decode(value, validate=True)


def load_private_key(material: str) -> Result[rsa.RSAPrivateKey, ReleaseError]:
    """Load the RSA private key.

    Accepts base64-encoded PKCS#8 DER (the format the ledger exports) or a
    PEM block.
    """
    text = material.strip()
    try:
        if text.startswith("-----BEGIN"):
            key = serialization.load_pem_private_key(text.encode("ascii"), password=None)
        else:
            key = serialization.load_der_private_key(_b64("".join(text.split())), password=None)
    except (binascii.Error, ValueError, TypeError, UnicodeEncodeError, UnsupportedAlgorithm) as e:
        return _invalid(f"invalid secret key: {e}")

    if not isinstance(key, rsa.RSAPrivateKey):
        return _invalid("invalid secret key: not an RSA private key")
    return Ok(key)


def decrypt_secret(encrypted_json: str, private_key: rsa.RSAPrivateKey) -> Result[str, ReleaseError]:
    """Recover one secret value.

    Fails as a whole on any malformed field, key mismatch or authentication
    failure; unauthenticated bytes are never returned.
    """
    try:
        data = as_str_dict(json.loads(encrypted_json))
    except json.JSONDecodeError as e:
        return _invalid(f"encrypted secret is not valid JSON: {e}")
    if data is None:
        return _invalid("encrypted secret is not a JSON object")

    iv_b64 = get_str(data, "iv")
    key_b64 = get_str(data, "encryptedKey")
    value_b64 = get_str(data, "encryptedValue")
    if iv_b64 is None or key_b64 is None or value_b64 is None:
        return _invalid("encrypted secret requires iv, encryptedKey and encryptedValue")

    try:
        iv = _b64(iv_b64)
        wrapped_key = _b64(key_b64)
        sealed = _b64(value_b64)
    except (binascii.Error, ValueError) as e:
        return _invalid(f"encrypted secret is not valid base64: {e}")

    if len(sealed) < AUTH_TAG_SIZE:
        return _invalid("encrypted value is shorter than its authentication tag")
    if not iv:
        return _invalid("encrypted secret has an empty iv")

    try:
        aes_key = private_key.decrypt(
            wrapped_key,
            padding.OAEP(
                mgf=padding.MGF1(algorithm=hashes.SHA256()),
                algorithm=hashes.SHA256(),
                label=None,
            ),
        )
    except ValueError:
        return _invalid("failed to unwrap secret key (wrong private key?)")
    if len(aes_key) != _AES_KEY_SIZE:
        return _invalid("unwrapped key is not an AES-256 key")

    # The wire layout (tag appended to the ciphertext) is what AESGCM expects.
    try:
        plaintext = AESGCM(aes_key).decrypt(iv, sealed, None)
    except InvalidTag:
        return _invalid("secret failed authentication")
    except ValueError as e:
        return _invalid(f"invalid iv: {e}")

    try:
        return Ok(plaintext.decode("utf-8"))
    except UnicodeDecodeError:
        return _invalid("decrypted secret is not UTF-8")
