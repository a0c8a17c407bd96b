"""
State envelope encryption using AES-256-GCM.

The host and the user's browser carry these envelopes across redirects, so
every blob is authenticated and tagged with a schema version.

Wire format (urlsafe base64, no padding) of the JSON object:
    {"v": 1, "nonce": "...", "ciphertext": "...", "tag": "..."}
"""

import base64
import binascii
import json
import logging
import os
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..errors import ConfigurationError, DecryptionError

_LOG = logging.getLogger(__name__)

ENVELOPE_VERSION = 1
KEY_BYTES = 32
NONCE_BYTES = 12
TAG_BYTES = 16


def _b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64url_decode(text: str) -> bytes:
    padding = "=" * (-len(text) % 4)
    return base64.urlsafe_b64decode(text + padding)


def _associated_data(version: int) -> bytes:
    return f"chat-action-state:v{version}".encode("ascii")


def load_key(key_material_base64: Optional[str]) -> bytes:
    """
    Decode and validate AES-256 key material.

    Raises:
        ConfigurationError: If the key is missing, not base64, or not 32 bytes
    """
    if not key_material_base64:
        _LOG.error("Encryption not correctly configured: CIPHER_MASTER missing")
        raise ConfigurationError("CIPHER_MASTER is not set")

    try:
        key = base64.b64decode(key_material_base64, validate=True)
    except (binascii.Error, ValueError) as e:
        _LOG.error("Encryption not correctly configured: CIPHER_MASTER is not base64")
        raise ConfigurationError("CIPHER_MASTER is not valid base64") from e

    if len(key) != KEY_BYTES:
        _LOG.error("Encryption not correctly configured: CIPHER_MASTER has %d bytes", len(key))
        raise ConfigurationError(f"CIPHER_MASTER must decode to {KEY_BYTES} bytes, got {len(key)}")

    return key


class StateCodec:
    """Encrypt and decrypt opaque state strings.

    Example:
        >>> codec = StateCodec.from_env()
        >>> token = codec.encrypt('{"stateurl": "https://host/callback"}')
        >>> codec.decrypt(token)
        '{"stateurl": "https://host/callback"}'
    """

    def __init__(self, key_material_base64: Optional[str]):
        self._key_material_base64 = key_material_base64

    @classmethod
    def from_env(cls) -> "StateCodec":
        """Build a codec keyed from CIPHER_MASTER."""
        from ..config import Settings

        return cls(Settings.from_env().cipher_master)

    def encrypt(self, plaintext: str) -> str:
        """
        Encrypt plaintext into a URL-safe envelope string.

        Raises:
            ConfigurationError: If key material is not configured
        """
        key = load_key(self._key_material_base64)

        # 96-bit random nonce per envelope
        nonce = os.urandom(NONCE_BYTES)
        sealed = AESGCM(key).encrypt(nonce, plaintext.encode("utf-8"), _associated_data(ENVELOPE_VERSION))

        # AESGCM appends the tag to the ciphertext
        envelope = {
            "v": ENVELOPE_VERSION,
            "nonce": _b64url_encode(nonce),
            "ciphertext": _b64url_encode(sealed[:-TAG_BYTES]),
            "tag": _b64url_encode(sealed[-TAG_BYTES:]),
        }
        return _b64url_encode(json.dumps(envelope, separators=(",", ":")).encode("utf-8"))

    def decrypt(self, ciphertext: str) -> str:
        """
        Decrypt an envelope string produced by encrypt().

        Raises:
            ConfigurationError: If key material is not configured
            DecryptionError: If the envelope is malformed, from an unknown
                version, or fails authentication
        """
        key = load_key(self._key_material_base64)

        if not ciphertext:
            raise DecryptionError("Empty state envelope")

        try:
            envelope = json.loads(_b64url_decode(ciphertext).decode("utf-8"))
            version = envelope["v"]
            nonce = _b64url_decode(envelope["nonce"])
            sealed = _b64url_decode(envelope["ciphertext"]) + _b64url_decode(envelope["tag"])
        except (binascii.Error, ValueError, UnicodeDecodeError, KeyError, TypeError) as e:
            raise DecryptionError(f"Malformed state envelope: {e}") from e

        if version != ENVELOPE_VERSION:
            raise DecryptionError(f"Unsupported state envelope version: {version!r}")
        if len(nonce) != NONCE_BYTES:
            raise DecryptionError("Malformed state envelope: bad nonce length")

        try:
            plaintext = AESGCM(key).decrypt(nonce, sealed, _associated_data(version))
        except InvalidTag as e:
            raise DecryptionError("State envelope failed authentication") from e

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecryptionError("State envelope is not valid UTF-8") from e
