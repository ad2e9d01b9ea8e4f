"""
At-rest protection for user-supplied API keys.

Blobs are AES-256-GCM: base64(nonce(12) || ciphertext || tag(16)). The master
key is padded with "0" or truncated to 32 bytes rather than run through a KDF.
That is weak for a short passphrase, but it is the format existing blobs use;
switching to a real KDF changes the wire format.
"""

from __future__ import annotations

import base64
import binascii
import logging
import os
from dataclasses import dataclass, fields
from typing import Iterable, Mapping, MutableMapping, Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from learning_assistant.core.errors import ConfigurationError, DecryptionError
from learning_assistant.core.interfaces import CredentialStore

logger = logging.getLogger(__name__)

KEY_LENGTH = 32
NONCE_LENGTH = 12
TAG_LENGTH = 16
KEY_FILLER = b"0"

# field name -> storage name
STORAGE_NAMES = {
    "openai_api_key": "encrypted_openai_key",
    "anthropic_api_key": "encrypted_anthropic_key",
    "gemini_api_key": "encrypted_gemini_key",
    "youtube_api_key": "encrypted_youtube_key",
    "google_search_api_key": "encrypted_google_search_key",
    "google_search_engine_id": "encrypted_google_search_engine_id",
}

_PROVIDER_KEY_FIELDS = {
    "openai": "openai_api_key",
    "claude": "anthropic_api_key",
    "gemini": "gemini_api_key",
}


def derive_key(master_key: str) -> bytes:
    raw = master_key.encode("utf-8")
    return raw.ljust(KEY_LENGTH, KEY_FILLER)[:KEY_LENGTH]


class CredentialCodec:
    def __init__(self, master_key: str) -> None:
        self._aead = AESGCM(derive_key(master_key))

    def encrypt(self, plaintext: str) -> str:
        nonce = os.urandom(NONCE_LENGTH)
        # AESGCM appends the tag to the ciphertext.
        sealed = self._aead.encrypt(nonce, plaintext.encode("utf-8"), None)
        return base64.b64encode(nonce + sealed).decode("ascii")

    def decrypt(self, blob: str) -> str:
        try:
            combined = base64.b64decode(blob, validate=True)
        except (binascii.Error, ValueError, TypeError):
            raise DecryptionError() from None

        if len(combined) < NONCE_LENGTH + TAG_LENGTH:
            raise DecryptionError()

        nonce, sealed = combined[:NONCE_LENGTH], combined[NONCE_LENGTH:]
        try:
            plaintext = self._aead.decrypt(nonce, sealed, None)
            return plaintext.decode("utf-8")
        except (InvalidTag, UnicodeDecodeError):
            raise DecryptionError() from None


def encrypt_secret(plaintext: str, master_key: str) -> str:
    return CredentialCodec(master_key).encrypt(plaintext)


def decrypt_secret(blob: str, master_key: str) -> str:
    return CredentialCodec(master_key).decrypt(blob)


@dataclass(frozen=True)
class ApiCredentials:
    """Plaintext keys for one request. Never persisted in this form."""

    openai_api_key: str = ""
    anthropic_api_key: str = ""
    gemini_api_key: str = ""
    youtube_api_key: str = ""
    google_search_api_key: str = ""
    google_search_engine_id: str = ""

    def key_for(self, provider: str) -> str:
        field_name = _PROVIDER_KEY_FIELDS.get(provider)
        if field_name is None:
            raise ConfigurationError(f"Unknown AI provider: {provider}")
        return getattr(self, field_name)

    def configured(self) -> dict[str, bool]:
        return {f.name: bool(getattr(self, f.name)) for f in fields(self)}

    def __repr__(self) -> str:
        flags = ", ".join(f"{k}={'set' if v else 'missing'}" for k, v in self.configured().items())
        return f"ApiCredentials({flags})"


def credentials_from_env() -> ApiCredentials:
    return ApiCredentials(
        openai_api_key=os.getenv("OPENAI_API_KEY", "").strip(),
        anthropic_api_key=os.getenv("ANTHROPIC_API_KEY", "").strip(),
        gemini_api_key=os.getenv("GEMINI_API_KEY", "").strip(),
        youtube_api_key=os.getenv("YOUTUBE_API_KEY", "").strip(),
        google_search_api_key=os.getenv("GOOGLE_SEARCH_API_KEY", "").strip(),
        google_search_engine_id=os.getenv("GOOGLE_SEARCH_ENGINE_ID", "").strip(),
    )


class MappingCredentialStore(CredentialStore):
    """CredentialStore over any mutable mapping, e.g. a dict or session state."""

    def __init__(self, backing: Optional[MutableMapping[str, str]] = None) -> None:
        self._backing = backing if backing is not None else {}

    def get(self, name: str) -> Optional[str]:
        return self._backing.get(name) or None

    def set(self, name: str, blob: str) -> None:
        self._backing[name] = blob

    def delete(self, name: str) -> None:
        self._backing.pop(name, None)


def save_credential(
    store: CredentialStore, codec: CredentialCodec, field_name: str, plaintext: str
) -> None:
    """Encrypt and store one credential. Empty plaintext clears it."""
    storage_name = STORAGE_NAMES.get(field_name)
    if storage_name is None:
        raise ConfigurationError(f"Unknown credential field: {field_name}")

    plaintext = (plaintext or "").strip()
    if not plaintext:
        store.delete(storage_name)
        return
    store.set(storage_name, codec.encrypt(plaintext))


def update_credentials(
    store: CredentialStore,
    codec: CredentialCodec,
    entered: Mapping[str, str],
    remove: Iterable[str] = (),
) -> None:
    """
    Apply a settings form. Empty fields keep their stored value; only fields
    named in remove are cleared.
    """
    remove = set(remove)
    for field_name in remove:
        save_credential(store, codec, field_name, "")
    for field_name, value in entered.items():
        if field_name in remove or not (value or "").strip():
            continue
        save_credential(store, codec, field_name, value)


def load_credentials(store: CredentialStore, codec: CredentialCodec) -> ApiCredentials:
    """
    Decrypt every stored credential.

    A single bad blob fails the whole load with DecryptionError so callers
    never proceed with a partially decrypted bundle.
    """
    values: dict[str, str] = {}
    for field_name, storage_name in STORAGE_NAMES.items():
        blob = store.get(storage_name)
        if not blob:
            continue
        try:
            values[field_name] = codec.decrypt(blob)
        except DecryptionError:
            logger.error("Stored credential %s could not be decrypted", storage_name)
            raise
    return ApiCredentials(**values)
