"""Summary: Token encoding utilities for the local identity provider.

Importance: Issues tamper-evident bearer tokens for development without a hosted provider.
Alternatives: Use a JWT library or the Firebase Auth emulator.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
from typing import Any


class TokenCodecError(ValueError):
    """Summary: Raised when a token cannot be decoded or fails its signature check."""


class TokenCodec:
    """Summary: Minimal signed token encoder/decoder.

    Importance: Keeps local tokens opaque and rejects modified payloads.
    Alternatives: Use a proper JOSE implementation with key rotation.
    """

    def __init__(self, secret: str) -> None:
        """Summary: Initialize with a secret used for the keystream and signature.

        Importance: Keeps token encoding consistent per deployment.
        Alternatives: Generate per-token secrets and store securely.
        """

        self._secret = (secret or "smartlist").encode("utf-8")

    def encode(self, plaintext: str) -> str:
        """Summary: Encode plaintext into an obfuscated string."""

        raw = plaintext.encode("utf-8")
        key = _keystream(self._secret, len(raw))
        obfuscated = bytes([b ^ k for b, k in zip(raw, key)])
        return base64.urlsafe_b64encode(obfuscated).decode("utf-8")

    def decode(self, payload: str) -> str:
        """Summary: Decode an obfuscated string back to plaintext."""

        try:
            raw = base64.urlsafe_b64decode(payload.encode("utf-8"))
        except (binascii.Error, ValueError) as exc:
            raise TokenCodecError("Malformed token payload") from exc
        key = _keystream(self._secret, len(raw))
        plaintext = bytes([b ^ k for b, k in zip(raw, key)])
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise TokenCodecError("Malformed token payload") from exc

    def sign_claims(self, claims: dict[str, Any]) -> str:
        """Summary: Serialize claims into an encoded payload with an HMAC signature.

        Importance: Produces bearer tokens that the codec can later verify.
        Alternatives: Store issued tokens server-side and look them up.
        """

        payload = self.encode(json.dumps(claims, sort_keys=True))
        return f"{payload}.{self._signature(payload)}"

    def verify_claims(self, token: str) -> dict[str, Any]:
        """Summary: Verify a signed token and return its claims.

        Importance: Rejects forged or truncated tokens before any claim is trusted.
        Alternatives: Trust decoded payloads without a signature.
        """

        payload, _, signature = token.partition(".")
        if not payload or not signature:
            raise TokenCodecError("Token is missing its signature")
        if not hmac.compare_digest(signature, self._signature(payload)):
            raise TokenCodecError("Token signature mismatch")
        try:
            claims = json.loads(self.decode(payload))
        except json.JSONDecodeError as exc:
            raise TokenCodecError("Token claims are not valid JSON") from exc
        if not isinstance(claims, dict):
            raise TokenCodecError("Token claims must be an object")
        return claims

    def _signature(self, payload: str) -> str:
        return hmac.new(self._secret, payload.encode("utf-8"), hashlib.sha256).hexdigest()


def _keystream(secret: bytes, length: int) -> bytes:
    """Summary: Derive a deterministic keystream from a secret.

    Importance: Keeps encoding reversible without external dependencies.
    Alternatives: Use a proper stream cipher.
    """

    output = b""
    counter = 0
    while len(output) < length:
        counter_bytes = counter.to_bytes(4, "big")
        output += hashlib.sha256(secret + counter_bytes).digest()
        counter += 1
    return output[:length]
