"""Salted PBKDF2-SHA256 password hashes.

Encoded form: ``pbkdf2_sha256$<iterations>$<salt hex>$<digest hex>``.
Derivation runs in a worker thread so a login never stalls the event loop.
"""
from __future__ import annotations

import asyncio
import hashlib
import hmac
import secrets

ALGORITHM = "pbkdf2_sha256"
SALT_BYTES = 16


class Pbkdf2PasswordHasher:
    def __init__(self, iterations: int) -> None:
        self._iterations = iterations

    async def hash(self, password: str) -> str:
        salt = secrets.token_bytes(SALT_BYTES)
        digest = await asyncio.to_thread(_derive, password, salt, self._iterations)
        return f"{ALGORITHM}${self._iterations}${salt.hex()}${digest.hex()}"

    async def verify(self, password: str, encoded: str | None) -> bool:
        """Check ``password`` against ``encoded``.

        ``None`` (no such account) still pays for a full derivation and
        returns False, so callers take the same time either way.
        """
        if encoded is None:
            await asyncio.to_thread(
                _derive, password, secrets.token_bytes(SALT_BYTES), self._iterations,
            )
            return False
        try:
            algorithm, iterations_raw, salt_hex, digest_hex = encoded.split("$")
            iterations = int(iterations_raw)
            salt = bytes.fromhex(salt_hex)
            expected = bytes.fromhex(digest_hex)
        except ValueError:
            return False
        if algorithm != ALGORITHM:
            return False
        digest = await asyncio.to_thread(_derive, password, salt, iterations)
        return hmac.compare_digest(digest, expected)


def _derive(password: str, salt: bytes, iterations: int) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
