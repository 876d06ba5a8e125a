"""
ecs_chatops.aws.secrets

KMS decryption of environment-supplied secrets.

Responsibilities:
- Turn base64 KMS ciphertext (as stored in Lambda/ECS env vars) into plaintext.
- Pass values through untouched when secrets are configured as plaintext (local dev).
"""

from __future__ import annotations

import asyncio
import base64
import binascii
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from ecs_chatops.errors import DecryptionError
from ecs_chatops.observability.logging import get_logger

log = get_logger(__name__)


class SecretDecryptor:
    def __init__(self, *, kms: Any, encrypted: bool = True) -> None:
        self._kms = kms
        self._encrypted = encrypted

    async def decrypt(self, value: str, *, name: str) -> str:
        if not self._encrypted:
            return value
        if not value:
            raise DecryptionError(f"{name} is not configured")
        try:
            blob = base64.b64decode(value, validate=True)
        except binascii.Error as e:
            raise DecryptionError(f"{name} is not valid base64") from e

        try:
            result = await asyncio.to_thread(self._kms.decrypt, CiphertextBlob=blob)
        except (ClientError, BotoCoreError) as e:
            log.error("kms_decrypt_failed", secret=name, error=str(e))
            raise DecryptionError(f"failed to decrypt {name}") from e
        return result["Plaintext"].decode("utf-8")


# --- Module Notes -----------------------------------------------------------
# A failed decrypt fails the invocation; callers never receive an empty credential.
