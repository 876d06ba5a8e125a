"""
ecs_chatops.chat.verification

Inbound request verification.

Responsibilities:
- Validate Slack's request signature when a signing secret is configured (this also
  bounds replay to Slack's five-minute timestamp window).
- Compare the legacy verification token carried in every payload.
"""

from __future__ import annotations

import hmac
from collections.abc import Mapping

from slack_sdk.signature import SignatureVerifier

from ecs_chatops.errors import VerificationError


class RequestVerifier:
    def __init__(self, *, signing_secret: str | None = None) -> None:
        self._signature = SignatureVerifier(signing_secret) if signing_secret else None

    def verify_signature(self, body: str, headers: Mapping[str, str]) -> None:
        if self._signature is None:
            return
        if not self._signature.is_valid_request(body, dict(headers)):
            raise VerificationError("invalid request signature")


def verify_token(*, expected: str, presented: str | None) -> None:
    if not expected or not presented:
        raise VerificationError("verification token missing")
    if not hmac.compare_digest(expected.encode(), presented.encode()):
        raise VerificationError("verification token mismatch")
