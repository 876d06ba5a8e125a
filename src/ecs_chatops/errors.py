"""
ecs_chatops.errors

Domain-specific exceptions shared across the AWS, chat and workflow layers.

Responsibilities:
- Give every failure kind a distinct type so the dispatcher can log and map it.
- Carry the control plane's own error code taxonomy for operator logs.
"""

from __future__ import annotations


class ChatOpsError(Exception):
    """
    Base class for all failures that abort an invocation.
    """

    kind = "chatops_error"


class ControlPlaneError(ChatOpsError):
    """
    Transport, auth or semantic rejection from the orchestration platform.
    """

    kind = "control_plane_error"

    def __init__(self, message: str, *, operation: str, code: str = "Unknown") -> None:
        super().__init__(message)
        self.operation = operation
        self.code = code


class MalformedPayloadError(ChatOpsError):
    """
    Inbound event is missing the fields the current step needs.
    """

    kind = "malformed_payload"


class InvalidStateError(ChatOpsError):
    """
    The step token carried by the message is absent or inconsistent with the action.
    """

    kind = "invalid_state"


class DecryptionError(ChatOpsError):
    kind = "decryption_error"


class VerificationError(ChatOpsError):
    """
    Request did not come from the chat platform (bad token or signature).
    """

    kind = "verification_error"


class ChatPlatformError(ChatOpsError):
    kind = "chat_platform_error"


# --- Module Notes -----------------------------------------------------------
# Nothing in the core retries; these propagate to `services.dispatcher`, which is the only
# place that turns them into responses.
