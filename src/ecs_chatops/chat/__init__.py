"""
ecs_chatops.chat

Slack boundary package.

Responsibilities:
- Post messages, verify inbound requests and parse Events API envelopes.
"""
