"""
ecs_chatops.observability

Observability package.

Responsibilities:
- Structured logging configuration.
- Request context propagation (request id, Slack retry headers) for log enrichment.
"""
