"""
ecs_chatops.services

Service-layer package.

Responsibilities:
- Own the single inbound dispatch point and map failures to responses.
- Compose AWS clients, chat client and the workflow per invocation.
"""


# --- Module Notes -----------------------------------------------------------
# Services stay free of FastAPI/Lambda types so both ingress adapters can share them.
