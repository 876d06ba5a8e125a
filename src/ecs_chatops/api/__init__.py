"""
ecs_chatops.api

HTTP API package (FastAPI).

Responsibilities:
- App composition, dependency wiring and routers.
"""
