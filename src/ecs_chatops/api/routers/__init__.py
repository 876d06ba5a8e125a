"""
ecs_chatops.api.routers

Router modules mounted by `ecs_chatops.api.app`.
"""
