"""
ecs_chatops.workflow

Deployment workflow package (stateless state machine).

Responsibilities:
- Step/action types, the task-family naming policy, the message codec and the driver.
"""


# --- Module Notes -----------------------------------------------------------
# Call sites should go through `services.dispatcher`; nothing here touches HTTP or boto3.
