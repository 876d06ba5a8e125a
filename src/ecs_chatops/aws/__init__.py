"""
ecs_chatops.aws

AWS client package.

Responsibilities:
- Wrap ECS, EC2 and KMS behind small async interfaces used by the workflow and services.
"""


# --- Module Notes -----------------------------------------------------------
# boto3 clients are built once per process in `aws.clients` and injected; nothing here
# holds a module-level client.
