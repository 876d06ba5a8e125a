"""
ecs_chatops.aws.clients

Factory for the boto3 clients the bot needs.

Responsibilities:
- Apply region, timeouts and retry mode from settings via botocore `Config`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import boto3
from botocore.config import Config

from ecs_chatops.settings import Settings


@dataclass(frozen=True, slots=True)
class AwsClients:
    ecs: Any
    ec2: Any
    kms: Any


def build_clients(settings: Settings) -> AwsClients:
    config = Config(
        region_name=settings.region,
        connect_timeout=settings.aws_connect_timeout,
        read_timeout=settings.aws_read_timeout,
        retries={"max_attempts": settings.aws_max_attempts, "mode": "standard"},
    )
    # A session per factory call; boto3 clients (unlike sessions) are safe to share across threads.
    session = boto3.session.Session(region_name=settings.region)
    return AwsClients(
        ecs=session.client("ecs", config=config),
        ec2=session.client("ec2", config=config),
        kms=session.client("kms", config=config),
    )
