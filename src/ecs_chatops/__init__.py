"""
ecs_chatops

Top-level package for the Slack-driven ECS deployment bot.

Responsibilities:
- Expose package version metadata.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"


# --- Module Notes -----------------------------------------------------------
# Keep this file minimal to avoid import-time side effects (boto3 clients are built lazily).
