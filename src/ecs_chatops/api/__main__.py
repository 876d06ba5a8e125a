"""
ecs_chatops.api.__main__

Entrypoint for running the bot via `python -m ecs_chatops.api`.
"""

from __future__ import annotations

import uvicorn

from ecs_chatops.api.app import create_app
from ecs_chatops.settings import get_settings


def main() -> None:
    settings = get_settings()
    app = create_app(settings=settings)

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,  # structlog
    )


if __name__ == "__main__":
    main()
