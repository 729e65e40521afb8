"""
Run the task tracker API with uvicorn on BIND_ADDR.

Usage: python run_server.py
"""

from __future__ import annotations

from uvicorn import Config, Server

from taskapi.core.config import get_settings


def main() -> None:
    settings = get_settings()
    config = Config(
        app="taskapi.main:create_app",
        factory=True,
        host=settings.bind_host,
        port=settings.bind_port,
        log_config=None,
    )

    server = Server(config=config)
    server.run()


if __name__ == "__main__":
    main()
