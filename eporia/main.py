"""
Eporia Playlist Service entry point.

Runs the FastAPI backend under uvicorn with host, port and log level taken
from the environment (see ``AppSettings``).
"""

import uvicorn

from .config import AppSettings


def main() -> None:
    settings = AppSettings.from_env()
    uvicorn.run(
        "eporia.api.backend:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    main()
