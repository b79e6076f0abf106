"""Entry point for running Word Split via ``python -m wordsplit``."""

from __future__ import annotations

import logging

import uvicorn

from .config import Settings


def main() -> None:
    """Start the FastAPI-powered Word Split web server."""

    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    uvicorn.run("wordsplit.ui:app", host=settings.host, port=settings.port, reload=False)


if __name__ == "__main__":
    main()
