"""Entry point for running researchflow as a module or installed script.

Usage:
    researchflow / python -m researchflow         → web server (uvicorn)
    researchflow <command> ... / python -m researchflow <command> ... → CLI
"""

import logging
import sys

import uvicorn


def _configure_logging() -> None:
    """Configure the root logger once from ``Settings.log_level``."""
    from researchflow.config import Settings

    level = getattr(logging, Settings.load().log_level, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def run() -> None:
    """Entry point: no args → web server, else → CLI."""
    _configure_logging()
    if len(sys.argv) == 1:
        from researchflow.config import Settings

        settings = Settings.load()
        uvicorn.run("researchflow.gui.app:app", host=settings.host, port=settings.port)
    else:
        from researchflow.cli import run_cli
        run_cli()


if __name__ == "__main__":
    run()
