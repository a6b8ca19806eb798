# app/logging_config.py — Root logging setup

import logging
import sys


def configure_logging(level: str = "INFO") -> None:
    """Call once at startup; module loggers use logging.getLogger(__name__)."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
