"""Logging setup for the gallery package."""

import logging


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Attach a stream handler to the ``gallery`` logger once."""
    logger = logging.getLogger("gallery")
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(level.upper())
    return logger
