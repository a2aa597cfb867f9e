from __future__ import annotations

import logging

NOISY_LIBRARIES = (
    "openai",
    "httpx",
    "httpcore",
    "redis",
)


def configure_logging(level_name: str) -> logging.Logger:
    level = getattr(logging, level_name, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-7s %(name)s %(message)s",
    )
    # Client libraries log request bodies at DEBUG; never go below WARNING for them.
    for lib in NOISY_LIBRARIES:
        logging.getLogger(lib).setLevel(max(level, logging.WARNING))

    return logging.getLogger(__name__)
