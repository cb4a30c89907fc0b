import logging
from typing import Any

REQUEST_LOGGER = "docsearch.request"
SEARCH_LOGGER = "docsearch.search"


def setup_logging(log_level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(message)s",
    )


def log_request(data: dict[str, Any]) -> None:
    logging.getLogger(REQUEST_LOGGER).info(data)


def log_search(event: str, **fields: Any) -> None:
    """One structured line per served search page: cache hits and computed misses."""
    logging.getLogger(SEARCH_LOGGER).info({"event": event, **fields})
