# havendrip/core/logs.py
import logging

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO", debug: bool = False) -> None:
    """Root handler for the service; module loggers are named `havendrip.<area>`."""
    resolved = logging.DEBUG if debug else getattr(logging, (level or "INFO").upper(), logging.INFO)
    logging.basicConfig(level=resolved, format=_FORMAT)
    logging.getLogger("havendrip").setLevel(resolved)
    # The Google client libraries are chatty at DEBUG.
    logging.getLogger("google").setLevel(max(resolved, logging.INFO))
    logging.getLogger("urllib3").setLevel(logging.WARNING)
