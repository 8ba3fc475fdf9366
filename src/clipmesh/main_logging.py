"""Logging configuration for clipmesh CLI.

Every failure the node tolerates surfaces only as a timestamped log line on
stderr, so the format always carries the time.
"""
import logging

LOG_FORMAT: str = "%(asctime)s %(levelname)s: %(message)s"
DATE_FORMAT: str = "%H:%M:%S"


def configure_logging(verbose: bool) -> None:
    """Configure logging level based on verbosity setting.

    Args:
        verbose: If True, set DEBUG level; otherwise INFO level.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=[logging.StreamHandler()],
    )
