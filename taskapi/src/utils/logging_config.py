import logging
import sys


def configure_logging(level=logging.INFO) -> None:
    """Attach one stdout handler to the root logger; later calls only adjust the level."""
    logger = logging.getLogger()
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger.setLevel(level)
    if logger.handlers:
        return  # Already configured (tests, reloader, gunicorn)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(
        '%(asctime)s %(levelname)s %(name)s - %(message)s'
    ))
    logger.addHandler(handler)
