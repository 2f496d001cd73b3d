import logging
import sys

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach a stdout handler to the ``classgrid`` logger tree.

    Safe to call more than once; the handler is only installed the first time.
    """
    logger = logging.getLogger("classgrid")
    logger.setLevel(level.upper())

    # Prevent duplicate handlers if the app is created multiple times
    if not logger.handlers:
        stream_handler = logging.StreamHandler(sys.stdout)
        stream_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(stream_handler)
    return logger
