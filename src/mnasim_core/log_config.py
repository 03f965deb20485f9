# src/mnasim_core/log_config.py
import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)-5.5s] [%(name)s] %(message)s"


def setup_logging(level=logging.INFO, stream=None):
    """
    Configures the package logger to write to stdout (or the given stream).

    Only the 'mnasim_core' logger is touched, so an embedding application keeps
    control over the root logger. Calling this again replaces the handler
    instead of stacking a second one.
    """
    package_logger = logging.getLogger("mnasim_core")

    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger.setLevel(level)
    package_logger.addHandler(console_handler)
    package_logger.debug("Logging configured.")
