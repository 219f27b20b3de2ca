import logging
import sys

from pythonjsonlogger import jsonlogger


def setup_logging(level: str = "INFO"):
    """
    Configures structured JSON logging for applications using this package.

    Installs a JSON formatter with timestamp, level, logger name and message
    on a stdout stream handler, replacing the root logger's handlers. Context
    passed through ``extra`` is rendered as additional JSON fields.

    Library modules never call this; it is meant for entry points.

    Returns:
        logging.Logger: The configured root logger instance.
    """
    formatter = jsonlogger.JsonFormatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s"
    )
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers = []
    root_logger.addHandler(stream_handler)

    for logger_name in ["botocore", "urllib3", "httpx"]:
        # vendor SDKs log every request at INFO/DEBUG
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    return root_logger
