import logging
import sys
from controlclin.core.config import settings

# Libraries that are chatty at INFO
QUIET_LOGGERS = ("sqlalchemy.engine", "httpx", "google")

def setup_logging():
    """
    Configure the ``controlclin`` logger: stdout handler, level and format
    from settings. Third-party loggers are held at WARNING.
    """
    logger = logging.getLogger("controlclin")
    logger.setLevel(settings.LOG_LEVEL)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(settings.LOG_LEVEL)
        handler.setFormatter(logging.Formatter(settings.LOG_FORMAT))
        logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger

logger = setup_logging()
