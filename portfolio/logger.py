import logging
import sys

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def setup_logger(log_file=None, level=logging.INFO):
    # Named logger shared by the whole pipeline
    logger = logging.getLogger("portfolio")
    logger.setLevel(level)

    formatter = logging.Formatter(LOG_FORMAT)

    # Calling twice must not duplicate handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    # Console
    ch = logging.StreamHandler(sys.stdout)
    ch.setFormatter(formatter)
    logger.addHandler(ch)

    # Optional log file
    if log_file:
        fh = logging.FileHandler(log_file, encoding='utf-8')
        fh.setFormatter(formatter)
        logger.addHandler(fh)

    return logger


# Imported by every module
logger = logging.getLogger("portfolio")
