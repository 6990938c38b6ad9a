import logging
import sys

ROOT_LOGGER = "stretchpy"


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Configures the "stretchpy" logger with a single stdout handler.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)

    # Repeated calls only adjust the level
    if logger.handlers:
        for existing in logger.handlers:
            existing.setLevel(level)
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)

    formatter = logging.Formatter(
        "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Child of the "stretchpy" logger; module names are prefixed once.
    """
    if name:
        if name.startswith(f"{ROOT_LOGGER}."):
            return logging.getLogger(name)
        return logging.getLogger(f"{ROOT_LOGGER}.{name}")
    return logging.getLogger(ROOT_LOGGER)
