import logging


def setup_logger(name: str = "crm_connector", level: str = "INFO"):
    logger = logging.getLogger(name)
    logger.propagate = False

    # loggers are singletons so clear handlers to prevent duplicate lines
    logger.handlers.clear()
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    formatter = logging.Formatter(
        "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
    )
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger
