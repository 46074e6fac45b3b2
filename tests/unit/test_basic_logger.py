import logging

from logger.basic_logger import setup_logger


def test_setup_logger():
    logger = setup_logger()
    assert logger.name == "crm_connector"
    assert logger.level == logging.INFO
    stream_handler_exists = any(
        isinstance(handler, logging.StreamHandler)
        for handler in logger.handlers
    )
    assert stream_handler_exists is True


def test_setup_logger_is_idempotent_and_honours_level():
    setup_logger("crm_connector.test", "debug")
    logger = setup_logger("crm_connector.test", "debug")
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1


def test_setup_logger_unknown_level_falls_back_to_info():
    logger = setup_logger("crm_connector.test", "chatty")
    assert logger.level == logging.INFO
