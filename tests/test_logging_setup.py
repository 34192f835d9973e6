import logging

from rich.logging import RichHandler

from ethcrawler.logging_setup import setup_logging


def test_setup_is_idempotent():
    logger = setup_logging("DEBUG")
    setup_logging("WARNING")
    assert sum(isinstance(h, RichHandler) for h in logger.handlers) == 1
    assert logger.level == logging.WARNING


def test_module_loggers_are_children():
    logger = setup_logging("INFO")
    child = logging.getLogger("ethcrawler.application.use_cases")
    assert child.getEffectiveLevel() == logging.INFO
    assert child.parent is logger or child.parent.name.startswith("ethcrawler")
