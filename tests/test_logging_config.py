import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from omniscient.logging_config import LOGGER_NAME, configure_logging, remove_handlers


def test_file_handler_writes_info(tmp_path: Path) -> None:
    log_path = tmp_path / "logs" / "omniscient.log"
    handlers = configure_logging(verbose=False, log_path=str(log_path))
    try:
        assert len(handlers) == 1
        assert isinstance(handlers[0], RotatingFileHandler)
        logging.getLogger("omniscient.store.merge").info("merged 3 commands")
        logging.getLogger("omniscient.store.search").debug("not written")
        handlers[0].flush()
    finally:
        remove_handlers(handlers)

    text = log_path.read_text()
    assert "merged 3 commands" in text
    assert "not written" not in text


def test_verbose_adds_stderr_handler(tmp_path: Path) -> None:
    handlers = configure_logging(verbose=True, log_path=None)
    try:
        assert len(handlers) == 1
        assert handlers[0].level == logging.DEBUG
        assert logging.getLogger(LOGGER_NAME).level == logging.DEBUG
    finally:
        remove_handlers(handlers)
    assert handlers[0] not in logging.getLogger(LOGGER_NAME).handlers


def test_unwritable_log_path_is_ignored(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("")
    handlers = configure_logging(log_path=str(blocker / "sub" / "omniscient.log"))
    assert handlers == []
