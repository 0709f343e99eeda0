import logging
from contextlib import contextmanager

from bucketlist.logging_config import QUIET_LOGGERS, setup_logging


@contextmanager
def bare_root():
    """Root logger without handlers; handlers and levels restored on exit."""
    root = logging.getLogger()
    saved_handlers = root.handlers
    levels = {name: logging.getLogger(name).level for name in ("", *QUIET_LOGGERS)}
    root.handlers = []
    try:
        yield root
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers = saved_handlers
        for name, level in levels.items():
            logging.getLogger(name).setLevel(level)


def test_setup_logging_writes_console_and_file(tmp_path):
    logfile = tmp_path / "logs" / "api.log"
    with bare_root() as root:
        setup_logging("warning", str(logfile))

        assert root.level == logging.WARNING
        assert len(root.handlers) == 2
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING

        logging.getLogger("bucketlist.test").warning("Destination %s deleted", "abc")
        for handler in root.handlers:
            handler.flush()
        assert "[WARNING] bucketlist.test: Destination abc deleted" in logfile.read_text()

        setup_logging("debug")
        assert len(root.handlers) == 2
        assert root.level == logging.WARNING


def test_unknown_level_falls_back_to_info():
    with bare_root() as root:
        setup_logging("chatty")
        assert root.level == logging.INFO
        assert len(root.handlers) == 1
