import logging
from logging.handlers import RotatingFileHandler

import pytest

from ascii_mosaic.config import Config
from ascii_mosaic.logging_conf import PACKAGE_LOGGER, setup_logging


@pytest.fixture
def pkg_logger():
    logger = logging.getLogger(PACKAGE_LOGGER)
    level = logger.level
    yield logger
    for h in [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]:
        logger.removeHandler(h)
        h.close()
    logger.setLevel(level)


def test_file_logging_is_not_duplicated(tmp_path, pkg_logger):
    log_path = tmp_path / "mosaic.log"
    cfg = Config.load(str(tmp_path / "cfg.json"), create_if_missing=False)
    cfg.update({"logging": {"file": str(log_path), "level": "DEBUG"}})

    setup_logging(cfg)
    setup_logging(cfg)
    files = [h for h in pkg_logger.handlers if isinstance(h, RotatingFileHandler)]
    assert len(files) == 1

    logging.getLogger("ascii_mosaic.test").info("hello from the test")
    files[0].flush()
    assert log_path.read_text(encoding="utf-8").count("hello from the test") == 1


def test_level_override_wins(tmp_path, pkg_logger):
    cfg = Config.load(str(tmp_path / "cfg.json"), create_if_missing=False)
    setup_logging(cfg, "warning")
    assert pkg_logger.level == logging.WARNING
    assert logging.getLogger("PIL").level >= logging.INFO
