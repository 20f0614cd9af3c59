"""日志模块测试"""

import logging
import logging.handlers
import re

import pytest

from ytree.config import LoggingSettings
from ytree.log import (
    DEFAULT_LOG_FORMAT,
    MicrosecondFormatter,
    create_formatter,
    get_logger,
    setup_logger,
    setup_root_logger,
)


@pytest.fixture
def restore_root_logger():
    """测试结束后恢复根日志器的处理器与级别"""
    root = logging.getLogger()
    handlers, level, propagate = list(root.handlers), root.level, root.propagate
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    root.propagate = propagate


class TestGetLogger:
    """get_logger 测试"""

    def test_infers_module_name(self):
        """无参数时使用调用方模块名"""
        assert get_logger().name == __name__

    def test_short_name_prefixed(self):
        assert get_logger("tree").name == "ytree.tree"

    def test_dotted_name_kept(self):
        assert get_logger("sqlalchemy.engine").name == "sqlalchemy.engine"
        assert get_logger("ytree.store").name == "ytree.store"


class TestFormatter:
    """格式化器测试"""

    def test_microsecond_formatter(self):
        formatter = create_formatter()
        record = logging.LogRecord("t", logging.INFO, __file__, 1, "hello", None, None)

        output = formatter.format(record)

        assert isinstance(formatter, MicrosecondFormatter)
        assert re.match(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\.\d{6} - INFO - t - ", output)
        assert output.endswith("hello")

    def test_plain_formatter(self):
        formatter = create_formatter("%(message)s", use_microseconds=False)

        assert not isinstance(formatter, MicrosecondFormatter)
        assert "%(levelname)s" in DEFAULT_LOG_FORMAT


class TestSetupLogger:
    """setup_logger 测试"""

    def test_console_handler(self):
        logger = setup_logger("ytree_test.console", level="DEBUG")

        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], logging.StreamHandler)

    def test_repeated_setup_does_not_duplicate(self):
        setup_logger("ytree_test.repeat")
        logger = setup_logger("ytree_test.repeat")

        assert len(logger.handlers) == 1

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "tree.log"
        logger = setup_logger("ytree_test.file", log_file=str(log_file), console=False)

        logger.info("节点已创建")
        for handler in logger.handlers:
            handler.flush()
            handler.close()

        assert isinstance(logger.handlers[0], logging.FileHandler)
        assert "节点已创建" in log_file.read_text(encoding="utf-8")
        logger.handlers.clear()

    def test_rotating_file_handler(self, tmp_path):
        logger = setup_logger(
            "ytree_test.rotating",
            log_file=str(tmp_path / "tree.log"),
            console=False,
            max_bytes=1024,
            backup_count=2,
        )

        handler = logger.handlers[0]
        assert isinstance(handler, logging.handlers.RotatingFileHandler)
        assert handler.maxBytes == 1024
        assert handler.backupCount == 2
        handler.close()
        logger.handlers.clear()


class TestSetupRootLogger:
    """setup_root_logger 测试"""

    def test_from_config(self, tmp_path, restore_root_logger):
        config = LoggingSettings(
            level="WARNING",
            file_path=str(tmp_path / "app.log"),
            file_max_bytes="1MB",
            file_backup_count=3,
            enable_console=False,
        )

        root = setup_root_logger(config=config)

        assert root is logging.getLogger()
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        handler = root.handlers[0]
        assert isinstance(handler, logging.handlers.RotatingFileHandler)
        assert handler.maxBytes == 1024 * 1024
        assert handler.backupCount == 3
