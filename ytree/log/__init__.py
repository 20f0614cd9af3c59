"""日志模块

使用示例:
    from ytree.log import setup_logger, setup_root_logger, get_logger

    setup_root_logger(config=settings.logging)
    logger = get_logger()
"""

from .logger import (
    setup_logger,
    setup_root_logger,
    create_formatter,
    MicrosecondFormatter,
    DEFAULT_LOG_FORMAT,
    tree_logger,
    store_logger,
    logger,
    get_logger,
)

__all__ = [
    "setup_logger",
    "setup_root_logger",
    "create_formatter",
    "MicrosecondFormatter",
    "DEFAULT_LOG_FORMAT",
    "tree_logger",
    "store_logger",
    "logger",
    "get_logger",
]
