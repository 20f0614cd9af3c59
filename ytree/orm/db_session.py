"""
数据库会话管理模块

提供数据库引擎创建、会话管理等功能。

公开 API:
- db_manager: 数据库管理器单例
- init_database(): 初始化数据库连接
- get_engine(): 获取数据库引擎
- db_session_scope(): 非 HTTP 场景的上下文管理器
"""

import logging
import os
from contextlib import contextmanager
from typing import Any, Callable, Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, scoped_session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from ytree.log import get_logger

_logger = get_logger("ytree.orm.session")

__all__ = [
    'DatabaseManager',
    'db_manager',
    'init_database',
    'get_engine',
    'db_session_scope',
]


class DatabaseManager:
    """数据库管理器（单例）

    封装数据库连接状态和会话管理。

    使用示例:
        from ytree.orm import db_manager

        db_manager.init(database_url="sqlite:///./shop.db")
        db_manager.create_tables()

        session = db_manager.get_session()
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._engine = None
        self._session_scope = None
        self._session_maker = None
        self._initialized = True

    # ==================== 属性访问 ====================

    @property
    def engine(self):
        """获取数据库引擎（只读）

        Raises:
            RuntimeError: 数据库未初始化时
        """
        if self._engine is None:
            raise RuntimeError("数据库未初始化，请先调用 init_database()")
        return self._engine

    @property
    def session_scope(self):
        """获取 scoped session（只读）"""
        if self._session_scope is None:
            raise RuntimeError("数据库未初始化，请先调用 init_database()")
        return self._session_scope

    @property
    def is_initialized(self) -> bool:
        """检查数据库是否已初始化"""
        return self._engine is not None and self._session_scope is not None

    # ==================== 核心方法 ====================

    def init(
        self,
        database_url: str = None,
        echo: bool = False,
        pool_size: int = 5,
        max_overflow: int = 10,
        pool_timeout: int = 30,
        pool_recycle: int = 3600,
        pool_pre_ping: bool = True,
        logger: logging.Logger = None,
        scopefunc: Callable = None,
        config: Any = None,
    ):
        """初始化数据库连接

        Args:
            database_url: 数据库连接URL（如果提供 config 则忽略）
            echo: 是否输出SQL语句（如果提供 config 则忽略）
            pool_size: 连接池大小（如果提供 config 则忽略）
            max_overflow: 最大溢出连接数（如果提供 config 则忽略）
            pool_timeout: 连接超时时间（如果提供 config 则忽略）
            pool_recycle: 连接回收时间（如果提供 config 则忽略）
            pool_pre_ping: 连接前是否ping（如果提供 config 则忽略）
            logger: 日志记录器
            scopefunc: session 作用域函数，默认按线程隔离
            config: 数据库配置对象（DatabaseSettings），提供后自动提取配置

        Returns:
            tuple: (engine, session_scope)

        使用示例:
            engine, session = init_database(database_url="sqlite:///./shop.db")

            engine, session = init_database(config=settings.database)
        """
        if config is not None:
            database_url = getattr(config, "url", database_url)
            echo = getattr(config, "echo", echo)
            pool_size = getattr(config, "pool_size", pool_size)
            max_overflow = getattr(config, "max_overflow", max_overflow)
            pool_timeout = getattr(config, "pool_timeout", pool_timeout)
            pool_recycle = getattr(config, "pool_recycle", pool_recycle)
            pool_pre_ping = getattr(config, "pool_pre_ping", pool_pre_ping)

        if not database_url:
            raise ValueError("database_url 是必需的，请通过参数或 config 提供")

        if logger is None:
            logger = _logger

        logger.info(f"数据库配置URL: {database_url}")

        if database_url.startswith("sqlite:///"):
            db_path = database_url[len("sqlite:///"):]
            is_memory_db = db_path == ":memory:" or db_path == ""

            if is_memory_db:
                # 内存数据库：使用 StaticPool（单连接），否则每个连接看到的是不同的库
                self._engine = create_engine(
                    database_url,
                    echo=echo,
                    connect_args={"check_same_thread": False},
                    poolclass=StaticPool,
                )
                logger.info("SQLite内存数据库引擎创建成功（StaticPool）")
            else:
                logger.info(f"SQLite文件数据库路径: {os.path.abspath(db_path)}")
                self._engine = create_engine(
                    database_url,
                    echo=echo,
                    connect_args={
                        "check_same_thread": False,
                        "timeout": pool_timeout
                    },
                    poolclass=QueuePool,
                    pool_size=pool_size,
                    max_overflow=max_overflow,
                    pool_timeout=pool_timeout,
                    pool_pre_ping=pool_pre_ping,
                    pool_recycle=pool_recycle
                )
                logger.info(f"SQLite文件数据库引擎创建成功（QueuePool, pool_size={pool_size}）")
        else:
            self._engine = create_engine(
                database_url,
                echo=echo,
                pool_pre_ping=pool_pre_ping,
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_timeout=pool_timeout,
                pool_recycle=pool_recycle
            )
            logger.info("数据库引擎创建成功")

        self._session_maker = sessionmaker(
            autocommit=False,
            autoflush=True,
            bind=self._engine,
        )
        self._session_scope = scoped_session(self._session_maker, scopefunc=scopefunc)

        logger.info("数据库session创建成功")
        return self._engine, self._session_scope

    def get_session(self) -> Session:
        """获取当前作用域的 session

        直接使用时需要自行提交/回滚，并在结束时调用 cleanup()。
        推荐使用 db_session_scope() 上下文管理器。
        """
        if self._session_scope is None:
            raise RuntimeError("数据库未初始化，请先调用 init_database()")
        return self._session_scope()

    def create_tables(self, base: Any = None):
        """根据模型元数据建表（已存在的表跳过）

        Args:
            base: 声明基类，默认使用 ytree.orm.Base
        """
        if base is None:
            from .models import Base as base
        base.metadata.create_all(bind=self.engine)
        _logger.info("数据表创建完成")

    def cleanup(self):
        """清理当前作用域的 session（幂等，多次调用安全）

        未提交的更改会被回滚，随后归还连接到连接池。
        """
        if self._session_scope is None or not self._session_scope.registry.has():
            return

        session = self._session_scope()
        if session.dirty or session.new or session.deleted:
            _logger.warning("session 存在未提交的更改，已回滚")
            session.rollback()
        self._session_scope.remove()

    def dispose(self):
        """释放引擎与 session（主要用于测试之间重置状态）"""
        self.cleanup()
        if self._engine is not None:
            self._engine.dispose()
        self._engine = None
        self._session_scope = None
        self._session_maker = None


# ==================== 全局单例 ====================

db_manager = DatabaseManager()


# ==================== 公开 API 函数 ====================

def init_database(
    database_url: str = None,
    echo: bool = False,
    pool_size: int = 5,
    max_overflow: int = 10,
    pool_timeout: int = 30,
    pool_recycle: int = 3600,
    pool_pre_ping: bool = True,
    logger: logging.Logger = None,
    scopefunc: Callable = None,
    config: Any = None,
):
    """初始化数据库连接

    这是 db_manager.init() 的便捷包装函数。

    Returns:
        tuple: (engine, session_scope)
    """
    return db_manager.init(
        database_url=database_url,
        echo=echo,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_timeout=pool_timeout,
        pool_recycle=pool_recycle,
        pool_pre_ping=pool_pre_ping,
        logger=logger,
        scopefunc=scopefunc,
        config=config,
    )


def get_engine():
    """获取数据库引擎

    Raises:
        RuntimeError: 数据库未初始化时
    """
    return db_manager.engine


@contextmanager
def db_session_scope(auto_commit: bool = True) -> Generator[Session, None, None]:
    """非 HTTP 场景的 session 上下文管理器

    Args:
        auto_commit: 是否自动提交，默认 True

    使用示例:
        with db_session_scope() as session:
            store = ORMNodeStore(session=session, auto_commit=False)
            TreeManager(store).repair_order("category")
        # 自动提交并清理
    """
    session = db_manager.get_session()
    try:
        yield session
        if auto_commit:
            session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        db_manager.cleanup()
