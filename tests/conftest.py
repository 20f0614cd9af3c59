"""
Pytest 公共配置和 Fixtures

提供测试所需的公共资源：
- 内存数据库引擎与会话
- 内存存储 / ORM 存储
- 同时覆盖两种存储的参数化 store fixture
- TreeManager
"""

import os
import tempfile
from typing import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ytree.config import TreeSettings
from ytree.orm import Base
from ytree.store import MemoryNodeStore, ORMNodeStore
from ytree.tree import TreeManager


# ==================== 基础 Fixtures ====================

@pytest.fixture(scope="session")
def temp_dir():
    """创建临时目录"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def temp_file(temp_dir):
    """创建临时文件的工厂函数"""
    created_files = []

    def _create_file(filename: str, content: str = "") -> str:
        filepath = os.path.join(temp_dir, filename)
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(content)
        created_files.append(filepath)
        return filepath

    yield _create_file

    for f in created_files:
        if os.path.exists(f):
            os.remove(f)


# ==================== 数据库 Fixtures ====================

@pytest.fixture(scope="function")
def memory_engine():
    """创建内存数据库引擎

    使用 StaticPool 和 check_same_thread=False 确保：
    1. 所有操作使用同一个连接（StaticPool）
    2. 允许跨线程访问（TestClient 在其他线程执行同步代码）
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def orm_session(memory_engine) -> Generator[Session, None, None]:
    """创建数据库会话"""
    SessionLocal = sessionmaker(autoflush=True, bind=memory_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


# ==================== 存储 Fixtures ====================

@pytest.fixture
def memory_store() -> MemoryNodeStore:
    """内存存储"""
    return MemoryNodeStore()


@pytest.fixture
def orm_store(orm_session) -> ORMNodeStore:
    """ORM 存储（SQLite 内存库）"""
    return ORMNodeStore(session=orm_session)


@pytest.fixture(params=["memory", "orm"])
def store(request):
    """同时在内存存储与 ORM 存储上运行的存储 fixture"""
    if request.param == "memory":
        return request.getfixturevalue("memory_store")
    return request.getfixturevalue("orm_store")


# ==================== 管理器 Fixtures ====================

@pytest.fixture
def tree_settings() -> TreeSettings:
    """默认树形配置（不读取环境变量中的覆盖值）"""
    return TreeSettings(
        forests=["category", "header", "footer"],
        cascade_delete=False,
        auto_slug=True,
    )


@pytest.fixture
def manager(store, tree_settings) -> TreeManager:
    """基于参数化存储的 TreeManager"""
    return TreeManager(store, tree_settings)
