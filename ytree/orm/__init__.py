"""ORM 模块

提供节点表模型、字段 Mixin 与数据库会话管理。

使用示例:
    from ytree.orm import init_database, db_manager, TreeNodeModel

    init_database(config=settings.database)
    db_manager.create_tables()
"""

from .fields import SortFieldMixin, TreeNodeFieldsMixin
from .models import Base, ForestLockModel, TreeNodeModel
from .db_session import (
    DatabaseManager,
    db_manager,
    init_database,
    get_engine,
    db_session_scope,
)

__all__ = [
    "Base",
    "SortFieldMixin",
    "TreeNodeFieldsMixin",
    "TreeNodeModel",
    "ForestLockModel",

    "DatabaseManager",
    "db_manager",
    "init_database",
    "get_engine",
    "db_session_scope",
]
