"""节点存储模块

提供节点存储抽象与两种实现：
- MemoryNodeStore: 内存存储，适用于测试与单进程场景
- ORMNodeStore: 基于 SQLAlchemy 的持久化存储

使用示例:
    from ytree.store import MemoryNodeStore, ORMNodeStore

    store = MemoryNodeStore()
    store = ORMNodeStore(model=TreeNodeModel)
"""

from .base import BaseNodeStore
from .memory import MemoryNodeStore
from .orm import ORMNodeStore

__all__ = [
    "BaseNodeStore",
    "MemoryNodeStore",
    "ORMNodeStore",
]
