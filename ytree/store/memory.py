"""内存节点存储

适用于单进程、开发测试场景，应用重启后数据丢失。
"""

import threading
from contextlib import contextmanager
from dataclasses import fields as dataclass_fields
from datetime import datetime
from typing import Any, Dict, Iterable, Iterator, List, Optional

from ytree.exceptions import StorageError
from ytree.log import get_logger
from ytree.tree.tree_builder import sibling_sort_key
from ytree.tree.types import Node
from ytree.utils import generate_id

from .base import BaseNodeStore

logger = get_logger()

_NODE_FIELDS = frozenset(f.name for f in dataclass_fields(Node))


class MemoryNodeStore(BaseNodeStore):
    """内存节点存储

    - 读写都持有同一把可重入锁，保证单进程内的串行化
    - transaction() 进入时保存快照，异常时恢复；嵌套事务并入最外层事务
    - 删除仍被引用为父节点的记录会失败，行为与数据库外键一致

    使用示例:
        store = MemoryNodeStore()
        manager = TreeManager(store)
    """

    def __init__(self, nodes: Iterable[Node] = None):
        self._nodes: Dict[str, Node] = {}
        self._lock = threading.RLock()
        self._depth = 0
        self._snapshot: Optional[Dict[str, Node]] = None
        if nodes:
            self.load_records(nodes)

    def load_records(self, nodes: Iterable[Node]) -> None:
        """直接写入记录，不做任何校验（用于导入或构造测试数据）"""
        with self._lock:
            for node in nodes:
                node_id = node.id or generate_id()
                self._nodes[node_id] = node.copy(id=node_id)

    def __len__(self) -> int:
        return len(self._nodes)

    # ==================== 读取 ====================

    def get_by_id(self, node_id: str) -> Optional[Node]:
        with self._lock:
            node = self._nodes.get(node_id)
            return node.copy() if node is not None else None

    def list_by_parent(
        self,
        forest: str,
        parent_id: Optional[str] = None,
        for_update: bool = False,
    ) -> List[Node]:
        with self._lock:
            siblings = [
                node.copy() for node in self._nodes.values()
                if node.forest == forest and node.parent_id == parent_id
            ]
        return sorted(siblings, key=sibling_sort_key)

    def list_forest(self, forest: str) -> List[Node]:
        with self._lock:
            return [node.copy() for node in self._nodes.values() if node.forest == forest]

    # ==================== 写入 ====================

    def insert(self, node: Node) -> Node:
        with self._lock:
            node_id = node.id or generate_id()
            if node_id in self._nodes:
                raise StorageError(f"节点 ID 已存在: {node_id}")
            now = datetime.now()
            stored = node.copy(
                id=node_id,
                created_at=node.created_at or now,
                updated_at=node.updated_at or now,
            )
            self._nodes[node_id] = stored
            return stored.copy()

    def update_fields(self, node_id: str, **fields: Any) -> Node:
        unknown = set(fields) - _NODE_FIELDS
        if unknown:
            raise StorageError(f"未知字段: {sorted(unknown)}")

        with self._lock:
            node = self._nodes.get(node_id)
            if node is None:
                raise StorageError(f"更新失败，节点不存在: {node_id}")
            fields.setdefault("updated_at", datetime.now())
            updated = node.copy(**fields)
            self._nodes[node_id] = updated
            return updated.copy()

    def delete_by_id(self, node_id: str) -> None:
        with self._lock:
            if node_id not in self._nodes:
                return
            if any(node.parent_id == node_id for node in self._nodes.values()):
                raise StorageError(f"删除失败，节点仍被子节点引用: {node_id}")
            del self._nodes[node_id]

    # ==================== 事务 ====================

    @contextmanager
    def transaction(self) -> Iterator["MemoryNodeStore"]:
        with self._lock:
            outermost = self._depth == 0
            if outermost:
                self._snapshot = dict(self._nodes)
            self._depth += 1
            try:
                yield self
            except BaseException:
                if outermost:
                    self._nodes = self._snapshot
                    logger.debug("内存存储事务回滚")
                raise
            finally:
                self._depth -= 1
                if outermost:
                    self._snapshot = None
