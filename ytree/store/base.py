"""节点存储抽象基类

定义节点存储的接口规范。TreeManager 只通过这些方法访问数据。
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, ContextManager, List, Optional, TypeVar

from ytree.tree.types import Node

T = TypeVar("T")


class BaseNodeStore(ABC):
    """节点存储抽象基类

    所有存储实现都应继承此类。

    约定:
        - 读取返回 Node 副本，修改返回值不影响存储
        - 同级列表按 (order, id) 升序
        - 存储失败统一抛出 StorageError
        - transaction() 内的操作要么全部生效，要么全部回滚
    """

    @abstractmethod
    def get_by_id(self, node_id: str) -> Optional[Node]:
        """按 ID 获取节点

        Args:
            node_id: 节点 ID

        Returns:
            节点或 None
        """
        pass

    @abstractmethod
    def list_by_parent(
        self,
        forest: str,
        parent_id: Optional[str] = None,
        for_update: bool = False,
    ) -> List[Node]:
        """获取同级节点

        Args:
            forest: 森林名称
            parent_id: 父节点 ID，None 表示根节点
            for_update: 是否加行锁（事务内的读-改-写使用）

        Returns:
            按 order 升序的节点列表
        """
        pass

    def list_forest(self, forest: str) -> List[Node]:
        """获取森林中的全部节点

        默认实现从根节点逐层向下读取；只能读到可从根到达的节点，
        孤儿节点与循环节点需要子类用一次查询覆盖实现。
        """
        result: List[Node] = []
        pending: List[Optional[str]] = [None]
        seen = set()
        while pending:
            parent_id = pending.pop(0)
            for node in self.list_by_parent(forest, parent_id):
                if node.id in seen:
                    continue
                seen.add(node.id)
                result.append(node)
                pending.append(node.id)
        return result

    @abstractmethod
    def insert(self, node: Node) -> Node:
        """插入节点，id 为空时自动生成

        Returns:
            写入后的节点
        """
        pass

    @abstractmethod
    def update_fields(self, node_id: str, **fields: Any) -> Node:
        """更新节点字段

        Args:
            node_id: 节点 ID
            **fields: Node 字段名 -> 新值

        Returns:
            更新后的节点

        Raises:
            StorageError: 节点不存在或写入失败
        """
        pass

    @abstractmethod
    def delete_by_id(self, node_id: str) -> None:
        """删除节点（不处理子节点）"""
        pass

    @abstractmethod
    def transaction(self) -> ContextManager["BaseNodeStore"]:
        """事务上下文管理器

        正常退出时提交，异常时回滚并继续抛出原异常。
        """
        pass

    def with_transaction(self, fn: Callable[[], T]) -> T:
        """在事务中执行 fn 并返回其结果"""
        with self.transaction():
            return fn()
