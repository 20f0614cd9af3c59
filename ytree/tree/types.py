"""树形节点数据类型

- Node: 扁平存储的节点记录（与存储层交换的唯一形态）
- TreeNode: 读取时由扁平记录重建的嵌套节点
- Direction: 同级移动方向
- IntegrityWarning: 数据完整性告警（孤儿节点、循环、重复 ID 等）
- ForestBuildResult: 森林构建结果，可直接当作根节点列表使用
"""

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional


class Direction(str, Enum):
    """同级移动方向"""
    UP = "up"
    DOWN = "down"


# 可编辑字段（id / forest / parent_id / order 只能通过专门的操作修改）
EDITABLE_FIELDS = frozenset({"label", "target", "active", "slug", "description", "icon", "image"})

# 创建后不可修改的字段
IMMUTABLE_FIELDS = frozenset({"id", "forest"})


@dataclass
class Node:
    """节点记录

    level 与 children 是派生数据，不在此保存。
    """
    forest: str
    label: str
    target: str
    id: Optional[str] = None
    parent_id: Optional[str] = None
    order: int = 0
    active: bool = True
    slug: Optional[str] = None
    description: Optional[str] = None
    icon: Optional[str] = None
    image: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def copy(self, **changes: Any) -> "Node":
        """返回修改了指定字段的副本，原对象不变"""
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)


@dataclass
class TreeNode:
    """嵌套树节点

    children 按 (order, id) 升序排列；根节点 level 为 1。
    """
    node: Node
    children: List["TreeNode"] = field(default_factory=list)
    level: int = 1

    @property
    def id(self) -> Optional[str]:
        return self.node.id

    @property
    def parent_id(self) -> Optional[str]:
        return self.node.parent_id

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def _flat_dict(self) -> Dict[str, Any]:
        data = self.node.to_dict()
        data["level"] = self.level
        data["children"] = []
        return data

    def to_dict(self) -> Dict[str, Any]:
        """序列化为嵌套字典（显式栈，深层树不受递归深度限制）"""
        root = self._flat_dict()
        stack = [(self, root)]
        while stack:
            tree_node, data = stack.pop()
            for child in tree_node.children:
                child_data = child._flat_dict()
                data["children"].append(child_data)
                stack.append((child, child_data))
        return root


@dataclass(frozen=True)
class IntegrityWarning:
    """数据完整性告警

    kind 取值:
        - orphan: parent_id 指向不存在的节点，已按根节点处理
        - cycle: 节点处在 parent_id 循环中，已按根节点处理
        - duplicate: 重复的节点 ID，后出现的记录生效
        - forest_mismatch: 父节点属于其他森林
        - order_gap: 同级排序不连续（不是 0..n-1）
    """
    kind: str
    node_id: Optional[str]
    message: str
    parent_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)


@dataclass
class ForestBuildResult:
    """森林构建结果

    可以像根节点列表一样迭代、取长度和下标访问：

        result = build_forest(nodes)
        for root in result:
            print(root.node.label)
        if result.warnings:
            ...
    """
    roots: List[TreeNode] = field(default_factory=list)
    warnings: List[IntegrityWarning] = field(default_factory=list)

    def __iter__(self) -> Iterator[TreeNode]:
        return iter(self.roots)

    def __len__(self) -> int:
        return len(self.roots)

    def __getitem__(self, index: int) -> TreeNode:
        return self.roots[index]

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "roots": [root.to_dict() for root in self.roots],
            "warnings": [w.to_dict() for w in self.warnings],
        }


__all__ = [
    "Direction",
    "EDITABLE_FIELDS",
    "IMMUTABLE_FIELDS",
    "Node",
    "TreeNode",
    "IntegrityWarning",
    "ForestBuildResult",
]
