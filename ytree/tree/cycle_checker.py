"""父子关系校验

保证节点永远不会成为自己的祖先，并校验父节点的存在性与森林归属。
只在变更提交时调用一次，渲染时不调用。

使用示例:
    from ytree.tree import would_create_cycle, validate_parent

    nodes = {n.id: n for n in store.list_forest("category")}
    if would_create_cycle(nodes, "a", "c"):
        ...

    validate_parent(nodes, node, new_parent_id)  # 不合法时抛出异常
"""

from collections import deque
from typing import Dict, Iterator, List, Mapping, Optional

from ytree.exceptions import ForestMismatchError, InvalidParentError, UnknownParentError

from .types import Node


def would_create_cycle(
    nodes: Mapping[str, Node],
    node_id: str,
    candidate_parent_id: Optional[str],
) -> bool:
    """判断把 node_id 挂到 candidate_parent_id 下是否会形成循环

    沿候选父节点的祖先链向上查找 node_id，最多走 len(nodes) + 1 步；
    超出步数说明已有数据存在循环，同样视为会形成循环。

    Args:
        nodes: id -> Node 映射（同一森林的全部节点）
        node_id: 要移动的节点
        candidate_parent_id: 候选父节点，None 表示移动为根节点

    Returns:
        True 表示会形成循环，不允许移动
    """
    if candidate_parent_id is None:
        return False
    if candidate_parent_id == node_id:
        return True

    max_hops = len(nodes) + 1
    hops = 0
    current: Optional[str] = candidate_parent_id
    while current is not None:
        if current == node_id:
            return True
        hops += 1
        if hops > max_hops:
            return True
        parent = nodes.get(current)
        if parent is None:
            return False
        current = parent.parent_id
    return False


def validate_parent(
    nodes: Mapping[str, Node],
    node: Node,
    candidate_parent_id: Optional[str],
) -> Optional[Node]:
    """校验候选父节点

    依次检查：父节点存在、与节点同属一个森林、不会形成循环。

    Args:
        nodes: id -> Node 映射
        node: 要挂载的节点（新建节点的 id 可以为空）
        candidate_parent_id: 候选父节点 ID，None 表示根节点

    Returns:
        父节点，根节点时返回 None

    Raises:
        UnknownParentError: 父节点不存在
        ForestMismatchError: 父节点属于其他森林
        InvalidParentError: 会形成循环
    """
    if candidate_parent_id is None:
        return None

    parent = nodes.get(candidate_parent_id)
    if parent is None:
        raise UnknownParentError(candidate_parent_id)
    if parent.forest != node.forest:
        raise ForestMismatchError(node.forest, parent.forest)
    if node.id is not None and would_create_cycle(nodes, node.id, candidate_parent_id):
        raise InvalidParentError(node.id, candidate_parent_id)
    return parent


def iter_ancestors(nodes: Mapping[str, Node], node_id: str) -> Iterator[Node]:
    """自底向上依次产出祖先节点（不含自身）

    父节点缺失时停止；步数超过 len(nodes) 时停止，避免损坏数据导致死循环。
    """
    node = nodes.get(node_id)
    if node is None:
        return

    seen = {node_id}
    current = node.parent_id
    for _ in range(len(nodes)):
        if current is None or current in seen:
            return
        parent = nodes.get(current)
        if parent is None:
            return
        seen.add(current)
        yield parent
        current = parent.parent_id


def build_children_map(nodes: Mapping[str, Node]) -> Dict[Optional[str], List[str]]:
    """parent_id -> 子节点 ID 列表"""
    children: Dict[Optional[str], List[str]] = {}
    for node in nodes.values():
        children.setdefault(node.parent_id, []).append(node.id)
    return children


def collect_descendants(
    children_map: Mapping[Optional[str], List[str]],
    node_id: str,
) -> List[str]:
    """广度优先收集全部子孙节点 ID（不含自身），父节点总在子节点之前"""
    result: List[str] = []
    seen = {node_id}
    queue = deque([node_id])
    while queue:
        current = queue.popleft()
        for child_id in children_map.get(current, []):
            if child_id in seen:
                continue
            seen.add(child_id)
            result.append(child_id)
            queue.append(child_id)
    return result


def compute_level(nodes: Mapping[str, Node], node_id: str) -> int:
    """计算节点层级，根节点为 1"""
    return 1 + sum(1 for _ in iter_ancestors(nodes, node_id))


__all__ = [
    "would_create_cycle",
    "validate_parent",
    "iter_ancestors",
    "build_children_map",
    "collect_descendants",
    "compute_level",
]
