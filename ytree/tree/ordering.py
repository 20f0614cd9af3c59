"""同级排序计算

所有函数都是纯函数：接收一组同级节点，返回带新 order 的副本，不修改输入。
写入由调用方（TreeManager）根据 changed_orders() 的结果完成。

使用示例:
    from ytree.tree import normalize, move_adjacent, reassign, changed_orders

    siblings = store.list_by_parent("header", None)
    after = move_adjacent(siblings, "b", Direction.UP)
    for node_id, order in changed_orders(siblings, after).items():
        store.update_fields(node_id, order=order)
"""

from typing import Dict, Iterable, List, Sequence, Union

from ytree.exceptions import BoundaryError, InvalidInputError, NodeNotFoundError, SetMismatchError

from .tree_builder import sibling_sort_key
from .types import Direction, Node


def normalize(siblings: Iterable[Node]) -> List[Node]:
    """重新编号为连续的 0..n-1

    按 (order, id) 稳定排序后以位置作为新的 order，相对顺序不变。
    对已规整的列表再次调用结果不变。
    """
    ordered = sorted(siblings, key=sibling_sort_key)
    return [node.copy(order=position) for position, node in enumerate(ordered)]


def _index_of(ordered: Sequence[Node], node_id: str) -> int:
    for index, node in enumerate(ordered):
        if node.id == node_id:
            return index
    raise NodeNotFoundError(node_id)


def move_adjacent(
    siblings: Iterable[Node],
    node_id: str,
    direction: Union[Direction, str],
) -> List[Node]:
    """与相邻节点交换位置

    只交换目标节点与相邻节点的 order，其余节点不变。

    Raises:
        NodeNotFoundError: node_id 不在同级节点中
        BoundaryError: 第一个节点上移或最后一个节点下移
        InvalidInputError: direction 不是 up / down
    """
    try:
        direction = Direction(direction)
    except ValueError:
        raise InvalidInputError(f"无效的移动方向: {direction}") from None

    ordered = sorted(siblings, key=sibling_sort_key)
    index = _index_of(ordered, node_id)
    neighbour_index = index - 1 if direction == Direction.UP else index + 1
    if neighbour_index < 0 or neighbour_index >= len(ordered):
        raise BoundaryError(node_id, direction.value)

    result = list(ordered)
    target, neighbour = ordered[index], ordered[neighbour_index]
    result[index] = target.copy(order=neighbour.order)
    result[neighbour_index] = neighbour.copy(order=target.order)
    return sorted(result, key=sibling_sort_key)


def reassign(siblings: Iterable[Node], ordered_ids: Sequence[str]) -> List[Node]:
    """按提交的 ID 顺序重新编号

    ordered_ids 必须恰好是当前同级节点 ID 的一个排列。

    Raises:
        SetMismatchError: 缺少节点、包含非同级节点或有重复
    """
    by_id = {node.id: node for node in siblings}

    seen = set()
    duplicated = []
    for node_id in ordered_ids:
        if node_id in seen and node_id not in duplicated:
            duplicated.append(node_id)
        seen.add(node_id)
    missing = [node_id for node_id in by_id if node_id not in seen]
    unexpected = [node_id for node_id in ordered_ids if node_id not in by_id]

    if missing or unexpected or duplicated:
        raise SetMismatchError(missing=missing, unexpected=unexpected, duplicated=duplicated)

    return [by_id[node_id].copy(order=position) for position, node_id in enumerate(ordered_ids)]


def move_to_position(siblings: Iterable[Node], node_id: str, position: int) -> List[Node]:
    """移动到指定位置（0 表示第一位），超出范围时取边界值，然后重新编号

    Raises:
        NodeNotFoundError: node_id 不在同级节点中
    """
    ordered = sorted(siblings, key=sibling_sort_key)
    target = ordered.pop(_index_of(ordered, node_id))

    position = max(0, min(position, len(ordered)))
    ordered.insert(position, target)
    return [node.copy(order=index) for index, node in enumerate(ordered)]


def changed_orders(before: Iterable[Node], after: Iterable[Node]) -> Dict[str, int]:
    """返回 order 发生变化的节点 ID -> 新 order"""
    old = {node.id: node.order for node in before}
    return {node.id: node.order for node in after if old.get(node.id) != node.order}


def is_dense(siblings: Iterable[Node]) -> bool:
    """同级 order 是否恰好为 0..n-1"""
    orders = sorted(node.order for node in siblings)
    return orders == list(range(len(orders)))


__all__ = [
    "normalize",
    "move_adjacent",
    "reassign",
    "move_to_position",
    "changed_orders",
    "is_dense",
]
