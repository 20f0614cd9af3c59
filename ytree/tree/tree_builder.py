"""森林构建与树形工具函数

将存储层返回的扁平节点记录重建为嵌套树，每次读取都重新构建，不做缓存。

使用示例:
    from ytree.tree import build_forest, flatten_forest

    result = build_forest(store.list_forest("category"))
    for root in result:
        print(root.node.label, [c.node.label for c in root.children])

    nodes = flatten_forest(result)
"""

from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from ytree.log import get_logger

from .types import ForestBuildResult, IntegrityWarning, Node, TreeNode

logger = get_logger()


def sibling_sort_key(node: Node):
    """同级排序键：先按 order，再按 id 保证稳定"""
    return (node.order, node.id or "")


def build_forest(nodes: Iterable[Node]) -> ForestBuildResult:
    """将扁平节点列表构建为森林

    规则:
        - parent_id 为空的节点是根节点
        - parent_id 指向不存在节点的节点按根节点处理，并记录 orphan 告警
        - 处在 parent_id 循环中的节点（损坏数据）按根节点处理，并记录 cycle 告警
        - 重复 ID 以后出现的记录为准，并记录 duplicate 告警
        - 每一层按 (order, id) 升序

    每个输入节点在结果中恰好出现一次，输入不会被修改。

    Args:
        nodes: 扁平节点记录

    Returns:
        ForestBuildResult，roots 为根节点列表，warnings 为完整性告警
    """
    warnings: List[IntegrityWarning] = []

    node_map: Dict[Optional[str], Node] = {}
    for node in nodes:
        if node.id in node_map:
            warnings.append(IntegrityWarning(
                kind="duplicate",
                node_id=node.id,
                message=f"节点 ID 重复: {node.id}，以后出现的记录为准",
            ))
        node_map[node.id] = node

    children_map: Dict[str, List[Node]] = {}
    root_nodes: List[Node] = []
    for node in node_map.values():
        if node.parent_id is None:
            root_nodes.append(node)
        elif node.parent_id not in node_map:
            warnings.append(IntegrityWarning(
                kind="orphan",
                node_id=node.id,
                parent_id=node.parent_id,
                message=f"父节点不存在: {node.parent_id}，节点 {node.id} 按根节点处理",
            ))
            root_nodes.append(node)
        else:
            children_map.setdefault(node.parent_id, []).append(node)

    for siblings in children_map.values():
        siblings.sort(key=sibling_sort_key)
    root_nodes.sort(key=sibling_sort_key)

    visited: Set[Optional[str]] = set()
    roots = [_assemble(node, children_map, visited) for node in root_nodes]

    # 从任何根都无法到达的节点只可能处在循环中，或挂在循环节点之下
    if len(visited) < len(node_map):
        unreached = {nid: n for nid, n in node_map.items() if nid not in visited}
        cycle_members = _find_cycle_members(unreached)
        for node in sorted((unreached[nid] for nid in cycle_members), key=sibling_sort_key):
            warnings.append(IntegrityWarning(
                kind="cycle",
                node_id=node.id,
                parent_id=node.parent_id,
                message=f"节点 {node.id} 处在循环引用中，按根节点处理",
            ))
            roots.append(_assemble(node, children_map, visited, skip=cycle_members))

    for warning in warnings:
        logger.warning(f"[{warning.kind}] {warning.message}")

    return ForestBuildResult(roots=roots, warnings=warnings)


def _assemble(
    root: Node,
    children_map: Dict[str, List[Node]],
    visited: Set[Optional[str]],
    skip: Set[Optional[str]] = frozenset(),
) -> TreeNode:
    """从 root 开始组装子树（显式栈，避免深层递归）"""
    root_tree = TreeNode(node=root, level=1)
    visited.add(root.id)
    stack = [root_tree]
    while stack:
        current = stack.pop()
        for child in children_map.get(current.node.id, []):
            if child.id in visited or child.id in skip:
                continue
            visited.add(child.id)
            child_tree = TreeNode(node=child, level=current.level + 1)
            current.children.append(child_tree)
            stack.append(child_tree)
    return root_tree


def _find_cycle_members(unreached: Dict[Optional[str], Node]) -> Set[Optional[str]]:
    """找出处在循环上的节点

    不可达节点的父节点一定也不可达，因此沿 parent_id 走必然进入某个循环。
    """
    members: Set[Optional[str]] = set()
    done: Set[Optional[str]] = set()
    for start in unreached:
        path: List[Optional[str]] = []
        on_path: Set[Optional[str]] = set()
        current = start
        while current in unreached and current not in done and current not in on_path:
            path.append(current)
            on_path.add(current)
            current = unreached[current].parent_id
        if current in on_path:
            members.update(path[path.index(current):])
        done.update(path)
    return members


def flatten_forest(roots: Iterable[TreeNode]) -> List[Node]:
    """将森林按先序展平为节点列表"""
    result: List[Node] = []
    stack = list(reversed(list(roots)))
    while stack:
        tree_node = stack.pop()
        result.append(tree_node.node)
        stack.extend(reversed(tree_node.children))
    return result


def find_tree_node(roots: Iterable[TreeNode], node_id: str) -> Optional[TreeNode]:
    """在森林中查找指定 ID 的节点，未找到返回 None"""
    stack = list(reversed(list(roots)))
    while stack:
        tree_node = stack.pop()
        if tree_node.node.id == node_id:
            return tree_node
        stack.extend(reversed(tree_node.children))
    return None


def get_tree_path(roots: Iterable[TreeNode], node_id: str) -> List[TreeNode]:
    """获取从根到目标节点的路径，未找到返回空列表"""
    parents: Dict[int, TreeNode] = {}
    stack = list(reversed(list(roots)))
    while stack:
        tree_node = stack.pop()
        if tree_node.node.id == node_id:
            path = [tree_node]
            while id(path[-1]) in parents:
                path.append(parents[id(path[-1])])
            path.reverse()
            return path
        for child in reversed(tree_node.children):
            parents[id(child)] = tree_node
            stack.append(child)
    return []


def calculate_forest_depth(roots: Iterable[TreeNode]) -> int:
    """计算森林的最大深度，空森林为 0"""
    depth = 0
    stack = list(roots)
    while stack:
        tree_node = stack.pop()
        depth = max(depth, tree_node.level)
        stack.extend(tree_node.children)
    return depth


def filter_forest(
    roots: Iterable[TreeNode],
    predicate: Callable[[Node], bool],
    keep_ancestors: bool = False,
) -> List[TreeNode]:
    """过滤森林中的节点，返回新的 TreeNode，原森林不变

    Args:
        roots: 根节点列表
        predicate: 过滤条件，返回 True 表示保留
        keep_ancestors: 是否保留有匹配子孙的不匹配节点。
            默认 False，即不匹配的节点连同整棵子树一起隐藏（停用分类隐藏其子分类）

    使用示例:
        # 只保留启用的节点
        visible = filter_forest(result, lambda n: n.active)
    """
    # 先序收集候选节点，再倒序组装：子孙总在祖先之前处理
    entries: List[Tuple[TreeNode, Optional[int], bool]] = []
    stack: List[Tuple[TreeNode, Optional[int]]] = [(root, None) for root in reversed(list(roots))]
    while stack:
        tree_node, parent_index = stack.pop()
        matches = predicate(tree_node.node)
        if not matches and not keep_ancestors:
            continue
        index = len(entries)
        entries.append((tree_node, parent_index, matches))
        stack.extend((child, index) for child in reversed(tree_node.children))

    kept: List[List[TreeNode]] = [[] for _ in entries]
    result: List[TreeNode] = []
    for index in range(len(entries) - 1, -1, -1):
        tree_node, parent_index, matches = entries[index]
        children = kept[index]
        if not (matches or children):
            continue
        children.reverse()
        copy = TreeNode(node=tree_node.node, children=children, level=tree_node.level)
        (result if parent_index is None else kept[parent_index]).append(copy)
    result.reverse()
    return result


__all__ = [
    "sibling_sort_key",
    "build_forest",
    "flatten_forest",
    "find_tree_node",
    "get_tree_path",
    "calculate_forest_depth",
    "filter_forest",
]
