"""树形节点模块

- types: Node / TreeNode / Direction 等数据类型
- tree_builder: 由扁平记录构建嵌套森林
- cycle_checker: 父子关系与循环引用校验
- ordering: 同级排序计算
- manager: TreeManager 业务门面

使用示例:
    from ytree.tree import TreeManager, build_forest, Direction
"""

from .types import (
    Direction,
    Node,
    TreeNode,
    IntegrityWarning,
    ForestBuildResult,
    EDITABLE_FIELDS,
    IMMUTABLE_FIELDS,
)
from .tree_builder import (
    sibling_sort_key,
    build_forest,
    flatten_forest,
    find_tree_node,
    get_tree_path,
    calculate_forest_depth,
    filter_forest,
)
from .cycle_checker import (
    would_create_cycle,
    validate_parent,
    iter_ancestors,
    build_children_map,
    collect_descendants,
    compute_level,
)
from .ordering import (
    normalize,
    move_adjacent,
    reassign,
    move_to_position,
    changed_orders,
    is_dense,
)
from .manager import TreeManager

__all__ = [
    # 类型
    "Direction",
    "Node",
    "TreeNode",
    "IntegrityWarning",
    "ForestBuildResult",
    "EDITABLE_FIELDS",
    "IMMUTABLE_FIELDS",

    # 森林构建
    "sibling_sort_key",
    "build_forest",
    "flatten_forest",
    "find_tree_node",
    "get_tree_path",
    "calculate_forest_depth",
    "filter_forest",

    # 父子关系校验
    "would_create_cycle",
    "validate_parent",
    "iter_ancestors",
    "build_children_map",
    "collect_descendants",
    "compute_level",

    # 排序
    "normalize",
    "move_adjacent",
    "reassign",
    "move_to_position",
    "changed_orders",
    "is_dense",

    # 管理器
    "TreeManager",
]
