"""
ytree - 树形节点森林管理库

提供分类、导航菜单等层级节点的管理：创建、编辑、移动、排序、删除，
以及每次读取时由扁平记录重建的嵌套树。
"""

from .version import __version__, __author__, __description__

# 导出树形核心
from .tree import (
    Direction,
    Node,
    TreeNode,
    IntegrityWarning,
    ForestBuildResult,
    TreeManager,
    build_forest,
    flatten_forest,
    find_tree_node,
    get_tree_path,
    calculate_forest_depth,
    filter_forest,
    would_create_cycle,
    validate_parent,
    normalize,
    move_adjacent,
    reassign,
    move_to_position,
    changed_orders,
)

# 导出存储
from .store import (
    BaseNodeStore,
    MemoryNodeStore,
    ORMNodeStore,
)

# 导出异常
from .exceptions import (
    Err,
    ErrorCode,
    BusinessException,
    TreeError,
    InvalidInputError,
    UnknownParentError,
    ForestMismatchError,
    InvalidParentError,
    HasChildrenError,
    BoundaryError,
    SetMismatchError,
    NodeNotFoundError,
    StorageError,
    register_exception_handlers,
)

# 导出配置
from .config import (
    AppSettings,
    DatabaseSettings,
    LoggingSettings,
    TreeSettings,
    ConfigLoader,
    load_yaml_config,
)

# 导出日志
from .log import setup_logger, setup_root_logger, get_logger

# 导出响应
from .response import Resp

# 导出 ORM
from .orm import TreeNodeModel, init_database, db_manager

# 导出接口与工厂
from .api import create_tree_router
from .factory import TreeSetup, setup_tree, create_store

__all__ = [
    "__version__",
    "__author__",
    "__description__",

    # 树形核心
    "Direction",
    "Node",
    "TreeNode",
    "IntegrityWarning",
    "ForestBuildResult",
    "TreeManager",
    "build_forest",
    "flatten_forest",
    "find_tree_node",
    "get_tree_path",
    "calculate_forest_depth",
    "filter_forest",
    "would_create_cycle",
    "validate_parent",
    "normalize",
    "move_adjacent",
    "reassign",
    "move_to_position",
    "changed_orders",

    # 存储
    "BaseNodeStore",
    "MemoryNodeStore",
    "ORMNodeStore",

    # 异常
    "Err",
    "ErrorCode",
    "BusinessException",
    "TreeError",
    "InvalidInputError",
    "UnknownParentError",
    "ForestMismatchError",
    "InvalidParentError",
    "HasChildrenError",
    "BoundaryError",
    "SetMismatchError",
    "NodeNotFoundError",
    "StorageError",
    "register_exception_handlers",

    # 配置
    "AppSettings",
    "DatabaseSettings",
    "LoggingSettings",
    "TreeSettings",
    "ConfigLoader",
    "load_yaml_config",

    # 日志
    "setup_logger",
    "setup_root_logger",
    "get_logger",

    # 响应
    "Resp",

    # ORM
    "TreeNodeModel",
    "init_database",
    "db_manager",

    # 接口与工厂
    "create_tree_router",
    "TreeSetup",
    "setup_tree",
    "create_store",
]
