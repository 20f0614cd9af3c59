"""HTTP 接口模块

使用示例:
    from ytree.api import create_tree_router

    app.include_router(create_tree_router(manager), prefix="/api/tree")
"""

from .node_api import create_tree_router

__all__ = [
    "create_tree_router",
]
