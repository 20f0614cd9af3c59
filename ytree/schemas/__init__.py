"""请求/响应 Schema"""

from .node import (
    NodeCreate,
    NodeUpdate,
    NodeIdRequest,
    NodeMove,
    NodeMoveAdjacent,
    NodeMovePosition,
    NodeReorder,
    NodeDelete,
    NodeResponse,
    TreeNodeResponse,
    DeleteResult,
)

__all__ = [
    "NodeCreate",
    "NodeUpdate",
    "NodeIdRequest",
    "NodeMove",
    "NodeMoveAdjacent",
    "NodeMovePosition",
    "NodeReorder",
    "NodeDelete",
    "NodeResponse",
    "TreeNodeResponse",
    "DeleteResult",
]
