"""异常处理模块

提供业务异常类、树形节点异常分类、全局异常处理器等功能。

使用示例:
    from ytree.exceptions import NodeNotFoundError, register_exception_handlers

    app = FastAPI()
    register_exception_handlers(app)

    try:
        manager.delete(node_id)
    except HasChildrenError as e:
        print(e.children_count)
"""

from .exceptions import (
    Err,
    ErrorCode,
    ErrorCodeType,

    # 通用业务异常
    BusinessException,
    ResourceNotFoundException,
    ResourceConflictException,
    ValidationException,
    ServiceUnavailableException,

    # 树形节点异常
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
)

from .handlers import (
    register_exception_handlers,
    business_exception_handler,
    validation_exception_handler,
    http_exception_handler,
    general_exception_handler,
)

__all__ = [
    "Err",
    "ErrorCode",
    "ErrorCodeType",
    "register_exception_handlers",

    "BusinessException",
    "ResourceNotFoundException",
    "ResourceConflictException",
    "ValidationException",
    "ServiceUnavailableException",

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

    "business_exception_handler",
    "validation_exception_handler",
    "http_exception_handler",
    "general_exception_handler",
]
