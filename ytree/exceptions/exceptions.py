"""业务异常类定义

定义框架使用的业务异常类体系，以及树形节点管理专用的异常分类。
"""

import copy
from typing import Optional, List, Any, Dict, Union
from fastapi import status
from enum import Enum


class ErrorCode(str, Enum):
    """错误代码枚举

    提供常用的错误代码，支持 IDE 补全和拼写检查。
    继承自 str，可以直接作为字符串使用。

    使用示例:
        from ytree import ErrorCode, NodeNotFoundError

        try:
            manager.get(node_id)
        except NodeNotFoundError as e:
            assert e.code == ErrorCode.NODE_NOT_FOUND
    """

    # ==================== 通用错误 ====================
    BUSINESS_ERROR = "BUSINESS_ERROR"
    OPERATION_FAILED = "OPERATION_FAILED"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"

    # ==================== 资源相关 (404) ====================
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    NODE_NOT_FOUND = "NODE_NOT_FOUND"

    # ==================== 冲突相关 (409) ====================
    RESOURCE_CONFLICT = "RESOURCE_CONFLICT"
    HAS_CHILDREN = "HAS_CHILDREN"

    # ==================== 验证相关 (422) ====================
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    UNKNOWN_PARENT = "UNKNOWN_PARENT"
    FOREST_MISMATCH = "FOREST_MISMATCH"
    INVALID_PARENT = "INVALID_PARENT"
    SET_MISMATCH = "SET_MISMATCH"

    # ==================== 排序相关 (400) ====================
    BOUNDARY_ERROR = "BOUNDARY_ERROR"

    # ==================== 服务相关 (503) ====================
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    STORAGE_ERROR = "STORAGE_ERROR"


# 类型别名，支持枚举和字符串
ErrorCodeType = Union[str, ErrorCode]


class BusinessException(Exception):
    """业务异常基类

    所有业务异常都应该继承此类。

    属性:
        message: 错误消息（面向用户）
        code: 错误代码（用于程序判断，支持 ErrorCode 枚举或字符串）
        status_code: HTTP 状态码
        details: 详细错误信息列表
        extra: 额外的上下文信息

    使用示例:
        raise BusinessException("操作失败", code=ErrorCode.OPERATION_FAILED)

        raise BusinessException(
            message="节点移动失败",
            code=ErrorCode.OPERATION_FAILED,
            extra={"node_id": "a1b2", "reason": "目标节点已删除"}
        )
    """

    def __init__(
        self,
        message: str,
        code: ErrorCodeType = ErrorCode.BUSINESS_ERROR,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: Optional[List[str]] = None,
        **extra: Any
    ):
        """初始化业务异常

        Args:
            message: 错误消息
            code: 错误代码
            status_code: HTTP 状态码
            details: 详细错误信息列表
            **extra: 额外的上下文信息
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or []
        self.extra = extra
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式

        Returns:
            包含异常信息的字典
        """
        return {
            "message": self.message,
            "code": self.code,
            "status_code": self.status_code,
            # 返回深拷贝，调用方修改返回值不影响异常对象
            "details": copy.deepcopy(self.details),
            "extra": copy.deepcopy(self.extra)
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"status_code={self.status_code})"
        )


class ResourceNotFoundException(BusinessException):
    """资源不存在异常 (404)"""

    def __init__(
        self,
        message: str = "资源不存在",
        code: ErrorCodeType = ErrorCode.RESOURCE_NOT_FOUND,
        details: Optional[List[str]] = None,
        **extra: Any
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=status.HTTP_404_NOT_FOUND,
            details=details,
            **extra
        )


class ResourceConflictException(BusinessException):
    """资源冲突异常 (409)"""

    def __init__(
        self,
        message: str = "资源冲突",
        code: ErrorCodeType = ErrorCode.RESOURCE_CONFLICT,
        details: Optional[List[str]] = None,
        **extra: Any
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=status.HTTP_409_CONFLICT,
            details=details,
            **extra
        )


class ValidationException(BusinessException):
    """数据验证异常 (422)

    使用示例:
        raise ValidationException(
            "数据验证失败",
            details=["label 不能为空", "target 不能为空"]
        )
    """

    def __init__(
        self,
        message: str = "数据验证失败",
        code: ErrorCodeType = ErrorCode.VALIDATION_ERROR,
        details: Optional[List[str]] = None,
        **extra: Any
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=details,
            **extra
        )


class ServiceUnavailableException(BusinessException):
    """服务不可用异常 (503)"""

    def __init__(
        self,
        message: str = "服务暂时不可用",
        code: ErrorCodeType = ErrorCode.SERVICE_UNAVAILABLE,
        details: Optional[List[str]] = None,
        **extra: Any
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details=details,
            **extra
        )


# ==================== 树形节点异常 ====================

class TreeError:
    """树形节点异常标记类

    所有树形管理相关的异常都同时继承此类，便于调用方统一捕获：

        try:
            manager.reparent(node_id, new_parent_id)
        except TreeError as e:
            return Resp.BadRequest(message=e.message)
    """


class InvalidInputError(TreeError, ValidationException):
    """输入无效（label/target 为空、森林名称未知、修改只读字段等）"""

    def __init__(self, message: str = "输入参数无效", **kwargs):
        kwargs.setdefault("code", ErrorCode.INVALID_INPUT)
        super().__init__(message, **kwargs)


class UnknownParentError(TreeError, ValidationException):
    """父节点不存在"""

    def __init__(self, parent_id: Any = None, message: str = None, **kwargs):
        kwargs.setdefault("code", ErrorCode.UNKNOWN_PARENT)
        self.parent_id = parent_id
        super().__init__(message or f"父节点不存在: {parent_id}", parent_id=parent_id, **kwargs)


class ForestMismatchError(TreeError, ValidationException):
    """父节点属于另一个森林（如分类节点挂到导航节点下）"""

    def __init__(self, forest: str = None, parent_forest: str = None, message: str = None, **kwargs):
        kwargs.setdefault("code", ErrorCode.FOREST_MISMATCH)
        self.forest = forest
        self.parent_forest = parent_forest
        super().__init__(
            message or f"父节点属于其他森林: {parent_forest}，当前森林: {forest}",
            forest=forest,
            parent_forest=parent_forest,
            **kwargs
        )


class InvalidParentError(TreeError, ValidationException):
    """父节点非法：会导致循环引用（节点成为自己的祖先）"""

    def __init__(self, node_id: Any = None, parent_id: Any = None, message: str = None, **kwargs):
        kwargs.setdefault("code", ErrorCode.INVALID_PARENT)
        self.node_id = node_id
        self.parent_id = parent_id
        super().__init__(
            message or "不能将节点移动到自身或其子孙节点下",
            node_id=node_id,
            parent_id=parent_id,
            **kwargs
        )


class HasChildrenError(TreeError, ResourceConflictException):
    """节点存在子节点，非级联删除被拒绝"""

    def __init__(self, node_id: Any = None, children_count: int = 0, message: str = None, **kwargs):
        kwargs.setdefault("code", ErrorCode.HAS_CHILDREN)
        self.node_id = node_id
        self.children_count = children_count
        super().__init__(
            message or f"节点存在 {children_count} 个子节点，请先移动或删除子节点",
            node_id=node_id,
            children_count=children_count,
            **kwargs
        )


class BoundaryError(TreeError, BusinessException):
    """已在最前（上移）或最后（下移），无法继续移动"""

    def __init__(self, node_id: Any = None, direction: str = None, message: str = None, **kwargs):
        kwargs.setdefault("code", ErrorCode.BOUNDARY_ERROR)
        self.node_id = node_id
        self.direction = direction
        if message is None:
            message = "节点已在最顶部" if direction == "up" else "节点已在最底部"
        super().__init__(message, node_id=node_id, direction=direction, **kwargs)


class SetMismatchError(TreeError, ValidationException):
    """重排序提交的 ID 列表不是当前同级节点的一个排列"""

    def __init__(
        self,
        missing: List[Any] = None,
        unexpected: List[Any] = None,
        duplicated: List[Any] = None,
        message: str = "排序列表与当前同级节点不一致",
        **kwargs
    ):
        kwargs.setdefault("code", ErrorCode.SET_MISMATCH)
        self.missing = list(missing or [])
        self.unexpected = list(unexpected or [])
        self.duplicated = list(duplicated or [])
        details = []
        if self.missing:
            details.append(f"缺少节点: {self.missing}")
        if self.unexpected:
            details.append(f"非同级节点: {self.unexpected}")
        if self.duplicated:
            details.append(f"重复节点: {self.duplicated}")
        kwargs.setdefault("details", details)
        super().__init__(message, **kwargs)


class NodeNotFoundError(TreeError, ResourceNotFoundException):
    """操作目标节点不存在"""

    def __init__(self, node_id: Any = None, message: str = None, **kwargs):
        kwargs.setdefault("code", ErrorCode.NODE_NOT_FOUND)
        self.node_id = node_id
        super().__init__(message or f"节点不存在: {node_id}", resource_type="Node", resource_id=node_id, **kwargs)


class StorageError(TreeError, ServiceUnavailableException):
    """存储适配器失败（超时、约束冲突等）

    原始异常保存在 __cause__ 中，由调用方决定是否重试。
    """

    def __init__(self, message: str = "存储操作失败", **kwargs):
        kwargs.setdefault("code", ErrorCode.STORAGE_ERROR)
        super().__init__(message, **kwargs)


class Err:
    """异常快捷创建类

    使用示例:
        from ytree import Err

        raise Err.not_found("节点不存在", resource_id="a1b2")
        raise Err.invalid("数据验证失败", details=["label 不能为空"])
        raise Err.unavailable("数据库连接失败")
    """

    @staticmethod
    def not_found(message: str = "资源不存在", **kwargs) -> ResourceNotFoundException:
        """资源不存在 (404)"""
        return ResourceNotFoundException(message, **kwargs)

    @staticmethod
    def conflict(message: str = "资源冲突", **kwargs) -> ResourceConflictException:
        """资源冲突 (409)"""
        return ResourceConflictException(message, **kwargs)

    @staticmethod
    def invalid(message: str = "数据验证失败", **kwargs) -> ValidationException:
        """数据验证失败 (422)"""
        return ValidationException(message, **kwargs)

    @staticmethod
    def unavailable(message: str = "服务暂时不可用", **kwargs) -> ServiceUnavailableException:
        """服务不可用 (503)"""
        return ServiceUnavailableException(message, **kwargs)

    @staticmethod
    def fail(message: str = "操作失败", **kwargs) -> BusinessException:
        """通用业务异常 (400)"""
        return BusinessException(message, **kwargs)
