from fastapi import status
from fastapi.responses import JSONResponse
from typing import Any, Optional, List
from datetime import datetime
from enum import Enum
from pydantic import BaseModel, Field


class ResponseStatus(str, Enum):
    """响应状态枚举

    用于标识响应的业务状态，与 HTTP 状态码独立。
    """
    SUCCESS = "success"   # 请求成功
    ERROR = "error"       # 请求失败（客户端或服务端错误）


class OkResponse(BaseModel):
    """通用操作响应模型（用于 OpenAPI 文档）"""
    status: str = Field(default="success", description="响应状态")
    message: str = Field(default="请求成功", description="响应消息")
    msg_details: List[str] = Field(default=[], description="详细信息")
    data: Any = Field(default={}, description="操作结果")


class BaseResponse:
    """基础响应类"""

    @staticmethod
    def _serialize_data(data: Any, _is_top_level: bool = True) -> Any:
        """递归序列化数据，处理 DTO 对象、节点对象和列表

        Args:
            data: 要序列化的数据
            _is_top_level: 是否为顶层调用，顶层 None 转为 {}，嵌套 None 保持为 None
        """
        if data is None:
            return {} if _is_top_level else None

        if isinstance(data, datetime):
            return data.strftime('%Y-%m-%d %H:%M:%S')

        # pydantic 模型
        if isinstance(data, BaseModel):
            return BaseResponse._serialize_data(data.model_dump(), False)

        # Node / TreeNode 等带 to_dict 的对象
        if hasattr(data, 'to_dict') and callable(getattr(data, 'to_dict')):
            return BaseResponse._serialize_data(data.to_dict(), False)

        if isinstance(data, (list, tuple)):
            return [BaseResponse._serialize_data(item, False) for item in data]

        if isinstance(data, dict):
            return {k: BaseResponse._serialize_data(v, False) for k, v in data.items()}

        if isinstance(data, Enum):
            return data.value

        return data

    @staticmethod
    def _create_response(
        message: str,
        data: Any = None,
        msg_details: Optional[List[str]] = None,
        status_code: int = status.HTTP_200_OK,
        response_status: ResponseStatus = ResponseStatus.SUCCESS
    ) -> JSONResponse:
        """创建标准化响应"""
        content = {
            "status": response_status.value,
            "message": message,
            "msg_details": msg_details if msg_details is not None else [],
            "data": BaseResponse._serialize_data(data)
        }

        return JSONResponse(
            status_code=status_code,
            content=content
        )


def OK(data: Any = None, message: str = "请求成功") -> JSONResponse:
    """200 OK - 请求成功"""
    return BaseResponse._create_response(
        data=data,
        message=message,
        status_code=status.HTTP_200_OK,
        response_status=ResponseStatus.SUCCESS
    )


def BadRequest(message: str = "请求参数错误", msg_details: Optional[List[str]] = None) -> JSONResponse:
    """400 Bad Request - 请求参数错误"""
    return BaseResponse._create_response(
        message=message,
        msg_details=msg_details,
        status_code=status.HTTP_400_BAD_REQUEST,
        response_status=ResponseStatus.ERROR
    )


def NotFound(message: str = "资源不存在", msg_details: Optional[List[str]] = None) -> JSONResponse:
    """404 Not Found - 资源不存在"""
    return BaseResponse._create_response(
        message=message,
        msg_details=msg_details,
        status_code=status.HTTP_404_NOT_FOUND,
        response_status=ResponseStatus.ERROR
    )


class Resp:
    """响应快捷类

    使用示例:
        from ytree.response import Resp

        return Resp.OK(data=node)
        return Resp.OK(data=forest, message="获取成功")
        return Resp.NotFound(message="节点不存在")
    """

    OK = staticmethod(OK)
    BadRequest = staticmethod(BadRequest)
    NotFound = staticmethod(NotFound)
