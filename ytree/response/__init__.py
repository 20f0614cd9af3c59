"""响应模块

使用示例:
    from ytree.response import Resp

    return Resp.OK(data=result)
    return Resp.NotFound(message="节点不存在")
"""

from .base_response import (
    Resp,
    ResponseStatus,
    OkResponse,
    BaseResponse,
    OK,
    BadRequest,
    NotFound,
)

__all__ = [
    "Resp",
    "ResponseStatus",
    "OkResponse",
    "BaseResponse",
    "OK",
    "BadRequest",
    "NotFound",
]
