"""全局异常处理器

提供 FastAPI 全局异常处理器，自动将异常转换为统一的 JSON 响应格式。
"""

import os

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from ytree.log import get_logger
from ytree.response import ResponseStatus
from .exceptions import BusinessException, StorageError

logger = get_logger()

# StorageError 对外统一使用的提示
STORAGE_ERROR_MESSAGE = "存储服务暂不可用"


async def business_exception_handler(
    request: Request,
    exc: BusinessException
) -> JSONResponse:
    """业务异常处理器

    将 BusinessException 及其子类（包括树形节点异常）转换为统一响应。
    StorageError 只返回通用失败信息，底层原因仅写日志。
    """
    log = logger.error if isinstance(exc, StorageError) else logger.warning
    log(
        f"Business exception: {exc.code} - {exc.message}",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error_code": exc.code,
            "status_code": exc.status_code,
            "details": exc.details,
        }
    )

    if isinstance(exc, StorageError):
        message, details = STORAGE_ERROR_MESSAGE, []
    else:
        message, details = exc.message, exc.details

    content = {
        "status": ResponseStatus.ERROR.value,
        "message": message,
        "msg_details": details,
        "data": {}
    }

    if exc.code:
        content["error_code"] = exc.code

    # 调试模式下附带上下文信息
    is_debug = os.getenv("DEBUG", "false").lower() == "true"
    if is_debug and exc.extra:
        content["debug_info"] = {k: str(v) for k, v in exc.extra.items()}

    return JSONResponse(
        status_code=exc.status_code,
        content=content
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """请求参数验证异常处理器"""
    errors = []
    for error in exc.errors():
        loc_parts = [str(loc) for loc in error["loc"] if loc not in ("body", "query", "path", "header", "cookie")]
        field = ".".join(loc_parts) if loc_parts else "请求体"
        errors.append(f"{field}: {error['msg']}")

    logger.warning(
        f"Validation error: {len(errors)} field(s) failed validation",
        extra={
            "path": request.url.path,
            "method": request.method,
            "errors": errors
        }
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "status": ResponseStatus.ERROR.value,
            "message": "请求参数验证失败",
            "msg_details": errors,
            "data": {},
            "error_code": "VALIDATION_ERROR"
        }
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException
) -> JSONResponse:
    """HTTP 异常处理器"""
    log_level = "warning" if exc.status_code < 500 else "error"
    getattr(logger, log_level)(
        f"HTTP exception: {exc.status_code} - {exc.detail}",
        extra={
            "path": request.url.path,
            "method": request.method,
            "status_code": exc.status_code
        }
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "status": ResponseStatus.ERROR.value,
            "message": str(exc.detail),
            "msg_details": [],
            "data": {}
        }
    )


async def general_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """兜底异常处理器，记录完整堆栈并返回通用错误"""
    logger.error(
        f"Unhandled exception: {type(exc).__name__}: {exc}",
        exc_info=True,
        extra={
            "path": request.url.path,
            "method": request.method,
        }
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "status": ResponseStatus.ERROR.value,
            "message": "服务器内部错误",
            "msg_details": [],
            "data": {},
            "error_code": "INTERNAL_SERVER_ERROR"
        }
    )


def register_exception_handlers(app) -> None:
    """注册全局异常处理器

    使用示例:
        from fastapi import FastAPI
        from ytree import register_exception_handlers

        app = FastAPI()
        register_exception_handlers(app)
    """
    app.add_exception_handler(BusinessException, business_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    logger.info("Exception handlers registered successfully")
