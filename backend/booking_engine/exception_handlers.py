"""
全局异常处理
把服务层抛出的 BookingEngineError、请求校验错误和 HTTPException
统一转换为 {"error": {...}} 响应
"""
import logging
from typing import Any, Dict, List

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from booking_engine.errors import BookingEngineError, InvalidDateRange

logger = logging.getLogger(__name__)

# 日期类参数解析失败按 InvalidDateRange 处理
DATE_FIELDS = {"check_in", "check_out", "date", "start_date", "end_date"}

HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


def _envelope(code: str, message: str, details: Any) -> Dict[str, Any]:
    return {"error": {"code": code, "message": message, "details": details}}


def malformed_date_errors(errors: List[dict]) -> List[dict]:
    """挑出日期字段的格式错误（缺失、其他字段的错误不算）"""
    return [
        err for err in errors
        if err.get("loc") and err["loc"][-1] in DATE_FIELDS
        and str(err.get("type", "")).startswith("date_")
    ]


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(BookingEngineError)
    async def booking_engine_error_handler(request: Request, exc: BookingEngineError) -> JSONResponse:
        if exc.status_code >= 409:
            logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}")
        return JSONResponse(
            status_code=exc.status_code,
            content=jsonable_encoder(exc.to_dict()),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = jsonable_encoder(exc.errors())
        bad_dates = malformed_date_errors(errors)
        if bad_dates:
            fields = [err["loc"][-1] for err in bad_dates]
            error = InvalidDateRange(
                f"日期格式非法: {', '.join(fields)}",
                {"fields": fields, "errors": bad_dates},
            )
            return JSONResponse(status_code=error.status_code, content=error.to_dict())

        return JSONResponse(
            status_code=422,
            content=_envelope("VALIDATION_ERROR", "请求参数校验失败", {"errors": errors}),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        detail = exc.detail
        if isinstance(detail, dict):
            message = detail.get("message", "HTTP error")
            details = detail
        else:
            message = str(detail)
            details = {}
        return JSONResponse(
            status_code=exc.status_code,
            content=_envelope(HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR"), message, details),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=500,
            content=_envelope("INTERNAL_ERROR", "服务器内部错误", {}),
        )
