import logging
import traceback
from typing import Any, Dict

from fastapi import Request
from fastapi.responses import JSONResponse

from .exceptions import InternalServerError, TransientStoreError

logger = logging.getLogger("loyaltyapi")


def _request_context(request: Request) -> Dict[str, Any]:
    client = request.client.host if request.client else "-"
    user = getattr(request.state, "user_id", None)
    return {
        "method": request.method,
        "url": str(request.url),
        "client": client,
        "user": user if user is not None else "-",
    }


def _prefix(ctx: Dict[str, Any]) -> str:
    return f"{ctx['method']} {ctx['url']} from {ctx['client']} (user={ctx['user']})"


async def handle_base_api_exception(request, exc):
    """도메인 예외 - 응답 형태는 error_code가 결정"""
    ctx = _request_context(request)
    msg = f"[{exc.error_code}] {_prefix(ctx)} -> {exc.status_code}: {exc.message}"
    if exc.status_code >= 500:
        logger.error(msg)
    else:
        logger.warning(msg)
    return JSONResponse(status_code=exc.status_code, content=exc.detail)  # type: ignore[arg-type]


async def handle_http_exception(request, exc):
    ctx = _request_context(request)
    error_msg = f"[HTTPException] {_prefix(ctx)} -> {exc.status_code}: {exc.detail}"

    if getattr(exc, "status_code", 500) >= 500:
        tb_str = "".join(traceback.format_tb(exc.__traceback__))
        logger.error(f"{error_msg}\n\nStack Trace:\n{tb_str}")
    else:
        logger.warning(error_msg)

    if isinstance(exc.detail, dict) and "error" in exc.detail:  # type: ignore[truthy-bool]
        content = exc.detail  # type: ignore[assignment]
    else:
        content = {
            "success": False,
            "error": {
                "code": "HTTP_ERROR",
                "message": str(exc.detail),
                "details": {},
            },
        }
    headers = getattr(exc, "headers", None)
    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


async def handle_validation_error(request, exc):
    ctx = _request_context(request)
    logger.warning(f"[ValidationError] {_prefix(ctx)} -> 422: {exc.errors()}")
    content = {
        "success": False,
        "error": {
            "code": "VALIDATION_001",
            "message": "Validation failed",
            "details": {"errors": exc.errors()},
        },
    }
    return JSONResponse(status_code=422, content=content)


async def handle_store_unavailable(request, exc):
    """DB 연결 장애 - 트랜잭션은 이미 롤백된 상태"""
    ctx = _request_context(request)
    logger.error(f"[OperationalError] {_prefix(ctx)}: {exc}")
    transient = TransientStoreError()
    return JSONResponse(status_code=transient.status_code, content=transient.detail)  # type: ignore[arg-type]


async def handle_unexpected_error(request, exc):
    ctx = _request_context(request)

    tb_str = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    logger.error(
        f"\n{'=' * 80}\n"
        f"[Unhandled Error] {_prefix(ctx)}\n"
        f"Exception Type: {type(exc).__name__}\n"
        f"Exception Message: {str(exc)}\n\n"
        f"Full Stack Trace:\n{tb_str}"
        f"{'=' * 80}"
    )

    internal = InternalServerError()
    return JSONResponse(status_code=internal.status_code, content=internal.detail)  # type: ignore[arg-type]


def register_exception_handlers(app) -> None:
    """앱에 공통 예외 핸들러 등록 (가장 구체적인 타입이 먼저 매칭됨)"""
    from fastapi.exceptions import RequestValidationError
    from sqlalchemy.exc import OperationalError
    from starlette.exceptions import HTTPException as StarletteHTTPException

    from .exceptions import BaseAPIException

    app.add_exception_handler(BaseAPIException, handle_base_api_exception)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(OperationalError, handle_store_unavailable)
    app.add_exception_handler(Exception, handle_unexpected_error)
