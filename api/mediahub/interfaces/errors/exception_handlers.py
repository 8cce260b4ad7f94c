import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from mediahub.application.errors.exceptions import AppException
from mediahub.interfaces.schemas import Response
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    """统一处理媒体库服务中的异常，涵盖：自定义业务异常、请求参数校验异常、HTTP异常、通用异常"""

    @app.exception_handler(AppException)
    async def app_exception_handler(
        request: Request, exc: AppException
    ) -> JSONResponse:
        """自定义应用异常处理器，捕获AppException并返回标准化响应"""
        logger.error(f"App exception[{exc.error_code}]: {exc.msg}")

        return JSONResponse(
            status_code=exc.status_code,
            content=jsonable_encoder(
                Response(code=exc.code, msg=exc.msg, data=exc.data or {})
            ),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """请求参数校验失败，统一返回422"""
        logger.error(f"Request validation error: {exc.errors()}")

        return JSONResponse(
            status_code=422,
            content=jsonable_encoder(
                Response(code=422, msg="请求参数校验失败", data={"errors": exc.errors()})
            ),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request, exc: HTTPException
    ) -> JSONResponse:
        """HTTP异常处理器，捕获HTTPException并返回标准化响应"""
        logger.error(f"HTTP exception: {exc.detail}")

        return JSONResponse(
            status_code=exc.status_code,
            content=Response(code=exc.status_code, msg=exc.detail, data={}).model_dump(),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """通用异常处理器，捕获所有未处理的异常并返回标准化响应, 状态码500"""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)

        return JSONResponse(
            status_code=500,
            content=Response(code=500, msg="Internal Server Error", data={}).model_dump(),
        )
