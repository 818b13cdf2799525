#!/usr/bin/env python3
"""
LingoLife 单词卡片后端 - FastAPI 主应用入口
Description: 提供单词仓库、词典查询代理和用户认证的REST API
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from lingolife.api.routes import auth, dictionary, words
from lingolife.config.settings import Settings, settings
from lingolife.services.dictionary_service import DictionaryService
from lingolife.utils.database import select_backend
from lingolife.utils.exceptions import LingoLifeError
from lingolife.utils.helpers import format_timestamp
from lingolife.utils.logger import setup_logging

logger = logging.getLogger(__name__)


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    return f"{field}: {first.get('msg', 'invalid value')}" if field else first.get("msg", "Invalid request")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    应用生命周期管理
    - 启动时记录存储后端
    - 关闭时释放数据库连接
    """
    logger.info(f"LingoLife 应用启动，存储后端: {app.state.backend.name}")
    yield
    logger.info("正在关闭 LingoLife 应用...")
    app.state.backend.dispose()
    logger.info("LingoLife 应用已安全关闭")


def create_application(config: Settings = None) -> FastAPI:
    """创建并配置FastAPI应用实例"""
    config = config or settings
    setup_logging(config)

    app = FastAPI(
        title=config.APP_NAME,
        description="单词卡片学习后端：单词仓库、复习候选、词典查询与用户认证",
        version=config.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    # 存储后端在启动时选定一次，之后不再切换
    app.state.settings = config
    app.state.backend = select_backend(config)
    app.state.dictionary_service = DictionaryService(config)

    # 配置CORS中间件
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 全局异常处理
    @app.exception_handler(LingoLifeError)
    async def lingolife_exception_handler(request, exc: LingoLifeError):
        if exc.status_code >= 500:
            logger.error(f"请求处理失败 {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.message}
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request, exc):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail}
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request, exc: RequestValidationError):
        message = _first_validation_message(exc)
        logger.warning(f"请求参数校验失败 {request.url.path}: {message}")
        return JSONResponse(
            status_code=400,
            content={"error": message}
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request, exc):
        logger.error(f"未处理的异常: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error"}
        )

    # 注册API路由
    app.include_router(words.router, prefix="/api/words", tags=["单词管理"])
    app.include_router(dictionary.router, prefix="/api/dictionary", tags=["词典查询"])
    app.include_router(auth.router, prefix="/api/auth", tags=["用户认证"])

    @app.get("/")
    async def root():
        """根端点 - 服务状态检查"""
        return {
            "status": "running",
            "service": config.APP_NAME,
            "version": config.APP_VERSION,
            "timestamp": format_timestamp()
        }

    @app.get("/health")
    def health_check():
        """健康检查端点"""
        db_status = app.state.backend.check_connection()
        return {
            "status": "healthy" if db_status else "unhealthy",
            "storage": app.state.backend.name,
            "database": "connected" if db_status else "disconnected",
            "timestamp": format_timestamp()
        }

    return app


# 创建应用实例
app = create_application()

if __name__ == "__main__":
    """开发环境直接运行"""
    uvicorn.run(
        "lingolife.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=True,
        log_level="info",
    )
