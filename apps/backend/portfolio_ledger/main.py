"""
Portfolio Ledger FastAPI 應用程式入口

- 生命週期：啟動時建表（SQLite），關閉時釋放連線池
- 業務錯誤 (AppError) 轉為統一的 JSON 錯誤格式
- 請求計時與未預期例外記錄
"""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from portfolio_ledger.api.router import api_router
from portfolio_ledger.config import get_settings
from portfolio_ledger.database import engine, init_db
from portfolio_ledger.errors import AppError, InternalError

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("%s v%s 啟動中 (env=%s)", settings.app_name, settings.app_version, settings.app_env)
    await init_db()
    yield
    logger.info("%s 關閉中，釋放資料庫連線", settings.app_name)
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="投資組合帳本與投入配置 API",
    docs_url=None if settings.is_production else "/docs",
    redoc_url=None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """業務錯誤依類型回傳 400 / 403 / 404 / 409，details 原樣輸出"""
    logger.info(
        "%s %s 被拒絕 [%s]: %s",
        request.method, request.url.path, exc.code, exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.middleware("http")
async def timing_middleware(request: Request, call_next):
    """記錄每個請求的耗時；未預期的例外轉為 500 INTERNAL_ERROR"""
    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception as e:
        elapsed = time.perf_counter() - started
        logger.exception(
            "%s %s - 500 (%.3fs)", request.method, request.url.path, elapsed,
        )
        # 只有開發模式才回傳例外內容
        error = InternalError(str(e) if settings.is_development else "Internal server error")
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    elapsed = time.perf_counter() - started
    logger.info(
        "%s %s - %d (%.3fs)",
        request.method, request.url.path, response.status_code, elapsed,
    )
    response.headers["X-Process-Time"] = f"{elapsed:.3f}"
    return response


app.include_router(api_router)


@app.get("/health", tags=["系統"])
async def health_check():
    """API 與資料庫連線狀態"""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        database = "ok"
    except Exception:
        logger.exception("健康檢查：資料庫連線失敗")
        database = "unavailable"

    return {
        "status": "healthy" if database == "ok" else "degraded",
        "version": settings.app_version,
        "environment": settings.app_env,
        "database": database,
    }
