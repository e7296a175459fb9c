# backend/app.py
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import asyncio
import logging

from core.errors import BalanceCheckError
from .config import settings
from .db import init_db
from .api import balance, keys
from .core.key_monitor import start_key_monitor

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # 启动时初始化数据库
    init_db()
    logger.info("数据库初始化完成")

    monitor_task = None
    if settings.key_monitor_interval_minutes > 0:
        # 启动余额定时刷新（作为后台任务）
        monitor_task = asyncio.create_task(
            start_key_monitor(interval_minutes=settings.key_monitor_interval_minutes)
        )
        logger.info(f"余额定时刷新已启动，间隔 {settings.key_monitor_interval_minutes} 分钟")

    yield

    # 关闭时取消监控任务
    if monitor_task is not None:
        monitor_task.cancel()
        try:
            await monitor_task
        except asyncio.CancelledError:
            pass
        logger.info("应用关闭，余额定时刷新已停止")

app = FastAPI(title=settings.project_name, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BalanceCheckError)
async def balance_check_error_handler(request: Request, exc: BalanceCheckError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} 失败: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


# 余额查询接口的请求体校验失败（字段类型错误、JSON 无法解析）同样返回 400 {error}
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    if request.url.path.startswith("/check-balance"):
        logger.warning(f"请求验证失败: {request.url.path} - {exc.errors()}")
        return JSONResponse(status_code=400, content={"error": "缺少必要参数"})
    return await request_validation_exception_handler(request, exc)


app.include_router(balance.router)
app.include_router(keys.router)


@app.get("/health")
async def health():
    return {"status": "ok"}
