# app/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.deps import close_remote_service
from app.core.config import get_settings
from app.core.logging import setup_logging
from app.db.session import close_engines, create_all
from app.http_problem_handlers import register_exception_handlers
from app.obs.metrics import PrometheusMiddleware
from app.router_mount import mount_routers

settings = get_settings()
setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger("qaorders")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    # 无迁移：启动时按模型建表（已存在的表不动）
    await create_all()
    logger.info("QA order generator started (env=%s, shop=%s)", settings.ENV, settings.SHOP_DOMAIN)
    try:
        yield
    finally:
        await close_remote_service()
        await close_engines()


app = FastAPI(
    title="QA Order Generator",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://127.0.0.1:5173",
        "http://localhost:5173",
        "http://127.0.0.1:8000",
        "http://localhost:8000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(PrometheusMiddleware)

register_exception_handlers(app)
mount_routers(app)


@app.get("/")
async def root():
    return {"name": "QA Order Generator", "version": "1.0.0"}


@app.get("/ping")
async def ping():
    return {"status": "ok"}


@app.get("/healthz")
async def healthz():
    return {"status": "ok"}
