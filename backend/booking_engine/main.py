"""
预订引擎主应用入口
房间价格解析、可售性查询与防超售预订
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from booking_engine import __version__
from booking_engine.config import settings
from booking_engine.database import init_db
from booking_engine.exception_handlers import register_exception_handlers
from booking_engine.routers import rooms, bookings, public

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    init_db()
    logger.info(f"{settings.APP_NAME} {__version__} started")

    yield


# 创建应用
app = FastAPI(
    title=settings.APP_NAME,
    description="多租户住宿预订引擎：季节价解析、库存可售性与防超售预订",
    version=__version__,
    debug=settings.DEBUG,
    lifespan=lifespan
)

# CORS 配置
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # 生产环境应限制具体域名
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# 注册路由
app.include_router(rooms.router)
app.include_router(bookings.router)
app.include_router(public.router)


@app.get("/")
def root():
    """根路径"""
    return {
        "name": settings.APP_NAME,
        "version": __version__,
    }


@app.get("/health")
def health_check():
    """健康检查"""
    return {"status": "healthy"}
