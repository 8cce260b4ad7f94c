import logging
from contextlib import asynccontextmanager

from core.config import get_settings
from fastapi import FastAPI
from mediahub.infrastructure.logging import setup_logging
from mediahub.infrastructure.storage.minio import get_minio
from mediahub.infrastructure.storage.postgres import get_postgres
from mediahub.interfaces.endpoints.routes import router as api_router
from mediahub.interfaces.errors.exception_handlers import register_exception_handlers
from starlette.middleware.cors import CORSMiddleware

# 加载配置信息
settings = get_settings()

# 初始化日志记录
setup_logging()
logger = logging.getLogger()

logger.info("媒体库服务启动中...")

# 定义FastApi路由tags标签
openapi_tags = [
    {
        "name": "状态模块",
        "description": "包含 **状态监测** 等API 接口，用于监测系统的运行状态。",
    },
    {
        "name": "文件夹模块",
        "description": "文件夹的创建、移动、重命名、删除以及层级查询。",
    },
    {
        "name": "文件模块",
        "description": "文件的上传、查询、归档、处理状态以及图片变体生成。",
    },
    {
        "name": "批量操作模块",
        "description": "对选中的多个文件执行删除、下载、复制、移动、打标签。",
    },
    {
        "name": "图片模块",
        "description": "图片压缩优化与推荐格式查询。",
    },
    {
        "name": "界面状态模块",
        "description": "媒体库选择/视图状态的计算与文件夹导航。",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """创建FastAPI应用生命周期上下文管理器"""
    logger.info("媒体库服务正在初始化")

    # 1.初始化Postgres数据库客户端(内存后端时跳过)
    postgres_client = None
    if settings.media_repository_backend == "postgres":
        logger.info("开始初始化 Postgres 客户端")
        postgres_client = get_postgres()
        await postgres_client.init()
        logger.info("Postgres 客户端初始化完成")
    else:
        logger.info(f"使用[{settings.media_repository_backend}]数据仓库后端，跳过Postgres初始化")

    # 2.初始化MinIO对象存储客户端
    logger.info("开始初始化 MinIO 客户端")
    minio_client = get_minio()
    await minio_client.init()
    logger.info("MinIO 客户端初始化完成")

    try:
        # 3.lifespan分界点
        yield
    finally:
        # 4.应用关闭前的清理工作
        logger.info("媒体库服务正在关闭")
        if postgres_client is not None:
            await postgres_client.shutdown()
        await minio_client.shutdown()
        logger.info("媒体库服务关闭成功")


app = FastAPI(
    title="MediaHub媒体库服务",
    description="媒体资源管理服务：层级文件夹、文件登记、图片优化与批量操作",
    lifespan=lifespan,
    openapi_tags=openapi_tags,
    version="1.0.0",
)

# 配置CORS中间件，解决跨域问题
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # 允许所有来源
    allow_credentials=True,
    allow_methods=["*"],  # 允许所有方法
    allow_headers=["*"],  # 允许所有头部
)

# 注册全局异常处理器
register_exception_handlers(app)

app.include_router(api_router, prefix="/api")

logger.info("FastAPI应用程序实例已创建。")
