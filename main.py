"""
FastAPI应用主入口
"""
from fastapi import FastAPI
from contextlib import asynccontextmanager

from api.routes import admin as admin_routes
from api.routes import payments as payments_routes
from api.middleware import RequestIDMiddleware, LoggingMiddleware, PermissiveCORSMiddleware
from core.config import settings
from core.exceptions import register_exception_handlers
from core.response import success_response
from core.logging_config import get_logger, configure_logging
from infrastructure.cache import init_redis_cache, shutdown_redis_cache
from infrastructure.database import create_tables
from infrastructure.external.email import ResendEmailSender
from infrastructure.external.payments import get_payment_gateway
from infrastructure.notifier import CeleryNotifier
from infrastructure.rate_limit import build_attempt_limiter


# 初始化日志：在入口处显式配置，避免模块导入时的副作用
configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    # 启动时创建数据库表（仅开发环境）。生产应使用 Alembic 迁移
    if settings.DEBUG:
        await create_tables()
        logger.info("database_initialized", message="Database tables created (development)")
    else:
        logger.info(
            "database_migrations_required",
            message="No auto-create in production, use Alembic migrations (alembic upgrade head)"
        )

    redis_cache = None
    if settings.redis.url:
        try:
            redis_cache = await init_redis_cache()
        except Exception as exc:
            logger.error("redis_cache_init_failed", error=str(exc))
    app.state.redis_cache = redis_cache

    # 支付网关与邮件客户端复用 HTTP 连接，整个进程共享一份
    app.state.payment_gateway = get_payment_gateway()
    app.state.email_sender = ResendEmailSender()
    # VERIFICATION__LIMITER_BACKEND=redis 但 Redis 不可用时直接启动失败
    app.state.attempt_limiter = build_attempt_limiter(redis_cache)
    app.state.notifier = CeleryNotifier()

    yield

    # 关闭时的清理工作
    await app.state.payment_gateway.aclose()
    await app.state.email_sender.aclose()
    if redis_cache is not None:
        await shutdown_redis_cache()
        logger.info("redis_cache_shutdown", message="Redis cache shutdown")
    logger.info("application_shutdown", message="Application shutdown")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
    description="Razorpay 订单创建与支付校验服务",
)

# 添加中间件（注意顺序：后添加的在外层，先执行）
# 1. 日志中间件（最内层，依赖 request_id）
app.add_middleware(LoggingMiddleware)

# 2. Request ID中间件（为日志绑定 request_id / client_ip）
app.add_middleware(RequestIDMiddleware)

# 3. CORS中间件（最外层：OPTIONS 直接返回，其余响应统一追加 CORS 头）
app.add_middleware(PermissiveCORSMiddleware)

# 注册全局异常处理器
register_exception_handlers(app)


# 注册路由
app.include_router(payments_routes.router, prefix="/api/v1")
app.include_router(admin_routes.router, prefix="/api/v1")


# 健康检查
@app.get("/health", tags=["Health"])
async def health_check():
    """健康检查端点"""
    return success_response(status="healthy", version=settings.VERSION)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info"
    )
