"""
FastAPI应用主入口
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.middleware import RequestIDMiddleware, LoggingMiddleware
from api.routes import payments as payments_routes
from api.routes import webhooks as webhook_routes
from core.config import Settings, settings as default_settings
from core.exceptions import register_exception_handlers
from core.logging_config import get_logger, configure_logging
from core.response import json_response
from infrastructure.database import Database
from infrastructure.external.payments import get_payment_gateway


logger = get_logger(__name__)


def _health():
    return json_response(status="Ok", message="API is running successfully")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """构建应用；测试可传入独立的 Settings，并在启动前替换 app.state 上的依赖"""
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """应用生命周期管理：数据库与支付网关在此构建并挂到 app.state"""
        configure_logging(settings.DEBUG)

        database = Database(settings.database, echo=False)
        try:
            await database.ping()
        except Exception as exc:
            logger.critical("database_connection_failed", error=str(exc))
            await database.dispose()
            raise

        # 启动时创建数据库表（仅开发环境）。生产应使用 Alembic 迁移
        if settings.DEBUG:
            await database.create_tables()
            logger.info("database_initialized", message="Database tables created (development)")
        else:
            logger.info(
                "database_migrations_required",
                message="No auto-create in production, use Alembic migrations (alembic upgrade head)",
            )

        gateway = get_payment_gateway(settings.razorpay)
        app.state.database = database
        app.state.payment_gateway = gateway
        logger.info("application_started", port=settings.PORT, provider=gateway.provider)

        yield

        await gateway.aclose()
        await database.dispose()
        logger.info("application_shutdown", message="Application shutdown")

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
        description="Razorpay 订单、支付校验、退款与 Webhook 服务",
    )
    app.state.settings = settings

    # 添加中间件（注意顺序：后添加的先执行）
    app.add_middleware(
        LoggingMiddleware,
        log_body=settings.LOG_REQUEST_BODY_ENABLE_BY_DEFAULT and settings.DEBUG,
        max_body_bytes=settings.LOG_REQUEST_BODY_MAX_BYTES,
    )
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app, expose_details=settings.DEBUG)

    app.include_router(payments_routes.router)
    app.include_router(webhook_routes.router)
    # 兼容旧前端：下单接口同时挂在根路径
    app.add_api_route(
        "/create-order",
        payments_routes.create_order,
        methods=["POST"],
        tags=["Payments"],
        include_in_schema=False,
    )
    app.add_api_route("/api", _health, methods=["GET"], tags=["Health"])
    app.add_api_route("/", _health, methods=["GET"], tags=["Health"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=default_settings.PORT,
        reload=default_settings.DEBUG,
        log_level="debug" if default_settings.DEBUG else "info",
    )
