"""
API依赖项 - 从 app.state 注入数据库、支付网关与应用服务
"""
from functools import partial

from fastapi import Depends, Request

from application.ports.payment_gateway import PaymentGateway
from application.services.payment_service import PaymentService
from core.config import Settings
from infrastructure.database import Database
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> Database:
    """获取应用启动时构建的数据库句柄"""
    return request.app.state.database


def get_payment_gateway(request: Request) -> PaymentGateway:
    return request.app.state.payment_gateway


async def get_payment_service(
    settings: Settings = Depends(get_settings),
    database: Database = Depends(get_database),
    gateway: PaymentGateway = Depends(get_payment_gateway),
) -> PaymentService:
    # 每个请求使用独立的 UoW，网关与引擎在应用级复用
    return PaymentService(
        gateway=gateway,
        uow_factory=partial(SQLAlchemyUnitOfWork, database.session_factory),
        currency=settings.razorpay.currency,
    )
