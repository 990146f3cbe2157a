"""
数据库配置和连接管理

Database 句柄在应用启动时显式构建，并通过依赖注入传给各组件，
测试中可替换为 SQLite 实例。
"""
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, async_sessionmaker
from sqlalchemy.engine import make_url

from core.config import DatabaseSettings
from core.logging_config import get_logger
from infrastructure.models import Base


logger = get_logger(__name__)


def _build_async_url(database_url: str) -> str:
    """确保数据库URL使用异步驱动"""
    url = make_url(database_url)
    drivername = url.drivername

    if "+" in drivername:
        return database_url

    driver_map = {
        "postgresql": "postgresql+asyncpg",
        "postgres": "postgresql+asyncpg",
        "sqlite": "sqlite+aiosqlite",
    }

    if drivername not in driver_map:
        raise ValueError(f"不支持的数据库驱动: {drivername}. 请使用 async 驱动或更新DATABASE__URL")

    async_driver = driver_map[drivername]
    return url.set(drivername=async_driver).render_as_string(hide_password=False)


class Database:
    """持有异步引擎与会话工厂的持久化句柄"""

    def __init__(self, config: DatabaseSettings, *, echo: bool = False) -> None:
        url = _build_async_url(config.render_url())
        engine_kwargs: dict = {"echo": echo}
        if url.startswith("postgresql"):
            engine_kwargs.update(
                pool_size=config.pool_size,
                max_overflow=config.max_overflow,
                pool_pre_ping=True,
            )
            if config.ssl:
                engine_kwargs["connect_args"] = {"ssl": "require"}
        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)
        # 创建异步会话工厂
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            expire_on_commit=False,
        )

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    async def ping(self) -> None:
        """连接校验；失败时抛出驱动异常，由调用方决定是否终止进程"""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("database_connection_verified", dialect=self.dialect_name)

    async def create_tables(self) -> None:
        """
        创建所有表

        根据models中定义的所有模型创建对应的数据库表
        """
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_tables(self) -> None:
        """
        删除所有表

        警告：仅用于测试环境，会删除所有数据！
        """
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        await self.engine.dispose()
