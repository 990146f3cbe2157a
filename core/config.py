"""
配置文件 - 项目配置管理
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.engine import URL
from typing import Optional


class DatabaseSettings(BaseModel):
    # 完整 URL 优先；否则由分项拼装 PostgreSQL URL
    url: Optional[str] = None
    user: str = "postgres"
    password: Optional[str] = None
    host: str = "localhost"
    port: int = 5432
    name: str = "payments"
    ssl: bool = False
    pool_size: int = 5
    max_overflow: int = 10

    def render_url(self) -> str:
        if self.url:
            return self.url
        return URL.create(
            drivername="postgresql",
            username=self.user,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.name,
        ).render_as_string(hide_password=False)


class GatewayTimeouts(BaseModel):
    connect: float = 1.0
    read: float = 3.0
    write: float = 3.0
    total: float = 5.0


class GatewayRetry(BaseModel):
    # Only connection-establishment failures are retried; 0 disables retries
    max: int = 0
    base_backoff: float = 0.2


class RazorpaySettings(BaseModel):
    key_id: Optional[str] = None
    key_secret: Optional[str] = None
    webhook_secret: Optional[str] = None
    base_url: str = "https://api.razorpay.com/v1"
    currency: str = "INR"
    timeouts: GatewayTimeouts = Field(default_factory=GatewayTimeouts)
    retry: GatewayRetry = Field(default_factory=GatewayRetry)

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, v: str) -> str:
        u = (v or "").upper()
        if len(u) != 3 or not u.isalpha():
            raise ValueError("currency must be ISO-4217 alpha-3")
        return u


class Settings(BaseSettings):
    """项目配置"""

    # 基础配置
    PROJECT_NAME: str = "Razorpay Payments API"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    PORT: int = 4000

    # 分组配置：Database/Razorpay 采用嵌套模型（DATABASE__URL, RAZORPAY__KEY_ID ...）
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    razorpay: RazorpaySettings = Field(default_factory=RazorpaySettings)

    # CORS配置：前端来源（允许携带凭证）
    FRONTEND_URL: str = "http://localhost:3000"

    # 日志/请求体记录配置
    LOG_REQUEST_BODY_ENABLE_BY_DEFAULT: bool = True
    LOG_REQUEST_BODY_MAX_BYTES: int = 2048

    # pydantic-settings v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    @property
    def cors_origins(self) -> list[str]:
        """允许逗号分隔的多个来源。"""
        return [item.strip() for item in self.FRONTEND_URL.split(",") if item.strip()]


settings = Settings()
