"""后台调度层 - 统一配置读取与校验.

目标:
- 将环境变量读取、默认值、校验集中到单一入口,避免散落在各模块中重复解析.
- `create_app(settings=...)` 只消费 Settings,不再直接读取环境变量.

说明:
- Settings 使用 `pydantic-settings` 的 `BaseSettings` 从环境变量与本地 `.env`(可选)读取配置.
- 生产环境默认更严格: 缺失密钥/连接串会直接抛出 ValueError.
"""

from __future__ import annotations

import json
import logging
import secrets
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DOTENV_PATH = PROJECT_ROOT / ".env"

DEFAULT_ENVIRONMENT = "development"
APP_VERSION = "0.3.0"

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FILE = "userdata/logs/backoffice.log"
DEFAULT_LOG_MAX_SIZE_BYTES = 10 * 1024 * 1024
DEFAULT_LOG_BACKUP_COUNT = 5

DEFAULT_ADMIN_URL_PREFIX = "/admin"
DEFAULT_ADMIN_PER_PAGE = 20
ADMIN_PER_PAGE_MIN = 1
ADMIN_PER_PAGE_MAX = 200


def _parse_csv(raw: str) -> tuple[str, ...]:
    parts = [item.strip() for item in raw.split(",")]
    return tuple(item for item in parts if item)


def _resolve_sqlite_fallback_url() -> str:
    return f"sqlite:///{(PROJECT_ROOT / 'userdata' / 'backoffice_dev.db').absolute()}"


class Settings(BaseSettings):
    """应用运行时设置集合."""

    model_config = SettingsConfigDict(
        env_ignore_empty=True,
        extra="ignore",
        frozen=True,
        str_strip_whitespace=True,
        # `ADMIN_INTERCEPTORS` 使用逗号分隔,关闭自动 JSON 解码,统一交由 validator 解析。
        enable_decoding=False,
        populate_by_name=True,
    )

    environment: str = Field(default=DEFAULT_ENVIRONMENT, validation_alias="FLASK_ENV")
    debug: bool = Field(default=False, validation_alias="FLASK_DEBUG")

    app_name: str = Field(default="Backoffice", validation_alias="APP_NAME")
    app_version: str = APP_VERSION

    secret_key: str = Field(default="", validation_alias="SECRET_KEY")
    database_url: str = Field(default="", validation_alias="DATABASE_URL")

    log_level: str = Field(default=DEFAULT_LOG_LEVEL, validation_alias="LOG_LEVEL")
    log_file: str = Field(default=DEFAULT_LOG_FILE, validation_alias="LOG_FILE")
    log_max_size_bytes: int = Field(default=DEFAULT_LOG_MAX_SIZE_BYTES, validation_alias="LOG_MAX_SIZE")
    log_backup_count: int = Field(default=DEFAULT_LOG_BACKUP_COUNT, validation_alias="LOG_BACKUP_COUNT")
    log_json: bool = Field(default=False, validation_alias="LOG_JSON")

    csrf_enabled: bool = Field(default=True, validation_alias="WTF_CSRF_ENABLED")

    admin_url_prefix: str = Field(default=DEFAULT_ADMIN_URL_PREFIX, validation_alias="ADMIN_URL_PREFIX")
    admin_interceptors: tuple[str, ...] = Field(default=(), validation_alias="ADMIN_INTERCEPTORS")
    admin_per_page: int = Field(default=DEFAULT_ADMIN_PER_PAGE, validation_alias="ADMIN_PER_PAGE")
    admin_registry: str = Field(default="", validation_alias="ADMIN_REGISTRY")

    @field_validator("admin_interceptors", mode="before")
    @classmethod
    def _parse_csv_values(cls, value: object) -> object:
        if value is None:
            return ()
        if isinstance(value, str):
            raw = value.strip()
            if not raw:
                return ()
            if raw.startswith("["):
                parsed = json.loads(raw)
                if not isinstance(parsed, list):
                    raise ValueError("must be a JSON array or a comma-separated string")
                return tuple(item for item in (str(v).strip() for v in parsed) if item)
            return _parse_csv(raw)
        if isinstance(value, (list, tuple)):
            return tuple(str(item).strip() for item in value if str(item).strip())
        return value

    @field_validator("admin_url_prefix")
    @classmethod
    def _normalize_prefix(cls, value: str) -> str:
        cleaned = "/" + value.strip().strip("/")
        return cleaned if cleaned != "/" else ""

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.upper()

    @property
    def is_production(self) -> bool:
        """当前是否为生产环境."""
        return self.environment.strip().lower() == "production"

    @property
    def sqlalchemy_engine_options(self) -> dict[str, object]:
        """生成 SQLAlchemy Engine 配置选项."""
        if self.database_url.startswith("sqlite"):
            return {"pool_pre_ping": True, "connect_args": {"check_same_thread": False}}
        return {"pool_pre_ping": True, "pool_recycle": 300, "echo": bool(self.debug)}

    def to_flask_config(self) -> dict[str, object]:
        """转换为 Flask app.config 可写入的配置字典."""
        return {
            "ENV": self.environment,
            "DEBUG": self.debug,
            "TESTING": self.environment.strip().lower() == "testing",
            "APP_NAME": self.app_name,
            "APP_VERSION": self.app_version,
            "SECRET_KEY": self.secret_key,
            "SQLALCHEMY_DATABASE_URI": self.database_url,
            "SQLALCHEMY_TRACK_MODIFICATIONS": False,
            "SQLALCHEMY_ENGINE_OPTIONS": dict(self.sqlalchemy_engine_options),
            "LOG_LEVEL": self.log_level,
            "LOG_FILE": self.log_file,
            "LOG_MAX_SIZE": self.log_max_size_bytes,
            "LOG_BACKUP_COUNT": self.log_backup_count,
            "LOG_JSON": self.log_json,
            "WTF_CSRF_ENABLED": self.csrf_enabled,
            "ADMIN_URL_PREFIX": self.admin_url_prefix,
            "ADMIN_INTERCEPTORS": self.admin_interceptors,
            "ADMIN_PER_PAGE": self.admin_per_page,
            "ADMIN_REGISTRY": self.admin_registry,
        }

    @classmethod
    def load(cls) -> Settings:
        """从环境变量加载 Settings 并执行必要校验."""
        load_dotenv(dotenv_path=DOTENV_PATH if DOTENV_PATH.exists() else None, override=False)
        return cls()

    @model_validator(mode="after")
    def _apply_defaults_and_validate(self) -> Settings:
        environment_normalized = self.environment.strip().lower()

        debug = self._resolve_debug(environment_normalized)
        self._ensure_secret_key(debug)
        self._ensure_database_url(environment_normalized)
        self._validate()
        return self

    def _resolve_debug(self, environment_normalized: str) -> bool:
        if "debug" in self.model_fields_set:
            return bool(self.debug)
        debug = environment_normalized != "production"
        object.__setattr__(self, "debug", debug)
        return debug

    def _ensure_secret_key(self, debug: bool) -> None:
        if self.secret_key:
            return
        if not debug:
            raise ValueError("SECRET_KEY environment variable must be set in production")
        object.__setattr__(self, "secret_key", secrets.token_urlsafe(32))
        logger.warning("开发环境使用随机生成的SECRET_KEY,生产环境请设置环境变量")

    def _ensure_database_url(self, environment_normalized: str) -> None:
        if self.database_url:
            return
        if environment_normalized == "production":
            raise ValueError("DATABASE_URL environment variable must be set in production")
        object.__setattr__(self, "database_url", _resolve_sqlite_fallback_url())
        logger.warning("未设置 DATABASE_URL,使用本地 sqlite 数据库")

    def _validate(self) -> None:
        if not ADMIN_PER_PAGE_MIN <= self.admin_per_page <= ADMIN_PER_PAGE_MAX:
            msg = f"ADMIN_PER_PAGE 必须在 {ADMIN_PER_PAGE_MIN}-{ADMIN_PER_PAGE_MAX} 之间"
            raise ValueError(msg)
        if self.log_level not in logging.getLevelNamesMapping():
            msg = f"LOG_LEVEL 无效: {self.log_level}"
            raise ValueError(msg)
