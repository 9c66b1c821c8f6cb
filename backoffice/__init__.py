"""Backoffice - Flask 应用初始化.

基于 Flask 的通用数据后台,按注册的资源定义调度 CRUD 请求.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

from flask import Flask, request
from flask_login import LoginManager
from flask_sqlalchemy import SQLAlchemy
from flask_wtf.csrf import CSRFProtect
from werkzeug.utils import import_string

from backoffice.errors import AppError
from backoffice.settings import Settings
from backoffice.utils.response_utils import render_error
from backoffice.utils.structlog_config import configure_structlog

if TYPE_CHECKING:
    from flask.typing import ResponseReturnValue

    from backoffice.admin.registry import ResourceRegistry

# 初始化扩展
db = SQLAlchemy()
login_manager = LoginManager()
csrf = CSRFProtect()


def create_app(
    *,
    settings: Settings | None = None,
    registry: ResourceRegistry | None = None,
) -> Flask:
    """创建 Flask 应用实例.

    Args:
        settings: 可选的配置对象,用于测试或多环境启动.
        registry: 可选的资源注册表;未传入时按 ADMIN_REGISTRY 配置导入.

    Returns:
        Flask: Flask 应用实例

    """
    resolved_settings = settings or Settings.load()
    app = Flask(__name__)

    # 配置应用
    configure_app(app, resolved_settings)

    # 初始化扩展
    initialize_extensions(app)

    # 配置日志
    configure_logging(app)

    # 配置统一日志系统
    configure_structlog(app)

    # 设置全局日志级别
    log_level_name = str(app.config.get("LOG_LEVEL", "INFO"))
    logging.getLogger().setLevel(getattr(logging, log_level_name, logging.INFO))

    # 注册全局错误处理器
    configure_error_handlers(app)

    # 挂载后台
    configure_admin(app, registry)

    return app


def configure_app(app: Flask, settings: Settings) -> None:
    """写入 Settings 提供的配置."""
    app.config.update(settings.to_flask_config())
    app.config["SESSION_COOKIE_HTTPONLY"] = True
    app.config["SESSION_COOKIE_SAMESITE"] = "Lax"
    app.config["SESSION_COOKIE_NAME"] = "backoffice_session"
    app.config["SESSION_COOKIE_SECURE"] = settings.is_production


def initialize_extensions(app: Flask) -> None:
    """初始化数据库、CSRF、登录等 Flask 扩展.

    Args:
        app: Flask 应用实例.

    """
    # 初始化数据库
    db.init_app(app)

    # 初始化CSRF保护
    csrf.init_app(app)

    # 初始化登录管理
    login_manager.init_app(app)
    login_manager.session_protection = "basic"

    # 用户加载器: 宿主应用未接入用户体系时所有请求都视为匿名
    if login_manager._user_callback is None:  # noqa: SLF001

        @login_manager.user_loader
        def load_user(user_id: str) -> None:
            del user_id


def configure_logging(app: Flask) -> None:
    """配置日志系统与文件处理器.

    Args:
        app: Flask 应用实例.

    """
    if not app.debug and not app.testing:
        # 创建日志目录
        log_path = Path(app.config["LOG_FILE"])
        log_path.parent.mkdir(parents=True, exist_ok=True)

        # 配置文件日志处理器
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=app.config["LOG_MAX_SIZE"],
            backupCount=app.config["LOG_BACKUP_COUNT"],
        )
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]"),
        )
        file_handler.setLevel(getattr(logging, app.config["LOG_LEVEL"]))
        app.logger.addHandler(file_handler)

        app.logger.setLevel(getattr(logging, app.config["LOG_LEVEL"]))
        app.logger.info("Backoffice 应用启动")


def configure_error_handlers(app: Flask) -> None:
    """注册 AppError 的统一处理器,其他异常按 Flask 默认行为处理."""

    @app.errorhandler(AppError)
    def handle_app_error(error: AppError) -> ResponseReturnValue:
        return render_error(request, error)


def configure_admin(app: Flask, registry: ResourceRegistry | None = None) -> None:
    """按注册表挂载后台.

    ADMIN_REGISTRY 为点分路径,可以指向 ResourceRegistry 实例,也可以指向返回注册表的工厂函数.
    """
    from backoffice.admin import Admin, ResourceRegistry

    if registry is None:
        target = app.config.get("ADMIN_REGISTRY")
        if target:
            loaded = import_string(target)
            registry = loaded if isinstance(loaded, ResourceRegistry) else loaded()
        else:
            registry = ResourceRegistry()

    Admin(registry).init_app(app)
