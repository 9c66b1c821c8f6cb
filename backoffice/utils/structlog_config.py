"""后台调度层的结构化日志配置与辅助函数."""

from __future__ import annotations

import sys
import uuid
from contextlib import suppress
from typing import TYPE_CHECKING, cast

import structlog
from flask import Flask, current_app, g, has_request_context, request
from flask_login import current_user

from backoffice.constants import HttpHeaders
from backoffice.settings import APP_VERSION

if TYPE_CHECKING:
    from structlog.typing import BindableLogger, EventDict, Processor


class StructlogConfig:
    """structlog 配置核心类.

    负责配置处理器链与上下文注入,可以多次调用,只会配置一次.

    Attributes:
        json_output: 是否输出 JSON 行,默认按终端能力选择控制台渲染.
        configured: 是否已配置标志.

    Example:
        >>> config = StructlogConfig()
        >>> config.configure(app)
        >>> logger = get_logger('backoffice.admin')

    """

    def __init__(self) -> None:
        self.json_output = False
        self.configured = False

    def configure(self, app: Flask | None = None) -> None:
        """初始化 structlog 处理器(幂等).

        Args:
            app: Flask 应用实例,可选.提供时读取 `LOG_JSON` 并在首次配置前生效.

        Returns:
            None.

        """
        if app is not None and not self.configured:
            self.json_output = bool(app.config.get("LOG_JSON", False))

        if self.configured:
            return

        processors = [
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            self._add_request_context,
            self._add_user_context,
            self._add_global_context,
            self._get_renderer(),
        ]
        structlog.configure(
            processors=cast("list[Processor]", processors),
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        self.configured = True

    @staticmethod
    def _add_request_context(
        _logger: BindableLogger,
        _method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        """向事件字典写入请求上下文.

        Returns:
            包含 request_id/path/method 的事件字典.

        """
        if has_request_context():
            event_dict.setdefault("request_id", getattr(g, "request_id", None))
            event_dict.setdefault("path", request.path)
            event_dict.setdefault("method", request.method)
        return event_dict

    @staticmethod
    def _add_user_context(
        _logger: BindableLogger,
        _method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        """附加当前用户上下文."""
        with suppress(RuntimeError, AttributeError):
            if current_user and getattr(current_user, "is_authenticated", False):
                event_dict.setdefault("actor_id", getattr(current_user, "id", None))
        return event_dict

    @staticmethod
    def _add_global_context(
        _logger: BindableLogger,
        _method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        """附加应用名称与版本."""
        try:
            event_dict["app_name"] = current_app.config["APP_NAME"]
            event_dict["app_version"] = current_app.config["APP_VERSION"]
        except (RuntimeError, KeyError):
            event_dict["app_name"] = "backoffice"
            event_dict["app_version"] = APP_VERSION
        return event_dict

    def _get_renderer(self) -> Processor:
        """根据配置与终端能力返回渲染器."""
        if self.json_output:
            return structlog.processors.JSONRenderer(ensure_ascii=False)
        return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


structlog_config = StructlogConfig()


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """获取结构化日志记录器.

    Args:
        name: 日志记录器名称,通常使用模块名.

    Returns:
        绑定的 structlog 日志记录器实例.

    """
    structlog_config.configure()
    return structlog.get_logger(name)


def configure_structlog(app: Flask) -> None:
    """配置 structlog 并注册 Flask 钩子.

    为每个请求分配 request_id(优先沿用上游 `X-Request-ID`).

    Args:
        app: Flask 应用实例.

    Returns:
        None.

    """
    structlog_config.configure(app)

    @app.before_request
    def bind_request_id() -> None:
        g.request_id = request.headers.get(HttpHeaders.X_REQUEST_ID) or uuid.uuid4().hex

    @app.teardown_appcontext
    def log_teardown_error(exception: BaseException | None) -> None:
        if exception:
            get_system_logger().error("应用请求处理异常", module="system", exception=str(exception))


def get_system_logger() -> structlog.stdlib.BoundLogger:
    """获取系统日志记录器."""
    return get_logger("backoffice.system")


def get_admin_logger() -> structlog.stdlib.BoundLogger:
    """获取后台调度日志记录器."""
    return get_logger("backoffice.admin")

