"""路由安全执行与结构化日志助手.

提供 `log_with_context` 与 `safe_route_call` 两个 helper,用于复用结构化日志字段,
并集中处理调度层的异常捕获.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal, TypedDict, TypeVar, Unpack

from werkzeug.exceptions import HTTPException

from backoffice.errors import AppError
from backoffice.utils.structlog_config import get_admin_logger

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

R = TypeVar("R")
LogLevel = Literal["debug", "info", "warning", "error", "critical"]
DEFAULT_EXPECTED_EXCEPTIONS: tuple[type[BaseException], ...] = (AppError, HTTPException)


class LogContextOptions(TypedDict, total=False):
    """结构化日志可选参数."""

    context: Mapping[str, object] | None
    extra: Mapping[str, object] | None


def log_with_context(
    level: LogLevel,
    event: str,
    *,
    module: str,
    action: str,
    **options: Unpack[LogContextOptions],
) -> None:
    """记录带有统一上下文字段的结构化日志.

    Args:
        level: 日志级别,使用 structlog 的方法名,例如 "info"、"error".
        event: 日志事件描述,建议使用动词短语.
        module: 所属模块或领域,用于快速过滤.
        action: 当前操作名称,通常对应后台动作名.
        **options: 支持 context、extra 选项以扩展日志内容.

    """
    logger = get_admin_logger()
    payload: dict[str, object] = {"module": module, "action": action}

    context_opt = options.get("context")
    extra_opt = options.get("extra")
    if context_opt:
        payload.update(context_opt)
    if extra_opt:
        payload.update(extra_opt)

    log_method = getattr(logger, level, logger.error)
    log_method(event, **payload)


def safe_route_call(
    func: Callable[..., R],
    *,
    module: str,
    action: str,
    func_args: tuple[Any, ...] | None = None,
    func_kwargs: dict[str, Any] | None = None,
    context: Mapping[str, object] | None = None,
) -> R:
    """执行调度逻辑,对异常补充结构化日志后原样抛出.

    持久化层与协作方抛出的异常不做转换,只记录日志.

    Args:
        func: 真实的业务函数,建议为局部闭包以捕获参数.
        module: 记录日志用的模块名称.
        action: 后台动作名称,例如 "create".
        func_args: 传入业务函数的位置参数.
        func_kwargs: 传入业务函数的命名参数字典.
        context: 附加到日志的上下文.

    Returns:
        业务函数的执行结果.

    """
    context_payload = dict(context or {})
    try:
        return func(*(func_args or ()), **(func_kwargs or {}))
    except DEFAULT_EXPECTED_EXCEPTIONS as exc:
        log_with_context(
            "warning",
            f"{action}执行失败",
            module=module,
            action=action,
            context=context_payload,
            extra={"error_type": exc.__class__.__name__, "error_message": str(exc)},
        )
        raise
    except Exception as exc:
        log_with_context(
            "error",
            f"{action}执行失败",
            module=module,
            action=action,
            context=context_payload,
            extra={"error_type": exc.__class__.__name__, "unexpected": True},
        )
        raise
