"""动作结果与调度中断类型.

动作处理器返回 ActionOutcome 之一;调度流水线的各阶段在无法继续时返回 Halt,
由顶层调度器转换为 AppError.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from backoffice.constants import HttpStatus
from backoffice.errors import AppError, UnauthorizedError, UnknownRouteError

if TYPE_CHECKING:
    from backoffice.admin.context import RequestContext


@dataclass(frozen=True, slots=True)
class Rendered:
    """渲染完成的页面内容."""

    content: str
    resource: object | None = None
    filters: object | None = None


@dataclass(frozen=True, slots=True)
class Redirected:
    """重定向到 location."""

    location: str


@dataclass(frozen=True, slots=True)
class ValidationFailed:
    """changeset 校验失败,表单带着被拒绝的候选对象重新渲染."""

    content: str
    errors: Mapping[str, list[str]]
    resource: object | None = None


@dataclass(frozen=True, slots=True)
class Sent:
    """直接发送的响应体,如 CSV 导出与关联字段脚本片段."""

    body: bytes | str
    content_type: str
    status: int = HttpStatus.OK


ActionOutcome = Rendered | Redirected | ValidationFailed | Sent


@dataclass(frozen=True, slots=True)
class UnknownRoute:
    """资源键未注册或动作无法解析."""

    reason: str
    resource_key: str | None = None
    action: str | None = None
    extra: Mapping[str, object] = field(default_factory=dict)

    def to_error(self) -> AppError:
        return UnknownRouteError(
            message_key=self.reason,
            extra={"resource": self.resource_key, "admin_action": self.action, **self.extra},
        )


@dataclass(frozen=True, slots=True)
class Unauthorized:
    """拦截器链结束后授权标记为 False.

    `context` 为拦截器处理后的上下文,保留其中的 flash 与响应头.
    """

    resource_key: str
    action: str
    context: RequestContext | None = field(default=None, compare=False, repr=False)

    def to_error(self) -> AppError:
        return UnauthorizedError(extra={"resource": self.resource_key, "admin_action": self.action})


Halt = UnknownRoute | Unauthorized


def is_halt(value: object) -> bool:
    return isinstance(value, (UnknownRoute, Unauthorized))
