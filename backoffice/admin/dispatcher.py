"""后台请求调度流水线.

单个请求的处理顺序:

1. 未指定资源时改写为默认资源(菜单优先级最小者);
2. 注册表查找资源定义;
3. 清洗 create/update 的资源参数;
4. 执行拦截器链并检查授权标记;
5. 执行资源前置钩子;
6. 解析并执行动作.

任一阶段无法继续时返回 Halt,由路由层转换为 AppError.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from backoffice.admin.before_filter import run_before_filter
from backoffice.admin.interceptors import run_interceptors
from backoffice.admin.outcomes import Unauthorized, UnknownRoute, is_halt
from backoffice.admin.params import scrub_params
from backoffice.admin.resolver import resolve_action
from backoffice.utils.route_safety import log_with_context
from backoffice.utils.structlog_config import get_admin_logger

if TYPE_CHECKING:
    from collections.abc import Iterable

    from backoffice.admin.context import RequestContext
    from backoffice.admin.outcomes import ActionOutcome, Halt
    from backoffice.admin.registry import InterceptorSpec, ResourceDefinition, ResourceRegistry


@dataclass(slots=True)
class DispatchResult:
    """一次调度的结果.

    Attributes:
        context: 流水线结束时的上下文,包含 flash 与响应头.
        outcome: 动作结果,或中断原因.
        definition: 命中的资源定义,资源未注册时为 None.

    """

    context: RequestContext
    outcome: ActionOutcome | Halt
    definition: ResourceDefinition | None = None

    @property
    def halted(self) -> bool:
        return is_halt(self.outcome)


class AdminDispatcher:
    """把 (上下文, 动作, 资源键) 调度为动作结果."""

    def __init__(self, registry: ResourceRegistry, default_interceptors: Iterable[InterceptorSpec] = ()) -> None:
        self.registry = registry
        self.default_interceptors = tuple(default_interceptors)

    def dispatch(self, context: RequestContext, action: str, resource_key: str | None = None) -> DispatchResult:
        """执行完整的调度流水线.

        Args:
            context: 当前请求上下文.
            action: 动作名称.
            resource_key: 路由中的资源键, None 表示使用默认资源.

        Returns:
            DispatchResult.

        """
        if resource_key is None:
            definition = self.registry.default_resource()
            if definition is None:
                return self._halt(context, UnknownRoute(reason="UNKNOWN_RESOURCE", action=action))
            context = context.with_resource(definition.route_key)
        else:
            definition = self.registry.lookup(resource_key)
            if definition is None:
                return self._halt(
                    context,
                    UnknownRoute(reason="UNKNOWN_RESOURCE", resource_key=resource_key, action=action),
                )

        context.params = scrub_params(context.params, definition.resource_name, action)

        piped = run_interceptors(context, action, definition, self.default_interceptors)
        if isinstance(piped, Unauthorized):
            return self._halt(piped.context or context, piped, definition)

        context = run_before_filter(piped, action, definition, piped.params)

        handler = resolve_action(definition, action)
        if isinstance(handler, UnknownRoute):
            return self._halt(context, handler, definition)

        get_admin_logger().debug(
            "后台动作调度",
            module="admin",
            action=action,
            resource=definition.route_key,
            handler=handler.kind,
        )
        outcome = handler.execute(context, definition, context.params)
        if is_halt(outcome):
            return self._halt(context, outcome, definition)
        return DispatchResult(context=context, outcome=outcome, definition=definition)

    @staticmethod
    def _halt(context: RequestContext, halt: Any, definition: ResourceDefinition | None = None) -> DispatchResult:
        if isinstance(halt, UnknownRoute):
            log_with_context(
                "warning",
                "后台路由无法解析",
                module="admin",
                action=halt.action or "unknown",
                context={"resource": halt.resource_key},
                extra={"reason": halt.reason, **dict(halt.extra)},
            )
        return DispatchResult(context=context, outcome=halt, definition=definition)
