"""动作执行前的资源级钩子."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from backoffice.utils.structlog_config import get_admin_logger

if TYPE_CHECKING:
    from backoffice.admin.context import RequestContext
    from backoffice.admin.registry import ResourceDefinition


def run_before_filter(
    context: RequestContext,
    action: str,
    definition: ResourceDefinition,
    params: dict[str, Any],
) -> RequestContext:
    """按 only/except 范围决定是否执行资源的前置钩子.

    Args:
        context: 当前请求上下文.
        action: 动作名称.
        definition: 资源定义.
        params: 已清洗的请求参数.

    Returns:
        钩子返回的新上下文;未配置或不在范围内时原样返回.

    """
    before_filter = definition.before_filter
    if before_filter is None or not before_filter.applies_to(action):
        return context

    get_admin_logger().debug(
        "执行前置钩子",
        module="admin",
        action=action,
        resource=definition.route_key,
        hook=before_filter.name,
    )
    return before_filter.hook(context, params)
