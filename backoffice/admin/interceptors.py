"""拦截器链.

拦截器签名为 ``(context, options) -> context``,可以读写 `context.assigns`,
并通过 `authorized` 标记给出授权结论. 全局默认拦截器来自配置
(`ADMIN_INTERCEPTORS`,点分路径),资源自身的拦截器按引用覆盖同名默认项并追加在后.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from flask_login import current_user
from werkzeug.utils import import_string

from backoffice.admin.context import AUTHORIZED_ASSIGN
from backoffice.admin.outcomes import Unauthorized
from backoffice.constants import AdminAction
from backoffice.errors import RegistryError
from backoffice.utils.route_safety import log_with_context

if TYPE_CHECKING:
    from backoffice.admin.context import RequestContext
    from backoffice.admin.registry import InterceptorRef, InterceptorSpec, ResourceDefinition


def resolve_interceptor(ref: InterceptorRef) -> Any:
    """把点分路径解析为可调用对象,可调用对象原样返回.

    Raises:
        RegistryError: 路径无法导入或目标不可调用时抛出.

    """
    if not isinstance(ref, str):
        return ref
    try:
        target = import_string(ref)
    except ImportError as exc:
        raise RegistryError(f"无法导入拦截器: {ref}", extra={"interceptor": ref}) from exc
    if not callable(target):
        raise RegistryError(f"拦截器不可调用: {ref}", extra={"interceptor": ref})
    return target


def normalize_specs(items: Iterable[object]) -> tuple[InterceptorSpec, ...]:
    """把配置中的拦截器条目统一为 (可调用对象, 选项) 元组."""
    specs: list[InterceptorSpec] = []
    for item in items:
        if isinstance(item, tuple):
            ref, options = item
        else:
            ref, options = item, {}
        specs.append((resolve_interceptor(ref), MappingProxyType(dict(options or {}))))
    return tuple(specs)


def merge_interceptors(
    defaults: Iterable[InterceptorSpec],
    overrides: Iterable[InterceptorSpec],
) -> list[InterceptorSpec]:
    """合并默认拦截器与资源拦截器.

    两侧都应是已解析的 (可调用对象, 选项) 元组.与资源拦截器引用相同的默认项被移除,
    资源拦截器按自身顺序追加在末尾.
    """
    overrides = list(overrides)
    override_refs = {id(ref) for ref, _ in overrides}
    merged = [(ref, options) for ref, options in defaults if id(ref) not in override_refs]
    merged.extend(overrides)
    return merged


def run_interceptors(
    context: RequestContext,
    action: str,
    definition: ResourceDefinition,
    defaults: Iterable[InterceptorSpec] = (),
) -> RequestContext | Unauthorized:
    """依次执行拦截器并检查授权标记.

    子渲染动作(关联字段 AJAX 片段)直接放行.授权标记为 False 时返回 Unauthorized,
    为 True 或未设置时继续.

    Args:
        context: 当前请求上下文.
        action: 动作名称.
        definition: 资源定义.
        defaults: 全局默认拦截器.

    Returns:
        拦截器处理后的上下文,或 Unauthorized.

    """
    if action in AdminAction.SUB_RENDER:
        return context

    for interceptor, options in merge_interceptors(defaults, definition.interceptors):
        context = interceptor(context, options)

    if context.assigns.get(AUTHORIZED_ASSIGN, True) is False:
        log_with_context(
            "warning",
            "后台访问未授权",
            module="admin",
            action=action,
            context={"resource": definition.route_key},
        )
        return Unauthorized(resource_key=definition.route_key, action=action, context=context)
    return context


# ---------------------------------------------------------------------- #
# 内置拦截器
# ---------------------------------------------------------------------- #
def _record_verdict(context: RequestContext, granted: bool) -> RequestContext:
    # 已被拒绝的请求不会被后续拦截器重新放行
    if not granted:
        context.assigns[AUTHORIZED_ASSIGN] = False
    elif context.assigns.get(AUTHORIZED_ASSIGN) is not False:
        context.assigns[AUTHORIZED_ASSIGN] = True
    return context


def require_login(context: RequestContext, options: Mapping[str, Any]) -> RequestContext:
    """要求当前用户已登录."""
    del options
    return _record_verdict(context, bool(getattr(current_user, "is_authenticated", False)))


def require_role(context: RequestContext, options: Mapping[str, Any]) -> RequestContext:
    """要求当前用户已登录且角色属于 ``options["roles"]``.

    Args:
        context: 当前请求上下文.
        options: 需包含 ``roles``;可选 ``attribute`` 指定用户对象上的角色属性名,默认 ``role``.

    Returns:
        写入授权标记后的上下文.

    """
    roles = frozenset(options.get("roles", ()))
    attribute = options.get("attribute", "role")
    if not getattr(current_user, "is_authenticated", False):
        return _record_verdict(context, granted=False)
    return _record_verdict(context, getattr(current_user, attribute, None) in roles)
