"""动作解析.

解析顺序: 资源的 member 动作 > collection 动作 > 内置 CRUD 动作.
页面类型定义只支持 index 与自定义 collection 动作.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar

from backoffice.admin.actions import BUILTIN_ACTIONS
from backoffice.admin.extension import current_admin
from backoffice.admin.outcomes import UnknownRoute
from backoffice.constants import AdminAction

if TYPE_CHECKING:
    from collections.abc import Callable

    from backoffice.admin.context import RequestContext
    from backoffice.admin.registry import ResourceDefinition


@dataclass(frozen=True, slots=True)
class MemberAction:
    """针对单个实例的自定义动作.

    执行前按 ``params["id"]`` 加载实例写入 ``assigns[resource_name]`` 与 ``assigns["resource"]``,
    拦截器已预加载时直接复用.
    """

    name: str
    fn: Callable[..., Any]
    kind: ClassVar[str] = "member"

    def execute(self, context: RequestContext, definition: ResourceDefinition, params: dict[str, Any]) -> Any:
        resource = context.assigns.get(definition.resource_name)
        if resource is None and params.get("id") is not None:
            resource = current_admin().repository.run_query(definition, AdminAction.SHOW, params["id"])
            context.assign(definition.resource_name, resource)
        if resource is not None:
            context.assign("resource", resource)
        return self.fn(context, params)


@dataclass(frozen=True, slots=True)
class CollectionAction:
    name: str
    fn: Callable[..., Any]
    kind: ClassVar[str] = "collection"

    def execute(self, context: RequestContext, definition: ResourceDefinition, params: dict[str, Any]) -> Any:
        del definition
        return self.fn(context, params)


@dataclass(frozen=True, slots=True)
class BuiltinAction:
    name: str
    fn: Callable[..., Any]
    kind: ClassVar[str] = "builtin"

    def execute(self, context: RequestContext, definition: ResourceDefinition, params: dict[str, Any]) -> Any:
        return self.fn(context, definition, params)


ActionHandler = MemberAction | CollectionAction | BuiltinAction


def resolve_action(definition: ResourceDefinition, action: str) -> ActionHandler | UnknownRoute:
    """把动作名解析为处理器.

    Args:
        definition: 资源定义.
        action: 动作名称.

    Returns:
        处理器,或无法解析时返回 UnknownRoute.

    """
    member = definition.member_actions.get(action)
    if member is not None:
        return MemberAction(name=action, fn=member)

    collection = definition.collection_actions.get(action)
    if collection is not None:
        return CollectionAction(name=action, fn=collection)

    builtin = BUILTIN_ACTIONS.get(action)
    if builtin is not None and (not definition.is_page or action == AdminAction.INDEX):
        return BuiltinAction(name=action, fn=builtin)

    return UnknownRoute(reason="UNKNOWN_ACTION", resource_key=definition.route_key, action=action)
