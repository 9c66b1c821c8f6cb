"""后台资源注册表.

宿主应用在启动阶段通过 `register_resource` / `register_page` 注册资源定义,
`Admin.init_app` 调用 `freeze()` 后注册表只读,可被并发请求安全读取.

Example:
    >>> registry = ResourceRegistry()
    >>> registry.register_resource(Contact, menu_priority=1)
    >>> registry.register_resource(
    ...     Survey,
    ...     menu_priority=2,
    ...     before_filter=BeforeFilter(set_owner, only={"create", "update"}),
    ...     member_actions={"publish": publish_survey},
    ... )

"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Literal

from backoffice.admin.interceptors import normalize_specs
from backoffice.errors import RegistryError
from backoffice.utils.inflection import humanize, pluralize, underscore

if TYPE_CHECKING:
    from backoffice.admin.context import RequestContext
    from backoffice.admin.outcomes import ActionOutcome

Params = dict[str, Any]
CustomAction = Callable[["RequestContext", Params], "ActionOutcome"]
FilterHook = Callable[["RequestContext", Params], "RequestContext"]
InterceptorRef = Callable[["RequestContext", Mapping[str, Any]], "RequestContext"] | str
InterceptorSpec = tuple[InterceptorRef, Mapping[str, Any]]

DEFAULT_MENU_PRIORITY = 10


@dataclass(frozen=True, slots=True)
class BeforeFilter:
    """动作执行前的单个可选钩子.

    `only` 与 `except_` 同时配置时以 `only` 为准,两者都未配置时对所有动作生效.
    """

    hook: FilterHook
    only: frozenset[str] | None = None
    except_: frozenset[str] | None = None

    def __init__(
        self,
        hook: FilterHook,
        *,
        only: Iterable[str] | None = None,
        except_: Iterable[str] | None = None,
    ) -> None:
        object.__setattr__(self, "hook", hook)
        object.__setattr__(self, "only", frozenset(only) if only is not None else None)
        object.__setattr__(self, "except_", frozenset(except_) if except_ is not None else None)

    @property
    def name(self) -> str:
        return getattr(self.hook, "__name__", repr(self.hook))

    def applies_to(self, action: str) -> bool:
        if self.only is not None:
            return action in self.only
        if self.except_ is not None:
            return action not in self.except_
        return True


@dataclass(frozen=True, slots=True)
class ResourceViews:
    """资源可选实现的视图能力集合.

    未提供的能力由默认布局协作方兜底;`ajax_view` 与 `get_blocks` 没有默认实现.
    """

    index_view: Callable[..., str] | None = None
    show_view: Callable[..., str] | None = None
    form_view: Callable[..., str] | None = None
    page_view: Callable[..., str] | None = None
    ajax_view: Callable[..., str] | None = None
    get_blocks: Callable[..., Iterable[object]] | None = None
    build_csv: Callable[..., bytes] | None = None

    def provides(self, capability: str) -> bool:
        return getattr(self, capability, None) is not None


@dataclass(frozen=True, slots=True)
class ResourceDefinition:
    """注册后的资源定义,进程内只读.

    Attributes:
        route_key: 路由键,在注册表内唯一,例如 ``widgets``.
        model: 底层模型类,页面类型定义为 None.
        resource_name: 单数 snake_case 名称,同时作为表单参数子字典的键.
        display_name: 提示文案中使用的展示名称.
        interceptors: (拦截器, 选项) 有序列表,与全局默认拦截器合并.
        before_filter: 可选前置钩子.
        member_actions: 针对单个实例的自定义动作.
        collection_actions: 针对资源类的自定义动作.
        changesets: 按动作名覆盖的 changeset 函数.
        queries: 按查询类型覆盖的查询函数, 签名 ``(defn, args)``.
        index_filters: 列表筛选项, ``False`` 表示关闭筛选.
        menu_priority: 菜单排序,越小越靠前.
        views: 视图能力集合.
        kind: ``resource`` 或 ``page``.

    """

    route_key: str
    model: type | None
    resource_name: str
    display_name: str
    interceptors: tuple[InterceptorSpec, ...] = ()
    before_filter: BeforeFilter | None = None
    member_actions: Mapping[str, CustomAction] = field(default_factory=lambda: MappingProxyType({}))
    collection_actions: Mapping[str, CustomAction] = field(default_factory=lambda: MappingProxyType({}))
    changesets: Mapping[str, Callable[..., Any]] = field(default_factory=lambda: MappingProxyType({}))
    queries: Mapping[str, Callable[..., Any]] = field(default_factory=lambda: MappingProxyType({}))
    index_filters: tuple[object, ...] | Literal[False] = ()
    menu_priority: int = DEFAULT_MENU_PRIORITY
    menu_label: str | None = None
    views: ResourceViews = field(default_factory=ResourceViews)
    kind: Literal["resource", "page"] = "resource"

    @property
    def is_page(self) -> bool:
        return self.kind == "page"

    @property
    def label(self) -> str:
        return self.menu_label or humanize(self.route_key)


def _freeze_mapping(mapping: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping or {}))


def _normalize_interceptors(
    interceptors: Iterable[InterceptorRef | InterceptorSpec] | None,
) -> tuple[InterceptorSpec, ...]:
    # 点分路径在注册时解析一次
    return normalize_specs(interceptors or ())


class ResourceRegistry:
    """资源键到资源定义的映射.

    启动期可写,`freeze()` 之后任何注册都会抛出 RegistryError.
    """

    def __init__(self) -> None:
        self._entries: dict[str, ResourceDefinition] = {}
        self._frozen = False

    # ------------------------------------------------------------------ #
    # 注册
    # ------------------------------------------------------------------ #
    def register(self, definition: ResourceDefinition) -> ResourceDefinition:
        """登记一个已构建的资源定义.

        Raises:
            RegistryError: 注册表已冻结或路由键重复时抛出.

        """
        if self._frozen:
            raise RegistryError(message_key="REGISTRY_FROZEN", extra={"route_key": definition.route_key})
        if definition.route_key in self._entries:
            raise RegistryError(message_key="DUPLICATE_ROUTE_KEY", extra={"route_key": definition.route_key})
        self._entries[definition.route_key] = definition
        return definition

    def register_resource(
        self,
        model: type,
        *,
        route_key: str | None = None,
        resource_name: str | None = None,
        display_name: str | None = None,
        interceptors: Iterable[InterceptorRef | InterceptorSpec] | None = None,
        before_filter: BeforeFilter | None = None,
        member_actions: Mapping[str, CustomAction] | None = None,
        collection_actions: Mapping[str, CustomAction] | None = None,
        changesets: Mapping[str, Callable[..., Any]] | None = None,
        queries: Mapping[str, Callable[..., Any]] | None = None,
        index_filters: Iterable[object] | Literal[False] = (),
        menu_priority: int = DEFAULT_MENU_PRIORITY,
        menu_label: str | None = None,
        views: ResourceViews | None = None,
    ) -> ResourceDefinition:
        """为模型类注册资源定义.

        名称缺省时由模型类名推导: ``BlogPost`` -> resource_name ``blog_post``,
        route_key ``blog_posts``, display_name ``BlogPost``.

        Returns:
            ResourceDefinition: 已登记的定义.

        """
        singular = resource_name or underscore(model.__name__)
        definition = ResourceDefinition(
            route_key=route_key or pluralize(singular),
            model=model,
            resource_name=singular,
            display_name=display_name or model.__name__,
            interceptors=_normalize_interceptors(interceptors),
            before_filter=before_filter,
            member_actions=_freeze_mapping(member_actions),
            collection_actions=_freeze_mapping(collection_actions),
            changesets=_freeze_mapping(changesets),
            queries=_freeze_mapping(queries),
            index_filters=index_filters if index_filters is False else tuple(index_filters),
            menu_priority=menu_priority,
            menu_label=menu_label,
            views=views or ResourceViews(),
        )
        return self.register(definition)

    def register_page(
        self,
        route_key: str,
        page_view: Callable[..., str],
        *,
        interceptors: Iterable[InterceptorRef | InterceptorSpec] | None = None,
        before_filter: BeforeFilter | None = None,
        collection_actions: Mapping[str, CustomAction] | None = None,
        menu_priority: int = DEFAULT_MENU_PRIORITY,
        menu_label: str | None = None,
    ) -> ResourceDefinition:
        """注册没有模型的自定义页面(如仪表盘)."""
        definition = ResourceDefinition(
            route_key=route_key,
            model=None,
            resource_name=underscore(route_key),
            display_name=humanize(route_key),
            interceptors=_normalize_interceptors(interceptors),
            before_filter=before_filter,
            collection_actions=_freeze_mapping(collection_actions),
            index_filters=False,
            menu_priority=menu_priority,
            menu_label=menu_label,
            views=ResourceViews(page_view=page_view),
            kind="page",
        )
        return self.register(definition)

    def freeze(self) -> None:
        """冻结注册表,之后只允许读取."""
        if not self._frozen:
            self._entries = MappingProxyType(dict(self._entries))  # type: ignore[assignment]
            self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    # ------------------------------------------------------------------ #
    # 读取
    # ------------------------------------------------------------------ #
    def lookup(self, route_key: str | None) -> ResourceDefinition | None:
        if route_key is None:
            return None
        return self._entries.get(route_key)

    def default_resource(self) -> ResourceDefinition | None:
        """返回 menu_priority 最小的定义,并列时取最先注册者."""
        if not self._entries:
            return None
        return min(self._entries.values(), key=lambda definition: definition.menu_priority)

    def menu(self) -> list[ResourceDefinition]:
        """按 menu_priority 排序的全部定义,并列时保持注册顺序."""
        return sorted(self._entries.values(), key=lambda definition: definition.menu_priority)

    def __contains__(self, route_key: object) -> bool:
        return route_key in self._entries

    def __iter__(self) -> Iterator[ResourceDefinition]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)
