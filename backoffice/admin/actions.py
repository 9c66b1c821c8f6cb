"""内置 CRUD 动作.

每个处理器签名为 ``(context, definition, params)``,返回 ActionOutcome;
无法继续时(未知的批量操作、找不到关联字段)返回 UnknownRoute.
持久化与默认视图通过 `current_admin()` 上的协作方完成.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from backoffice.admin.changeset import build_blank, primary_key_of, select_changeset_fn, validate_change
from backoffice.admin.extension import current_admin
from backoffice.admin.outcomes import Redirected, Rendered, Sent, UnknownRoute, ValidationFailed
from backoffice.admin.paths import index_path, show_path
from backoffice.constants import AdminAction, FlashCategory, HttpHeaders, HttpStatus, SuccessMessages
from backoffice.constants.http_headers import ContentTypes
from backoffice.errors import ValidationError
from backoffice.utils.inflection import pluralize_count
from backoffice.utils.route_safety import log_with_context

if TYPE_CHECKING:
    from collections.abc import Callable

    from backoffice.admin.changeset import Changeset
    from backoffice.admin.context import RequestContext
    from backoffice.admin.outcomes import ActionOutcome, Halt
    from backoffice.admin.registry import ResourceDefinition

    ActionResult = ActionOutcome | Halt


# ---------------------------------------------------------------------- #
# 读取
# ---------------------------------------------------------------------- #
def index(context: RequestContext, definition: ResourceDefinition, params: dict[str, Any]) -> ActionResult:
    """列表页.

    页面类型定义直接渲染 page_view.拦截器预先写入 ``assigns["page"]`` 时复用该结果,
    否则执行 index 查询.
    """
    if definition.is_page:
        return Rendered(content=definition.views.page_view(context), filters=False)

    admin = current_admin()
    page = context.assigns.get("page")
    if page is None:
        page = admin.repository.run_query(definition, AdminAction.INDEX, params)

    if definition.views.provides("index_view"):
        contents = definition.views.index_view(context, page)
    else:
        contents = admin.layout.index_view(context, definition, page)
    return Rendered(content=contents, filters=definition.index_filters)


def show(context: RequestContext, definition: ResourceDefinition, params: dict[str, Any]) -> ActionResult:
    """详情页,优先使用拦截器按权限范围预加载的对象."""
    admin = current_admin()
    resource = context.assigns.get(definition.resource_name)
    if resource is None:
        resource = admin.repository.run_query(definition, AdminAction.SHOW, params.get("id"))

    if definition.views.provides("show_view"):
        contents = definition.views.show_view(context, resource)
    else:
        contents = admin.layout.show_view(context, definition, resource)
    return Rendered(content=contents, resource=resource)


def new(context: RequestContext, definition: ResourceDefinition, params: dict[str, Any]) -> ActionResult:
    resource = build_blank(definition.model)
    return Rendered(content=_render_form(context, definition, resource, params), resource=resource)


def edit(context: RequestContext, definition: ResourceDefinition, params: dict[str, Any]) -> ActionResult:
    resource = current_admin().repository.run_query(definition, AdminAction.EDIT, params.get("id"))
    return Rendered(content=_render_form(context, definition, resource, params), resource=resource)


# ---------------------------------------------------------------------- #
# 写入
# ---------------------------------------------------------------------- #
def create(context: RequestContext, definition: ResourceDefinition, params: dict[str, Any]) -> ActionResult:
    """校验并新建记录.

    校验失败时不写库,带错误重新渲染表单;成功后跳转到新记录详情页.
    """
    resource = build_blank(definition.model)
    changeset = _validate(definition, AdminAction.CREATE, resource, params)
    if not changeset.valid:
        return _validation_failed(context, definition, AdminAction.CREATE, changeset, params)

    created = current_admin().repository.insert(changeset)
    context.put_flash(FlashCategory.NOTICE, SuccessMessages.CREATED.format(name=definition.display_name))
    return Redirected(location=show_path(definition, primary_key_of(created)))


def update(context: RequestContext, definition: ResourceDefinition, params: dict[str, Any]) -> ActionResult:
    """校验并更新记录."""
    admin = current_admin()
    resource = admin.repository.run_query(definition, AdminAction.EDIT, params.get("id"))
    changeset = _validate(definition, AdminAction.UPDATE, resource, params)
    if not changeset.valid:
        return _validation_failed(context, definition, AdminAction.UPDATE, changeset, params)

    updated = admin.repository.update(changeset)
    context.put_flash(FlashCategory.NOTICE, SuccessMessages.UPDATED.format(name=definition.display_name))
    return Redirected(location=show_path(definition, primary_key_of(updated)))


def destroy(context: RequestContext, definition: ResourceDefinition, params: dict[str, Any]) -> ActionResult:
    admin = current_admin()
    resource = admin.repository.run_query(definition, AdminAction.EDIT, params.get("id"))
    admin.repository.delete(resource)
    context.put_flash(FlashCategory.NOTICE, SuccessMessages.DESTROYED.format(name=definition.display_name))
    return Redirected(location=index_path(definition))


def batch_action(context: RequestContext, definition: ResourceDefinition, params: dict[str, Any]) -> ActionResult:
    """批量操作,目前只支持 ``batch_action=destroy``.

    先解析全部 id,任一无法转换为整数时整批拒绝;随后逐条读取并删除,
    每条单独提交,不经过 changeset 也不再次鉴权.记录不存在时中止剩余删除.

    Raises:
        ValidationError: collection_selection 中存在非整数 id.
        NotFoundError: 某条记录不存在.

    """
    if params.get(AdminAction.BATCH_ACTION) != AdminAction.BATCH_DESTROY:
        return UnknownRoute(
            reason="UNKNOWN_ACTION",
            resource_key=definition.route_key,
            action=AdminAction.BATCH_ACTION,
            extra={"batch_action": params.get(AdminAction.BATCH_ACTION)},
        )

    ids = _parse_selection(params.get("collection_selection"))
    repository = current_admin().repository
    for resource_id in ids:
        repository.delete(repository.get_or_404(definition.model, resource_id))

    count = len(ids)
    log_with_context(
        "info",
        "后台批量删除完成",
        module="admin",
        action=AdminAction.BATCH_ACTION,
        context={"resource": definition.route_key},
        extra={"count": count},
    )
    context.put_flash(
        FlashCategory.NOTICE,
        SuccessMessages.BATCH_DESTROYED.format(count=count, noun=pluralize_count(definition.route_key, count)),
    )
    return Redirected(location=index_path(definition))


# ---------------------------------------------------------------------- #
# 导出与子渲染
# ---------------------------------------------------------------------- #
def csv(context: RequestContext, definition: ResourceDefinition, params: dict[str, Any]) -> ActionResult:
    """导出全部记录为 CSV,没有记录时响应体为空."""
    del params
    admin = current_admin()
    records = list(admin.repository.run_query(definition, AdminAction.CSV))
    if not records:
        body: bytes | str = b""
    else:
        first, *rest = records
        if definition.views.provides("build_csv"):
            body = definition.views.build_csv(first, rest)
        else:
            body = admin.layout.build_csv(definition, first, rest)

    context.put_resp_content_type(ContentTypes.CSV)
    context.put_resp_header(HttpHeaders.CONTENT_DISPOSITION, f'inline; filename="{definition.route_key}.csv"')
    return Sent(body=body, content_type=ContentTypes.CSV, status=context.status or HttpStatus.OK)


def nested(context: RequestContext, definition: ResourceDefinition, params: dict[str, Any]) -> ActionResult:
    """为表单中的关联字段返回 AJAX 脚本片段.

    在资源表单块中按 ``field_name`` 查找输入项(取第一个匹配),调用其
    ``opts.collection`` 加载候选集合,再交给 ajax_view 渲染.
    """
    views = definition.views
    field_name = params.get("field_name")
    if not (views.provides("get_blocks") and views.provides("ajax_view")):
        return _nested_not_found(definition, field_name)

    blank = build_blank(definition.model)
    field = find_input(views.get_blocks(context, blank, params), field_name)
    loader = _collection_loader(field) if field is not None else None
    if loader is None:
        return _nested_not_found(definition, field_name)

    resources = loader(context, blank)
    contents = views.ajax_view(context, params, resources, field)
    return Sent(body=contents, content_type=ContentTypes.JAVASCRIPT, status=context.status or HttpStatus.OK)


def find_input(blocks: Iterable[object], field_name: object) -> object | None:
    """在表单块的 inputs 中查找名称匹配的第一个输入项."""
    if field_name is None:
        return None
    for block in blocks or ():
        for field in _read(block, "inputs") or ():
            if str(_read(field, "name")) == str(field_name):
                return field
    return None


def _collection_loader(field: object) -> Callable[..., Any] | None:
    opts = _read(field, "opts") or {}
    loader = _read(opts, "collection")
    return loader if callable(loader) else None


def _read(obj: object, key: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(key)
    return getattr(obj, key, None)


def _nested_not_found(definition: ResourceDefinition, field_name: object) -> UnknownRoute:
    return UnknownRoute(
        reason="NESTED_FIELD_NOT_FOUND",
        resource_key=definition.route_key,
        action=AdminAction.NESTED,
        extra={"field_name": field_name},
    )


# ---------------------------------------------------------------------- #
# Helpers
# ---------------------------------------------------------------------- #
def _validate(definition: ResourceDefinition, action: str, resource: Any, params: dict[str, Any]) -> Changeset:
    fields = params.get(definition.resource_name)
    return validate_change(
        select_changeset_fn(definition, action),
        resource,
        fields if isinstance(fields, Mapping) else None,
    )


def _validation_failed(
    context: RequestContext,
    definition: ResourceDefinition,
    action: str,
    changeset: Changeset,
    params: dict[str, Any],
) -> ValidationFailed:
    log_with_context(
        "info",
        "后台表单校验失败",
        module="admin",
        action=action,
        context={"resource": definition.route_key},
        extra={"fields": sorted(changeset.errors)},
    )
    errors = dict(changeset.errors)
    context.put_flash(FlashCategory.INLINE_ERROR, errors)
    contents = _render_form(context, definition, changeset.candidate, params)
    return ValidationFailed(content=contents, errors=errors, resource=changeset.candidate)


def _render_form(context: RequestContext, definition: ResourceDefinition, resource: Any, params: dict[str, Any]) -> str:
    if definition.views.provides("form_view"):
        return definition.views.form_view(context, resource, params)
    return current_admin().layout.form_view(context, definition, resource, params)


def _parse_selection(raw: object) -> list[int]:
    if raw is None:
        items: list[object] = []
    elif isinstance(raw, (list, tuple)):
        items = list(raw)
    else:
        items = [part for part in str(raw).split(",") if part.strip()]
    try:
        return [int(str(item).strip()) for item in items]
    except ValueError as exc:
        raise ValidationError(
            "collection_selection 必须是整数 id 列表",
            extra={"collection_selection": raw},
        ) from exc


BUILTIN_ACTIONS: Mapping[str, Callable[..., Any]] = {
    AdminAction.INDEX: index,
    AdminAction.SHOW: show,
    AdminAction.NEW: new,
    AdminAction.EDIT: edit,
    AdminAction.CREATE: create,
    AdminAction.UPDATE: update,
    AdminAction.DESTROY: destroy,
    AdminAction.BATCH_ACTION: batch_action,
    AdminAction.CSV: csv,
    AdminAction.NESTED: nested,
}
