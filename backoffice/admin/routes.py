"""后台路由.

所有路由都汇入 `_dispatch`: 解码请求参数、构建上下文、执行调度流水线并渲染结果.
表单字段支持 ``widget[name]`` 形式的嵌套键, POST 表单可通过 ``_method`` 覆盖为 PUT/PATCH/DELETE.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from flask import Blueprint, request

from backoffice.admin.context import RequestContext
from backoffice.admin.extension import current_admin
from backoffice.admin.rendering import render_outcome
from backoffice.constants import AdminAction
from backoffice.errors import AppError, UnknownRouteError
from backoffice.utils.request_payload import parse_payload
from backoffice.utils.response_utils import render_error
from backoffice.utils.route_safety import safe_route_call

if TYPE_CHECKING:
    from flask import Response
    from flask.typing import ResponseReturnValue

admin_bp = Blueprint("admin", __name__, template_folder="templates")

METHOD_OVERRIDE_FIELD = "_method"


def _request_params() -> dict[str, object]:
    sources: list[object] = [request.args, request.form]
    if request.is_json:
        payload = request.get_json(silent=True)
        if isinstance(payload, dict):
            sources.append(payload)
    params = parse_payload(*sources)
    params.pop(METHOD_OVERRIDE_FIELD, None)
    return params


def _dispatch(action: str, resource: str | None = None, **path_params: str) -> Response:
    admin = current_admin()
    params = _request_params()
    params.update(path_params)
    if resource is not None:
        params["resource"] = resource
    context = RequestContext.from_request(request, params)

    def _execute() -> Response:
        result = admin.dispatcher.dispatch(context, action, resource)
        if result.halted:
            raise result.outcome.to_error()
        return render_outcome(result)

    return safe_route_call(
        _execute,
        module="admin",
        action=action,
        context={"resource": resource, "method": request.method},
    )


def _require_custom_action(resource: str, action: str, *, member: bool) -> None:
    """自定义动作路由只接受资源登记过的动作名.

    资源未注册时交给调度器报告 UNKNOWN_RESOURCE.

    Raises:
        UnknownRouteError: 动作不是该资源的自定义成员/集合动作.

    """
    definition = current_admin().registry.lookup(resource)
    if definition is None:
        return
    custom = definition.member_actions if member else definition.collection_actions
    if action not in custom:
        raise UnknownRouteError(
            message_key="UNKNOWN_ACTION",
            extra={"resource": resource, "admin_action": action, "member": member},
        )


@admin_bp.errorhandler(AppError)
def handle_admin_error(error: AppError) -> ResponseReturnValue:
    return render_error(request, error)


# ---------------------------------------------------------------------- #
# 默认资源
# ---------------------------------------------------------------------- #
@admin_bp.get("/", endpoint="dashboard")
def dashboard() -> Response:
    """不带资源键的入口,渲染菜单优先级最高的资源列表页."""
    return _dispatch(AdminAction.INDEX)


# ---------------------------------------------------------------------- #
# 集合路由
# ---------------------------------------------------------------------- #
@admin_bp.get("/<resource>", endpoint="index")
def index(resource: str) -> Response:
    return _dispatch(AdminAction.INDEX, resource)


@admin_bp.get("/<resource>/new", endpoint="new")
def new(resource: str) -> Response:
    return _dispatch(AdminAction.NEW, resource)


@admin_bp.post("/<resource>", endpoint="create")
def create(resource: str) -> Response:
    return _dispatch(AdminAction.CREATE, resource)


@admin_bp.get("/<resource>/csv", endpoint="csv")
def csv(resource: str) -> Response:
    return _dispatch(AdminAction.CSV, resource)


@admin_bp.get("/<resource>/nested", endpoint="nested")
def nested(resource: str) -> Response:
    return _dispatch(AdminAction.NESTED, resource)


@admin_bp.post("/<resource>/batch_action", endpoint="batch_action")
def batch_action(resource: str) -> Response:
    return _dispatch(AdminAction.BATCH_ACTION, resource)


@admin_bp.route("/<resource>/collection/<action>", methods=["GET", "POST"], endpoint="collection_action")
def collection_action(resource: str, action: str) -> Response:
    """只调度资源登记的自定义集合动作,内置动作只能走各自的路由."""
    _require_custom_action(resource, action, member=False)
    return _dispatch(action, resource)


# ---------------------------------------------------------------------- #
# 成员路由
# ---------------------------------------------------------------------- #
@admin_bp.get("/<resource>/<id>", endpoint="show")
def show(resource: str, id: str) -> Response:  # noqa: A002
    return _dispatch(AdminAction.SHOW, resource, id=id)


@admin_bp.get("/<resource>/<id>/edit", endpoint="edit")
def edit(resource: str, id: str) -> Response:  # noqa: A002
    return _dispatch(AdminAction.EDIT, resource, id=id)


@admin_bp.route("/<resource>/<id>", methods=["POST", "PUT", "PATCH"], endpoint="update")
def update(resource: str, id: str) -> Response:  # noqa: A002
    """更新记录;HTML 表单以 ``_method=delete`` 提交时转为删除."""
    override = str(request.values.get(METHOD_OVERRIDE_FIELD, "")).strip().lower()
    if override == "delete":
        return _dispatch(AdminAction.DESTROY, resource, id=id)
    return _dispatch(AdminAction.UPDATE, resource, id=id)


@admin_bp.delete("/<resource>/<id>", endpoint="destroy")
def destroy(resource: str, id: str) -> Response:  # noqa: A002
    return _dispatch(AdminAction.DESTROY, resource, id=id)


@admin_bp.route("/<resource>/<id>/member/<action>", methods=["GET", "POST"], endpoint="member_action")
def member_action(resource: str, id: str, action: str) -> Response:  # noqa: A002
    _require_custom_action(resource, action, member=True)
    return _dispatch(action, resource, id=id)
