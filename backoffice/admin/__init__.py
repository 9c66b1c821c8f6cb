"""后台调度核心.

对外暴露注册表、扩展对象与动作结果类型,宿主应用通常只需要:

    registry = ResourceRegistry()
    registry.register_resource(Widget)
    Admin(registry).init_app(app)
"""

from backoffice.admin.changeset import Changeset, default_changeset
from backoffice.admin.context import RequestContext
from backoffice.admin.extension import Admin, current_admin
from backoffice.admin.interceptors import require_login, require_role
from backoffice.admin.outcomes import (
    ActionOutcome,
    Redirected,
    Rendered,
    Sent,
    Unauthorized,
    UnknownRoute,
    ValidationFailed,
)
from backoffice.admin.registry import BeforeFilter, ResourceDefinition, ResourceRegistry, ResourceViews

__all__ = [
    "ActionOutcome",
    "Admin",
    "BeforeFilter",
    "Changeset",
    "RequestContext",
    "Redirected",
    "Rendered",
    "ResourceDefinition",
    "ResourceRegistry",
    "ResourceViews",
    "Sent",
    "Unauthorized",
    "UnknownRoute",
    "ValidationFailed",
    "current_admin",
    "default_changeset",
    "require_login",
    "require_role",
]
