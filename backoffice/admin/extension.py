"""后台扩展对象.

用法与其他 Flask 扩展一致:

    admin = Admin(registry)
    admin.init_app(app)

`init_app` 冻结注册表、解析全局默认拦截器并注册后台蓝图.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from flask import current_app

from backoffice.admin.interceptors import normalize_specs
from backoffice.admin.layout import DefaultLayout
from backoffice.admin.registry import ResourceRegistry
from backoffice.admin.repository import AdminRepository
from backoffice.constants import FlashCategory
from backoffice.utils.structlog_config import get_system_logger

if TYPE_CHECKING:
    from flask import Flask

    from backoffice.admin.dispatcher import AdminDispatcher

EXTENSION_KEY = "backoffice_admin"


class Admin:
    """后台扩展,持有注册表与调度协作方.

    Attributes:
        registry: 资源注册表,`init_app` 后只读.
        repository: 持久化适配器.
        layout: 默认视图协作方.
        dispatcher: 请求调度器,`init_app` 后可用.

    """

    def __init__(
        self,
        registry: ResourceRegistry | None = None,
        *,
        repository: AdminRepository | None = None,
        layout: DefaultLayout | None = None,
    ) -> None:
        self.registry = registry or ResourceRegistry()
        self.repository = repository or AdminRepository()
        self.layout = layout or DefaultLayout()
        self.dispatcher: AdminDispatcher | None = None

    def init_app(self, app: Flask, registry: ResourceRegistry | None = None) -> None:
        """把后台挂载到应用上.

        Args:
            app: Flask 应用实例.
            registry: 可选,覆盖构造时传入的注册表.

        Raises:
            RegistryError: ADMIN_INTERCEPTORS 中的点分路径无法导入时抛出.

        """
        from backoffice.admin.dispatcher import AdminDispatcher
        from backoffice.admin.routes import admin_bp

        if registry is not None:
            self.registry = registry
        self.registry.freeze()

        defaults = normalize_specs(app.config.get("ADMIN_INTERCEPTORS", ()))
        self.dispatcher = AdminDispatcher(self.registry, defaults)

        app.extensions[EXTENSION_KEY] = self
        app.register_blueprint(admin_bp, url_prefix=app.config.get("ADMIN_URL_PREFIX", "/admin"))
        app.add_template_filter(FlashCategory.get_bootstrap_class, "flash_class")

        @app.context_processor
        def inject_admin_menu() -> dict[str, Any]:
            return {"admin_menu": self.registry.menu()}

        get_system_logger().info(
            "后台已挂载",
            resources=[definition.route_key for definition in self.registry],
            default_interceptors=len(defaults),
        )


def current_admin() -> Admin:
    """返回当前应用上挂载的 Admin 实例."""
    return current_app.extensions[EXTENSION_KEY]
