"""后台路径构建."""

from __future__ import annotations

from typing import TYPE_CHECKING

from flask import url_for

if TYPE_CHECKING:
    from backoffice.admin.registry import ResourceDefinition


def index_path(definition: ResourceDefinition) -> str:
    return url_for("admin.index", resource=definition.route_key)


def show_path(definition: ResourceDefinition, resource_id: object) -> str:
    return url_for("admin.show", resource=definition.route_key, id=resource_id)
