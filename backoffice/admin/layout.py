"""默认布局协作方.

资源未提供对应视图能力时,由这里渲染列表页、详情页、表单与 CSV.
渲染结果为 HTML 片段,外层布局由 `rendering.render_outcome` 套用.
"""

from __future__ import annotations

import csv
import io
from typing import TYPE_CHECKING, Any

from flask import render_template, url_for
from sqlalchemy import inspect as sa_inspect

from backoffice.admin.changeset import primary_key_of
from backoffice.constants import FlashCategory
from backoffice.utils.spreadsheet_formula_safety import sanitize_csv_row

if TYPE_CHECKING:
    from collections.abc import Iterable

    from backoffice.admin.context import RequestContext
    from backoffice.admin.registry import ResourceDefinition
    from backoffice.types import PaginatedResult

HIDDEN_FORM_COLUMNS = frozenset({"id", "inserted_at", "created_at", "updated_at"})


def column_names(model: type) -> list[str]:
    return [attr.key for attr in sa_inspect(model).column_attrs]


def form_column_names(model: type) -> list[str]:
    mapper = sa_inspect(model)
    return [
        attr.key
        for attr in mapper.column_attrs
        if attr.key not in HIDDEN_FORM_COLUMNS and not attr.columns[0].primary_key
    ]


class DefaultLayout:
    """基于 Jinja 模板的默认视图实现."""

    def index_view(self, context: RequestContext, definition: ResourceDefinition, page: PaginatedResult[Any]) -> str:
        return render_template(
            "admin/_index.html",
            defn=definition,
            page=page,
            columns=column_names(definition.model),
            params=context.params,
            primary_key_of=primary_key_of,
        )

    def show_view(self, context: RequestContext, definition: ResourceDefinition, resource: Any) -> str:
        del context
        rows = [(name, getattr(resource, name, None)) for name in column_names(definition.model)]
        return render_template(
            "admin/_show.html",
            defn=definition,
            resource=resource,
            resource_id=primary_key_of(resource),
            rows=rows,
        )

    def form_view(
        self,
        context: RequestContext,
        definition: ResourceDefinition,
        resource: Any,
        params: dict[str, Any],
    ) -> str:
        """渲染新建/编辑表单.

        已提交的字段值优先于对象上的值回填,校验错误取自上下文中的 inline_error flash.
        """
        submitted = params.get(definition.resource_name)
        submitted = submitted if isinstance(submitted, dict) else {}
        resource_id = primary_key_of(resource)
        errors: dict[str, list[str]] = {}
        for payload in context.flashes_for(FlashCategory.INLINE_ERROR):
            if isinstance(payload, dict):
                errors.update(payload)

        if resource_id is None:
            action_url = url_for("admin.create", resource=definition.route_key)
        else:
            action_url = url_for("admin.update", resource=definition.route_key, id=resource_id)

        fields = [
            (name, submitted[name] if name in submitted else getattr(resource, name, None), errors.get(name, []))
            for name in form_column_names(definition.model)
        ]
        return render_template(
            "admin/_form.html",
            defn=definition,
            resource=resource,
            resource_id=resource_id,
            fields=fields,
            errors=errors,
            action_url=action_url,
        )

    def build_csv(self, definition: ResourceDefinition, first: Any, rest: Iterable[Any]) -> bytes:
        """以列名为表头生成 CSV,单元格做公式注入防护."""
        columns = column_names(definition.model)
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(columns)
        for record in (first, *rest):
            writer.writerow(sanitize_csv_row(getattr(record, name, None) for name in columns))
        return buffer.getvalue().encode("utf-8")
