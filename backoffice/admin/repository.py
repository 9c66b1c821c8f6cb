"""后台默认持久化适配器.

职责:
- 为内置动作提供 index/show/edit/csv 查询以及 insert/update/delete;
- 资源可以通过 `queries` 按查询类型替换默认查询,签名 ``(definition, args)``;
- 不做序列化、不返回 Response. 持久化异常回滚后原样抛出.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from flask import current_app
from sqlalchemy import inspect as sa_inspect
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from backoffice import db
from backoffice.admin.changeset import apply_changes
from backoffice.constants import AdminAction
from backoffice.errors import NotFoundError
from backoffice.types import PaginatedResult
from backoffice.utils.pagination_utils import resolve_page, resolve_page_size
from backoffice.utils.route_safety import log_with_context

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from sqlalchemy.sql import Select

    from backoffice.admin.changeset import Changeset
    from backoffice.admin.registry import ResourceDefinition

FILTER_OPERATORS = ("eq", "contains", "gte", "lte")
DEFAULT_ORDER_DIRECTION = "desc"


class AdminRepository:
    """基于 Flask-SQLAlchemy 会话的持久化适配器."""

    @property
    def session(self) -> Session:
        return db.session

    # ------------------------------------------------------------------ #
    # 查询
    # ------------------------------------------------------------------ #
    def run_query(self, definition: ResourceDefinition, kind: str, args: object = None) -> Any:
        """按查询类型执行查询.

        Args:
            definition: 资源定义.
            kind: index/show/edit/csv 之一.
            args: index 为参数字典, show/edit 为主键.

        Returns:
            index 返回 PaginatedResult, show/edit 返回单个实例, csv 返回实例列表.

        Raises:
            NotFoundError: show/edit 指定的记录不存在时抛出.
            ValueError: 查询类型未知时抛出.

        """
        custom = definition.queries.get(kind)
        if custom is not None:
            return custom(definition, args)
        if kind == AdminAction.INDEX:
            return self.list_page(definition, args if isinstance(args, Mapping) else {})
        if kind in (AdminAction.SHOW, AdminAction.EDIT):
            return self.get_or_404(definition.model, args)
        if kind == AdminAction.CSV:
            return list(self.session.scalars(self._ordered(definition, select(definition.model), None)))
        msg = f"未知查询类型: {kind}"
        raise ValueError(msg)

    def list_page(self, definition: ResourceDefinition, params: Mapping[str, Any]) -> PaginatedResult[Any]:
        """分页查询列表页数据,支持 ``q[field_op]`` 筛选与 ``order=field_asc|desc`` 排序."""
        stmt = self._filtered(definition, select(definition.model), params.get("q"))
        stmt = self._ordered(definition, stmt, params.get("order"))
        per_page = resolve_page_size(params, default=int(current_app.config.get("ADMIN_PER_PAGE", 20)))
        pagination = db.paginate(stmt, page=resolve_page(params), per_page=per_page, error_out=False)
        return PaginatedResult(
            items=list(pagination.items),
            total=pagination.total or 0,
            page=pagination.page,
            pages=pagination.pages,
            limit=pagination.per_page,
        )

    def get(self, model: type, identity: object) -> Any:
        return self.session.get(model, self._coerce_identity(model, identity))

    def get_or_404(self, model: type, identity: object) -> Any:
        instance = self.get(model, identity)
        if instance is None:
            raise NotFoundError(extra={"model": model.__name__, "id": identity})
        return instance

    # ------------------------------------------------------------------ #
    # 写入
    # ------------------------------------------------------------------ #
    def insert(self, changeset: Changeset) -> Any:
        """写入候选对象并提交."""
        instance = changeset.candidate
        self.session.add(instance)
        self._commit("insert", type(instance))
        return instance

    def update(self, changeset: Changeset) -> Any:
        """把变更应用到原对象并提交."""
        instance = apply_changes(changeset.instance, changeset.changes)
        self._commit("update", type(instance))
        return instance

    def delete(self, instance: Any) -> None:
        self.session.delete(instance)
        self._commit("delete", type(instance))

    def _commit(self, operation: str, model: type) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            log_with_context(
                "error",
                "后台持久化失败",
                module="admin_repository",
                action=operation,
                context={"model": model.__name__},
                extra={"error_type": exc.__class__.__name__, "error_message": str(exc)},
            )
            raise

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    @staticmethod
    def _coerce_identity(model: type, identity: object) -> object:
        if not isinstance(identity, str):
            return identity
        column = sa_inspect(model).primary_key[0]
        try:
            python_type = column.type.python_type
        except NotImplementedError:
            return identity
        if python_type is int:
            try:
                return int(identity)
            except ValueError as exc:
                raise NotFoundError(extra={"model": model.__name__, "id": identity}) from exc
        return identity

    @staticmethod
    def _filterable_columns(definition: ResourceDefinition) -> dict[str, Any]:
        if definition.index_filters is False:
            return {}
        columns = {attr.key: attr.class_attribute for attr in sa_inspect(definition.model).column_attrs}
        allowed = {str(name) for name in definition.index_filters}
        if not allowed:
            return columns
        return {key: column for key, column in columns.items() if key in allowed}

    def _filtered(self, definition: ResourceDefinition, stmt: Select[Any], raw_filters: object) -> Select[Any]:
        if not isinstance(raw_filters, Mapping):
            return stmt
        columns = self._filterable_columns(definition)
        for raw_key, value in raw_filters.items():
            if value is None:
                continue
            field_name, _, operator = str(raw_key).rpartition("_")
            column = columns.get(field_name)
            if column is None or operator not in FILTER_OPERATORS:
                continue
            if operator == "eq":
                stmt = stmt.where(column == value)
            elif operator == "contains":
                stmt = stmt.where(column.contains(str(value)))
            elif operator == "gte":
                stmt = stmt.where(column >= value)
            else:
                stmt = stmt.where(column <= value)
        return stmt

    @staticmethod
    def _ordered(definition: ResourceDefinition, stmt: Select[Any], raw_order: object) -> Select[Any]:
        mapper = sa_inspect(definition.model)
        columns = {attr.key: attr.class_attribute for attr in mapper.column_attrs}
        primary = mapper.get_property_by_column(mapper.primary_key[0]).key
        field_name, direction = primary, DEFAULT_ORDER_DIRECTION
        if isinstance(raw_order, str):
            candidate, _, candidate_direction = raw_order.rpartition("_")
            if candidate in columns and candidate_direction in ("asc", "desc"):
                field_name, direction = candidate, candidate_direction
        column = columns[field_name]
        return stmt.order_by(column.asc() if direction == "asc" else column.desc())
