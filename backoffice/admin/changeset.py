"""Changeset 构建与校验.

changeset 函数有两种形态:
- 普通可调用对象 ``(instance, params) -> Changeset``;
- pydantic ``BaseModel`` 子类,校验通过后以 ``model_dump(exclude_unset=True)`` 作为变更.

资源未按动作覆盖时,优先使用模型自身的 ``changeset`` 属性,否则使用基于列定义的默认校验.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import inspect as sa_inspect

if TYPE_CHECKING:
    from collections.abc import Callable

    from backoffice.admin.registry import ResourceDefinition

BLANK_MESSAGE = "can't be blank"
INVALID_MESSAGE = "is invalid"
_TRUE_VALUES = frozenset({"1", "true", "on", "yes", "y"})
_FALSE_VALUES = frozenset({"0", "false", "off", "no", "n"})


@dataclass(frozen=True, slots=True)
class Changeset:
    """一次 create/update 尝试的校验结果.

    Attributes:
        valid: 是否通过校验.
        errors: 字段到错误消息列表的映射.
        candidate: 应用了提交值的候选对象(与 instance 相互独立,不会进入会话).
        instance: 校验所基于的原始对象.
        changes: 经过类型转换、待写入的字段值.

    """

    valid: bool
    errors: Mapping[str, list[str]]
    candidate: Any
    instance: Any
    changes: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        instance: Any,
        changes: Mapping[str, Any],
        errors: Mapping[str, list[str]] | None = None,
        *,
        submitted: Mapping[str, Any] | None = None,
    ) -> Changeset:
        """根据变更与错误构建 changeset.

        Args:
            instance: 原始对象.
            changes: 转换后的变更.
            errors: 字段错误,为空表示通过.
            submitted: 原始提交值,校验失败时用于回填候选对象.

        Returns:
            Changeset 实例.

        """
        normalized_errors = {key: list(messages) for key, messages in (errors or {}).items() if messages}
        candidate_values = dict(changes)
        if normalized_errors and submitted:
            candidate_values.update({key: submitted[key] for key in normalized_errors if key in submitted})
        return cls(
            valid=not normalized_errors,
            errors=normalized_errors,
            candidate=build_candidate(instance, candidate_values),
            instance=instance,
            changes=dict(changes),
        )


# ---------------------------------------------------------------------- #
# 模型辅助
# ---------------------------------------------------------------------- #
def build_blank(model: type) -> Any:
    """创建不经过 ``__init__`` 的空白模型实例."""
    return sa_inspect(model).class_manager.new_instance()


def build_candidate(instance: Any, values: Mapping[str, Any]) -> Any:
    """复制 instance 的列值并应用 values,返回游离的新对象."""
    mapper = sa_inspect(type(instance))
    candidate = mapper.class_manager.new_instance()
    for attr in mapper.column_attrs:
        setattr(candidate, attr.key, getattr(instance, attr.key, None))
    apply_changes(candidate, values)
    return candidate


def apply_changes(instance: Any, values: Mapping[str, Any]) -> Any:
    """只写入映射器已知的属性."""
    known = sa_inspect(type(instance)).attrs.keys()
    for key, value in values.items():
        if key in known:
            setattr(instance, key, value)
    return instance


def primary_key_of(instance: Any) -> Any:
    mapper = sa_inspect(type(instance))
    column = mapper.primary_key[0]
    return getattr(instance, mapper.get_property_by_column(column).key)


# ---------------------------------------------------------------------- #
# 选择与执行
# ---------------------------------------------------------------------- #
def select_changeset_fn(definition: ResourceDefinition, action: str) -> Callable[..., Any] | type[BaseModel]:
    """资源按动作覆盖 > 模型自身 ``changeset`` > 默认列校验."""
    custom = definition.changesets.get(action)
    if custom is not None:
        return custom
    model_changeset = getattr(definition.model, "changeset", None)
    if model_changeset is not None:
        return model_changeset
    return default_changeset


def validate_change(fn: Any, instance: Any, params: Mapping[str, Any] | None) -> Changeset:
    """执行 changeset 函数并归一化结果.

    Raises:
        TypeError: 普通 changeset 函数没有返回 Changeset 时抛出.

    """
    field_params = dict(params or {})
    if isinstance(fn, type) and issubclass(fn, BaseModel):
        return _validate_with_schema(fn, instance, field_params)

    result = fn(instance, field_params)
    if not isinstance(result, Changeset):
        msg = f"changeset 函数必须返回 Changeset, 实际为 {type(result).__name__}"
        raise TypeError(msg)
    return result


def _validate_with_schema(schema: type[BaseModel], instance: Any, params: dict[str, Any]) -> Changeset:
    try:
        validated = schema.model_validate(params)
    except PydanticValidationError as exc:
        return Changeset.build(instance, {}, errors_from_pydantic(exc), submitted=params)
    return Changeset.build(instance, validated.model_dump(exclude_unset=True))


def errors_from_pydantic(exc: PydanticValidationError) -> dict[str, list[str]]:
    """把 pydantic 错误列表转换为 ``{字段: [消息]}``."""
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        loc = error.get("loc") or ()
        field_name = str(loc[0]) if loc else "base"
        message = error.get("msg") or INVALID_MESSAGE
        if error.get("type") == "missing":
            message = BLANK_MESSAGE
        errors.setdefault(field_name, []).append(message)
    return errors


# ---------------------------------------------------------------------- #
# 默认列校验
# ---------------------------------------------------------------------- #
def default_changeset(instance: Any, params: Mapping[str, Any]) -> Changeset:
    """基于列定义的默认 changeset.

    - 只接受映射到普通列的字段,忽略主键;
    - 按列的 Python 类型转换字符串输入,失败记为 ``is invalid``;
    - 非空且没有默认值的列在合并后仍为空时记为 ``can't be blank``.
    """
    mapper = sa_inspect(type(instance))
    changes: dict[str, Any] = {}
    errors: dict[str, list[str]] = {}

    for attr in mapper.column_attrs:
        column = attr.columns[0]
        if column.primary_key:
            continue
        if attr.key in params:
            try:
                changes[attr.key] = _cast(params[attr.key], column)
            except (TypeError, ValueError, InvalidOperation):
                errors.setdefault(attr.key, []).append(INVALID_MESSAGE)
                continue

        value = changes.get(attr.key, getattr(instance, attr.key, None))
        required = not column.nullable and column.default is None and column.server_default is None
        if required and value is None:
            errors.setdefault(attr.key, []).append(BLANK_MESSAGE)

    return Changeset.build(instance, changes, errors, submitted=params)


def _cast(value: Any, column: Any) -> Any:
    if value is None or not isinstance(value, str):
        return value
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return value

    if python_type is bool:
        lowered = value.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise ValueError(value)
    if python_type is int:
        return int(value)
    if python_type is float:
        return float(value)
    if python_type is Decimal:
        return Decimal(value)
    if python_type is dt.datetime:
        return dt.datetime.fromisoformat(value)
    if python_type is dt.date:
        return dt.date.fromisoformat(value)
    return value
