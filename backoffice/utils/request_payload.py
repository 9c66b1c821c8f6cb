"""请求 payload 解析与规范化.

目标:
- 统一处理 JSON dict 与 Werkzeug MultiDict(form/query).
- 将 `widget[name]=x` 形式的方括号键解码为嵌套字典, `ids[]=1&ids[]=2` 与重复的普通键解码为 list.
- 提供最小的输入规范化(字符串 strip/NUL 清理),空字符串视为缺省值.

注意:
- 本模块只负责 "取参形状" 与 "基础规范化",不做业务校验.
- 业务字段校验应交由 changeset 完成.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any, cast

_STRING_LIKE_TYPES = (str, bytes, bytearray)
_BRACKET_KEY_PATTERN = re.compile(r"\[([^\[\]]*)\]")

Params = dict[str, Any]


def parse_payload(*sources: object) -> Params:
    """解析并合并多个参数来源,后出现的来源覆盖先出现的同名键.

    Args:
        *sources: JSON dict 或 MultiDict 兼容对象(如 request.args、request.form).

    Returns:
        解码后的嵌套参数字典.原始值只做类型归一,清洗由 `scrub_value` 完成.

    """
    merged: Params = {}
    for source in sources:
        if source is None:
            continue
        if hasattr(source, "getlist"):
            _merge_multidict(merged, source)
        elif isinstance(source, Mapping):
            for key, value in source.items():
                merged[str(key)] = value
        else:
            raise TypeError("payload 必须为 mapping 或 MultiDict 兼容对象")
    return merged


def _merge_multidict(target: Params, payload: object) -> None:
    multi_dict = cast(Any, payload)
    for raw_key in multi_dict.keys():
        values = [_decode(value) for value in multi_dict.getlist(raw_key)]
        path = _split_key(raw_key)
        if path[-1] == "":
            _assign(target, path[:-1], values)
        else:
            # 无方括号的重复键(如多选框)保留全部值
            _assign(target, path, values[0] if len(values) == 1 else (values or None))


def _split_key(raw_key: str) -> list[str]:
    head, bracket, _ = raw_key.partition("[")
    if not bracket or not head:
        return [raw_key]
    return [head, *_BRACKET_KEY_PATTERN.findall(raw_key[len(head):])]


def _assign(target: Params, path: Sequence[str], value: object) -> None:
    cursor = target
    for segment in path[:-1]:
        child = cursor.get(segment)
        if not isinstance(child, dict):
            child = {}
            cursor[segment] = child
        cursor = child
    cursor[path[-1]] = value


def _decode(value: object) -> object:
    if isinstance(value, (bytes, bytearray)):
        return value.decode(errors="ignore")
    return value


def scrub_value(value: object) -> object:
    """递归清洗单个参数值.

    字符串去除首尾空白与 NUL 字符,清洗后为空的字符串转为 None;
    字典与序列逐项处理,其余类型原样返回.

    Args:
        value: 原始参数值.

    Returns:
        清洗后的值.

    """
    if isinstance(value, str):
        cleaned = _strip_nul(value)
        return cleaned or None
    if isinstance(value, Mapping):
        return {key: scrub_value(item) for key, item in value.items()}
    if isinstance(value, Sequence) and not isinstance(value, _STRING_LIKE_TYPES):
        return [scrub_value(item) for item in value]
    return value


def _strip_nul(value: str) -> str:
    return value.replace("\x00", "").strip()
