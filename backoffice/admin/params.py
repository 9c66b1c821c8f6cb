"""写操作参数清洗."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from backoffice.constants import AdminAction
from backoffice.utils.request_payload import scrub_value


def scrub_params(params: dict[str, Any], param_key: str, action: str) -> dict[str, Any]:
    """清洗 create/update 请求中资源子字典的字段值.

    只处理 ``params[param_key]``: 字符串去空白,空字符串转为 None.其他动作或
    缺少该子字典时原样返回.这里只做规范化,字段校验由 changeset 负责.

    Args:
        params: 已解码的请求参数.
        param_key: 资源参数子字典的键,即资源的 resource_name.
        action: 动作名称.

    Returns:
        清洗后的参数字典(新对象),或原参数.

    """
    if action not in AdminAction.MUTATING:
        return params
    fields = params.get(param_key)
    if not isinstance(fields, Mapping):
        return params
    return {**params, param_key: scrub_value(fields)}
