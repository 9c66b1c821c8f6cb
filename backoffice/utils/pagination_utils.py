"""分页参数解析工具.

用于统一解析列表页的分页参数.
"""

from __future__ import annotations

from collections.abc import Mapping


def _safe_int(value: object, *, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        return default


def resolve_page(args: Mapping[str, object], *, default: int = 1, minimum: int = 1) -> int:
    """解析分页页码.

    Args:
        args: 请求参数映射.
        default: 缺省页码.
        minimum: 最小页码.

    Returns:
        解析后的页码(已做下限保护).

    """
    page = _safe_int(args.get("page"), default=default)
    return max(page, minimum)


def resolve_page_size(
    args: Mapping[str, object],
    *,
    default: int = 20,
    minimum: int = 1,
    maximum: int = 200,
) -> int:
    """解析每页数量,依次读取 per_page、page_size.

    Returns:
        解析后的每页数量(已做范围裁剪).

    """
    raw = args.get("per_page")
    if raw is None:
        raw = args.get("page_size")
    page_size = _safe_int(raw, default=default)
    return min(max(page_size, minimum), maximum)
