"""统一错误响应工具.

HTML 请求渲染后台错误页, JSON/XHR 请求返回统一的错误载荷.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from flask import jsonify, render_template

from backoffice.constants import HttpHeaders, HttpStatus
from backoffice.constants.http_headers import ContentTypes
from backoffice.errors import AppError, map_exception_to_status

if TYPE_CHECKING:
    from collections.abc import Mapping

    from flask import Request
    from flask.typing import ResponseReturnValue


def unified_error_response(
    error: BaseException,
    *,
    status_code: int | None = None,
    extra: Mapping[str, object] | None = None,
) -> tuple[dict[str, object], int]:
    """生成统一的错误响应载荷.

    Args:
        error: 异常对象.
        status_code: HTTP 状态码,可选,默认根据异常类型自动映射.
        extra: 额外的错误信息,可选.

    Returns:
        包含两个元素的元组:
        - 错误响应载荷字典
        - HTTP 状态码

    """
    safe_error = error if isinstance(error, Exception) else Exception(str(error))
    final_status = status_code or map_exception_to_status(safe_error, default=HttpStatus.INTERNAL_SERVER_ERROR)
    payload: dict[str, object] = {"success": False, "error": True, "message": str(safe_error)}
    if isinstance(safe_error, AppError):
        payload.update(
            {
                "message_key": safe_error.message_key,
                "category": safe_error.category.value,
                "severity": safe_error.severity.value,
                "recoverable": safe_error.recoverable,
            },
        )
    if extra:
        payload["extra"] = dict(extra)
    return payload, final_status


def wants_json(req: Request) -> bool:
    """请求是否期望 JSON 响应(JSON 请求体、XHR 或 Accept 优先 JSON)."""
    if req.is_json or req.headers.get(HttpHeaders.X_REQUESTED_WITH) == "XMLHttpRequest":
        return True
    best = req.accept_mimetypes.best_match([ContentTypes.HTML, ContentTypes.JSON])
    return best == ContentTypes.JSON


def render_error(req: Request, error: AppError) -> ResponseReturnValue:
    """根据请求类型渲染错误响应."""
    payload, status = unified_error_response(error)
    if wants_json(req):
        return jsonify(payload), status
    return render_template("admin/error.html", error=error, status=status), status
