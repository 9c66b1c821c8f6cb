"""把动作结果转换为 Flask 响应."""

from __future__ import annotations

from typing import TYPE_CHECKING

from flask import flash, make_response, redirect, render_template
from markupsafe import Markup

from backoffice.admin.outcomes import Redirected, Sent, ValidationFailed
from backoffice.constants import HttpStatus
from backoffice.constants.http_headers import ContentTypes

if TYPE_CHECKING:
    from flask import Response

    from backoffice.admin.dispatcher import DispatchResult


def render_outcome(result: DispatchResult) -> Response:
    """根据结果类型生成响应.

    - Redirected: 302 跳转;
    - Sent: 原样发送响应体,未设置内容类型时使用结果自带的类型;
    - Rendered / ValidationFailed: 套用后台布局渲染 HTML.

    上下文中积累的 flash 与响应头在这里统一落地.
    """
    context, outcome = result.context, result.outcome
    for category, message in context.flashes:
        flash(message, category)

    if isinstance(outcome, Redirected):
        response = redirect(outcome.location)
    elif isinstance(outcome, Sent):
        context.ensure_resp_content_type(outcome.content_type)
        response = make_response(outcome.body, context.status or outcome.status)
    else:
        context.ensure_resp_content_type(ContentTypes.HTML)
        html = render_template(
            "admin/admin.html",
            html=Markup(outcome.content),
            defn=result.definition,
            resource=outcome.resource,
            filters=getattr(outcome, "filters", None),
            validation_failed=isinstance(outcome, ValidationFailed),
        )
        response = make_response(html, context.status or HttpStatus.OK)

    for header, value in context.resp_headers:
        response.headers[header] = value
    return response
