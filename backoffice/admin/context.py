"""后台请求上下文.

每个请求独占一个 RequestContext,依次传递给拦截器、前置钩子与动作处理器.
各阶段可以原地修改后返回,也可以返回新的上下文实例.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from backoffice.constants import HttpHeaders
from backoffice.constants.http_headers import ContentTypes

if TYPE_CHECKING:
    from flask import Request

AUTHORIZED_ASSIGN = "authorized"


@dataclass(slots=True)
class RequestContext:
    """单个后台请求的可变状态.

    Attributes:
        path_info: 请求路径分段.
        params: 已解码的请求参数.
        method: HTTP 方法.
        assigns: 各阶段之间传递数据的旁路通道,如 `authorized`、`page`.
        flashes: 待写入 Flash 的 (类别, 内容) 列表.
        status: 显式设置的响应状态码, None 表示使用默认值.
        resp_headers: 响应头列表,头名称统一小写.

    """

    path_info: list[str]
    params: dict[str, Any]
    method: str = "GET"
    assigns: dict[str, Any] = field(default_factory=dict)
    flashes: list[tuple[str, object]] = field(default_factory=list)
    status: int | None = None
    resp_headers: list[tuple[str, str]] = field(default_factory=list)

    @classmethod
    def from_request(cls, req: Request, params: dict[str, Any]) -> RequestContext:
        """基于 Flask 请求构建上下文."""
        return cls(
            path_info=[segment for segment in req.path.split("/") if segment],
            params=params,
            method=req.method,
        )

    # ------------------------------------------------------------------ #
    # assigns / flash
    # ------------------------------------------------------------------ #
    def assign(self, key: str, value: object) -> RequestContext:
        self.assigns[key] = value
        return self

    def put_flash(self, category: str, message: object) -> RequestContext:
        self.flashes.append((category, message))
        return self

    def flashes_for(self, category: str) -> list[object]:
        return [message for flash_category, message in self.flashes if flash_category == category]

    @property
    def authorized(self) -> bool | None:
        """拦截器写入的授权标记,未设置时为 None."""
        return self.assigns.get(AUTHORIZED_ASSIGN)

    # ------------------------------------------------------------------ #
    # 响应状态与响应头
    # ------------------------------------------------------------------ #
    def put_status(self, status: int) -> RequestContext:
        self.status = status
        return self

    def get_resp_header(self, name: str) -> str | None:
        lowered = name.lower()
        for header, value in self.resp_headers:
            if header == lowered:
                return value
        return None

    def put_resp_header(self, name: str, value: str) -> RequestContext:
        lowered = name.lower()
        self.resp_headers = [(header, val) for header, val in self.resp_headers if header != lowered]
        self.resp_headers.append((lowered, value))
        return self

    def put_resp_content_type(self, content_type: str) -> RequestContext:
        """设置内容类型,总是附加 UTF-8 charset."""
        return self.put_resp_header(HttpHeaders.CONTENT_TYPE, content_type + ContentTypes.CHARSET_SUFFIX)

    def ensure_resp_content_type(self, content_type: str) -> RequestContext:
        """仅当尚未设置内容类型时写入默认值."""
        if self.get_resp_header(HttpHeaders.CONTENT_TYPE) is None:
            self.put_resp_content_type(content_type)
        return self

    def with_resource(self, route_key: str) -> RequestContext:
        """把默认资源写回路径与参数,等价于显式请求该资源."""
        self.path_info = [*self.path_info, route_key]
        self.params = {**self.params, "resource": route_key}
        return self
