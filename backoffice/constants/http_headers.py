"""HTTP头常量.

定义后台响应使用的HTTP头名称与内容类型，避免魔法字符串。
"""


class HttpHeaders:
    """HTTP头常量."""

    CONTENT_TYPE = "Content-Type"
    CONTENT_DISPOSITION = "Content-Disposition"
    X_REQUEST_ID = "X-Request-ID"
    X_REQUESTED_WITH = "X-Requested-With"


class ContentTypes:
    """内容类型常量(不含 charset)."""

    HTML = "text/html"
    CSV = "text/csv"
    JAVASCRIPT = "text/javascript"
    JSON = "application/json"

    CHARSET_SUFFIX = "; charset=utf-8"
