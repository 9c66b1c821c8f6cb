"""Flask Flash消息类别常量.

定义后台 Flash 消息的标准类别,避免魔法字符串.
"""

from __future__ import annotations

from typing import ClassVar


class FlashCategory:
    """Flask Flash消息类别常量.

    NOTICE 用于成功提示,INLINE_ERROR 携带表单字段级错误列表.
    """

    NOTICE = "notice"
    INLINE_ERROR = "inline_error"
    ERROR = "error"
    WARNING = "warning"

    BOOTSTRAP_CLASSES: ClassVar[dict[str, str]] = {
        NOTICE: "alert-success",
        INLINE_ERROR: "alert-danger",
        ERROR: "alert-danger",
        WARNING: "alert-warning",
    }

    @classmethod
    def get_bootstrap_class(cls, category: str) -> str:
        """获取Bootstrap CSS类名."""
        return cls.BOOTSTRAP_CLASSES.get(category, "alert-info")
