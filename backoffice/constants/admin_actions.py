"""后台内置动作词汇.

与 HTTP 调度面一一对应,内置动作集合只识别这里列出的名称.
"""

from __future__ import annotations

from typing import ClassVar


class AdminAction:
    """内置动作名称常量."""

    INDEX = "index"
    SHOW = "show"
    NEW = "new"
    EDIT = "edit"
    CREATE = "create"
    UPDATE = "update"
    DESTROY = "destroy"
    BATCH_ACTION = "batch_action"
    CSV = "csv"
    NESTED = "nested"

    # 仅对这些动作做参数清洗
    MUTATING: ClassVar[frozenset[str]] = frozenset({CREATE, UPDATE})

    # 子渲染动作,跳过拦截器链
    SUB_RENDER: ClassVar[frozenset[str]] = frozenset({NESTED})

    BATCH_DESTROY = "destroy"
