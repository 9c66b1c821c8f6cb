"""常量模块.

集中管理后台调度层使用的常量,包括错误消息、Flash 类别、HTTP 相关常量与动作词汇.

主要常量:
- ErrorMessages: 错误消息常量
- HttpStatus: HTTP 状态码常量
- FlashCategory: Flash 消息类别
- HttpHeaders: HTTP 头常量
- AdminAction: 内置动作词汇
"""

# 导入HTTP状态码常量（使用Python标准库）
from http import HTTPStatus as HttpStatus

# 导入内置动作词汇
from .admin_actions import AdminAction

# 导入Flash类别常量
from .flash_categories import FlashCategory

# 导入HTTP头常量
from .http_headers import HttpHeaders

# 导入所有系统常量
from .system_constants import (
    ErrorCategory,
    ErrorMessages,
    ErrorSeverity,
    SuccessMessages,
)

__all__ = [
    "AdminAction",
    "ErrorCategory",
    "ErrorMessages",
    "ErrorSeverity",
    "FlashCategory",
    "HttpHeaders",
    "HttpStatus",
    "SuccessMessages",
]
