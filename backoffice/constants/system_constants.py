"""后台调度层 - 常量定义模块

统一管理错误分类、严重度与提示文案.
"""

from enum import Enum


class ErrorCategory(Enum):
    """错误分类枚举."""

    VALIDATION = "validation"
    BUSINESS = "business"
    AUTHORIZATION = "authorization"
    ROUTING = "routing"
    CONFIGURATION = "configuration"
    SYSTEM = "system"


class ErrorSeverity(Enum):
    """错误严重程度枚举."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# 错误消息常量
class ErrorMessages:
    """错误消息常量."""

    # 通用错误
    INTERNAL_ERROR = "服务器内部错误"
    VALIDATION_ERROR = "数据验证失败"
    PERMISSION_DENIED = "权限不足"
    RESOURCE_NOT_FOUND = "资源不存在"

    # 调度错误
    INVALID_ROUTE = "无效的后台路由"
    UNKNOWN_ACTION = "未知的后台动作"
    UNKNOWN_RESOURCE = "未注册的后台资源"
    NESTED_FIELD_NOT_FOUND = "未找到关联字段"
    UNAUTHORIZED = "无权访问该后台资源"

    # 注册错误
    DUPLICATE_ROUTE_KEY = "资源路由键重复"
    REGISTRY_FROZEN = "资源注册表已冻结"
    CONSTRAINT_VIOLATION = "数据约束错误"


# 成功消息常量(面向后台用户)
class SuccessMessages:
    """成功消息常量."""

    CREATED = "{name} was successfully created."
    UPDATED = "{name} was successfully updated"
    DESTROYED = "{name} was successfully destroyed."
    BATCH_DESTROYED = "Successfully destroyed {count} {noun}."


# 导出所有常量
__all__ = [
    "ErrorCategory",
    "ErrorMessages",
    "ErrorSeverity",
    "SuccessMessages",
]
