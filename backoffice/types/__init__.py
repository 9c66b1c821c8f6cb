"""通用类型定义."""

from backoffice.types.listing import PaginatedResult

__all__ = ["PaginatedResult"]
