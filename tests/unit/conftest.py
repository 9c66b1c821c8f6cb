# tests/unit/conftest.py
"""单元测试专用 fixtures."""

import pytest


@pytest.fixture(autouse=True)
def _unit_test_env(monkeypatch):
    """为 unit tests 强制注入隔离环境变量.

    目标:
    - unit tests 只使用内存 sqlite
    - 避免开发者本机环境变量(如 ADMIN_INTERCEPTORS)影响测试稳定性
    """
    monkeypatch.setenv("FLASK_ENV", "testing")
    monkeypatch.setenv("DATABASE_URL", "sqlite:///:memory:")
    monkeypatch.setenv("WTF_CSRF_ENABLED", "false")
    monkeypatch.delenv("ADMIN_INTERCEPTORS", raising=False)
    monkeypatch.delenv("ADMIN_REGISTRY", raising=False)
    monkeypatch.delenv("ADMIN_PER_PAGE", raising=False)
    monkeypatch.delenv("ADMIN_URL_PREFIX", raising=False)
    monkeypatch.delenv("FLASK_DEBUG", raising=False)
