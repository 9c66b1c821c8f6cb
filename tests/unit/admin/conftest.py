# tests/unit/admin/conftest.py
"""后台调度测试专用 fixtures.

提供测试模型、注册表与基于内存 sqlite 的应用工厂.
"""

import pytest

from backoffice import create_app, db
from backoffice.admin import ResourceRegistry
from backoffice.settings import Settings


class Widget(db.Model):
    __tablename__ = "widgets"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(80), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    note = db.Column(db.String(200))


class Gadget(db.Model):
    __tablename__ = "gadgets"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(80), nullable=False)
    price = db.Column(db.Float)


@pytest.fixture
def widget_model():
    return Widget


@pytest.fixture
def gadget_model():
    return Gadget


@pytest.fixture
def registry():
    return ResourceRegistry()


@pytest.fixture
def make_app():
    """按注册表创建测试应用并建表.

    需要全局默认拦截器等配置时,先用 monkeypatch.setenv 写入环境变量再调用.
    """

    def _make(resource_registry):
        app = create_app(settings=Settings.load(), registry=resource_registry)
        with app.app_context():
            db.create_all()
        return app

    return _make


@pytest.fixture
def seed_widgets():
    """写入若干 Widget 并返回主键列表."""

    def _seed(app, *names):
        with app.app_context():
            rows = [Widget(name=name, quantity=index) for index, name in enumerate(names, start=1)]
            db.session.add_all(rows)
            db.session.commit()
            return [row.id for row in rows]

    return _seed


@pytest.fixture
def widget_count():
    def _count(app):
        with app.app_context():
            return db.session.query(Widget).count()

    return _count
