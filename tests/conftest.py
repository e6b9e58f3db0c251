from __future__ import annotations

import pytest

from taskapi.app import create_app
from taskapi.src.extensions import db


@pytest.fixture()
def app(tmp_path):
    """Fresh app with its own in-memory database per test."""
    app = create_app('testing')
    app.config['UPLOAD_FOLDER'] = str(tmp_path / 'uploads')
    yield app


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def session(app):
    """db.session inside an app context, for service-level tests."""
    with app.app_context():
        yield db.session
