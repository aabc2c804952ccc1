import pytest

from app import create_app
from models import db


@pytest.fixture
def app():
    app = create_app('testing')
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def stores(app):
    return app.extensions['stores']


@pytest.fixture
def content(stores):
    return stores.content


@pytest.fixture
def graph(stores):
    return stores.graph


@pytest.fixture
def feed(stores):
    return stores.feed


@pytest.fixture
def alice(content):
    return content.create_profile('acct:alice', 'alice', 'Alice')


@pytest.fixture
def bob(content):
    return content.create_profile('acct:bob', 'bob', 'Bob')


@pytest.fixture
def carol(content):
    return content.create_profile('acct:carol', 'carol', 'Carol')


@pytest.fixture
def client(app):
    return app.test_client()
