import pytest
from bathroom_scheduler import create_app, db
from bathroom_scheduler.models import User
from bathroom_scheduler.config import TestingConfig
from werkzeug.security import generate_password_hash

@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()

@pytest.fixture
def client(app):
    return app.test_client()

@pytest.fixture
def household(app):
    alice = User(username='alice', email='alice@home.local',
                 password_hash=generate_password_hash('secret'))
    bob = User(username='bob', email='bob@home.local',
               password_hash=generate_password_hash('secret'))
    admin = User(username='admin', role='admin',
                 password_hash=generate_password_hash('secret'))
    db.session.add_all([alice, bob, admin])
    db.session.commit()
    return alice, bob, admin
