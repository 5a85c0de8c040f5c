"""
Pytest configuration and fixtures for testing the translations service.
"""

import os
import sys
import pytest
from faker import Faker

# Add the parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from transfilter import create_app, db
from transfilter.models import Translation
from transfilter.services.render_context import EDIT_CAPABILITY, EDIT_SITE_DEFAULT_CAPABILITY
from transfilter.utils.auth import issue_token

fake = Faker()


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    os.environ['FLASK_ENV'] = 'testing'
    os.environ['JWT_SECRET_KEY'] = 'test-secret-key-for-testing'

    app = create_app('testing')

    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client for each test function."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create a fresh database session for each test."""
    with app.app_context():
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        app.extensions.get('transfilter_cache', {}).clear()
        yield db.session
        db.session.rollback()


@pytest.fixture
def make_translation(db_session):
    """Factory storing a committed translation."""
    def _make(md5key, lastgeneratedhash=None, targetlanguage='fr', substitutetext=None, contextid=None):
        translation = Translation(
            md5key=md5key,
            lastgeneratedhash=lastgeneratedhash or md5key,
            targetlanguage=targetlanguage,
            substitutetext=substitutetext if substitutetext is not None else fake.sentence(),
            contextid=contextid,
        )
        db_session.add(translation)
        db_session.commit()
        return translation
    return _make


def _token(app, capabilities):
    with app.app_context():
        return issue_token(fake.pyint(min_value=1, max_value=9999), capabilities)


@pytest.fixture
def editor_headers(app):
    """Auth headers for an actor allowed to edit every language."""
    token = _token(app, [EDIT_CAPABILITY, EDIT_SITE_DEFAULT_CAPABILITY])
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def reader_headers(app):
    """Auth headers for a signed-in actor without edit capabilities."""
    token = _token(app, [])
    return {'Authorization': f'Bearer {token}'}
