# tests/conftest.py
# -*- coding: utf-8 -*-
"""
Pytest fixtures for unit and integration tests.

Builds the Flask application in testing mode with a fake telephony provider,
creates a fresh database per test, and provides authenticated clients.

Ledger writes commit immediately, so isolation comes from recreating the
schema for every test instead of rolling back a wrapping transaction.
"""

import pytest
import os
import sys
import logging

# Project root on sys.path so `phonerelay` imports without installation
project_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if project_dir not in sys.path:
    sys.path.insert(0, project_dir)

from phonerelay import create_app
from phonerelay.extensions import db as _db
from phonerelay.database import models # noqa registers tables on metadata
from phonerelay.utils.exceptions import ProviderError


log = logging.getLogger(__name__)

SYSTEM_SENDER = '+15550000000'


class FakeTelephonyProvider:
    """
    Stands in for TwilioProvider. Records every request; set `fail_with` to an
    exception instance to make the next requests raise it.
    """

    def __init__(self, from_number=SYSTEM_SENDER):
        self.from_number = from_number
        self.calls = []
        self.messages = []
        self.fail_with = None

    @property
    def system_sender(self):
        return self.from_number

    def place_call(self, to, from_, twiml):
        if self.fail_with is not None:
            raise self.fail_with
        self.calls.append({'to': to, 'from_': from_, 'twiml': twiml})
        return f"CA{len(self.calls):032d}"

    def send_message(self, to, from_, body):
        if self.fail_with is not None:
            raise self.fail_with
        self.messages.append({'to': to, 'from_': from_, 'body': body})
        return f"SM{len(self.messages):032d}"


# ---- Application Fixtures ----

@pytest.fixture(scope='function')
def fake_provider():
    return FakeTelephonyProvider()


@pytest.fixture(scope='function')
def failing_provider(fake_provider):
    """The fake provider, rejecting every request."""
    fake_provider.fail_with = ProviderError("Failed to send message: 21211 invalid 'To' number")
    return fake_provider


@pytest.fixture(scope='function')
def app(fake_provider):
    """
    Test Flask application configured for 'testing' with the fake provider
    injected. An application context is pushed for the duration of the test.
    """
    _app = create_app(config_name='testing', telephony_provider=fake_provider)
    ctx = _app.app_context()
    ctx.push()

    yield _app

    ctx.pop()


@pytest.fixture(scope='function')
def db(app):
    """Creates all tables before the test and drops them afterwards."""
    _db.create_all()

    yield _db

    _db.session.remove()
    _db.drop_all()


@pytest.fixture(scope='function')
def session(db):
    """The application's scoped session, bound to the fresh test database."""
    return db.session


@pytest.fixture(scope='function')
def client(app, db):
    """Test client; depends on `db` so every request sees the test schema."""
    return app.test_client()


@pytest.fixture(scope='function')
def dispatcher(app):
    from phonerelay.services.outbound_dispatcher import get_dispatcher
    return get_dispatcher()


# ---- Data Fixtures ----

@pytest.fixture(scope='function')
def make_user(session):
    """Factory creating committed active users."""
    from phonerelay.services.user_service import UserService

    def _make_user(username='pytest_user', email=None, password='PytestPass123!', status='active'):
        user = UserService.create_user(
            username=username,
            email=email or f"{username}@phonerelay.test",
            password=password,
            status=status,
        )
        session.commit()
        return user
    return _make_user


@pytest.fixture(scope='function')
def user(make_user):
    return make_user()


@pytest.fixture(scope='function')
def make_configuration(session):
    """Factory saving (and committing) a telephony configuration for a user."""
    from phonerelay.services.settings_service import SettingsService

    def _make_configuration(user_id, inbound_number='+15550001111', call_action='dial_phone', **kwargs):
        configuration = SettingsService.save_configuration(
            user_id=user_id,
            inbound_number=inbound_number,
            call_action=call_action,
            **kwargs
        )
        session.commit()
        return configuration
    return _make_configuration


@pytest.fixture(scope='function')
def make_contact(session):
    from phonerelay.services.contact_service import ContactService

    def _make_contact(user_id, name='Ada Lovelace', phone_number='+15557654321', **kwargs):
        contact = ContactService.create_contact(user_id=user_id, name=name, phone_number=phone_number, **kwargs)
        session.commit()
        return contact
    return _make_contact


# ---- Authentication Fixtures ----

@pytest.fixture(scope='function')
def logged_in_client(client, user):
    """Test client logged in as `user`."""
    res = client.post('/api/auth/login', json={
        'username': user.username,
        'password': 'PytestPass123!'
    })
    if res.status_code != 200:
        log.error(f"Login failed within logged_in_client fixture! Status: {res.status_code}, Data: {res.data.decode()}")
        pytest.fail("Login failed within logged_in_client fixture.")
    return client
