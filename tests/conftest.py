"""
Shared fixtures. The app runs against in-memory SQLite with mail disabled;
tests that need a mail transport swap in RecordingMailer.
"""

from __future__ import annotations

import pytest

from utils.email_service import MailSendFailed

TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite://',
    'APP_ID': 'test-app',
    'LOG_FILE': '',
    'MAIL_USERNAME': None,
    'MAIL_PASSWORD': None,
    'CONTACT_RECIPIENT': 'owner@example.com',
    'CORS_ORIGINS': '*',
}


class RecordingMailer:
    """Stands in for SMTPEmailService; records every send."""

    def __init__(self, error=None):
        self.sent = []
        self.error = error

    def send_email(self, to, subject, body, html=None):
        self.sent.append({'to': to, 'subject': subject, 'body': body, 'html': html})
        if self.error is not None:
            raise self.error


class RecordingStore:
    """Stands in for DocumentStore; records appends and can be told to fail."""

    def __init__(self, error=None, items=None):
        self.appended = []
        self.timestamp_fields = []
        self.listed = []
        self.error = error
        self.items = items or []

    def append_document(self, path, fields, timestamp_field=None):
        self.appended.append((path, dict(fields)))
        self.timestamp_fields.append(timestamp_field)
        if self.error is not None:
            raise self.error
        return f"doc-{len(self.appended)}"

    def list_collection(self, path):
        self.listed.append(path)
        if self.error is not None:
            raise self.error
        return list(self.items)


@pytest.fixture
def app():
    from app import create_app
    from models.database import db

    app = create_app(dict(TEST_CONFIG))
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture
def mailer(app):
    mailer = RecordingMailer()
    app.config['CONTACT_HANDLER'].mailer = mailer
    return mailer


@pytest.fixture
def failing_mailer(app):
    mailer = RecordingMailer(error=MailSendFailed('connection refused'))
    app.config['CONTACT_HANDLER'].mailer = mailer
    return mailer
