"""
Contact form submissions: validation, persistence and operator notification.

Every submission is saved as one document before any email is attempted; the
write is the durability boundary. The notification is optional and its failure
is reported separately so the caller knows the message itself was saved.
"""

import logging
from datetime import datetime, UTC
from enum import Enum
from html import escape

from flask import Blueprint, current_app, jsonify, request

from app_config import contact_collection_path
from utils.email_service import MailSendFailed
from .document import DocumentStoreError

logger = logging.getLogger(__name__)

contact_bp = Blueprint('contact', __name__)

CONTACT_FIELDS = ('name', 'email', 'message')


class ContactSubmission:
    """Incoming contact form data; never persisted as-is."""

    def __init__(self, name=None, email=None, message=None):
        self.name = name
        self.email = email
        self.message = message

    @staticmethod
    def _is_blank(value):
        return not isinstance(value, str) or not value.strip()

    @classmethod
    def from_payload(cls, payload):
        payload = payload if isinstance(payload, dict) else {}
        return cls(**{field: payload.get(field) for field in CONTACT_FIELDS})

    def missing_fields(self):
        """Fields that are absent, empty, whitespace-only or not text."""
        return [field for field in CONTACT_FIELDS if self._is_blank(getattr(self, field))]

    def to_fields(self):
        return {field: getattr(self, field) for field in CONTACT_FIELDS}

    def __repr__(self):
        return f"<ContactSubmission {self.name} - {self.email}>"


class SubmissionOutcome(Enum):
    INVALID_INPUT = 'InvalidInput'
    PERSISTENCE_FAILED = 'PersistenceFailed'
    SAVED_NO_NOTIFICATION = 'SavedNoNotification'
    SAVED_AND_NOTIFIED = 'SavedAndNotified'
    SAVED_NOTIFICATION_FAILED = 'SavedNotificationFailed'

    @property
    def status_code(self):
        return _OUTCOME_STATUS[self]

    @property
    def is_success(self):
        return self.status_code < 400

    @property
    def is_saved(self):
        return self in (
            SubmissionOutcome.SAVED_NO_NOTIFICATION,
            SubmissionOutcome.SAVED_AND_NOTIFIED,
            SubmissionOutcome.SAVED_NOTIFICATION_FAILED,
        )


_OUTCOME_STATUS = {
    SubmissionOutcome.INVALID_INPUT: 400,
    SubmissionOutcome.PERSISTENCE_FAILED: 500,
    SubmissionOutcome.SAVED_NO_NOTIFICATION: 200,
    SubmissionOutcome.SAVED_AND_NOTIFIED: 200,
    SubmissionOutcome.SAVED_NOTIFICATION_FAILED: 500,
}

_OUTCOME_MESSAGES = {
    SubmissionOutcome.INVALID_INPUT: 'All fields are required.',
    SubmissionOutcome.PERSISTENCE_FAILED: 'Failed to send message.',
    SubmissionOutcome.SAVED_NO_NOTIFICATION: 'Message saved. Email notification skipped.',
    SubmissionOutcome.SAVED_AND_NOTIFIED: 'Message sent successfully!',
    SubmissionOutcome.SAVED_NOTIFICATION_FAILED: 'Message saved, but the email notification could not be sent.',
}


class SubmissionResult:
    def __init__(self, outcome, document_id=None, missing=None):
        self.outcome = outcome
        self.document_id = document_id
        self.missing = missing or []

    @property
    def status_code(self):
        return self.outcome.status_code

    @property
    def message(self):
        return _OUTCOME_MESSAGES[self.outcome]

    def to_response(self):
        payload = {'success': self.outcome.is_success, 'message': self.message}
        if self.document_id:
            payload['id'] = self.document_id
        if self.missing:
            payload['missing'] = self.missing
        return payload

    def __repr__(self):
        return f"<SubmissionResult {self.outcome.value} id={self.document_id}>"


def build_notification(submission, document_id, record_path, received_at=None):
    """Return (subject, text body, html body) for the operator email."""
    received_at = received_at or datetime.now(UTC)
    received = received_at.strftime('%Y-%m-%d %H:%M:%S UTC')
    location = f"{record_path}/{document_id}"

    # Header values must stay on one line
    subject = f"New contact form submission from {' '.join(submission.name.split())}"

    body = f"""New contact form submission (ID: {document_id}):

Name: {submission.name}
Email: {submission.email}
Received: {received}

Message:
{submission.message}

Stored at: {location}
"""

    message_html = escape(submission.message).replace('\r\n', '\n').replace('\n', '<br>')
    html = (
        "<h2>New contact form submission</h2>"
        f"<p><strong>Name:</strong> {escape(submission.name)}</p>"
        f"<p><strong>Email:</strong> {escape(submission.email)}</p>"
        f"<p><strong>Received:</strong> {received}</p>"
        f"<p><strong>Message:</strong><br>{message_html}</p>"
        f"<p>Stored at: <code>{escape(location)}</code></p>"
    )
    return subject, body, html


class ContactSubmissionHandler:
    """
    Processes one contact submission per call.

    Args:
        store: DocumentStore used to persist the submission
        mailer: SMTPEmailService, or None when no mail transport is configured
        app_id: namespace for the contact collection path
        recipient: operator address that receives notifications
    """

    def __init__(self, store, mailer, app_id, recipient=None):
        self.store = store
        self.mailer = mailer
        self.recipient = recipient
        self.collection_path = contact_collection_path(app_id)

    @property
    def notifications_enabled(self):
        return self.mailer is not None

    def handle_submission(self, name, email, message):
        submission = ContactSubmission(name=name, email=email, message=message)
        return self.handle(submission)

    def handle(self, submission):
        missing = submission.missing_fields()
        if missing:
            logger.info(f"Rejected contact submission, missing fields: {', '.join(missing)}")
            return SubmissionResult(SubmissionOutcome.INVALID_INPUT, missing=missing)

        try:
            document_id = self.store.append_document(
                self.collection_path, submission.to_fields(), timestamp_field='timestamp'
            )
        except DocumentStoreError as e:
            logger.error(f"Error adding contact message: {e}")
            return SubmissionResult(SubmissionOutcome.PERSISTENCE_FAILED)

        logger.info(f"Contact message added with ID: {document_id}")

        if not self.notifications_enabled:
            logger.info(f"Email transport not configured; skipped notification for {document_id}")
            return SubmissionResult(SubmissionOutcome.SAVED_NO_NOTIFICATION, document_id)

        subject, body, html = build_notification(submission, document_id, self.collection_path)
        try:
            self.mailer.send_email(to=self.recipient, subject=subject, body=body, html=html)
        except MailSendFailed as e:
            if e.auth_error:
                logger.error(f"Notification for {document_id} failed: mail credentials rejected, check MAIL_USERNAME/MAIL_PASSWORD ({e})")
            else:
                logger.error(f"Notification for {document_id} failed: mail transport error ({e})")
            return SubmissionResult(SubmissionOutcome.SAVED_NOTIFICATION_FAILED, document_id)

        logger.info(f"Notification for contact message {document_id} sent to {self.recipient}")
        return SubmissionResult(SubmissionOutcome.SAVED_AND_NOTIFIED, document_id)


@contact_bp.route('/contact', methods=['POST'])
def submit_contact():
    handler = current_app.config.get('CONTACT_HANDLER')
    if handler is None:
        current_app.logger.error("Contact submission received but the document store is not initialized")
        return jsonify({'success': False, 'message': 'Document store is not initialized.'}), 500

    submission = ContactSubmission.from_payload(request.get_json(silent=True))
    result = handler.handle(submission)
    return jsonify(result.to_response()), result.status_code
