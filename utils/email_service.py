"""
SMTP Email Service
Sends operator notifications over SMTP using the MAIL_* settings loaded at
startup. The transport counts as configured only when both a username and a
password are present; otherwise init_email_service() leaves it disabled.
"""

import logging
import smtplib
from typing import Optional
from email.errors import MessageError
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart

logger = logging.getLogger(__name__)


class MailSendFailed(Exception):
    """Raised when a notification could not be handed to the SMTP server"""

    def __init__(self, message: str, auth_error: bool = False):
        super().__init__(message)
        self.auth_error = auth_error


class SMTPEmailService:
    """Service for sending emails through an SMTP relay"""

    def __init__(
        self,
        server: str = 'smtp.gmail.com',
        port: int = 587,
        username: Optional[str] = None,
        password: Optional[str] = None,
        sender: Optional[str] = None,
        use_tls: bool = True,
        use_ssl: bool = False,
        timeout: float = 30,
    ):
        self.smtp_server = server
        self.smtp_port = port
        self.username = username
        # Gmail app passwords can carry spaces for readability
        self.password = password.replace(' ', '') if password else password
        self.sender = sender or username
        self.use_tls = use_tls
        self.use_ssl = use_ssl
        self.timeout = timeout

    @classmethod
    def from_config(cls, config) -> 'SMTPEmailService':
        return cls(
            server=config.get('MAIL_SERVER', 'smtp.gmail.com'),
            port=int(config.get('MAIL_PORT', 587)),
            username=config.get('MAIL_USERNAME'),
            password=config.get('MAIL_PASSWORD'),
            sender=config.get('MAIL_DEFAULT_SENDER'),
            use_tls=config.get('MAIL_USE_TLS', True),
            use_ssl=config.get('MAIL_USE_SSL', False),
            timeout=float(config.get('MAIL_TIMEOUT', 30)),
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.username and self.password)

    def _build_message(self, to_email: str, subject: str, body: str, html: Optional[str] = None):
        if html:
            msg = MIMEMultipart('alternative')
            msg.attach(MIMEText(body, 'plain'))
            msg.attach(MIMEText(html, 'html'))
        else:
            msg = MIMEText(body, 'plain')
        msg['From'] = self.sender
        msg['To'] = to_email
        msg['Subject'] = subject
        return msg

    def _connect(self):
        if self.use_ssl:
            return smtplib.SMTP_SSL(self.smtp_server, self.smtp_port, timeout=self.timeout)
        return smtplib.SMTP(self.smtp_server, self.smtp_port, timeout=self.timeout)

    def send_email(self, to: str, subject: str, body: str, html: Optional[str] = None) -> None:
        """
        Send one email. Attempted exactly once; no retries.

        Args:
            to: Recipient email address
            subject: Email subject
            body: Plain text body
            html: HTML body (optional)

        Raises:
            MailSendFailed: auth_error is True when the server rejected the
                credentials, False for any other transport failure
        """
        try:
            msg = self._build_message(to, subject, body, html)
            with self._connect() as server:
                server.set_debuglevel(0)
                if self.use_tls and not self.use_ssl:
                    server.starttls()
                server.login(self.username, self.password)
                server.send_message(msg)
        except smtplib.SMTPAuthenticationError as e:
            logger.error(f"SMTP authentication failed for {self.username}: {e}")
            raise MailSendFailed(f"SMTP authentication failed: {e}", auth_error=True) from e
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Error sending email from {self.sender} to {to}: {e}", exc_info=True)
            raise MailSendFailed(f"SMTP send failed: {e}") from e
        except (MessageError, ValueError) as e:
            logger.error(f"Could not build email to {to}: {e}")
            raise MailSendFailed(f"Invalid email message: {e}") from e

        logger.info(f"Email sent successfully from {self.sender} to {to}")


def init_email_service(app):
    """
    Resolve the mail capability once at startup.

    Stores the service in app.config['EMAIL_SERVICE'] when credentials are
    present, or None when the transport is not configured.
    """
    service = SMTPEmailService.from_config(app.config)
    if service.is_configured:
        app.config['EMAIL_SERVICE'] = service
        logger.info(f"SMTP email service initialized for {service.username}")
    else:
        app.config['EMAIL_SERVICE'] = None
        logger.warning("MAIL_USERNAME/MAIL_PASSWORD not set; email notifications are disabled")
    return app.config['EMAIL_SERVICE']
