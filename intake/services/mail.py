"""
Send e-mail via SMTP.

Connection parameters come from the application config (see
:mod:`intake.config`):

- ``SMTP_HOSTNAME``, ``SMTP_PORT``, ``SMTP_LOCAL_HOSTNAME``
- ``SMTP_USERNAME``, ``SMTP_PASSWORD``
- ``SMTP_SSL``: connect with implicit TLS (e.g. port 465)
- ``SMTP_TIMEOUT``: socket timeout, in seconds
- ``MAIL_SENDER``: ``From`` address; defaults to ``SMTP_USERNAME``

Credentials are never defaulted. :func:`init_app` fails if they are missing
while ``EMAIL_ENABLED`` is on.
"""

import smtplib
from email.message import EmailMessage
from typing import Any, Mapping, Optional

from flask import Flask

from .. import logging
from ..exceptions import ConfigurationError, NotificationError
from ..globals import get_application_config

logger = logging.getLogger(__name__)

REQUIRED = ('SMTP_HOSTNAME', 'SMTP_USERNAME', 'SMTP_PASSWORD')


def init_app(app: Flask) -> None:
    """Check that we have what we need to send mail."""
    if not app.config.get('EMAIL_ENABLED'):
        logger.info('E-mail is disabled')
        return
    missing = [key for key in REQUIRED if not app.config.get(key)]
    if missing:
        raise ConfigurationError('E-mail is enabled, but these are not set: '
                                 + ', '.join(missing))


def get_sender(config: Optional[Mapping[str, Any]] = None) -> str:
    """Get the ``From`` address for outgoing mail."""
    if config is None:
        config = get_application_config()
    return str(config.get('MAIL_SENDER') or config.get('SMTP_USERNAME'))


def send(recipient: str, subject: str, text_body: str,
         html_body: Optional[str] = None, sender: Optional[str] = None) \
        -> None:
    """
    Send an e-mail.

    Parameters
    ----------
    recipient : str
        Address of the recipient.
    subject : str
        Subject line.
    text_body : str
        Plain text content.
    html_body : str
        HTML alternative to ``text_body`` (optional).
    sender : str
        ``From`` address; defaults to :func:`get_sender`.

    Raises
    ------
    :class:`.NotificationError`
        Raised when the message could not be composed (e.g. a line break
        in an address or the subject), or could not be handed to the SMTP
        server.

    """
    config = get_application_config()
    try:
        message = EmailMessage()
        message['Subject'] = subject
        message['From'] = sender or get_sender(config)
        message['To'] = recipient
        message.set_content(text_body)
        if html_body is not None:
            message.add_alternative(html_body, subtype='html')
        _send(message,
              host=config['SMTP_HOSTNAME'],
              port=int(config.get('SMTP_PORT') or 0),
              username=config.get('SMTP_USERNAME'),
              password=config.get('SMTP_PASSWORD'),
              local_hostname=config.get('SMTP_LOCAL_HOSTNAME'),
              use_ssl=bool(config.get('SMTP_SSL')),
              timeout=float(config.get('SMTP_TIMEOUT') or 10))
    except (smtplib.SMTPException, OSError, ValueError) as e:
        raise NotificationError(f'Could not send mail to {recipient}: {e}') \
            from e
    logger.info('Sent "%s" to %s', subject, recipient)


def _send(message: EmailMessage, host: str, port: int,
          username: Optional[str], password: Optional[str],
          local_hostname: Optional[str], use_ssl: bool,
          timeout: float) -> None:
    smtp_class = smtplib.SMTP_SSL if use_ssl else smtplib.SMTP
    with smtp_class(host, port, local_hostname, timeout=timeout) as smtp:
        if username and password:
            smtp.login(username, password)
        smtp.send_message(message)
