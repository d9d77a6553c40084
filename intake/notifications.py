"""
Confirmation e-mails for contact/booking submissions.

Sending is fire-and-forget. The e-mail is composed while handling the
request, and handed off to :func:`send_confirmation_email`, which runs on the
worker when ``ENABLE_ASYNC`` is on, and on a background thread otherwise. A
message that cannot be composed or sent is logged and otherwise ignored: it
must never change the response to the submitter, and it is not retried.
"""

from concurrent.futures import Future
from typing import Optional

from flask import render_template
from jinja2 import TemplateError
from kombu.exceptions import KombuError

from . import logging
from .domain import ContactRecord
from .exceptions import NotificationError
from .globals import get_application_config
from .services import mail
from .tasks import is_async

logger = logging.getLogger(__name__)

SUBJECT = 'Your Booking Confirmation – {plan}'


@is_async
def send_confirmation_email(recipient: str, subject: str, text_body: str,
                            html_body: str) -> None:
    """Send a confirmation e-mail, logging rather than raising on failure."""
    try:
        mail.send(recipient, subject, text_body, html_body)
    except NotificationError as e:
        logger.warning('Email error: %s', e)


def notify_contact(contact: ContactRecord) -> Optional[Future]:
    """
    Send a booking confirmation to the person who submitted ``contact``.

    Must be called within an application context, so that the message
    templates can be rendered. Returns the in-process send, if there is one;
    callers do not need to wait for it.
    """
    config = get_application_config()
    if not config.get('EMAIL_ENABLED'):
        logger.debug('E-mail disabled; not confirming to %s', contact.email)
        return None

    context = {
        'contact': contact,
        'organization': config.get('ORGANIZATION_NAME'),
        'site_url': config.get('SITE_URL'),
        'support_email': (config.get('SUPPORT_EMAIL')
                          or mail.get_sender(config)),
    }
    try:
        subject = SUBJECT.format(plan=contact.plan_label)
        text_body = render_template('intake/contact-confirmation.txt',
                                    **context)
        html_body = render_template('intake/contact-confirmation.html',
                                    **context)
    except (TemplateError, ValueError) as e:
        logger.warning('Could not compose confirmation email to %s: %s',
                       contact.email, e)
        return None

    logger.info('Sending confirmation email to %s', contact.email)
    try:
        return send_confirmation_email(contact.email, subject, text_body,
                                       html_body)
    except (KombuError, RuntimeError) as e:
        logger.warning('Could not queue confirmation email to %s: %s',
                       contact.email, e)
    return None
