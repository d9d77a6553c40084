"""Intake service configuration parameters."""

import os
from os import environ

DEBUG = bool(int(environ.get('DEBUG', '0')))
"""enable/disable debug mode"""

TESTING = bool(int(environ.get('TESTING', '0')))
"""enable/disable testing mode"""

PORT = int(environ.get('PORT', '3000'))
"""Port on which the development server listens."""

LOGLEVEL = int(environ.get('LOGLEVEL', '20'))
"""
Logging verbosity.

See `https://docs.python.org/3/library/logging.html#levels`_.
"""

# --- STORAGE CONFIGURATION ---

DATA_ROOT = environ.get('DATA_ROOT', os.getcwd())
"""Parent directory for the record, attachment, and log directories."""

STORIES_DIR = environ.get('STORIES_DIR', os.path.join(DATA_ROOT, 'stories'))
"""One JSON file per story submission."""

CONTACTS_DIR = environ.get('CONTACTS_DIR',
                           os.path.join(DATA_ROOT, 'contacts'))
"""One JSON file per contact/booking submission."""

UPLOADS_DIR = environ.get('UPLOADS_DIR', os.path.join(DATA_ROOT, 'uploads'))
"""Uploaded photos, referenced by filename from story records."""

STATIC_ROOT = environ.get(
    'STATIC_ROOT',
    os.path.join(os.path.dirname(os.path.abspath(__file__)), 'static')
)
"""Static site files, served from the URL root."""

MAX_CONTENT_LENGTH = int(environ.get('MAX_CONTENT_LENGTH', 16 * 1024 * 1024))
"""Largest request body that will be accepted, in bytes."""

ALLOWED_IMAGE_EXTENSIONS = frozenset(
    environ.get('ALLOWED_IMAGE_EXTENSIONS',
                'png,jpg,jpeg,gif,webp,heic').lower().split(',')
)
"""File extensions accepted for story photos."""

THANK_YOU_URL = environ.get('THANK_YOU_URL', '/thank-you.html')
"""Where browsers are sent after a story is submitted."""

# --- ERROR LOG CONFIGURATION ---

ERROR_LOG = environ.get('ERROR_LOG',
                        os.path.join(DATA_ROOT, 'logs', 'error.log'))
"""Append-only log of failures, one timestamped entry per error."""

ERROR_LOG_MAX_BYTES = int(environ.get('ERROR_LOG_MAX_BYTES', '0'))
"""
Size at which the error log is rotated.

The default of ``0`` disables rotation, so the log grows without bound.
"""

ERROR_LOG_BACKUP_COUNT = int(environ.get('ERROR_LOG_BACKUP_COUNT', '5'))
"""Number of rotated error logs to keep."""

# --- EMAIL CONFIGURATION ---

EMAIL_ENABLED = bool(int(environ.get('EMAIL_ENABLED', '1')))
"""Disable/enable confirmation e-mails for contact submissions."""

SMTP_HOSTNAME = environ.get('SMTP_HOSTNAME')
"""Hostname for the SMTP server. Required if ``EMAIL_ENABLED``."""

SMTP_USERNAME = environ.get('SMTP_USERNAME')
"""Username for the SMTP server. Required if ``EMAIL_ENABLED``."""

SMTP_PASSWORD = environ.get('SMTP_PASSWORD')
"""Password for the SMTP server. Required if ``EMAIL_ENABLED``."""

SMTP_PORT = int(environ.get('SMTP_PORT', '0'))
"""SMTP service port. ``0`` selects the default for the connection type."""

SMTP_LOCAL_HOSTNAME = environ.get('SMTP_LOCAL_HOSTNAME', None)
"""Local host name to include in SMTP request."""

SMTP_SSL = bool(int(environ.get('SMTP_SSL', '1')))
"""Enable/disable SSL for SMTP."""

SMTP_TIMEOUT = float(environ.get('SMTP_TIMEOUT', '10'))
"""Seconds to wait on the SMTP server before giving up on a send."""

MAIL_SENDER = environ.get('MAIL_SENDER')
"""``From`` address for outgoing mail. Defaults to ``SMTP_USERNAME``."""

ORGANIZATION_NAME = environ.get('ORGANIZATION_NAME',
                                'Space of Purification Global')
"""Name used to sign outgoing mail."""

SITE_URL = environ.get('SITE_URL', 'https://spaceofpurificationglobal.com')
"""Public website, linked from outgoing mail."""

SUPPORT_EMAIL = environ.get('SUPPORT_EMAIL')
"""Address for queries, quoted in outgoing mail. Defaults to ``MAIL_SENDER``."""

# --- WORKER CONFIGURATION ---

ENABLE_ASYNC = bool(int(environ.get('ENABLE_ASYNC', '0')))
"""
Send e-mail from the worker (``1``) rather than on a thread in the web
process.
"""

TASK_THREADS = int(environ.get('TASK_THREADS', '2'))
"""Threads that send e-mail in the web process, if ``ENABLE_ASYNC`` is off."""

BROKER_URL = environ.get('BROKER_URL', 'redis://localhost:6379/0')
"""Celery broker for background tasks."""

RESULT_BACKEND = environ.get('RESULT_BACKEND', None)
"""Celery result backend. Task results are not used by this service."""

task_ignore_result = True
"""Dispatch is fire-and-forget."""

task_default_queue = 'intake-worker'
