"""Helpers for intake service tests."""

import os
import shutil
import tempfile
from typing import Any, Dict
from unittest import TestCase

from intake.factory import create_app


def app_settings(root: str, **extra: Any) -> Dict[str, Any]:
    """Settings that keep all of the service's files under ``root``."""
    settings = {
        'TESTING': True,
        'STORIES_DIR': os.path.join(root, 'stories'),
        'CONTACTS_DIR': os.path.join(root, 'contacts'),
        'UPLOADS_DIR': os.path.join(root, 'uploads'),
        'ERROR_LOG': os.path.join(root, 'logs', 'error.log'),
        'ERROR_LOG_MAX_BYTES': 0,
        'EMAIL_ENABLED': True,
        'SMTP_HOSTNAME': 'smtp.example.com',
        'SMTP_USERNAME': 'bookings@example.com',
        'SMTP_PASSWORD': 'not-a-real-password',
        'SMTP_PORT': 0,
        'SMTP_SSL': False,
        'MAIL_SENDER': 'Bookings <bookings@example.com>',
        'ENABLE_ASYNC': False,
    }
    settings.update(extra)
    return settings


class AppTestCase(TestCase):
    """Each test gets an app with its own empty data directories."""

    def setUp(self):
        """Create an app that stores everything in a temporary directory."""
        self.root = tempfile.mkdtemp()
        self.app = create_app(app_settings(self.root))
        self.client = self.app.test_client()
        self.stories_dir = self.app.config['STORIES_DIR']
        self.contacts_dir = self.app.config['CONTACTS_DIR']
        self.uploads_dir = self.app.config['UPLOADS_DIR']
        self.error_log = self.app.config['ERROR_LOG']

    def tearDown(self):
        """Remove the temporary data directories."""
        shutil.rmtree(self.root, ignore_errors=True)

    def read_error_log(self) -> str:
        """Get the content of the error log, if anything has been logged."""
        if not os.path.exists(self.error_log):
            return ''
        with open(self.error_log, encoding='utf-8') as f:
            return f.read()
