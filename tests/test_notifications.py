"""Tests for confirmation e-mails and the mail service."""

import smtplib
import threading
from unittest import mock

from jinja2 import TemplateError
from kombu.exceptions import OperationalError

from intake import notifications, tasks
from intake.domain import ContactRecord
from intake.exceptions import NotificationError
from intake.globals import get_application_config
from intake.services import mail

from .util import AppTestCase


class TestNotifyContact(AppTestCase):
    """Test the :func:`.notifications.notify_contact` function."""

    def setUp(self):
        """We have a contact request."""
        super(TestNotifyContact, self).setUp()
        self.contact = ContactRecord(name='Asha', email='a@x.com',
                                     phone='555-0100', message='Starter Plan')

    @mock.patch(f'{mail.__name__}.smtplib.SMTP')
    def test_confirmation(self, mock_SMTP):
        """The confirmation is sent to the submitter."""
        mock_SMTP_instance = mock.MagicMock()
        mock_SMTP.return_value.__enter__.return_value = mock_SMTP_instance

        with self.app.app_context():
            future = notifications.notify_contact(self.contact)
        future.result(timeout=10)

        self.assertEqual(mock_SMTP.call_args[0][0], 'smtp.example.com')
        self.assertEqual(mock_SMTP.call_args[1]['timeout'], 10.0)

        msg = mock_SMTP_instance.send_message.call_args[0][0]
        self.assertEqual(msg['From'], 'Bookings <bookings@example.com>')
        self.assertEqual(msg['To'], 'a@x.com')

        content = str(msg.get_body(preferencelist=('plain',)))
        self.assertIn('Hello Asha,', content)
        self.assertIn('Plan Selected: Starter Plan', content)
        self.assertIn('Contact Number: 555-0100', content)
        self.assertIn('For queries: Bookings <bookings@example.com>', content)

        html = str(msg.get_body(preferencelist=('html',)))
        self.assertIn('<p>Hello Asha,</p>', html)

    @mock.patch(f'{mail.__name__}.smtplib.SMTP')
    def test_email_disabled(self, mock_SMTP):
        """Nothing is sent when e-mail is disabled."""
        self.app.config['EMAIL_ENABLED'] = False
        with self.app.app_context():
            self.assertIsNone(notifications.notify_contact(self.contact))
        mock_SMTP.assert_not_called()

    @mock.patch(f'{mail.__name__}.smtplib.SMTP')
    def test_send_fails(self, mock_SMTP):
        """A failed send is not raised to the caller."""
        mock_SMTP.return_value.__enter__.side_effect = \
            ConnectionRefusedError('nobody home')
        with self.app.app_context():
            future = notifications.notify_contact(self.contact)
        self.assertIsNone(future.result(timeout=10))

    @mock.patch(f'{notifications.__name__}.render_template')
    @mock.patch(f'{mail.__name__}.smtplib.SMTP')
    def test_template_error(self, mock_SMTP, mock_render):
        """The message cannot be rendered."""
        mock_render.side_effect = TemplateError('no such variable')
        with self.app.app_context():
            with self.assertLogs(notifications.__name__, 'WARNING') as logs:
                self.assertIsNone(notifications.notify_contact(self.contact))
        self.assertIn('no such variable', logs.output[0])
        mock_SMTP.assert_not_called()

    @mock.patch(f'{mail.__name__}.smtplib.SMTP')
    def test_line_break_in_plan(self, mock_SMTP):
        """The plan label would break the subject line."""
        self.contact.selected_plan = 'A\nB'
        with self.app.app_context():
            future = notifications.notify_contact(self.contact)
        self.assertIsNone(future.result(timeout=10))
        mock_SMTP.assert_not_called()

    @mock.patch(f'{tasks.__name__}.get_or_create_worker_app')
    @mock.patch(f'{mail.__name__}.smtplib.SMTP')
    def test_async(self, mock_SMTP, mock_get_worker):
        """With ``ENABLE_ASYNC`` on, the e-mail is queued for the worker."""
        mock_worker = mock.MagicMock()
        mock_get_worker.return_value = mock_worker
        self.app.config['ENABLE_ASYNC'] = True

        with self.app.app_context():
            notifications.notify_contact(self.contact)

        mock_SMTP.assert_not_called()
        name, args, kwargs = mock_worker.send_task.call_args[0]
        self.assertEqual(name, 'notifications.send_confirmation_email')
        self.assertEqual(args[0], 'a@x.com')
        self.assertEqual(args[1], 'Your Booking Confirmation – Starter Plan')

    @mock.patch(f'{tasks.__name__}.get_or_create_worker_app')
    def test_broker_unavailable(self, mock_get_worker):
        """The task cannot be queued."""
        mock_get_worker.return_value.send_task.side_effect = \
            OperationalError('connection refused')
        self.app.config['ENABLE_ASYNC'] = True
        with self.app.app_context():
            notifications.notify_contact(self.contact)


class TestSend(AppTestCase):
    """Test the :func:`.mail.send` function."""

    @mock.patch(f'{mail.__name__}.smtplib.SMTP_SSL')
    def test_ssl(self, mock_SMTP_SSL):
        """Use an implicit TLS connection."""
        mock_SMTP_instance = mock.MagicMock()
        mock_SMTP_SSL.return_value.__enter__.return_value = mock_SMTP_instance
        self.app.config.update({'SMTP_SSL': True, 'SMTP_PORT': 465})

        with self.app.app_context():
            mail.send('a@x.com', 'Hello', 'Hi there')

        self.assertEqual(mock_SMTP_SSL.call_args[0][:2],
                         ('smtp.example.com', 465))
        mock_SMTP_instance.login.assert_called_once_with(
            'bookings@example.com', 'not-a-real-password'
        )
        msg = mock_SMTP_instance.send_message.call_args[0][0]
        self.assertEqual(msg['Subject'], 'Hello')
        self.assertIsNone(msg.get_body(preferencelist=('html',)))

    @mock.patch(f'{mail.__name__}.smtplib.SMTP')
    def test_smtp_error(self, mock_SMTP):
        """The SMTP server refuses the message."""
        mock_SMTP.return_value.__enter__.return_value.send_message \
            .side_effect = smtplib.SMTPRecipientsRefused({})
        with self.app.app_context():
            with self.assertRaises(NotificationError):
                mail.send('a@x.com', 'Hello', 'Hi there')

    @mock.patch(f'{mail.__name__}.smtplib.SMTP')
    def test_line_break_in_recipient(self, mock_SMTP):
        """The recipient address would add a header to the message."""
        with self.app.app_context():
            with self.assertRaises(NotificationError):
                mail.send('a@x.com\r\nBcc: evil@x.com', 'Hello', 'Hi there')
        mock_SMTP.assert_not_called()

    @mock.patch(f'{mail.__name__}.smtplib.SMTP')
    def test_line_break_in_subject(self, mock_SMTP):
        """The subject line contains a line break."""
        with self.app.app_context():
            with self.assertRaises(NotificationError):
                mail.send('a@x.com', 'Hello\nthere', 'Hi there')
        mock_SMTP.assert_not_called()


class TestInProcessTasks(AppTestCase):
    """Test running tasks in the web process, with ``ENABLE_ASYNC`` off."""

    def test_runs_in_app_context(self):
        """The task sees the config of the app that started it."""
        seen = []
        self.app.config['ORGANIZATION_NAME'] = 'Somewhere Else'

        def look():
            seen.append(get_application_config().get('ORGANIZATION_NAME'))
            return threading.current_thread().name

        run = tasks.is_async(look)
        with self.app.app_context():
            future = run()
        thread_name = future.result(timeout=10)

        self.assertEqual(seen, ['Somewhere Else'])
        self.assertNotEqual(thread_name, threading.current_thread().name,
                            'The task runs on another thread')

    def test_caller_does_not_wait(self):
        """The task is still running when the call returns."""
        release = threading.Event()

        def hold():
            return release.wait(10)

        run = tasks.is_async(hold)
        with self.app.app_context():
            future = run()
        try:
            self.assertFalse(future.done())
        finally:
            release.set()
        self.assertTrue(future.result(timeout=10))
        tasks.wait_for_pending(timeout=10)
