"""
Entry-point for the intake worker application.

The worker is a Celery application that sends confirmation e-mails queued by
the web application. Tasks get registered as a side-effect of importing
:mod:`.notifications`.

Run with ``celery -A intake.worker worker``.
"""

from . import notifications  # noqa: F401
from .tasks import get_or_create_worker_app

worker_app = get_or_create_worker_app()
