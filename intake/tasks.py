"""
Provides support for background tasks.

The worker is a Celery application that listens for tasks on the broker at
``BROKER_URL``. Tasks are registered by the :func:`is_async` decorator, so
registration is a side-effect of importing the modules that use it.

When ``ENABLE_ASYNC`` is off, tasks run on a small pool of threads in this
process instead. Either way the caller does not wait for the task.
"""

from concurrent.futures import Future, ThreadPoolExecutor, wait
from functools import wraps
from typing import Any, Callable, Optional, Set

from celery import Celery
from flask import Flask, current_app, has_app_context

from . import config, logging
from .globals import get_application_config

logger = logging.getLogger(__name__)

_worker_app: Optional[Celery] = None
_executor: Optional[ThreadPoolExecutor] = None
_pending: Set[Future] = set()


def create_worker_app() -> Celery:
    """Initialize the worker application."""
    celery_app = Celery('intake',
                        backend=config.RESULT_BACKEND,
                        broker=config.BROKER_URL)
    celery_app.config_from_object(config)
    celery_app.conf.task_default_queue = config.task_default_queue
    celery_app.conf.task_ignore_result = True
    return celery_app


def get_or_create_worker_app() -> Celery:
    """Get the current worker app, or create one."""
    global _worker_app
    if _worker_app is None:
        _worker_app = create_worker_app()
    return _worker_app


def get_or_create_executor() -> ThreadPoolExecutor:
    """Get the thread pool for in-process tasks, or create one."""
    global _executor
    if _executor is None:
        _executor = ThreadPoolExecutor(max_workers=config.TASK_THREADS,
                                       thread_name_prefix='intake-task')
    return _executor


def wait_for_pending(timeout: Optional[float] = None) -> None:
    """Block until the in-process tasks started so far have finished."""
    wait(list(_pending), timeout=timeout)


def name_for_callback(func: Callable) -> str:
    """Produce a name for a function suitable for use as a task name."""
    parent = func.__module__.split('.')[-1]
    return f'{parent}.{func.__name__}'


def is_async(func: Callable) -> Callable:
    """
    Turn a function into an asynchronous task.

    Registers the function with the worker application, and decorates the
    function with logic to dispatch the function to the worker when called.
    When the decorated function is called, a task is added to the worker queue
    and ``None`` is returned without waiting for the task. If
    ``ENABLE_ASYNC=0`` on the app config, the function is run on a background
    thread in this process (inside the caller's application context, if any),
    and the :class:`Future` for that run is returned.

    Arguments must be serializable by the worker (e.g. plain strings).
    """
    worker_app = get_or_create_worker_app()
    name = name_for_callback(func)
    worker_app.task(name=name, ignore_result=True)(func)

    @wraps(func)
    def execute(*args: Any, **kwargs: Any) -> Optional[Future]:
        """Queue the function for the worker, or start it on a thread."""
        app_config = get_application_config()
        if bool(int(app_config.get('ENABLE_ASYNC', 0))):
            get_or_create_worker_app().send_task(name, args, kwargs)
            logger.debug('Queued %s', name)
            return None
        app = current_app._get_current_object() if has_app_context() \
            else None
        future = get_or_create_executor().submit(_run_in_context, app, func,
                                                 *args, **kwargs)
        _pending.add(future)
        future.add_done_callback(_finished(name))
        logger.debug('Started %s in-process', name)
        return future
    return execute


def _run_in_context(app: Optional[Flask], func: Callable, *args: Any,
                    **kwargs: Any) -> Any:
    if app is None:
        return func(*args, **kwargs)
    with app.app_context():
        return func(*args, **kwargs)


def _finished(name: str) -> Callable[[Future], None]:
    def callback(future: Future) -> None:
        _pending.discard(future)
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.warning('Task %s failed: %s', name, error)
    return callback
