"""Access to application configuration inside and outside of Flask."""

from typing import Any, Mapping

from flask import current_app, has_app_context

from . import config


def get_application_config() -> Mapping[str, Any]:
    """
    Get the current application configuration.

    Inside an application context this is the Flask app config. The worker
    and other out-of-app callers fall back to the values in
    :mod:`intake.config`.
    """
    if has_app_context():
        return current_app.config
    return {key: getattr(config, key) for key in dir(config)
            if not key.startswith('_')}
