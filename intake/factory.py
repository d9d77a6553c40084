"""Application factory for the intake service."""

from typing import Any, Mapping, Optional

from flask import Flask, jsonify, Response
from werkzeug.exceptions import HTTPException, BadRequest, \
    MethodNotAllowed, InternalServerError, NotFound, RequestEntityTooLarge

from . import config, logging, store
from .routes import api
from .services import mail

logger = logging.getLogger(__name__)


def create_app(overrides: Optional[Mapping[str, Any]] = None) -> Flask:
    """
    Create a new app.

    Settings come from :mod:`intake.config`; ``overrides`` are applied on top
    of them before anything is initialized. Missing data directories are
    created.
    """
    app = Flask('intake', static_folder=config.STATIC_ROOT,
                static_url_path='')
    app.config.from_object(config)
    if overrides:
        app.config.update(overrides)
    app.static_folder = app.config['STATIC_ROOT']

    logging.init_app(app)
    store.init_app(app)
    mail.init_app(app)

    register_error_handlers(app)
    app.register_blueprint(api)
    return app


def register_error_handlers(app: Flask) -> None:
    """Register error handlers for the Flask app."""
    app.errorhandler(BadRequest)(jsonify_exception)
    app.errorhandler(NotFound)(jsonify_exception)
    app.errorhandler(MethodNotAllowed)(jsonify_exception)
    app.errorhandler(RequestEntityTooLarge)(jsonify_exception)
    app.errorhandler(InternalServerError)(handle_internal_error)


def jsonify_exception(error: HTTPException) -> Response:
    """Render exceptions as JSON."""
    exc_resp = error.get_response()
    response: Response = jsonify(error=error.description)
    response.status_code = exc_resp.status_code
    return response


def handle_internal_error(error: InternalServerError) -> Response:
    """Log unexpected errors to the error log, and render them as JSON."""
    original = getattr(error, 'original_exception', None)
    if original is not None:
        logger.error('Unexpected error: %s', original, exc_info=original)
        error = InternalServerError('Internal server error')
    return jsonify_exception(error)
