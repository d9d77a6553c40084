"""Request routing."""

from typing import Any, Mapping

from flask import Blueprint, Response, request, jsonify, make_response, \
    send_file

from . import controllers

api = Blueprint('intake', __name__)


@api.route('/status', methods=['GET', 'HEAD'])
def service_status() -> Response:
    """Status check endpoint."""
    data, code, head = controllers.service_status()
    response: Response = make_response(jsonify(data), code, head)
    return response


@api.route('/submit-story', methods=['POST'])
def submit_story() -> Response:
    """Submit a transformation story, with an optional photo."""
    upload = request.files.get('image') or request.files.get('photo')
    data, code, head = controllers.submit_story(
        get_fields(), upload, request.headers.get('Accept', '')
    )
    response: Response = make_response(jsonify(data), code, head)
    return response


@api.route('/stories', methods=['GET'])
def list_stories() -> Response:
    """Get all of the stories that have been submitted."""
    data, code, head = controllers.list_stories()
    response: Response = make_response(jsonify(data), code, head)
    return response


@api.route('/submit-contact', methods=['POST'])
def submit_contact() -> Response:
    """Submit a contact/booking request."""
    data, code, head = controllers.submit_contact(get_fields())
    response: Response = make_response(jsonify(data), code, head)
    return response


@api.route('/uploads/<path:filename>', methods=['GET'])
def get_upload(filename: str) -> Response:
    """Get a photo that was uploaded with a story."""
    response: Response = send_file(controllers.get_attachment(filename))
    return response


def get_fields() -> Mapping[str, Any]:
    """Get submitted fields from a form body, or from a JSON object body."""
    if request.is_json:
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) else {}
    return request.form
