"""Request controllers."""

from typing import Any, Dict, List, Mapping, Optional, Tuple
from http import HTTPStatus

from flask import current_app
from werkzeug.datastructures import FileStorage
from werkzeug.exceptions import BadRequest, InternalServerError, NotFound

from . import logging, notifications, store
from .domain import StoryRecord, ContactRecord
from .exceptions import ValidationError, StorageWriteError, StorageReadError
from .validation import validate_story, validate_contact, validate_attachment

logger = logging.getLogger(__name__)

Response = Tuple[Any, HTTPStatus, Dict[str, str]]

JSON = 'application/json'


def service_status() -> Response:
    """Handle requests for the status of this service."""
    if not store.is_available():
        raise InternalServerError('Cannot access data directories')
    return {}, HTTPStatus.OK, {}


def submit_story(fields: Mapping[str, Any], upload: Optional[FileStorage],
                 accept: str = '') -> Response:
    """
    Store a transformation story, and the photo that goes with it (if any).

    Parameters
    ----------
    fields : Mapping
        Submitted form (or JSON) fields.
    upload : :class:`FileStorage` or None
        Uploaded photo, if one was provided.
    accept : str
        Value of the ``Accept`` request header.

    Returns
    -------
    dict
        Data for the response body.
    int
        HTTP response status code.
    dict
        Headers to add to the response.

    """
    if upload is not None and not upload.filename:
        upload = None   # Empty file input.
    try:
        data = validate_story(fields)
        if upload is not None:
            validate_attachment(upload.filename,
                                current_app.config['ALLOWED_IMAGE_EXTENSIONS'])
    except ValidationError as e:
        raise BadRequest(e.message) from e

    record = StoryRecord(name=data['name'], email=data['email'],
                         city=data['city'], country=data['country'],
                         story=data['story'])
    try:
        if upload is not None:
            record.image = store.store_attachment(upload)
        filename = store.write_record(record)
    except StorageWriteError as e:
        logger.error('Error saving story: %s', e, exc_info=True)
        raise InternalServerError('Error saving story') from e

    logger.info('Story saved: %s', filename)
    if JSON in accept:
        return {'message': 'Story submitted successfully'}, HTTPStatus.OK, {}
    return {}, HTTPStatus.FOUND, \
        {'Location': current_app.config['THANK_YOU_URL']}


def list_stories() -> Response:
    """Get all of the stored stories."""
    try:
        stories = store.list_records(StoryRecord)
    except StorageReadError as e:
        logger.error('Failed to read stories: %s', e, exc_info=True)
        raise InternalServerError('Failed to read stories') from e
    data: List[Dict[str, Any]] = [story.to_dict() for story in stories]
    return data, HTTPStatus.OK, {}


def submit_contact(fields: Mapping[str, Any]) -> Response:
    """
    Store a contact/booking request, and confirm it to the submitter by e-mail.

    The response does not depend on whether the e-mail goes through.
    """
    try:
        data = validate_contact(fields)
    except ValidationError as e:
        raise BadRequest(e.message) from e

    contact = ContactRecord(name=data['name'], email=data['email'],
                            phone=data['phone'], message=data['message'],
                            selected_plan=data['selectedPlan'])
    try:
        filename = store.write_record(contact)
    except StorageWriteError as e:
        logger.error('Contact form error: %s', e, exc_info=True)
        raise InternalServerError('Server error while submitting contact') \
            from e

    logger.info('Contact form submitted: %s', filename)
    notifications.notify_contact(contact)
    return {'success': True}, HTTPStatus.OK, {}


def get_attachment(filename: str) -> str:
    """Get the path to a stored photo, for sending to the client."""
    try:
        path = store.get_attachment_path(filename)
    except StorageReadError as e:
        logger.error('Failed to read attachments: %s', e, exc_info=True)
        raise InternalServerError('Failed to read attachments') from e
    if path is None:
        raise NotFound(f'No such file: {filename}')
    return path
