"""
Functions for storing and reading submissions on the local filesystem.

Records live in one directory per record kind, one JSON file per
submission::

    {STORIES_DIR}/1714558830123-Asha.json
    {CONTACTS_DIR}/contact-1714558830123-Asha.json

Photos uploaded with a story go in ``UPLOADS_DIR``, and are referenced from
the story record by filename.

Records are never overwritten. A record is first written to a hidden
temporary file in the target directory, and then linked into place under its
final name; if that name is already taken, a random token is added to it.
Hidden files are ignored when records are listed, so readers never see a
partially written record.

To use this in a Flask application, the following config parameters must be
set:

- ``STORIES_DIR``
- ``CONTACTS_DIR``
- ``UPLOADS_DIR``

"""

import json
import os
import secrets
import tempfile
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Type, TypeVar, Union

from flask import Flask, current_app
from pytz import UTC
from unidecode import unidecode
from werkzeug.datastructures import FileStorage
from werkzeug.security import safe_join
from werkzeug.utils import secure_filename

from . import logging
from .domain import StoryRecord, ContactRecord, now
from .exceptions import ConfigurationError, StorageWriteError, \
    StorageReadError, RecordParseError

logger = logging.getLogger(__name__)

Record = Union[StoryRecord, ContactRecord]
RecordType = TypeVar('RecordType', StoryRecord, ContactRecord)

RECORD_DIRS: Dict[type, str] = {
    StoryRecord: 'STORIES_DIR',
    ContactRecord: 'CONTACTS_DIR'
}
DIRECTORIES = ('STORIES_DIR', 'CONTACTS_DIR', 'UPLOADS_DIR')
MAX_NAME_ATTEMPTS = 8
EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def init_app(app: Flask) -> None:
    """Create the record and attachment directories, if they are missing."""
    for key in DIRECTORIES:
        try:
            path = app.config[key]
        except KeyError as e:
            raise ConfigurationError(f'Missing required config params: {e}') \
                from e
        os.makedirs(path, exist_ok=True)


def is_available() -> bool:
    """Determine whether all of the data directories are writable."""
    paths = [_get_dir(key) for key in DIRECTORIES]
    return all(os.path.isdir(path) and os.access(path, os.W_OK)
               for path in paths)


def sanitize_name(name: str) -> str:
    """
    Make a submitter name safe for use in a filename.

    Non-ASCII characters are transliterated, whitespace becomes ``_``, and
    anything that could be used to leave the directory is removed.
    """
    return secure_filename(unidecode(name)) or 'anonymous'


def store_attachment(upload: FileStorage, chunk_size: int = 4096) -> str:
    """
    Put an uploaded photo in the attachment store.

    Parameters
    ----------
    upload : :class:`FileStorage`
        The uploaded file, as parsed from the request.
    chunk_size : int
        Number of bytes to copy at a time.

    Returns
    -------
    str
        Name of the new file in ``UPLOADS_DIR``.

    Raises
    ------
    :class:`.StorageWriteError`
        Raised when the file cannot be written.

    """
    millis = _millis()
    original = sanitize_name(upload.filename or 'upload')
    filename = f'{millis}-{secrets.token_hex(4)}-{original}'
    path = os.path.join(_get_dir('UPLOADS_DIR'), filename)
    try:
        f = open(path, 'xb')
    except OSError as e:
        raise StorageWriteError(f'Could not store attachment: {e}') from e
    try:
        with f:
            while True:
                chunk = upload.stream.read(chunk_size)
                if not chunk:
                    break
                f.write(chunk)
    except OSError as e:
        _remove_quietly(path)
        raise StorageWriteError(f'Could not store attachment: {e}') from e
    logger.debug('Stored attachment %s', filename)
    return filename


def get_attachment_path(filename: str) -> Optional[str]:
    """
    Get the full path to a stored attachment.

    Returns ``None`` if there is no such attachment, or if ``filename`` would
    resolve to something outside of the attachment store.
    """
    directory = _get_dir('UPLOADS_DIR')
    if not os.path.isdir(directory):
        raise StorageReadError(f'Cannot access attachments: {directory}')
    path = safe_join(directory, filename)
    if path is None or not os.path.isfile(path):
        return None
    return path


def write_record(record: Record) -> str:
    """
    Write a new record to the record store.

    The filename is made from the record creation time (epoch milliseconds)
    and the submitter name, e.g. ``contact-1714558830123-Asha.json``.

    Returns
    -------
    str
        Name of the new record file.

    Raises
    ------
    :class:`.StorageWriteError`
        Raised when the record cannot be written.

    """
    directory = _record_dir(type(record))
    millis = _millis(record)
    stem = f'{record.prefix}{millis}-{sanitize_name(record.name)}'
    content = json.dumps(record.to_dict(), indent=2, ensure_ascii=False)
    try:
        fd, temp_path = tempfile.mkstemp(prefix='.', suffix='.tmp',
                                         dir=directory)
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            filename = _link_exclusive(temp_path, directory, stem)
        finally:
            _remove_quietly(temp_path)
    except OSError as e:
        raise StorageWriteError(f'Could not write record {stem}: {e}') from e
    return filename


def list_records(record_type: Type[RecordType] = StoryRecord) \
        -> List[RecordType]:
    """
    Load all of the records of one kind.

    Records that cannot be parsed are logged and left out; they do not
    prevent the rest from being loaded. Records are in filename order.

    Raises
    ------
    :class:`.StorageReadError`
        Raised when the record directory itself cannot be read.

    """
    directory = _record_dir(record_type)
    try:
        entries = sorted(os.listdir(directory))
    except OSError as e:
        raise StorageReadError(f'Cannot read records: {e}') from e

    records: List[RecordType] = []
    for entry in entries:
        path = os.path.join(directory, entry)
        if entry.startswith('.') or not os.path.isfile(path):
            continue
        try:
            records.append(load_record(record_type, path))
        except RecordParseError as e:
            logger.error('Invalid record in file %s: %s', entry, e)
            logger.warning('Skipping record %s', entry)
    return records


def load_record(record_type: Type[RecordType], path: str) -> RecordType:
    """Read and parse one stored record."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:    # JSONDecodeError, UnicodeError
        raise RecordParseError(f'Could not load {path}: {e}') from e
    return record_type.from_dict(data)


def _link_exclusive(source: str, directory: str, stem: str) -> str:
    candidate = f'{stem}.json'
    for _ in range(MAX_NAME_ATTEMPTS):
        try:
            os.link(source, os.path.join(directory, candidate))
        except FileExistsError:
            logger.warning('Record %s already exists', candidate)
            candidate = f'{stem}-{secrets.token_hex(4)}.json'
            continue
        return candidate
    raise FileExistsError(f'No free name for record {stem}')


def _remove_quietly(path: str) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning('Could not remove temporary file %s: %s', path, e)


def _millis(record: Optional[Record] = None) -> int:
    if record is not None and record.timestamp is not None:
        timestamp = record.timestamp
    else:
        timestamp = now()
    return (timestamp - EPOCH) // timedelta(milliseconds=1)


def _record_dir(record_type: type) -> str:
    try:
        return _get_dir(RECORD_DIRS[record_type])
    except KeyError as e:
        raise ConfigurationError(f'No record store for {record_type}') from e


def _get_dir(key: str) -> str:
    try:
        return str(current_app.config[key])
    except KeyError as e:
        raise ConfigurationError(f'Missing required config params: {e}') from e
